"""
Deduplicating merger.

Folds newly fetched candidates into the stored history. Identity is the activity
id; an id already present in history is never accepted again.
"""

from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

from activity_status.models import Activity


@dataclass
class MergeResult:
    """Result of a merge."""

    history: list[Activity]
    appended: list[Activity] = field(default_factory=list)

    @property
    def appended_count(self) -> int:
        return len(self.appended)


def sort_history(activities: Iterable[Activity]) -> list[Activity]:
    """Sort newest first; equal timestamps keep their relative order."""
    return sorted(activities, key=lambda activity: activity.timestamp, reverse=True)


def merge(
    existing: list[Activity],
    candidates: Iterable[Activity],
    dedupe_within_batch: bool = True,
    stamp: Optional[Callable[[Activity], Activity]] = None,
) -> MergeResult:
    """Merge candidates into an existing history.

    A candidate is accepted when its id is not in ``existing`` and, with
    ``dedupe_within_batch``, not already accepted earlier in this call. Accepted
    candidates keep their order, go in front of the existing entries, and the whole
    list is then sorted by timestamp descending.

    Args:
        existing: Current history
        candidates: New activities in source order
        dedupe_within_batch: Also reject repeats among the candidates themselves
        stamp: Optional transform applied to each accepted candidate

    Returns:
        MergeResult with the new history and exactly the accepted activities
    """
    known_ids = {activity.id for activity in existing}
    appended = []

    for candidate in candidates:
        if candidate.id in known_ids:
            continue
        if stamp is not None:
            candidate = stamp(candidate)
        appended.append(candidate)
        if dedupe_within_batch:
            known_ids.add(candidate.id)

    history = sort_history(appended + list(existing))
    return MergeResult(history=history, appended=appended)
