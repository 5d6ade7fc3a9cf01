"""
Activity normalizer.

Maps parser output onto Activity records. Identifiers are derived only from the
upstream item, so the same item always gets the same id on every poll.
"""

import base64
from datetime import datetime
from typing import Optional

from activity_status.core.parser import CommitItem, FeedItem, GitHubEvent
from activity_status.models import Activity, ActivityType, LocationState
from activity_status.utils.dates import to_epoch_millis

GITHUB_SOURCE = "GitHub"
MANUAL_SOURCE = "Manual"
ACCOUNT_WIDE_REPOSITORY = "all-repositories"
RESEARCH_CATEGORY = "research"

SHORT_HASH_LENGTH = 8
RSS_ID_LENGTH = 10


def commit_activity_id(commit_hash: str) -> str:
    """Id for a commit-feed entry: ``github-`` plus the first 8 hash characters."""
    return f"github-{commit_hash[:SHORT_HASH_LENGTH]}"


def rss_activity_id(link: str) -> str:
    """Id for a feed item: ``rss-`` plus the first 10 characters of base64(link)."""
    encoded = base64.b64encode(link.encode("utf-8")).decode("ascii")
    return f"rss-{encoded[:RSS_ID_LENGTH]}"


def location_activity_id(now: datetime) -> str:
    """Id for a manual location update: ``location-`` plus epoch milliseconds."""
    return f"location-{to_epoch_millis(now)}"


def _repository_label(repository: str) -> str:
    parts = repository.split("/")
    if len(parts) > 1 and parts[1]:
        return parts[1]
    return repository


def normalize_commit(item: CommitItem, repository: str) -> Activity:
    """Build a development activity from a commit-feed entry.

    Args:
        item: Parsed commit entry
        repository: "owner/name", or "all-repositories" for the account-wide feed

    Returns:
        Activity
    """
    if repository == ACCOUNT_WIDE_REPOSITORY:
        description = item.title
    else:
        description = f"Pushed commit to {_repository_label(repository)}"

    return Activity(
        id=commit_activity_id(item.commit_hash),
        type=ActivityType.DEVELOPMENT,
        title="Development Activity",
        description=description,
        timestamp=item.updated,
        source=GITHUB_SOURCE,
        metadata={
            "repository": repository,
            "commitHash": item.commit_hash[:SHORT_HASH_LENGTH],
            "commitMessage": item.title,
            "link": item.link,
            "author": item.author,
        },
    )


def normalize_feed_item(item: FeedItem, source: str, category: Optional[str] = None) -> Activity:
    """Build a content or research activity from a feed item.

    Args:
        item: Parsed feed item
        source: Display name of the feed
        category: "research" for watch logs, anything else for publications

    Returns:
        Activity
    """
    if category == RESEARCH_CATEGORY:
        activity_type = ActivityType.RESEARCH
        title = "Research Activity"
        description = f"Watched: {item.title}"
    else:
        activity_type = ActivityType.CONTENT
        title = "Content Publication"
        description = f"Published: {item.title}"

    return Activity(
        id=rss_activity_id(item.link),
        type=activity_type,
        title=title,
        description=description,
        timestamp=item.published,
        source=source,
        metadata={"title": item.title, "link": item.link},
    )


def normalize_github_event(event: GitHubEvent) -> Optional[Activity]:
    """Build an activity from a GitHub push or release event.

    Args:
        event: Parsed event

    Returns:
        Activity, or None for unsupported event types
    """
    if event.event_type == "PushEvent":
        return Activity(
            id=f"github-{event.event_id}",
            type=ActivityType.DEVELOPMENT,
            title="Development Activity",
            description=f"Pushed {event.commit_count} commit(s) to {event.repo}",
            timestamp=event.created_at,
            source=GITHUB_SOURCE,
            metadata={"repository": event.repo, "commits": event.commit_count},
        )

    if event.event_type == "ReleaseEvent":
        return Activity(
            id=f"github-release-{event.event_id}",
            type=ActivityType.DEPLOYMENT,
            title="Release Published",
            description=f"Released {event.tag_name} for {event.repo}",
            timestamp=event.created_at,
            source=GITHUB_SOURCE,
            metadata={"repository": event.repo, "version": event.tag_name},
        )

    return None


def location_activity(
    location: LocationState,
    now: datetime,
    activity: Optional[str] = None,
) -> Activity:
    """Build the activity recorded for a manual location update.

    The activity carries the new location, at city level, as its own location context.

    Args:
        location: Location being set
        now: Current time, used for the id
        activity: Optional free text, e.g. "Coffee"

    Returns:
        Activity
    """
    if activity:
        title = "Activity Update"
        description = f"{activity} in {location.public_name}"
    else:
        title = "Location Update"
        description = f"Arrived in {location.public_name}"

    return Activity(
        id=location_activity_id(now),
        type=ActivityType.LOCATION,
        title=title,
        description=description,
        timestamp=location.timestamp,
        source=MANUAL_SOURCE,
        location=location.public_name,
        coordinates=list(location.coordinates),
        location_timestamp=location.timestamp,
        metadata={
            "location": location.public_name,
            "activity": activity,
            "coordinates": list(location.coordinates),
        },
    )
