#!/usr/bin/env python3
"""
Run a single status refresh and print a summary.

Useful from cron when the long-running scheduler is not wanted.
"""

import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from activity_status.config import reload_config
from activity_status.core.factories import create_services
from activity_status.logger import setup_logger


def main() -> None:
    """Refresh once."""
    config = reload_config()
    setup_logger()

    services = create_services(config)
    view = services.refresher.refresh()
    report = services.refresher.last_report

    print(f"Status view has {len(view.activities)} activities at {view.location.name}")
    if report is not None:
        print(f"New activities: {report.appended} of {report.candidates} candidates")
        if report.failed_sources:
            print(f"Failed sources: {', '.join(report.failed_sources)}")


if __name__ == "__main__":
    main()
