#!/usr/bin/env python3
"""
Run the activity status API with the periodic refresh scheduler.
"""

import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from activity_status.config import reload_config
from activity_status.logger import get_logger, setup_logger
from activity_status.web.app import create_app
from activity_status.web.scheduler_manager import get_scheduler_manager


def main() -> None:
    """Start the development server."""
    import argparse

    parser = argparse.ArgumentParser(description="Run the activity status API")
    parser.add_argument("--host", help="Bind address (defaults to WEB_HOST)")
    parser.add_argument("--port", type=int, help="Port (defaults to WEB_PORT)")
    parser.add_argument("--no-scheduler", action="store_true", help="Do not start the periodic refresh")
    args = parser.parse_args()

    config = reload_config()
    setup_logger()
    logger = get_logger(__name__)

    app = create_app(config, start_scheduler=False if args.no_scheduler else None)
    host = args.host or config.web.host
    port = args.port or config.web.port

    logger.info(f"Serving on http://{host}:{port}")
    try:
        app.run(host=host, port=port, debug=config.web.debug, use_reloader=False)
    finally:
        get_scheduler_manager(app).stop_scheduler(wait=False)


if __name__ == "__main__":
    main()
