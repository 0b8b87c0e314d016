"""
Rebalancer - Main application entry point.

Runs the cron worker API with the built-in rebalance schedule, or performs a
single rebalance from the command line.
"""

import argparse
import json
import sys
from typing import List, Optional

import uvicorn
from dotenv import load_dotenv

# Load environment variables first
load_dotenv()

from rebalancer.config.logging import get_logger
from rebalancer.config.settings import get_required_env_vars, get_settings
from rebalancer.exceptions import RebalancerException
from rebalancer.scheduler import (
    add_rebalance_job,
    list_scheduled_jobs,
    shutdown_scheduler,
    start_scheduler,
)
from rebalancer.services import RebalanceService
from rebalancer.utils.config import initialize_application, validate_environment


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rebalancer", description="Signal-driven portfolio rebalancer"
    )
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("serve", help="Run the API server and scheduler (default)")
    subparsers.add_parser("run-once", help="Run a single rebalance and print the result")
    subparsers.add_parser("init-db", help="Create the database tables and exit")

    return parser


def serve() -> None:
    """Start the scheduler and the FastAPI server."""
    logger = get_logger(__name__)
    settings = get_settings()

    if not validate_environment():
        logger.error("Environment validation failed")
        print(
            "Please set the required environment variables before running the application."
        )
        print(f"Required variables: {', '.join(get_required_env_vars())}")
        sys.exit(1)

    logger.info(
        "Starting server",
        host=settings.endpoint_host,
        port=settings.endpoint_port,
        scheduler_enabled=settings.scheduler_enabled,
    )

    if settings.scheduler_enabled:
        start_scheduler()
        add_rebalance_job()
        list_scheduled_jobs()

    try:
        uvicorn.run(
            "rebalancer.webapi.app:app",
            host=settings.endpoint_host,
            port=settings.endpoint_port,
            reload=settings.api_reload,
            log_level=settings.api_log_level.lower(),
        )
    except KeyboardInterrupt:
        logger.info("Received interrupt signal")
        print("\nShutting down...")
    finally:
        if settings.scheduler_enabled:
            logger.info("Shutting down scheduler")
            shutdown_scheduler()


def run_once() -> int:
    """Run one rebalance and print the outcome as JSON."""
    logger = get_logger(__name__)

    try:
        outcome = RebalanceService().trigger_rebalance(actor="cli")
    except RebalancerException as e:
        logger.error("Rebalance run failed", error=e.message, details=e.details)
        print(json.dumps(e.to_dict(), indent=2))
        return 1

    print(json.dumps(outcome.to_dict(), indent=2))
    return 0


def main(argv: Optional[List[str]] = None) -> None:
    """Main application entry point."""
    args = build_parser().parse_args(argv)

    # Initialize application (logging, data directory, schema)
    initialize_application()

    logger = get_logger(__name__)
    command = args.command or "serve"
    logger.info("Starting rebalancer", command=command)

    if command == "init-db":
        print("Database tables created.")
    elif command == "run-once":
        sys.exit(run_once())
    else:
        serve()


if __name__ == "__main__":
    main()
