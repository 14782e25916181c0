"""
Canonical entry point for room_control_server package.

Usage:
    room-control server --environment development
    room-control cycle --environment development
    room-control api --environment development
    room-control setup-db --environment development
"""

import argparse
import logging
import os
import sys

import uvicorn
from room_control_core.config.environments import get_settings


def setup_logging(config) -> None:
    """Set up logging configuration."""
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(message)s",
    )
    return None


def run_api_server(args: argparse.Namespace) -> None:
    """Run the read-only FastAPI server."""
    config = get_settings()
    setup_logging(config)
    log = logging.getLogger(__name__)

    host = args.host or config.API_HOST
    port = args.port or config.API_PORT
    reload = args.reload and args.environment != "production"

    log.info("Starting API server...")
    log.info(f"Environment: {args.environment}")
    log.info(f"Host: {host}")
    log.info(f"Port: {port}")
    log.info(f"Reload: {reload}")

    uvicorn.run(
        "room_control_server.adapters.api.main:app",
        host=host,
        port=port,
        reload=reload,
        log_level=config.LOG_LEVEL.lower(),
    )
    return None


def run_control_server(args: argparse.Namespace) -> None:
    """Run telemetry ingestion and the control scheduler until signalled."""
    from room_control_server.adapters.mqtt.server import main as mqtt_main

    config = get_settings()
    setup_logging(config)
    log = logging.getLogger(__name__)

    log.info("Starting control server...")
    log.info(f"Environment: {args.environment}")
    log.info(f"MQTT Broker: {config.MQTT_BROKER}:{config.MQTT_PORT}")
    log.info(f"Control interval: {config.CONTROL_INTERVAL_SEC}s")

    mqtt_main()
    return None


def run_single_cycle(args: argparse.Namespace) -> int:
    """Connect, run one control cycle, disconnect."""
    from room_control_core.application import run_control_cycle
    from room_control_core.domain.errors import RoomControlError

    from room_control_server.adapters.db.uow import SqlAlchemyUoW
    from room_control_server.adapters.mqtt.server import make_transport

    config = get_settings()
    setup_logging(config)
    log = logging.getLogger(__name__)

    transport = make_transport(config)
    transport.connect()
    try:
        transport.wait_until_connected(timeout=10)
        report = run_control_cycle(
            SqlAlchemyUoW,
            transport,
            window_s=config.FRESHNESS_WINDOW_SEC,
            record_audit=config.RECORD_DIFF_AUDIT,
        )
    except RoomControlError as exc:
        log.error(f"Control cycle failed: {exc}")
        return 1
    finally:
        transport.close()

    log.info(
        f"Cycle done: {report.rooms} rooms, {len(report.commands_sent)} commands sent, "
        f"{len(report.commands_failed)} failed"
    )
    return 1 if report.commands_failed else 0


def setup_database(args: argparse.Namespace) -> None:
    """Create the tables."""
    from sqlalchemy import create_engine

    from room_control_server.adapters.db.sqlalchemy_models import Base

    config = get_settings()
    setup_logging(config)
    log = logging.getLogger(__name__)

    log.info(f"Setting up database for {args.environment} environment...")
    log.info(f"Database URL: {config.DATABASE_URL}")

    engine = create_engine(config.DATABASE_URL, future=True, echo=False)
    Base.metadata.create_all(bind=engine)
    log.info("Database setup completed successfully")
    return None


def main() -> None:
    """Main entry point for room_control_server commands."""
    parser = argparse.ArgumentParser(
        description="Room Control Server - control loop, preview API and database management"
    )
    parser.add_argument(
        "--environment",
        choices=["production", "development", "testing"],
        default="development",
        help="Environment to run in",
    )
    parser.add_argument(
        "command",
        choices=["server", "cycle", "api", "setup-db"],
        help="Command to run",
    )
    parser.add_argument("--host", help="Host to bind to (overrides config)")
    parser.add_argument("--port", type=int, help="Port to bind to (overrides config)")
    parser.add_argument(
        "--reload", action="store_true", help="Enable auto-reload (development only)"
    )

    args = parser.parse_args()

    # Set environment variable for config
    os.environ["ROOM_CONTROL_ENV"] = args.environment

    if args.command == "api":
        run_api_server(args)
    elif args.command == "server":
        run_control_server(args)
    elif args.command == "cycle":
        sys.exit(run_single_cycle(args))
    elif args.command == "setup-db":
        setup_database(args)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
