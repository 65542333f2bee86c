import argparse
import logging
from typing import List, Optional

import uvicorn

from system_status.application import create_app
from system_status.config import Settings


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Serve host telemetry (uptime, load, memory, disks, network) as JSON."
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Debug logging and allow cross-origin requests from any origin.",
    )
    parser.add_argument(
        "--host",
        help="Interface to bind to (default: SYSTEM_STATUS_HOST or 0.0.0.0)",
    )
    parser.add_argument(
        "--port",
        type=int,
        help="Port to listen on (default: SYSTEM_STATUS_PORT or 8000)",
    )
    return parser.parse_args(argv)


def build_settings(args: argparse.Namespace, base: Optional[Settings] = None) -> Settings:
    """Apply command line flags on top of the environment settings."""
    base = base or Settings.from_env()
    overrides = {}
    if args.debug:
        overrides["debug"] = True
    if args.host:
        overrides["host"] = args.host
    if args.port is not None:
        overrides["port"] = args.port
    return base.model_copy(update=overrides)


def main(argv: Optional[List[str]] = None) -> int:
    settings = build_settings(parse_args(argv))

    logging.basicConfig(
        level=logging.DEBUG if settings.debug else settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level="debug" if settings.debug else settings.log_level.lower(),
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
