import argparse
import logging
import os
import sys

import uvicorn

from kealthy import ConfigurationError, Kealthy, __version__

logger = logging.getLogger("kealthy")


def _configure_logging(debug: bool):
    if logger.hasHandlers():
        return

    handler = logging.StreamHandler(sys.stdout)
    if debug:
        handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s'))
        logger.setLevel(logging.DEBUG)
    else:
        handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
        logger.setLevel(logging.INFO)

    logger.addHandler(handler)


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="kealthy", description="Serve the Kealthy marketing site and blog.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging.")
    parser.add_argument(
        "--environment",
        "-e",
        default=None,
        help="Config environment, loads kealthy.{environment}.yaml. Defaults to $KEALTHY_ENVIRONMENT or 'prod'.",
    )
    parser.add_argument(
        "--working-directory",
        "-w",
        default=None,
        help="Directory containing the config files. Defaults to the current directory.",
    )
    parser.add_argument("--host", default="127.0.0.1", help="Host to bind to (use 0.0.0.0 for Docker)")
    parser.add_argument("--port", type=int, default=8000, help="Port to listen on")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = create_parser().parse_args(argv)
    _configure_logging(args.debug or bool(os.getenv("KEALTHY_DEBUG")))

    try:
        site = Kealthy(working_directory=args.working_directory, environment=args.environment)
    except ConfigurationError as e:
        logger.error(f"Failed to configure the site: {e}")
        return 1

    logger.info(f"Starting Kealthy site on {args.host}:{args.port}")
    uvicorn.run(site, host=args.host, port=args.port, log_level="debug" if args.debug else "info")
    return 0


if __name__ == "__main__":
    sys.exit(main())
