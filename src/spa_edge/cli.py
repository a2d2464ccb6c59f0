"""Command-line entry point: load .env, build settings, run uvicorn."""
from __future__ import annotations

import argparse
import dataclasses
import sys
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

from .main import create_app
from .observability.logging import configure_logging, get_logger
from .settings import EdgeSettings, SettingsError

logger = get_logger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="spa-edge",
        description="Serve an SPA bundle behind an IP allow-list with a path-based reverse proxy.",
    )
    parser.add_argument("--env-file", default=".env")
    parser.add_argument("--host", default=None, help="Overrides HOST.")
    parser.add_argument("--port", type=int, default=None, help="Overrides PORT.")
    return parser.parse_args(argv)


def load_env_file(path: str) -> bool:
    """Load ``path`` into os.environ without overriding existing variables."""
    if not Path(path).is_file():
        return False
    load_dotenv(path, override=False)
    return True


def build_settings(args: argparse.Namespace) -> EdgeSettings:
    settings = EdgeSettings.from_env()
    overrides: dict = {}
    if args.host:
        overrides["host"] = args.host
    if args.port is not None:
        overrides["port"] = args.port
    if overrides:
        settings = dataclasses.replace(settings, **overrides)
    return settings.require_valid()


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    env_loaded = load_env_file(args.env_file)

    configure_logging()
    if not env_loaded:
        logger.warning("env_file_missing", path=args.env_file)

    try:
        settings = build_settings(args)
    except SettingsError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    app = create_app(settings)
    logger.info("edge_listening", url=f"http://{settings.host}:{settings.port}")
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
