from __future__ import annotations

import argparse
import json
import logging
import sys

import yaml

from termgate.config import Config, ConfigError, ConfigLoadRequest, YamlConfigLoader
from termgate.config.interfaces import ConfigLoader
from termgate.logging import init_logging

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="termgate", description="Terminal gateway configuration resolver")
    parser.add_argument(
        "--config",
        default="config.yml",
        help="Path to config.yml (default: config.yml)",
    )
    parser.add_argument(
        "--dotenv",
        default=None,
        help="Optional .env file layered below the process environment.",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="Also write logs to this file, rotated daily.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True, help="Command to run")

    # Command: show
    show_parser = subparsers.add_parser("show", help="Print the resolved configuration")
    show_parser.add_argument("--format", choices=("yaml", "json"), default="yaml")

    # Command: check
    subparsers.add_parser("check", help="Exit non-zero if the configuration cannot be loaded")

    return parser


def _load_config(args: argparse.Namespace) -> Config:
    request = ConfigLoadRequest(yaml_path=args.config, dotenv_path=args.dotenv)
    loader: ConfigLoader = YamlConfigLoader()
    return loader.load(request)


def _show(config: Config, fmt: str) -> None:
    data = config.redacted()
    if fmt == "json":
        sys.stdout.write(json.dumps(data, indent=2, ensure_ascii=False) + "\n")
    else:
        sys.stdout.write(yaml.safe_dump(data, allow_unicode=True, sort_keys=True))


def main(argv=None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    # Loader messages are emitted before LOG_LEVEL is known.
    init_logging("INFO", args.log_file)
    try:
        config = _load_config(args)
    except ConfigError:
        logger.exception("Configuration could not be loaded. config=%s", args.config)
        return 1
    init_logging(config.log_level, args.log_file)

    if args.command == "show":
        _show(config, args.format)
    elif args.command == "check":
        logger.info("Configuration OK. name=%s root_path=%s", config.name, config.root_path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
