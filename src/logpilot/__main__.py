"""Entry point for `python -m logpilot` / `logpilot`.

    logpilot --template fluentd.conf.j2 [--log-level DEBUG] [--config-root /etc/fluentd]
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Any


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="logpilot",
        description="Keep per-container log shipper configs in sync with running containers",
    )
    parser.add_argument("--template", help="Path to the Jinja2 config template")
    parser.add_argument("--log-level", help="Log level (default: INFO)")
    parser.add_argument("--config-root", help="Shipper config root (default: /etc/fluentd)")
    return parser.parse_args(argv)


def _settings_overrides(args: argparse.Namespace) -> dict[str, Any]:
    pilot: dict[str, Any] = {}
    if args.template:
        pilot["template"] = args.template
    if args.config_root:
        pilot["config_root"] = args.config_root
    overrides: dict[str, Any] = {}
    if pilot:
        overrides["pilot"] = pilot
    if args.log_level:
        overrides["logging"] = {"level": args.log_level}
    return overrides


def main(argv: list[str] | None = None) -> None:
    args = _parse_args(argv)

    from pydantic import ValidationError

    from logpilot.app import PilotApp, load_template
    from logpilot.config import Settings, override_settings
    from logpilot.errors import PilotError
    from logpilot.logger import configure_logging, logger

    try:
        settings = Settings(**_settings_overrides(args))
    except ValidationError as exc:
        logger.critical("Invalid settings", err=str(exc))
        sys.exit(1)
    override_settings(settings)
    configure_logging(settings.logging.level, settings.logging.json_output)

    if settings.pilot.template is None:
        logger.critical("Config template not set (use --template or pilot.template)")
        sys.exit(1)

    try:
        app = PilotApp(load_template(settings.pilot.template), settings=settings)
        asyncio.run(app.run())
    except PilotError as exc:
        logger.critical("logpilot stopped", err=str(exc))
        sys.exit(1)
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
