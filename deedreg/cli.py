"""
DeedReg CLI — Registry bootstrap and maintenance commands.

Commands:
- deedreg init    — Create the registry tables and report the administrator
- deedreg check   — Run the administrator maintenance check at a given height
- deedreg audit   — Print one day of an audit stream
"""

from __future__ import annotations

import argparse
import json
import logging
from datetime import date
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from deedreg.engine.config import RegistryConfig, load_registry_config
from deedreg.engine.errors import DeedRegError
from deedreg.engine.logging import AUDIT_STREAMS, AuditWriter

logger = logging.getLogger("deedreg.cli")


def main(argv: Optional[list] = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="deedreg",
        description="DeedReg — Permissioned property-document registry",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # deedreg init
    init_parser = subparsers.add_parser("init", help="Create the registry database tables")
    init_parser.add_argument(
        "--config", default="deedreg.yaml", help="Path to deedreg.yaml (default: deedreg.yaml)"
    )

    # deedreg check
    check_parser = subparsers.add_parser("check", help="Run the administrator maintenance check")
    check_parser.add_argument(
        "--config", default="deedreg.yaml", help="Path to deedreg.yaml (default: deedreg.yaml)"
    )
    check_parser.add_argument("--height", type=int, required=True, help="Current host height")

    # deedreg audit
    audit_parser = subparsers.add_parser("audit", help="Print one day of an audit stream")
    audit_parser.add_argument("stream", choices=AUDIT_STREAMS, help="Audit stream to read")
    audit_parser.add_argument(
        "--config", default="deedreg.yaml", help="Path to deedreg.yaml (default: deedreg.yaml)"
    )
    audit_parser.add_argument(
        "--date", type=date.fromisoformat, default=None, help="Day to read, YYYY-MM-DD (default: today)"
    )

    args = parser.parse_args(argv)

    if args.command == "init":
        return cmd_init(args)
    elif args.command == "check":
        return cmd_check(args)
    elif args.command == "audit":
        return cmd_audit(args)
    else:
        parser.print_help()
        return 0


def _load(config_path: str) -> Optional[RegistryConfig]:
    try:
        config = load_registry_config(config_path)
    except (OSError, ValueError) as e:
        print(f"[ERROR] Failed to load config: {e}")
        return None
    logging.basicConfig(level=getattr(logging, config.logging.level, logging.INFO))
    return config


def cmd_init(args: argparse.Namespace) -> int:
    """
    Bootstrap the registry database:
    1. Load config from deedreg.yaml
    2. Create all tables (SQLAlchemy metadata.create_all)
    3. Report the fixed administrator identity
    """
    from deedreg.db.session import close_registry_db
    from deedreg.documents.service import RegistryService

    config = _load(args.config)
    if config is None:
        return 1

    try:
        service = RegistryService.from_config(config, create_tables=True)
    except (DeedRegError, SQLAlchemyError) as e:
        print(f"[ERROR] {e}")
        return 1

    print(f"[OK] Registry tables ready on {config.database.url}")
    print(f"[OK] Administrator: {service.administrator}")
    close_registry_db()
    return 0


def cmd_check(args: argparse.Namespace) -> int:
    """Run system_maintenance_check as the configured administrator and print the report as JSON."""
    from deedreg.db.session import close_registry_db
    from deedreg.documents.service import RegistryService
    from deedreg.engine.context import acting_as
    from deedreg.engine.logging import init_audit_log, shutdown_audit_log

    config = _load(args.config)
    if config is None:
        return 1

    queue_cfg = config.logging.async_queue
    init_audit_log(
        log_dir=config.logging.directory,
        flush_interval_ms=queue_cfg.flush_interval_ms,
        flush_batch_size=queue_cfg.flush_batch_size,
        max_queue_size=queue_cfg.max_queue_size,
    )
    try:
        service = RegistryService.from_config(config)
        with acting_as(service.administrator, height=args.height):
            report = service.system_maintenance_check()
    except (DeedRegError, SQLAlchemyError, ValueError) as e:
        print(f"[ERROR] {e}")
        return 1
    finally:
        shutdown_audit_log()
        close_registry_db()

    print(json.dumps(report.model_dump(), indent=2))
    return 0


def cmd_audit(args: argparse.Namespace) -> int:
    """Print the entries of one audit stream for a day, one JSON object per line."""
    config = _load(args.config)
    if config is None:
        return 1

    try:
        entries = AuditWriter(config.logging.directory).read(args.stream, args.date)
    except OSError as e:
        print(f"[ERROR] {e}")
        return 1

    for entry in entries:
        print(json.dumps(entry))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
