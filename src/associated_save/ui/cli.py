from __future__ import annotations

import argparse
import importlib
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from associated_save.app import apply_payload, declare_association
from associated_save.common import configure_logging, parse_log_level
from associated_save.ui.payloads import load_payload_document

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)


def _add_association_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--model",
        type=str,
        required=True,
        help="Mapped parent class as 'package.module:ClassName'",
    )
    parser.add_argument(
        "--association",
        type=str,
        required=True,
        help="Name of the one-to-many relationship to reconcile",
    )
    parser.add_argument(
        "--from",
        dest="from_attr",
        type=str,
        help="Key holding the submitted payload (default: association name prefixed with _)",
    )
    parser.add_argument(
        "--keep-unreferenced",
        action="store_true",
        help="Do not delete children missing from the payload",
    )


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Synchronise a parent's child collection from submitted attributes",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        help="Logging level (default: %(default)s)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    apply = subparsers.add_parser("apply", help="Reconcile children from a JSON payload")
    _add_association_arguments(apply)
    apply.add_argument(
        "--id",
        dest="parent_id",
        type=str,
        required=True,
        help="Identifier of the persisted parent record",
    )
    apply.add_argument(
        "--payload",
        type=Path,
        required=True,
        help="JSON file with a list of child attribute objects",
    )
    apply.add_argument(
        "--database-uri",
        type=str,
        help="SQLAlchemy database URI (defaults to DATABASE_URI or the local data dir)",
    )
    apply.add_argument(
        "--dry-run",
        action="store_true",
        help="Roll back instead of committing",
    )

    reflect = subparsers.add_parser("reflect", help="Show the resolved association config")
    _add_association_arguments(reflect)

    return parser.parse_args(list(argv))


def _load_model(path: str) -> type:
    module_name, sep, attr = path.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"Model must look like 'package.module:ClassName', got {path!r}")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise ValueError(f"Cannot import {module_name}: {exc}") from exc
    target: object = module
    for part in attr.split("."):
        try:
            target = getattr(target, part)
        except AttributeError as exc:
            raise ValueError(f"{module_name} has no attribute {attr}") from exc
    if not isinstance(target, type):
        raise ValueError(f"{path} is not a class")
    return target


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    try:
        configure_logging(level=parse_log_level(parsed_args.log_level))
        model = _load_model(parsed_args.model)
        document = (
            load_payload_document(parsed_args.payload) if parsed_args.command == "apply" else None
        )
    except (ValueError, OSError):
        configure_logging()
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        if parsed_args.command == "reflect":
            _, config = declare_association(
                model,
                parsed_args.association,
                from_attr=parsed_args.from_attr,
                delete=not parsed_args.keep_unreferenced,
            )
            log.info(
                "%s.%s: from=%s, callback=%s, delete=%s",
                model.__name__,
                config.name,
                config.from_attr,
                config.callback,
                config.delete,
            )
        elif parsed_args.command == "apply" and document is not None:
            apply_payload(
                parent_cls=model,
                parent_id=parsed_args.parent_id,
                association=parsed_args.association,
                payload=document.entries,
                from_attr=parsed_args.from_attr,
                delete=not parsed_args.keep_unreferenced,
                dry_run=parsed_args.dry_run,
                database_uri=parsed_args.database_uri,
            )
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except Exception:
        log.exception("Fatal error during associated save")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
