# ruff: noqa: T201

from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING, Any

from dotenv import load_dotenv

from varietal.app import MaintenanceOperation, handle_request
from varietal.config import configure_logging, get_run_config
from varietal.config.runs import STORE_BACKENDS
from varietal.domain.access import SERVICE_CALLER
from varietal.domain.errors import InvalidRequestError

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)


def _add_scope_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--plant-type-id",
        type=str,
        required=True,
        help="Plant type whose varieties are processed",
    )
    parser.add_argument(
        "--backend",
        choices=STORE_BACKENDS,
        default=None,
        help="Store backend (defaults to VARIETAL_STORE_BACKEND or 'database')",
    )


def _add_execute_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--execute",
        action="store_true",
        help="Write changes; without this flag the run is a dry run",
    )


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Maintain the variety catalog")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log at DEBUG level")
    subparsers = parser.add_subparsers(dest="command", required=True)

    merge = subparsers.add_parser(MaintenanceOperation.MERGE, help="Merge duplicate varieties")
    _add_scope_arguments(merge)
    _add_execute_argument(merge)
    merge.add_argument(
        "--max-groups",
        type=int,
        default=None,
        help="Maximum number of duplicate groups to process (defaults to config)",
    )

    classify = subparsers.add_parser(
        MaintenanceOperation.CLASSIFY,
        help="Assign subcategories to unclassified varieties",
    )
    _add_scope_arguments(classify)
    _add_execute_argument(classify)
    classify.add_argument(
        "--max-items",
        type=int,
        default=None,
        help="Maximum number of varieties to classify (defaults to config)",
    )

    repair = subparsers.add_parser(
        MaintenanceOperation.REPAIR_SUBCATEGORIES,
        help="Make primary subcategory and subcategory list consistent",
    )
    _add_scope_arguments(repair)
    _add_execute_argument(repair)
    repair.add_argument(
        "--max-items",
        type=int,
        default=None,
        help="Maximum number of varieties to repair (defaults to config)",
    )

    audit = subparsers.add_parser(
        MaintenanceOperation.AUDIT_SUBCATEGORIES,
        help="Report subcategory link inconsistencies",
    )
    _add_scope_arguments(audit)

    return parser.parse_args(list(argv))


def _build_payload(args: argparse.Namespace) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "plant_type_id": args.plant_type_id,
        "dry_run": not getattr(args, "execute", False),
    }
    if getattr(args, "max_groups", None) is not None:
        payload["max_groups"] = args.max_groups
    if getattr(args, "max_items", None) is not None:
        payload["max_items"] = args.max_items
    return payload


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    try:
        run_config = get_run_config()
        if parsed_args.backend is not None:
            run_config = dataclasses.replace(run_config, store_backend=parsed_args.backend)
        response = handle_request(
            parsed_args.command,
            _build_payload(parsed_args),
            caller=SERVICE_CALLER,
            run_config=run_config,
        )
    except InvalidRequestError:
        log.exception("CLI validation error")
        sys.exit(2)
    except Exception:
        log.exception("Fatal error during %s", parsed_args.command)
        sys.exit(1)

    print(json.dumps(response, indent=2, sort_keys=True, default=str))


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
