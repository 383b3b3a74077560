from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv
from pydantic import ValidationError

from mintsync.api.schemas import SyncRequestModel, SyncResponseModel, SyncRoundModel
from mintsync.app import push_changes, sync_plaid_snapshot, sync_status
from mintsync.config import ConfigurationError, configure_logging, require_env_var
from mintsync.domain.errors import SyncError
from mintsync.domain.model import DEFAULT_USER_ID

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Synchronise Mint Replica Lite data")
    parser.add_argument(
        "--user-id",
        type=str,
        default=DEFAULT_USER_ID,
        help="Owner of the synced data (default: %(default)s)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    push = subparsers.add_parser("push", help="Run one sync round from a JSON request file")
    push.add_argument(
        "request_file",
        type=Path,
        help="Path to a sync request document, or - to read standard input",
    )

    plaid = subparsers.add_parser("plaid", help="Pull accounts and transactions from Plaid")
    plaid.add_argument(
        "--access-token",
        type=str,
        help="Plaid item access token (defaults to PLAID_ACCESS_TOKEN)",
    )
    plaid.add_argument(
        "--lookback-days",
        type=int,
        help="Trailing window in days (defaults to MINTSYNC_PROVIDER_LOOKBACK_DAYS)",
    )

    status = subparsers.add_parser("status", help="Show recent sync rounds")
    status.add_argument("--device-id", type=str, help="Only show rounds from this device")
    status.add_argument(
        "--limit",
        type=int,
        default=5,
        help="Number of rounds to show (default: %(default)s)",
    )

    return parser.parse_args(list(argv))


def _read_request(path: Path) -> SyncRequestModel:
    raw = sys.stdin.read() if str(path) == "-" else path.read_text(encoding="utf-8")
    try:
        return SyncRequestModel.model_validate_json(raw)
    except ValidationError as exc:
        raise ValueError(f"Invalid sync request document: {exc}") from exc


def _write_json(payload: str) -> None:
    sys.stdout.write(payload + "\n")


def _run_push(args: argparse.Namespace) -> None:
    request = _read_request(args.request_file).to_domain(user_id=args.user_id)
    response = push_changes(request)
    _write_json(SyncResponseModel.from_domain(response).model_dump_json(indent=2))
    if response.conflicts:
        log.warning("%s conflict(s) require manual resolution", len(response.conflicts))


def _run_plaid(args: argparse.Namespace) -> None:
    access_token = args.access_token or require_env_var("PLAID_ACCESS_TOKEN")
    if args.lookback_days is not None and args.lookback_days <= 0:
        raise ValueError("--lookback-days must be positive")
    result = sync_plaid_snapshot(
        access_token=access_token,
        user_id=args.user_id,
        lookback_days=args.lookback_days,
    )
    for entity_type, response in result.responses.items():
        log.info(
            "%s: fetched=%s submitted=%s conflicts=%s",
            entity_type,
            result.fetched.get(entity_type, 0),
            result.submitted.get(entity_type, 0),
            len(response.conflicts),
        )


def _run_status(args: argparse.Namespace) -> None:
    status = sync_status(user_id=args.user_id, device_id=args.device_id, limit=args.limit)
    if not status.rounds:
        log.info("No sync rounds recorded for %s", args.user_id)
    for sync_round in status.rounds:
        _write_json(SyncRoundModel.from_domain(sync_round).model_dump_json())


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)

    handlers = {"push": _run_push, "plaid": _run_plaid, "status": _run_status}
    try:
        handlers[parsed_args.command](parsed_args)
    except (ValueError, OSError, ConfigurationError) as exc:
        log.error("CLI validation error: %s", exc)  # noqa: TRY400
        sys.exit(2)
    except SyncError as exc:
        log.error("Sync failed: %s", exc)  # noqa: TRY400
        sys.exit(1)
    except Exception:
        log.exception("Fatal error during sync")
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
