"""Operator maintenance commands; none of these are reachable over HTTP."""

import argparse
import logging
import sys
from typing import Optional, Sequence

from regdesk.core.logging import setup_logging
from regdesk.db.session import SessionLocal
from regdesk.services.approval import ApprovalEngine
from regdesk.services.errors import NotifierFailure
from regdesk.services.notifier import build_notifier
from regdesk.services.record_store import USERS, RecordStore
from regdesk.services.sessions import SessionManager

logger = logging.getLogger(__name__)


def cmd_setup(store: RecordStore, args) -> int:
    store.setup()
    return 0


def cmd_add_user(store: RecordStore, args) -> int:
    if store.find_by_key(USERS, "username", args.username):
        logger.error(f"User {args.username} already exists")
        return 1
    store.append(USERS, {"username": args.username, "password": args.password, "status": args.status})
    logger.info(f"Added user {args.username} ({args.status})")
    return 0


def cmd_run_selection(store: RecordStore, args) -> int:
    notifier = build_notifier()
    try:
        result = ApprovalEngine(store, notifier).run_selection()
    except NotifierFailure as e:
        logger.error(f"Selection run finished with undelivered codes ({e.counts}): {e}")
        return 2
    finally:
        notifier.close()
    return 0 if result.data.get("failed", 0) == 0 else 1


def cmd_sweep_sessions(store: RecordStore, args) -> int:
    SessionManager(store).sweep_expired()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="regdesk", description="Registration service maintenance")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("setup", help="Create storage tables").set_defaults(func=cmd_setup)

    add_user = sub.add_parser("add-user", help="Provision a login user")
    add_user.add_argument("username")
    add_user.add_argument("password")
    add_user.add_argument("--status", default="active")
    add_user.set_defaults(func=cmd_add_user)

    sub.add_parser("run-selection", help="Issue codes for approved review entries").set_defaults(
        func=cmd_run_selection
    )
    sub.add_parser("sweep-sessions", help="Delete expired sessions").set_defaults(func=cmd_sweep_sessions)
    return parser


def main(argv: Optional[Sequence[str]] = None, session_factory=SessionLocal) -> int:
    args = build_parser().parse_args(argv)
    setup_logging()
    db = session_factory()
    try:
        return args.func(RecordStore(db), args)
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
