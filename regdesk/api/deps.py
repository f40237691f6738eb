import json
import logging
from functools import lru_cache
from typing import Any, Dict

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from regdesk.db.session import get_db
from regdesk.services.approval import ApprovalEngine
from regdesk.services.notifier import Notifier, build_notifier
from regdesk.services.record_store import RecordStore
from regdesk.services.registration import RegistrationWorkflow
from regdesk.services.sessions import SessionManager

logger = logging.getLogger(__name__)


def internal_error() -> Dict[str, Any]:
    """Generic failure body; details stay in the server log."""
    return {"success": False, "message": "Internal server error"}


@lru_cache
def get_notifier() -> Notifier:
    return build_notifier()


def get_store(db: Session = Depends(get_db)) -> RecordStore:
    return RecordStore(db)


def get_registration(
    store: RecordStore = Depends(get_store),
    notifier: Notifier = Depends(get_notifier),
) -> RegistrationWorkflow:
    return RegistrationWorkflow(store, notifier)


def get_approval(
    store: RecordStore = Depends(get_store),
    notifier: Notifier = Depends(get_notifier),
) -> ApprovalEngine:
    return ApprovalEngine(store, notifier)


def get_sessions(store: RecordStore = Depends(get_store)) -> SessionManager:
    return SessionManager(store)


async def read_payload(request: Request) -> Dict[str, Any]:
    """Request fields from a JSON or form body, with query parameters as fallback.

    Bodies sent as ``text/plain`` are tried as JSON.
    """
    payload: Dict[str, Any] = dict(request.query_params)
    content_type = request.headers.get("content-type", "")

    if "application/x-www-form-urlencoded" in content_type or "multipart/form-data" in content_type:
        form = await request.form()
        payload.update({k: v for k, v in form.items() if isinstance(v, str)})
        return payload

    raw = await request.body()
    if raw.strip():
        try:
            body = json.loads(raw)
        except ValueError:
            logger.warning(f"Ignoring unparseable request body ({content_type or 'no content-type'})")
            return payload
        if isinstance(body, dict):
            payload.update(body)
    return payload
