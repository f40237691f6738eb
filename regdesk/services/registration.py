"""Registrant submissions, table dumps and per-group statistics."""

import logging
from typing import Dict, List, Optional, Sequence

from regdesk.core.config import settings
from regdesk.core.security import is_valid_email, normalize_email
from regdesk.schemas import GroupStats, PendingRecord, RegistrationRequest, ReviewRecord, VerifiedRecord
from regdesk.services.errors import ErrorKind, NotifierFailure, Result
from regdesk.services.notifier import Notifier, TemplateKind
from regdesk.services.record_store import PENDING, VERIFIED, RecordStore, queue_table
from regdesk.services.review_status import indicates_approval, is_marked_approved
from regdesk.utils.clock import Clock, utcnow

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = (
    "full_name",
    "email",
    "phone",
    "community",
    "lga",
    "age_range",
    "occupation",
    "reason",
    "attendance_mode",
)

PENDING_STATUS = "Pending Review"


def resolve_group(name, groups: Sequence[str]) -> Optional[str]:
    """Canonical spelling of ``name`` from the configured groups, or None."""
    wanted = str(name or "").strip().lower()
    return next((g for g in groups if g.lower() == wanted), None)


class RegistrationWorkflow:
    def __init__(
        self,
        store: RecordStore,
        notifier: Notifier,
        groups: Optional[Sequence[str]] = None,
        clock: Clock = utcnow,
    ):
        self.store = store
        self.notifier = notifier
        self.groups = list(groups if groups is not None else settings.GROUPS)
        self.clock = clock

    def submit(self, request: RegistrationRequest) -> Result:
        fields = {name: str(getattr(request, name) or "").strip() for name in REQUIRED_FIELDS}

        missing = [name for name, value in fields.items() if not value]
        if missing:
            return Result.fail(ErrorKind.VALIDATION_ERROR, f"Missing required fields: {', '.join(missing)}")

        email = normalize_email(fields["email"])
        if not is_valid_email(email):
            return Result.fail(ErrorKind.VALIDATION_ERROR, "Please provide a valid email address")
        fields["email"] = email

        if self.store.find_by_key(PENDING, "email", email) or self.store.find_by_key(VERIFIED, "email", email):
            logger.info(f"Duplicate registration rejected for {email}")
            return Result.fail(ErrorKind.DUPLICATE_EMAIL, "This email has already been registered")

        group = resolve_group(fields["lga"], self.groups)
        if group is None:
            return Result.fail(ErrorKind.UNKNOWN_GROUP, f"Unknown LGA: {fields['lga']}")
        fields["lga"] = group

        submitted_at = self.clock()
        row = {**fields, "submitted_at": submitted_at}
        with self.store.atomic():
            self.store.append(PENDING, {**row, "status": PENDING_STATUS})
            self.store.append(queue_table(group), {**row, "status": PENDING_STATUS, "approval_status": ""})
        logger.info(f"✅ Registered {email} for {group}")

        try:
            self.notifier.send(email, TemplateKind.REGISTRATION_RECEIVED, {"full_name": fields["full_name"], "lga": group})
        except NotifierFailure as e:
            logger.warning(f"Registration confirmation not sent: {e}")

        return Result.ok("Registration submitted successfully", timestamp=submitted_at.isoformat())

    # ------------------------------------------------------------------
    # Read-only surface
    # ------------------------------------------------------------------
    def list_table(self, kind: str, group: Optional[str] = None) -> Result:
        kind = str(kind or "").strip().lower()
        if kind == "pending":
            rows = [PendingRecord.model_validate(r) for r in self.store.find_all(PENDING)]
        elif kind == "verified":
            rows = [VerifiedRecord.model_validate(r) for r in self.store.find_all(VERIFIED)]
        elif kind == "group":
            canonical = resolve_group(group, self.groups)
            if canonical is None:
                return Result.fail(ErrorKind.UNKNOWN_GROUP, f"Unknown LGA: {group}")
            rows = [ReviewRecord.model_validate(r) for r in self.store.find_all(queue_table(canonical))]
        else:
            return Result.fail(ErrorKind.VALIDATION_ERROR, f"Unknown type: {kind}")
        data: List[Dict] = [r.model_dump(mode="json") for r in rows]
        return Result.ok(f"{len(data)} records", data=data)

    def stats(self) -> Dict[str, GroupStats]:
        stats = {}
        for group in self.groups:
            entries = self.store.find_all(queue_table(group))
            approved = sum(1 for e in entries if is_marked_approved(e) or indicates_approval(e.approval_status))
            stats[group] = GroupStats(pending=len(entries) - approved, approved=approved, total=len(entries))
        return stats
