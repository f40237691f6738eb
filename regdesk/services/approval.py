"""Approval of review-queue entries and issuance of attendance codes.

Both the batch sweep and single-record approval go through the same steps:

1. One transaction appends the verified row and marks the queue entry
   ``ISSUING:<code>``.
2. The attendance-code email is sent.
3. The marker becomes ``SENT:<code>``.

If step 2 fails the marker stays, and the next sweep re-sends the same code.
A code is never issued twice for one entry.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional, Sequence

from regdesk.core.config import settings
from regdesk.core.security import (
    generate_attendance_code,
    is_valid_attendance_code,
    is_valid_email,
    normalize_email,
)
from regdesk.services import review_status
from regdesk.services.errors import ErrorKind, NotifierFailure, Result, StoreInconsistency
from regdesk.services.notifier import Notifier, TemplateKind
from regdesk.services.record_store import PENDING, VERIFIED, RecordStore, RowRef, queue_table
from regdesk.services.registration import REQUIRED_FIELDS, resolve_group
from regdesk.utils.clock import Clock, to_naive_utc, utcnow

logger = logging.getLogger(__name__)

APPROVED_STATUS = "Approved"
CODE_ISSUED = "Code Issued"
CODE_SENT = "Code Sent"


class ApprovalEngine:
    def __init__(
        self,
        store: RecordStore,
        notifier: Notifier,
        groups: Optional[Sequence[str]] = None,
        clock: Clock = utcnow,
        time_window_seconds: Optional[int] = None,
        max_code_attempts: Optional[int] = None,
        code_generator=generate_attendance_code,
    ):
        self.store = store
        self.notifier = notifier
        self.groups = list(groups if groups is not None else settings.GROUPS)
        self.clock = clock
        self.time_window_seconds = (
            settings.APPROVAL_TIME_WINDOW_SECONDS if time_window_seconds is None else time_window_seconds
        )
        self.max_code_attempts = settings.CODE_MAX_ATTEMPTS if max_code_attempts is None else max_code_attempts
        self.code_generator = code_generator

    # ==================================================================
    # Batch sweep
    # ==================================================================
    def run_selection(self) -> Result:
        """Process every reviewer-approved entry across all group queues.

        Store problems and undelivered codes are logged and counted per entry so
        the rest of the queue is still processed. If any code could not be
        delivered, the first ``NotifierFailure`` is re-raised after the loop
        with the run's counts attached.
        """
        counts = {
            "issued": 0,
            "resent": 0,
            "email_errors": 0,
            "already_verified": 0,
            "failed": 0,
            "notify_failed": 0,
        }
        first_failure: Optional[NotifierFailure] = None

        for group in self.groups:
            table = queue_table(group)
            for entry in self.store.find_all(table):
                try:
                    outcome = self._process_entry(table, entry)
                except StoreInconsistency as e:
                    logger.error(f"❌ Skipped {group} entry {entry.id}: {e}")
                    counts["failed"] += 1
                    continue
                except NotifierFailure as e:
                    counts["notify_failed"] += 1
                    first_failure = first_failure or e
                    continue
                if outcome:
                    counts[outcome] += 1

        logger.info(f"Selection run complete: {counts}")
        if first_failure is not None:
            first_failure.counts = counts
            raise first_failure
        return Result.ok("Selection run complete", **counts)

    def _process_entry(self, table: str, entry) -> Optional[str]:
        ref = self.store.ref(table, entry)

        pending_code = review_status.issuing_code(entry.approval_status)
        if pending_code:
            self._deliver(ref, pending_code)
            return "resent"

        if review_status.is_processed(entry.approval_status) or not review_status.is_marked_approved(entry):
            return None

        email = normalize_email(entry.email)
        if not is_valid_email(email):
            self.store.update_cell(ref, "approval_status", review_status.EMAIL_ERROR)
            logger.warning(f"Invalid email on {entry.lga} entry {entry.id}: {entry.email!r}")
            return "email_errors"

        if self.store.find_by_key(VERIFIED, "email", email):
            self.store.update_cell(ref, "approval_status", review_status.ALREADY_VERIFIED)
            return "already_verified"

        code = self._new_code()
        if code is None:
            logger.error(f"❌ No free attendance code for {email}")
            return "failed"

        with self.store.atomic():
            self._remove_pending(email, entry.submitted_at)
            self.store.append(VERIFIED, self._verified_row(entry, email, code))
            self.store.update_cell(ref, "approval_status", review_status.issuing(code))
        logger.info(f"Issued code {code} to {email} ({entry.lga})")

        self._deliver(ref, code)
        return "issued"

    # ==================================================================
    # Single-record approval
    # ==================================================================
    def approve(
        self,
        group: str,
        email: str,
        timestamp_hint: Optional[datetime],
        issued_code: Optional[str] = None,
    ) -> Result:
        canonical = resolve_group(group, self.groups)
        if canonical is None:
            return Result.fail(ErrorKind.UNKNOWN_GROUP, f"Unknown LGA: {group}")
        email = normalize_email(email)
        if not email or timestamp_hint is None:
            return Result.fail(ErrorKind.VALIDATION_ERROR, "Email and timestamp are required")
        hint = to_naive_utc(timestamp_hint)

        table = queue_table(canonical)
        entry = self._match(table, email, hint)
        if entry is None:
            return Result.fail(ErrorKind.NOT_FOUND, f"No {canonical} registration found for {email} at that time")

        if review_status.indicates_approval(entry.approval_status):
            return Result.fail(ErrorKind.ALREADY_APPROVED, "This registration has already been approved")
        if self.store.find_by_key(VERIFIED, "email", email):
            return Result.fail(ErrorKind.ALREADY_VERIFIED, "This email has already been verified")

        if issued_code:
            code = str(issued_code).strip()
            if not is_valid_attendance_code(code):
                return Result.fail(ErrorKind.VALIDATION_ERROR, "Attendance code must be 4 digits (1000-9999)")
            if self.store.find_by_key(VERIFIED, "code", code):
                return Result.fail(ErrorKind.VALIDATION_ERROR, f"Attendance code {code} has already been issued")
        else:
            code = self._new_code()
            if code is None:
                return Result.fail(ErrorKind.CODE_SPACE_EXHAUSTED, "No unused attendance codes remain")

        ref = self.store.ref(table, entry)
        try:
            with self.store.atomic():
                self._remove_pending(email, hint)
                self.store.append(VERIFIED, self._verified_row(entry, email, code))
                self.store.update_cell(ref, "status", APPROVED_STATUS)
                self.store.update_cell(ref, "approval_status", review_status.issuing(code))
        except StoreInconsistency as e:
            logger.error(f"❌ Approval of {email} rolled back: {e}")
            return Result.fail(ErrorKind.STORE_INCONSISTENCY, "The record changed while it was being approved; please retry")
        logger.info(f"✅ Approved {email} ({canonical}) with code {code}")

        try:
            self._deliver(ref, code)
        except NotifierFailure as e:
            return Result.fail(
                ErrorKind.NOTIFIER_FAILURE,
                f"Approved with code {code}, but the email could not be sent ({e.reason}). "
                "It will be re-sent by the next selection run.",
                code=code,
            )
        return Result.ok("Registrant approved and notified", code=code)

    def _remove_pending(self, email: str, hint: datetime) -> None:
        pending = self._match(PENDING, email, hint)
        if pending is None:
            logger.warning(f"⚠️ StoreInconsistency: no pending row for {email} near {hint.isoformat()}")
            return
        self.store.delete_row(self.store.ref(PENDING, pending))

    def _match(self, table: str, email: str, hint: datetime):
        """Row for ``email`` whose submission time is closest to ``hint`` within the window."""
        candidates = [
            row
            for row in self.store.find_all(table)
            if normalize_email(row.email) == email
            and abs((row.submitted_at - hint).total_seconds()) <= self.time_window_seconds
        ]
        if len(candidates) > 1:
            logger.warning(f"{len(candidates)} rows in {table} match {email}; using the closest timestamp")
        return min(candidates, key=lambda r: abs((r.submitted_at - hint).total_seconds()), default=None)

    # ==================================================================
    # Shared steps
    # ==================================================================
    def _new_code(self) -> Optional[str]:
        for _ in range(self.max_code_attempts):
            code = self.code_generator()
            if not self.store.find_by_key(VERIFIED, "code", code):
                return code
            logger.debug(f"Attendance code {code} already issued, drawing again")
        return None

    def _verified_row(self, entry, email: str, code: str) -> Dict[str, Any]:
        row = {name: getattr(entry, name) for name in REQUIRED_FIELDS}
        row.update(
            email=email,
            submitted_at=entry.submitted_at,
            code=code,
            issued_at=self.clock(),
            status=CODE_ISSUED,
        )
        return row

    def _deliver(self, ref: RowRef, code: str) -> None:
        verified = self.store.find_by_key(VERIFIED, "code", code)
        if verified is None:
            raise StoreInconsistency(f"verified row for code {code} is missing")

        try:
            self.notifier.send(
                verified.email,
                TemplateKind.ATTENDANCE_CODE,
                {"full_name": verified.full_name, "lga": verified.lga, "code": code},
            )
        except NotifierFailure:
            logger.error(f"❌ Code {code} for {verified.email} not delivered; entry left at ISSUING", exc_info=True)
            raise

        with self.store.atomic():
            self.store.update_cell(ref, "approval_status", review_status.sent(code))
            self.store.update_cell(self.store.ref(VERIFIED, verified), "status", CODE_SENT)
