"""Interpretation of the reviewer-editable status cells on queue entries."""

APPROVAL_WORDS = {"APPROVED", "APPROVE"}

EMAIL_ERROR = "EMAIL ERROR"
ALREADY_VERIFIED = "PROCESSED (Already Verified)"
ISSUING_PREFIX = "ISSUING:"
SENT_PREFIX = "SENT:"

_APPROVAL_PREFIXES = (SENT_PREFIX, ISSUING_PREFIX, "APPROVED", "PROCESSED")
_PROCESSED_PREFIXES = (SENT_PREFIX, "PROCESSED")


def _norm(value) -> str:
    return str(value or "").strip().upper()


def is_approval_word(value) -> bool:
    return _norm(value) in APPROVAL_WORDS


def is_marked_approved(entry) -> bool:
    """A reviewer approved the entry in either the Status or Approval-Status cell."""
    return is_approval_word(entry.status) or is_approval_word(entry.approval_status)


def indicates_approval(approval_status) -> bool:
    value = _norm(approval_status)
    return value in APPROVAL_WORDS or value.startswith(_APPROVAL_PREFIXES)


def is_processed(approval_status) -> bool:
    value = _norm(approval_status)
    return value == EMAIL_ERROR or value.startswith(_PROCESSED_PREFIXES)


def issuing_code(approval_status):
    """Code held by an ``ISSUING:<code>`` marker, or None."""
    value = str(approval_status or "").strip()
    if value.upper().startswith(ISSUING_PREFIX):
        return value[len(ISSUING_PREFIX):].strip() or None
    return None


def issuing(code: str) -> str:
    return f"{ISSUING_PREFIX}{code}"


def sent(code: str) -> str:
    return f"{SENT_PREFIX}{code}"
