import re
import secrets

from regdesk.utils.crypto import generate_numeric_code, generate_random_token

ATTENDANCE_CODE_MIN = 1000
ATTENDANCE_CODE_MAX = 9999

# local@domain.tld: one '@', no whitespace, at least one '.' after the '@'
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
ATTENDANCE_CODE_PATTERN = re.compile(r"^\d{4}$")


def normalize_email(email) -> str:
    return str(email or "").strip().lower()


def is_valid_email(email) -> bool:
    return bool(EMAIL_PATTERN.match(normalize_email(email)))


def generate_attendance_code() -> str:
    """Generate a 4-digit attendance code in [1000, 9999]"""
    return generate_numeric_code(ATTENDANCE_CODE_MIN, ATTENDANCE_CODE_MAX)


def is_valid_attendance_code(code) -> bool:
    code = str(code or "").strip()
    if not ATTENDANCE_CODE_PATTERN.match(code):
        return False
    return ATTENDANCE_CODE_MIN <= int(code) <= ATTENDANCE_CODE_MAX


def generate_session_token() -> str:
    """Generate an unguessable 128-bit session token"""
    return generate_random_token(16)


def passwords_match(supplied: str, stored: str) -> bool:
    """Verbatim secret comparison; the users table stores plain text."""
    return secrets.compare_digest(str(supplied or "").encode(), str(stored or "").encode())
