from regdesk.models.auth import AuthSession, User
from regdesk.models.registrant import PendingRegistrant, ReviewEntry, VerifiedAttendee

__all__ = ["AuthSession", "User", "PendingRegistrant", "ReviewEntry", "VerifiedAttendee"]
