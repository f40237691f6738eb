from sqlalchemy import Column, DateTime, String, Text

from regdesk.db.base import Base, BaseModel


class RegistrantColumns:
    """Submission fields mirrored across the pending, queue and verified tables."""

    full_name = Column(String, nullable=False)
    email = Column(String, nullable=False, index=True)  # normalized
    phone = Column(String, nullable=False)
    community = Column(String, nullable=False)
    lga = Column(String, nullable=False, index=True)
    age_range = Column(String, nullable=False)
    occupation = Column(String, nullable=False)
    reason = Column(Text, nullable=False)
    attendance_mode = Column(String, nullable=False)
    submitted_at = Column(DateTime, nullable=False)


class PendingRegistrant(Base, BaseModel, RegistrantColumns):
    __tablename__ = "pending_registrants"

    status = Column(String, default="Pending Review", nullable=False)

    def __repr__(self):
        return f"<PendingRegistrant {self.full_name} ({self.email})>"


class ReviewEntry(Base, BaseModel, RegistrantColumns):
    __tablename__ = "review_entries"

    # Both cells are edited by reviewers directly; either may carry the decision
    status = Column(String, default="Pending Review", nullable=False)
    approval_status = Column(String, default="", nullable=False)

    def __repr__(self):
        return f"<ReviewEntry {self.lga}: {self.email} [{self.approval_status}]>"


class VerifiedAttendee(Base, BaseModel, RegistrantColumns):
    __tablename__ = "verified_attendees"

    code = Column(String(4), unique=True, nullable=False)
    issued_at = Column(DateTime, nullable=False)
    status = Column(String, default="Code Issued", nullable=False)

    def __repr__(self):
        return f"<VerifiedAttendee {self.code} ({self.email})>"
