from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class RegistrationRequest(BaseModel):
    """Raw submission; completeness is checked by the workflow, not here."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    full_name: Optional[str] = Field(None, alias="fullName")
    email: Optional[str] = None
    phone: Optional[str] = None
    community: Optional[str] = None
    lga: Optional[str] = Field(None, alias="lgaOrigin")
    age_range: Optional[str] = Field(None, alias="ageRange")
    occupation: Optional[str] = None
    reason: Optional[str] = None
    attendance_mode: Optional[str] = Field(None, alias="attendanceMode")


class ApprovalRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    group: Optional[str] = Field(None, alias="lga")
    email: Optional[str] = None
    timestamp: Optional[datetime] = None
    issued_code: Optional[str] = Field(None, alias="issuedCode")


class AuthRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    action: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    token: Optional[str] = None


class RegistrantRecord(BaseModel):
    full_name: str
    email: str
    phone: str
    community: str
    lga: str
    age_range: str
    occupation: str
    reason: str
    attendance_mode: str
    submitted_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PendingRecord(RegistrantRecord):
    status: str


class ReviewRecord(RegistrantRecord):
    status: str
    approval_status: str


class VerifiedRecord(RegistrantRecord):
    code: str
    issued_at: datetime
    status: str


class GroupStats(BaseModel):
    pending: int
    approved: int
    total: int


class StatsResponse(BaseModel):
    success: bool = True
    stats: Dict[str, GroupStats]
