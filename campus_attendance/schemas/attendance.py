from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import Optional
from datetime import datetime
from enum import Enum

class AttendanceStatus(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
    MANUAL = "manual"

class GeofencingStatus(str, Enum):
    INSIDE = "inside"
    OUTSIDE = "outside"
    UNKNOWN = "unknown"

class ManualAction(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"

class SessionCreate(BaseModel):
    faculty_id: str = Field(..., min_length=1, alias="facultyId")
    semester: int = Field(..., ge=1, description="Semester number")
    branch: str = Field(..., min_length=1, max_length=100)
    subject: str = Field(..., min_length=1, max_length=200)
    geofencing_enabled: bool = Field(True, alias="geofencingEnabled")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator('branch', 'subject', 'faculty_id')
    @classmethod
    def strip_text(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('must not be blank')
        return v

class VerifyQRRequest(BaseModel):
    session_id: str = Field(..., min_length=1, alias="sessionId")
    token: str = Field(..., min_length=1)
    student_id: str = Field(..., min_length=1, alias="studentId")
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)

    model_config = ConfigDict(populate_by_name=True)

    @model_validator(mode='after')
    def coordinates_pair(self):
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError('latitude and longitude must be provided together')
        return self

class ManualAttendanceRequest(BaseModel):
    student_id: str = Field(..., min_length=1, alias="studentId")
    action: ManualAction
    faculty_id: str = Field(..., min_length=1, alias="facultyId")

    model_config = ConfigDict(populate_by_name=True)

class QRPayload(BaseModel):
    """Content of the displayed QR code. Only session_id and token are trusted."""
    session_id: str = Field(..., alias="sessionId")
    token: str
    timestamp: int = Field(..., description="Issuance time, epoch milliseconds")
    subject: str
    semester: int
    branch: str

    model_config = ConfigDict(populate_by_name=True)

class AttendanceRecordResponse(BaseModel):
    id: str
    session_id: str = Field(..., serialization_alias="sessionId")
    student_id: str = Field(..., serialization_alias="studentId")
    status: AttendanceStatus
    geofencing_status: GeofencingStatus = Field(..., serialization_alias="geofencingStatus")
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    marked_by: Optional[str] = Field(None, serialization_alias="markedBy")
    created_at: datetime = Field(..., serialization_alias="createdAt")

class SessionStats(BaseModel):
    session_id: str = Field(..., serialization_alias="sessionId")
    total_marked: int = Field(..., serialization_alias="totalMarked")
    present: int
    absent: int
    manual_entries: int = Field(..., serialization_alias="manualEntries")
    inside: int
    outside: int
    unknown: int
    outside_present: int = Field(..., serialization_alias="outsidePresent")
    total_enrolled: Optional[int] = Field(None, serialization_alias="totalEnrolled")
    not_marked: Optional[int] = Field(None, serialization_alias="notMarked")
    attendance_percentage: Optional[int] = Field(None, serialization_alias="attendancePercentage")
