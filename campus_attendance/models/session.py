from datetime import datetime
from typing import Optional

from ..core.utils import DateTimeUtils, generate_id

class SessionModel:
    """A faculty-led attendance window for one subject/branch/semester.

    ``is_active`` only ever goes from True to False, and ``ended_at`` is set
    exactly once when that happens.
    """

    def __init__(
        self,
        faculty_id: str,
        semester: int,
        branch: str,
        subject: str,
        geofencing_enabled: bool = True,
        is_active: bool = True,
        created_at: Optional[datetime] = None,
        ended_at: Optional[datetime] = None,
        _id: Optional[str] = None
    ):
        self._id = _id or generate_id()
        self.faculty_id = faculty_id
        self.semester = int(semester)
        self.branch = branch
        self.subject = subject
        self.geofencing_enabled = geofencing_enabled
        self.is_active = is_active
        self.created_at = created_at or DateTimeUtils.get_current_timestamp()
        self.ended_at = ended_at

    @property
    def id(self) -> str:
        return self._id

    def scope(self) -> dict:
        """Display context embedded in issued tokens"""
        return {
            "subject": self.subject,
            "branch": self.branch,
            "semester": self.semester,
        }

    def deactivate(self, ended_at: datetime) -> bool:
        """Flip to ended. Returns False if the session had already ended."""
        if not self.is_active:
            return False
        self.is_active = False
        self.ended_at = ended_at
        return True

    def to_dict(self) -> dict:
        return {
            "_id": self._id,
            "faculty_id": self.faculty_id,
            "semester": self.semester,
            "branch": self.branch,
            "subject": self.subject,
            "geofencing_enabled": self.geofencing_enabled,
            "is_active": self.is_active,
            "created_at": self.created_at,
            "ended_at": self.ended_at
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'SessionModel':
        return cls(
            faculty_id=data["faculty_id"],
            semester=data["semester"],
            branch=data["branch"],
            subject=data["subject"],
            geofencing_enabled=data.get("geofencing_enabled", True),
            is_active=data.get("is_active", True),
            created_at=DateTimeUtils.parse_datetime(data.get("created_at")),
            ended_at=DateTimeUtils.parse_datetime(data.get("ended_at")),
            _id=str(data["_id"]) if data.get("_id") else None
        )

    def to_response(self) -> dict:
        return {
            "id": self._id,
            "facultyId": self.faculty_id,
            "semester": self.semester,
            "branch": self.branch,
            "subject": self.subject,
            "geofencingEnabled": self.geofencing_enabled,
            "isActive": self.is_active,
            "createdAt": self.created_at.isoformat(),
            "endedAt": self.ended_at.isoformat() if self.ended_at else None
        }

    def __repr__(self):
        return f"<Session(id='{self._id}', subject='{self.subject}', active={self.is_active})>"
