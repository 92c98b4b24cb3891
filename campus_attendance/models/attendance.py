from datetime import datetime
from typing import Optional

from ..core.utils import DateTimeUtils, generate_id
from ..schemas.attendance import AttendanceStatus, GeofencingStatus, AttendanceRecordResponse

class AttendanceRecordModel:
    """One student's attendance outcome for one session. Written once, never updated."""

    def __init__(
        self,
        session_id: str,
        student_id: str,
        status: AttendanceStatus,
        geofencing_status: GeofencingStatus = GeofencingStatus.UNKNOWN,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        marked_by: Optional[str] = None,
        created_at: Optional[datetime] = None,
        _id: Optional[str] = None
    ):
        self._id = _id or generate_id()
        self.session_id = session_id
        self.student_id = student_id
        self.status = AttendanceStatus(status)
        self.geofencing_status = GeofencingStatus(geofencing_status)
        # coordinates are only kept alongside a real geofence classification
        if self.geofencing_status == GeofencingStatus.UNKNOWN:
            latitude = longitude = None
        self.latitude = latitude
        self.longitude = longitude
        self.marked_by = marked_by
        self.created_at = created_at or DateTimeUtils.get_current_timestamp()

    @property
    def id(self) -> str:
        return self._id

    @property
    def key(self) -> tuple:
        return (self.session_id, self.student_id)

    @property
    def is_manual(self) -> bool:
        return self.marked_by is not None

    def to_dict(self) -> dict:
        return {
            "_id": self._id,
            "session_id": self.session_id,
            "student_id": self.student_id,
            "status": self.status.value,
            "geofencing_status": self.geofencing_status.value,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "marked_by": self.marked_by,
            "created_at": self.created_at
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'AttendanceRecordModel':
        return cls(
            session_id=data["session_id"],
            student_id=data["student_id"],
            status=data["status"],
            geofencing_status=data.get("geofencing_status", GeofencingStatus.UNKNOWN),
            latitude=data.get("latitude"),
            longitude=data.get("longitude"),
            marked_by=data.get("marked_by"),
            created_at=DateTimeUtils.parse_datetime(data.get("created_at")),
            _id=str(data["_id"]) if data.get("_id") else None
        )

    def to_response(self) -> dict:
        response = AttendanceRecordResponse(
            id=self._id,
            session_id=self.session_id,
            student_id=self.student_id,
            status=self.status,
            geofencing_status=self.geofencing_status,
            latitude=self.latitude,
            longitude=self.longitude,
            marked_by=self.marked_by,
            created_at=self.created_at
        )
        return response.model_dump(by_alias=True, mode="json")

    def __repr__(self):
        return (f"<AttendanceRecord(session_id='{self.session_id}', student_id='{self.student_id}', "
                f"status='{self.status.value}')>")
