from .attendance import (
    AttendanceStatus, GeofencingStatus, ManualAction, SessionCreate, VerifyQRRequest,
    ManualAttendanceRequest, QRPayload, AttendanceRecordResponse, SessionStats
)

__all__ = [
    "AttendanceStatus", "GeofencingStatus", "ManualAction", "SessionCreate", "VerifyQRRequest",
    "ManualAttendanceRequest", "QRPayload", "AttendanceRecordResponse", "SessionStats"
]
