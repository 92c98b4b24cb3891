from .session import SessionModel
from .qr_token import QRTokenModel
from .attendance import AttendanceRecordModel

__all__ = [
    "SessionModel",
    "QRTokenModel",
    "AttendanceRecordModel"
]
