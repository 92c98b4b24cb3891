from .sessions import SessionService
from .attendance import AttendanceService

__all__ = [
    "SessionService",
    "AttendanceService"
]
