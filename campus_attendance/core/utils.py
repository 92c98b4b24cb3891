"""
Utility functions for ids, timestamps and token material
"""
import secrets
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional
from bson import ObjectId

Clock = Callable[[], datetime]

class DataUtils:
    """Utility class for identifiers and random material"""

    @staticmethod
    def generate_id() -> str:
        """Generate a unique ID"""
        return str(ObjectId())

    @staticmethod
    def generate_secure_token(nbytes: int = 12) -> str:
        """Generate a cryptographically secure, URL safe random string"""
        return secrets.token_urlsafe(nbytes)

    @staticmethod
    def compact(text: str) -> str:
        """Drop all whitespace from a display string"""
        return "".join(text.split())

class DateTimeUtils:
    """Utility class for date and time operations"""

    @staticmethod
    def get_current_timestamp() -> datetime:
        """Get current UTC timestamp"""
        return datetime.now(timezone.utc)

    @staticmethod
    def to_millis(dt: datetime) -> int:
        """Milliseconds since the epoch"""
        return int(dt.timestamp() * 1000)

    @staticmethod
    def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
        """Attach UTC to naive datetimes coming back from storage"""
        if dt is None:
            return None
        if dt.tzinfo is None:
            return dt.replace(tzinfo=timezone.utc)
        return dt

    @staticmethod
    def parse_datetime(value) -> Optional[datetime]:
        """Parse ISO strings (with optional trailing Z) or pass datetimes through"""
        if value is None or isinstance(value, datetime):
            return DateTimeUtils.ensure_utc(value)
        try:
            return DateTimeUtils.ensure_utc(datetime.fromisoformat(str(value).replace('Z', '+00:00')))
        except ValueError:
            return None

    @staticmethod
    def add_millis(dt: datetime, millis: int) -> datetime:
        return dt + timedelta(milliseconds=millis)

# Module-level shortcuts
def generate_id() -> str:
    """Generate a unique ID"""
    return DataUtils.generate_id()

def utc_now() -> datetime:
    """Get current UTC timestamp"""
    return DateTimeUtils.get_current_timestamp()

def format_datetime(dt: Optional[datetime]) -> Optional[str]:
    """ISO format for API responses"""
    return dt.isoformat() if dt else None
