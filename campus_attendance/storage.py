"""
Attendance storage layer
Store interface plus in-memory and MongoDB implementations
"""

import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime
from functools import wraps
from typing import Dict, List, Optional, Tuple, Any

from pymongo import DESCENDING
from pymongo.errors import DuplicateKeyError, PyMongoError

from .core.exceptions import StorageError
from .database import DatabaseManager
from .models import SessionModel, QRTokenModel, AttendanceRecordModel

logger = logging.getLogger(__name__)


class AttendanceStore(ABC):
    """Persistence contract for sessions, QR tokens and attendance records.

    ``insert_attendance_if_absent`` must be atomic per (session_id, student_id):
    of any number of concurrent inserts for the same pair, exactly one returns True.
    """

    # Sessions
    @abstractmethod
    def create_session(self, session: SessionModel) -> SessionModel: ...

    @abstractmethod
    def get_session(self, session_id: str) -> Optional[SessionModel]: ...

    @abstractmethod
    def list_active_sessions(self, faculty_id: Optional[str] = None) -> List[SessionModel]:
        """Active sessions of one faculty member, or of everyone when faculty_id is None"""

    @abstractmethod
    def end_session(self, session_id: str, ended_at: datetime) -> bool:
        """Atomically flip an active session to ended. False if it was not active."""

    # QR tokens
    @abstractmethod
    def insert_token(self, token: QRTokenModel) -> bool:
        """Persist a token. False if the token string is already taken."""

    @abstractmethod
    def find_token(self, token: str) -> Optional[QRTokenModel]: ...

    @abstractmethod
    def latest_live_token(self, session_id: str, now: datetime) -> Optional[QRTokenModel]: ...

    @abstractmethod
    def delete_expired_tokens(self, now: datetime, session_id: Optional[str] = None) -> int: ...

    # Attendance
    @abstractmethod
    def insert_attendance_if_absent(self, record: AttendanceRecordModel) -> bool: ...

    @abstractmethod
    def list_attendance(self, session_id: str) -> List[AttendanceRecordModel]: ...

    @abstractmethod
    def list_student_attendance(self, student_id: str) -> List[AttendanceRecordModel]: ...

    @abstractmethod
    def health(self) -> Dict[str, Any]: ...

    def close(self):
        pass


class MemoryStore(AttendanceStore):
    """Thread-safe in-process store, for development and tests"""

    def __init__(self):
        self._lock = threading.RLock()
        self._sessions: Dict[str, SessionModel] = {}
        self._tokens: Dict[str, QRTokenModel] = {}
        self._attendance: Dict[Tuple[str, str], AttendanceRecordModel] = {}

    def create_session(self, session: SessionModel) -> SessionModel:
        with self._lock:
            self._sessions[session.id] = session
        return session

    def get_session(self, session_id: str) -> Optional[SessionModel]:
        with self._lock:
            return self._sessions.get(session_id)

    def list_active_sessions(self, faculty_id: Optional[str] = None) -> List[SessionModel]:
        with self._lock:
            return [
                s for s in self._sessions.values()
                if s.is_active and (faculty_id is None or s.faculty_id == faculty_id)
            ]

    def end_session(self, session_id: str, ended_at: datetime) -> bool:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return False
            return session.deactivate(ended_at)

    def insert_token(self, token: QRTokenModel) -> bool:
        with self._lock:
            if token.token in self._tokens:
                return False
            self._tokens[token.token] = token
            return True

    def find_token(self, token: str) -> Optional[QRTokenModel]:
        with self._lock:
            return self._tokens.get(token)

    def latest_live_token(self, session_id: str, now: datetime) -> Optional[QRTokenModel]:
        with self._lock:
            live = [t for t in self._tokens.values() if t.session_id == session_id and t.is_live(now)]
        if not live:
            return None
        return max(live, key=lambda t: t.created_at)

    def delete_expired_tokens(self, now: datetime, session_id: Optional[str] = None) -> int:
        with self._lock:
            expired = [
                key for key, t in self._tokens.items()
                if not t.is_live(now) and (session_id is None or t.session_id == session_id)
            ]
            for key in expired:
                del self._tokens[key]
        return len(expired)

    def insert_attendance_if_absent(self, record: AttendanceRecordModel) -> bool:
        with self._lock:
            if record.key in self._attendance:
                return False
            self._attendance[record.key] = record
            return True

    def list_attendance(self, session_id: str) -> List[AttendanceRecordModel]:
        with self._lock:
            records = [r for r in self._attendance.values() if r.session_id == session_id]
        return sorted(records, key=lambda r: r.created_at)

    def list_student_attendance(self, student_id: str) -> List[AttendanceRecordModel]:
        with self._lock:
            records = [r for r in self._attendance.values() if r.student_id == student_id]
        return sorted(records, key=lambda r: r.created_at, reverse=True)

    def health(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "status": "healthy",
                "backend": "memory",
                "sessions": len(self._sessions),
                "live_tokens": len(self._tokens),
                "attendance_records": len(self._attendance)
            }


def storage_operation(operation: str):
    """Translate driver failures into StorageError"""
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except PyMongoError as e:
                logger.error(f"Storage operation '{operation}' failed: {e}")
                raise StorageError(operation=operation) from e
        return wrapper
    return decorator


class MongoStore(AttendanceStore):
    """MongoDB store. Uniqueness comes from the indexes created by DatabaseManager."""

    def __init__(self, manager: DatabaseManager):
        self.manager = manager

    @property
    def db(self):
        return self.manager.get_database()

    @storage_operation("create_session")
    def create_session(self, session: SessionModel) -> SessionModel:
        self.db.sessions.insert_one(session.to_dict())
        return session

    @storage_operation("get_session")
    def get_session(self, session_id: str) -> Optional[SessionModel]:
        data = self.db.sessions.find_one({"_id": session_id})
        return SessionModel.from_dict(data) if data else None

    @storage_operation("list_active_sessions")
    def list_active_sessions(self, faculty_id: Optional[str] = None) -> List[SessionModel]:
        query = {"is_active": True}
        if faculty_id is not None:
            query["faculty_id"] = faculty_id
        cursor = self.db.sessions.find(query).sort("created_at", DESCENDING)
        return [SessionModel.from_dict(doc) for doc in cursor]

    @storage_operation("end_session")
    def end_session(self, session_id: str, ended_at: datetime) -> bool:
        result = self.db.sessions.update_one(
            {"_id": session_id, "is_active": True},
            {"$set": {"is_active": False, "ended_at": ended_at}}
        )
        return result.modified_count == 1

    @storage_operation("insert_token")
    def insert_token(self, token: QRTokenModel) -> bool:
        try:
            self.db.qr_tokens.insert_one(token.to_dict())
        except DuplicateKeyError:
            return False
        return True

    @storage_operation("find_token")
    def find_token(self, token: str) -> Optional[QRTokenModel]:
        data = self.db.qr_tokens.find_one({"token": token})
        return QRTokenModel.from_dict(data) if data else None

    @storage_operation("latest_live_token")
    def latest_live_token(self, session_id: str, now: datetime) -> Optional[QRTokenModel]:
        data = self.db.qr_tokens.find_one(
            {"session_id": session_id, "expires_at": {"$gt": now}},
            sort=[("created_at", DESCENDING)]
        )
        return QRTokenModel.from_dict(data) if data else None

    @storage_operation("delete_expired_tokens")
    def delete_expired_tokens(self, now: datetime, session_id: Optional[str] = None) -> int:
        query = {"expires_at": {"$lte": now}}
        if session_id is not None:
            query["session_id"] = session_id
        return self.db.qr_tokens.delete_many(query).deleted_count

    @storage_operation("insert_attendance")
    def insert_attendance_if_absent(self, record: AttendanceRecordModel) -> bool:
        try:
            self.db.attendance.insert_one(record.to_dict())
        except DuplicateKeyError:
            return False
        return True

    @storage_operation("list_attendance")
    def list_attendance(self, session_id: str) -> List[AttendanceRecordModel]:
        cursor = self.db.attendance.find({"session_id": session_id}).sort("created_at", 1)
        return [AttendanceRecordModel.from_dict(doc) for doc in cursor]

    @storage_operation("list_student_attendance")
    def list_student_attendance(self, student_id: str) -> List[AttendanceRecordModel]:
        cursor = self.db.attendance.find({"student_id": student_id}).sort("created_at", DESCENDING)
        return [AttendanceRecordModel.from_dict(doc) for doc in cursor]

    def health(self) -> Dict[str, Any]:
        return self.manager.check_health()

    def close(self):
        self.manager.disconnect()


def create_store(settings) -> AttendanceStore:
    """Build the store selected by STORAGE_BACKEND"""
    if settings.STORAGE_BACKEND == "mongo":
        manager = DatabaseManager(settings.MONGODB_URL, settings.MONGODB_DATABASE)
        if not manager.connect():
            logger.warning("⚠️ MongoDB unavailable at startup; requests will retry the connection")
        return MongoStore(manager)
    logger.info("Using in-memory attendance store")
    return MemoryStore()
