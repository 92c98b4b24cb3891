import logging
from typing import List, Optional

from ..core.exceptions import ConflictError, raise_resource_not_found
from ..core.rotation import RotationManager
from ..core.utils import Clock, utc_now
from ..models import SessionModel
from ..schemas.attendance import SessionCreate
from ..storage import AttendanceStore

logger = logging.getLogger(__name__)


class SessionService:
    """Session lifecycle: open (and start rotating tokens), look up, end."""

    def __init__(self, store: AttendanceStore, rotation: Optional[RotationManager] = None, clock: Clock = utc_now):
        self.store = store
        self.rotation = rotation
        self.clock = clock

    def create_session(self, data: SessionCreate) -> SessionModel:
        session = SessionModel(
            faculty_id=data.faculty_id,
            semester=data.semester,
            branch=data.branch,
            subject=data.subject,
            geofencing_enabled=data.geofencing_enabled,
            created_at=self.clock(),
        )
        self.store.create_session(session)
        logger.info(f"Session created: {session.subject} ({session.branch} S{session.semester}) "
                    f"by faculty {session.faculty_id}")

        if self.rotation is not None:
            self.rotation.start(session)
        return session

    def get_session(self, session_id: str) -> SessionModel:
        session = self.store.get_session(session_id)
        if session is None:
            raise_resource_not_found("Session", session_id)
        return session

    def list_active_sessions(self, faculty_id: str) -> List[SessionModel]:
        return self.store.list_active_sessions(faculty_id)

    def ensure_rotation(self, session: SessionModel) -> bool:
        """Start rotating tokens for an active session unless this process already does"""
        if self.rotation is None or not session.is_active:
            return False
        if self.rotation.is_running(session.id):
            return False
        self.rotation.start(session)
        logger.info(f"Resumed token rotation for session {session.id}")
        return True

    def resume_rotation(self) -> int:
        """Pick up rotation for every stored active session, e.g. after a restart"""
        if self.rotation is None:
            return 0
        return sum(1 for session in self.store.list_active_sessions() if self.ensure_rotation(session))

    def end_session(self, session_id: str) -> SessionModel:
        session = self.get_session(session_id)
        if not self.store.end_session(session_id, self.clock()):
            raise ConflictError("Session has already ended", field="is_active")

        if self.rotation is not None:
            self.rotation.stop(session_id)

        logger.info(f"Session ended: {session_id}")
        return self.get_session(session.id)
