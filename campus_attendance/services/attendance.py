"""
Attendance marking engine
"""

import logging
from typing import List, Optional

from ..core.exceptions import DuplicateAttendanceError, InvalidQRTokenError
from ..core.geofence import CampusGeofence, GeofenceResult, UNKNOWN_RESULT
from ..core.tokens import TokenService
from ..core.utils import Clock, utc_now
from ..models import AttendanceRecordModel
from ..schemas.attendance import (
    AttendanceStatus, GeofencingStatus, ManualAttendanceRequest, SessionStats, VerifyQRRequest
)
from ..storage import AttendanceStore
from .sessions import SessionService

logger = logging.getLogger(__name__)


class AttendanceService:
    def __init__(
        self,
        store: AttendanceStore,
        sessions: SessionService,
        tokens: TokenService,
        geofence: CampusGeofence,
        clock: Clock = utc_now
    ):
        self.store = store
        self.sessions = sessions
        self.tokens = tokens
        self.geofence = geofence
        self.clock = clock

    def mark_attendance(
        self,
        session_id: str,
        student_id: str,
        submitted_status: AttendanceStatus,
        geofence_result: GeofenceResult = UNKNOWN_RESULT,
        marked_by: Optional[str] = None
    ) -> AttendanceRecordModel:
        """Persist the one record allowed for (session_id, student_id).

        The store's insert-if-absent decides who wins; a losing attempt raises
        DuplicateAttendanceError and writes nothing.
        """
        record = AttendanceRecordModel(
            session_id=session_id,
            student_id=student_id,
            status=submitted_status,
            geofencing_status=geofence_result.status,
            latitude=geofence_result.latitude,
            longitude=geofence_result.longitude,
            marked_by=marked_by,
            created_at=self.clock(),
        )

        if not self.store.insert_attendance_if_absent(record):
            logger.info(f"Duplicate attendance: student {student_id} already marked for session {session_id}")
            raise DuplicateAttendanceError(session_id=session_id, student_id=student_id)

        logger.info(f"Attendance marked: student {student_id} for session {session_id} "
                    f"({record.status.value}, {record.geofencing_status.value})")
        return record

    def verify_and_mark(self, request: VerifyQRRequest) -> AttendanceRecordModel:
        """Student self-scan: token gate, then geofence, then the uniqueness check"""
        if not self.tokens.validate(request.session_id, request.token):
            logger.info(f"Rejected QR scan by student {request.student_id} for session {request.session_id}")
            raise InvalidQRTokenError()

        session = self.store.get_session(request.session_id)
        if session is None or not session.is_active:
            logger.info(f"Rejected QR scan by student {request.student_id}: session {request.session_id} is not active")
            raise InvalidQRTokenError()

        if session.geofencing_enabled:
            geofence_result = self.geofence.classify(request.latitude, request.longitude)
        else:
            geofence_result = UNKNOWN_RESULT

        return self.mark_attendance(
            session_id=session.id,
            student_id=request.student_id,
            submitted_status=AttendanceStatus.PRESENT,
            geofence_result=geofence_result,
        )

    def manual_mark(self, session_id: str, request: ManualAttendanceRequest) -> AttendanceRecordModel:
        """Faculty override: no token, no geofence, marked_by set"""
        session = self.sessions.get_session(session_id)
        return self.mark_attendance(
            session_id=session.id,
            student_id=request.student_id,
            submitted_status=AttendanceStatus(request.action.value),
            marked_by=request.faculty_id,
        )

    def session_records(self, session_id: str) -> List[AttendanceRecordModel]:
        self.sessions.get_session(session_id)
        return self.store.list_attendance(session_id)

    def student_records(self, student_id: str) -> List[AttendanceRecordModel]:
        return self.store.list_student_attendance(student_id)

    def session_stats(self, session_id: str, total_enrolled: Optional[int] = None) -> SessionStats:
        records = self.session_records(session_id)

        present = sum(1 for r in records if r.status == AttendanceStatus.PRESENT)
        absent = sum(1 for r in records if r.status == AttendanceStatus.ABSENT)
        by_geofence = {status: 0 for status in GeofencingStatus}
        for r in records:
            by_geofence[r.geofencing_status] += 1

        stats = SessionStats(
            session_id=session_id,
            total_marked=len(records),
            present=present,
            absent=absent,
            manual_entries=sum(1 for r in records if r.is_manual),
            inside=by_geofence[GeofencingStatus.INSIDE],
            outside=by_geofence[GeofencingStatus.OUTSIDE],
            unknown=by_geofence[GeofencingStatus.UNKNOWN],
            outside_present=sum(
                1 for r in records
                if r.status == AttendanceStatus.PRESENT and r.geofencing_status == GeofencingStatus.OUTSIDE
            ),
        )

        if total_enrolled:
            stats.total_enrolled = total_enrolled
            stats.not_marked = max(total_enrolled - len(records), 0)
            stats.attendance_percentage = round(present / total_enrolled * 100)

        return stats
