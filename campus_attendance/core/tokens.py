"""
Rotating QR token issuance and validation
"""

import logging
from typing import Optional

from .utils import Clock, DataUtils, DateTimeUtils, utc_now
from ..models import QRTokenModel, SessionModel
from ..schemas.attendance import QRPayload

logger = logging.getLogger(__name__)

DEFAULT_ROTATION_INTERVAL_MS = 2000
MAX_ISSUE_ATTEMPTS = 5


class TokenService:
    """Mints short-lived tokens bound to one session and checks them at scan time.

    A token is valid iff it is known to the store, belongs to the session it is
    checked against, and the check happens strictly before ``expires_at``.
    Issuing a new token leaves older ones alone; they simply run out.
    """

    def __init__(self, store, interval_ms: int = DEFAULT_ROTATION_INTERVAL_MS, clock: Clock = utc_now):
        self.store = store
        self.interval_ms = interval_ms
        self.clock = clock

    def generate_token_string(self, session: SessionModel, issued_at) -> str:
        """TK_<millis>_<subject>_<branch>_S<semester>_<random>

        Everything except the random suffix is debugging context.
        """
        return "_".join([
            "TK",
            str(DateTimeUtils.to_millis(issued_at)),
            DataUtils.compact(session.subject),
            DataUtils.compact(session.branch),
            f"S{session.semester}",
            DataUtils.generate_secure_token(),
        ])

    def issue(self, session: SessionModel) -> QRTokenModel:
        now = self.clock()
        for _ in range(MAX_ISSUE_ATTEMPTS):
            qr_token = QRTokenModel(
                session_id=session.id,
                token=self.generate_token_string(session, now),
                expires_at=DateTimeUtils.add_millis(now, self.interval_ms),
                created_at=now,
            )
            if self.store.insert_token(qr_token):
                logger.debug(f"Issued token for session {session.id}, expires {qr_token.expires_at.isoformat()}")
                return qr_token
            logger.warning(f"Token collision for session {session.id}, drawing again")
        raise RuntimeError(f"Could not issue a unique token for session {session.id}")

    def validate(self, session_id: str, token: str) -> bool:
        if not token:
            return False
        qr_token = self.store.find_token(token)
        if qr_token is None:
            return False
        return qr_token.is_valid_for(session_id, self.clock())

    def current(self, session_id: str) -> Optional[QRTokenModel]:
        return self.store.latest_live_token(session_id, self.clock())

    def cleanup_expired(self, session_id: Optional[str] = None) -> int:
        removed = self.store.delete_expired_tokens(self.clock(), session_id)
        if removed:
            logger.debug(f"Removed {removed} expired tokens")
        return removed

    @staticmethod
    def build_payload(qr_token: QRTokenModel, session: SessionModel) -> QRPayload:
        return QRPayload(
            session_id=session.id,
            token=qr_token.token,
            timestamp=DateTimeUtils.to_millis(qr_token.created_at),
            subject=session.subject,
            semester=session.semester,
            branch=session.branch,
        )
