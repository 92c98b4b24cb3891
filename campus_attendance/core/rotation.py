"""
Background QR token rotation, one worker thread per active session
"""

import logging
import threading
from typing import Dict, Optional

from .tokens import TokenService
from .exceptions import StorageError
from ..models import SessionModel

logger = logging.getLogger(__name__)


class TokenRotator(threading.Thread):
    """Issues a fresh token every interval until its stop event is set.

    The first token is issued as soon as the thread starts. ``stop()`` wakes the
    sleeping thread immediately. Each tick re-reads the stored session and the
    rotator stops itself once the session is gone or ended, wherever that happened.
    """

    def __init__(self, session: SessionModel, token_service: TokenService, interval_seconds: float):
        super().__init__(name=f"qr-rotator-{session.id}", daemon=True)
        self.session = session
        self.token_service = token_service
        self.interval_seconds = interval_seconds
        self._stop_event = threading.Event()
        self.issued_count = 0

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def stop(self):
        self._stop_event.set()

    def tick(self):
        # the session may have been ended by another worker sharing the store
        current = self.token_service.store.get_session(self.session.id)
        if current is None or not current.is_active:
            logger.info(f"Session {self.session.id} is no longer active, stopping rotation")
            self.stop()
            return
        self.token_service.issue(self.session)
        self.issued_count += 1
        self.token_service.cleanup_expired(self.session.id)

    def run(self):
        logger.info(f"🔄 Token rotation started for session {self.session.id}")
        while not self._stop_event.is_set():
            try:
                self.tick()
            except (StorageError, RuntimeError) as e:
                # try again next interval
                logger.error(f"Token rotation failed for session {self.session.id}: {e}")
            self._stop_event.wait(self.interval_seconds)
        logger.info(f"Token rotation stopped for session {self.session.id}")


class RotationManager:
    """Keeps track of the rotator belonging to each active session"""

    def __init__(self, token_service: TokenService, interval_seconds: float):
        self.token_service = token_service
        self.interval_seconds = interval_seconds
        self._rotators: Dict[str, TokenRotator] = {}
        self._lock = threading.Lock()

    def start(self, session: SessionModel) -> TokenRotator:
        with self._lock:
            existing = self._rotators.get(session.id)
            if existing is not None and existing.is_alive():
                return existing
            rotator = TokenRotator(session, self.token_service, self.interval_seconds)
            self._rotators[session.id] = rotator
            rotator.start()
            return rotator

    def stop(self, session_id: str, timeout: Optional[float] = None) -> bool:
        with self._lock:
            rotator = self._rotators.pop(session_id, None)
        if rotator is None:
            return False
        rotator.stop()
        rotator.join(timeout if timeout is not None else self.interval_seconds + 1)
        return True

    def is_running(self, session_id: str) -> bool:
        with self._lock:
            rotator = self._rotators.get(session_id)
        return rotator is not None and rotator.is_alive()

    def stop_all(self):
        with self._lock:
            session_ids = list(self._rotators)
        for session_id in session_ids:
            self.stop(session_id)
