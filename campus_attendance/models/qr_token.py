from datetime import datetime
from typing import Optional

from ..core.utils import DateTimeUtils, generate_id

class QRTokenModel:
    def __init__(
        self,
        session_id: str,
        token: str,
        expires_at: datetime,
        created_at: datetime,
        _id: Optional[str] = None
    ):
        self._id = _id or generate_id()
        self.session_id = session_id
        self.token = token
        self.expires_at = expires_at
        self.created_at = created_at

    @property
    def id(self) -> str:
        return self._id

    def is_live(self, now: datetime) -> bool:
        return now < self.expires_at

    def is_valid_for(self, session_id: str, now: datetime) -> bool:
        return self.session_id == session_id and self.is_live(now)

    def to_dict(self) -> dict:
        return {
            "_id": self._id,
            "session_id": self.session_id,
            "token": self.token,
            "expires_at": self.expires_at,
            "created_at": self.created_at
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'QRTokenModel':
        return cls(
            session_id=data["session_id"],
            token=data["token"],
            expires_at=DateTimeUtils.parse_datetime(data["expires_at"]),
            created_at=DateTimeUtils.parse_datetime(data["created_at"]),
            _id=str(data["_id"]) if data.get("_id") else None
        )

    def to_response(self) -> dict:
        return {
            "id": self._id,
            "sessionId": self.session_id,
            "token": self.token,
            "expiresAt": self.expires_at.isoformat(),
            "createdAt": self.created_at.isoformat()
        }

    def __repr__(self):
        return f"<QRToken(session_id='{self.session_id}', expires_at='{self.expires_at}')>"
