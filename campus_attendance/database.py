import logging
from typing import Optional, Dict, Any
from pymongo import MongoClient, ASCENDING
from pymongo.database import Database
from pymongo.errors import ConnectionFailure, ServerSelectionTimeoutError, OperationFailure
import time

from .core.config import settings as default_settings
from .core.exceptions import StorageError

# Configure logging
logger = logging.getLogger(__name__)

class DatabaseManager:
    """Manages the MongoDB connection with retry logic and index setup"""

    def __init__(self, url: Optional[str] = None, database_name: Optional[str] = None):
        self.url = url or default_settings.MONGODB_URL
        self.database_name = database_name or default_settings.MONGODB_DATABASE
        self.client: Optional[MongoClient] = None
        self.database: Optional[Database] = None
        self._connection_attempts = 0
        self._max_retries = 3
        self._retry_delay = 1  # seconds
        self._is_connected = False

    def connect(self) -> bool:
        """Establish connection to MongoDB with retry logic"""
        if self._is_connected and self.client is not None:
            logger.info("Database already connected")
            return True

        for attempt in range(self._max_retries):
            try:
                logger.info(f"Attempting to connect to MongoDB (attempt {attempt + 1}/{self._max_retries})")

                self.client = MongoClient(
                    self.url,
                    tz_aware=True,  # datetimes come back as aware UTC
                    maxPoolSize=50,
                    connectTimeoutMS=10000,
                    serverSelectionTimeoutMS=5000,
                    retryWrites=True,
                    retryReads=True,
                    w='majority'
                )

                # Test connection
                self.client.admin.command('ping')

                self.database = self.client[self.database_name]
                self.ensure_indexes()

                self._is_connected = True
                self._connection_attempts = 0
                logger.info(f"✅ Connected to MongoDB database: {self.database_name}")
                return True

            except (ConnectionFailure, ServerSelectionTimeoutError, OperationFailure) as e:
                self._connection_attempts += 1
                logger.error(f"❌ MongoDB connection attempt {attempt + 1} failed: {e}")

                if attempt < self._max_retries - 1:
                    wait_time = self._retry_delay * (2 ** attempt)  # Exponential backoff
                    logger.info(f"Waiting {wait_time}s before retry...")
                    time.sleep(wait_time)
                else:
                    logger.error(f"❌ Failed to connect to MongoDB after {self._max_retries} attempts")
                    self._is_connected = False
                    return False

        return False

    def ensure_indexes(self):
        """Create the unique indexes the attendance core relies on"""
        db = self.database
        db.qr_tokens.create_index([("token", ASCENDING)], unique=True, name="uniq_token")
        db.qr_tokens.create_index([("session_id", ASCENDING), ("expires_at", ASCENDING)], name="session_expiry")
        db.attendance.create_index(
            [("session_id", ASCENDING), ("student_id", ASCENDING)],
            unique=True,
            name="uniq_session_student"
        )
        db.attendance.create_index([("student_id", ASCENDING)], name="student")
        db.sessions.create_index([("faculty_id", ASCENDING), ("is_active", ASCENDING)], name="faculty_active")

    def disconnect(self):
        """Close MongoDB connection"""
        if self.client is not None:
            self.client.close()
            logger.info("MongoDB client connection closed")
        self._is_connected = False
        self.client = None
        self.database = None

    def get_database(self) -> Database:
        """Get database instance, connecting if necessary"""
        if not self._is_connected or self.database is None:
            if not self.connect():
                raise StorageError("Failed to connect to MongoDB", operation="connect")
        return self.database

    def check_health(self) -> Dict[str, Any]:
        """Ping the server and report round-trip time"""
        if not self._is_connected or self.client is None:
            return {
                "status": "disconnected",
                "connection_attempts": self._connection_attempts
            }

        try:
            start_time = time.time()
            self.client.admin.command('ping')
            ping_time = (time.time() - start_time) * 1000

            return {
                "status": "healthy",
                "backend": "mongo",
                "ping_time_ms": round(ping_time, 2),
                "database_name": self.database_name
            }
        except (ConnectionFailure, OperationFailure) as e:
            self._is_connected = False
            return {
                "status": "unhealthy",
                "error": str(e),
                "connection_attempts": self._connection_attempts
            }
