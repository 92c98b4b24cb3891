import os
from typing import Optional

class Settings:
    def __init__(self):
        # App Settings
        self.APP_NAME: str = os.getenv("APP_NAME", "Campus QR Attendance")
        self.APP_VERSION: str = os.getenv("APP_VERSION", "1.0.0")
        self.DEBUG: bool = os.getenv("DEBUG", "False").lower() == "true"
        self.SECRET_KEY: str = os.getenv("SECRET_KEY", "campus-attendance-dev-secret")

        # Storage
        self.STORAGE_BACKEND: str = os.getenv("STORAGE_BACKEND", "memory").lower()
        self.MONGODB_URL: Optional[str] = os.getenv("MONGODB_URL")
        self.MONGODB_DATABASE: str = os.getenv("MONGODB_DATABASE", "campus_attendance")

        # Geofence (campus center and radius in meters)
        self.CAMPUS_CENTER_LAT: float = float(os.getenv("CAMPUS_CENTER_LAT", "12.9716"))
        self.CAMPUS_CENTER_LNG: float = float(os.getenv("CAMPUS_CENTER_LNG", "77.5946"))
        self.GEOFENCE_RADIUS_METERS: float = float(os.getenv("GEOFENCE_RADIUS_METERS", "1000"))

        # QR Code Settings
        self.QR_ROTATION_INTERVAL_MS: int = int(os.getenv("QR_ROTATION_INTERVAL_MS", "2000"))
        self.QR_CODE_SIZE: int = int(os.getenv("QR_CODE_SIZE", "10"))
        self.QR_CODE_BORDER: int = int(os.getenv("QR_CODE_BORDER", "4"))

        # CORS Settings - Allow all origins for development
        cors_origins = os.getenv("ALLOWED_ORIGINS", "*")
        if cors_origins == "*":
            self.ALLOWED_ORIGINS = ["*"]
        else:
            self.ALLOWED_ORIGINS = [origin.strip() for origin in cors_origins.split(",")]

        self._validate()

    def _validate(self):
        """Reject settings the service cannot run with."""
        if self.STORAGE_BACKEND not in ("memory", "mongo"):
            raise ValueError(f"Unsupported STORAGE_BACKEND: {self.STORAGE_BACKEND}")

        if self.STORAGE_BACKEND == "mongo":
            if not self.MONGODB_URL:
                raise ValueError("MONGODB_URL is required when STORAGE_BACKEND=mongo")
            if not (self.MONGODB_URL.startswith("mongodb://") or self.MONGODB_URL.startswith("mongodb+srv://")):
                raise ValueError("Invalid MongoDB URL scheme")

        if self.QR_ROTATION_INTERVAL_MS <= 0:
            raise ValueError("QR_ROTATION_INTERVAL_MS must be positive")

        if self.GEOFENCE_RADIUS_METERS < 0:
            raise ValueError("GEOFENCE_RADIUS_METERS cannot be negative")

    @property
    def rotation_interval_seconds(self) -> float:
        return self.QR_ROTATION_INTERVAL_MS / 1000.0

# Create settings instance
settings = Settings()
