# qr_attendance/config/config.py

import os
from dotenv import load_dotenv

load_dotenv()

class Config:
    """
    Settings read straight from environment variables, with the defaults the
    mobile client shipped with.
    """
    # Ledger (attendance backend)
    LEDGER_BASE_URL: str = os.environ.get("LEDGER_BASE_URL", "http://localhost:5000/api")
    LEDGER_TIMEOUT_SECONDS: float = float(os.environ.get("LEDGER_TIMEOUT_SECONDS", 15))

    # Geofence: Kigali city centre, 20 km radius
    GEOFENCE_CENTER_LATITUDE: float = float(os.environ.get("GEOFENCE_CENTER_LATITUDE", -1.94407))
    GEOFENCE_CENTER_LONGITUDE: float = float(os.environ.get("GEOFENCE_CENTER_LONGITUDE", 30.061885))
    GEOFENCE_RADIUS_METERS: float = float(os.environ.get("GEOFENCE_RADIUS_METERS", 20000))

    # Session store. Without a Redis URL the in-memory store is used.
    SESSION_REDIS_URL: str = os.environ.get("SESSION_REDIS_URL")
    SESSION_KEY_PREFIX: str = os.environ.get("SESSION_KEY_PREFIX", "qr_attendance")

    LOG_DIR: str = os.environ.get("LOG_DIR", "logs")

# Single importable settings instance
settings = Config()
