from pydantic_settings import BaseSettings
from typing import List, Dict, Any, Optional
import json


def parse_cors_origins(v: Any) -> List[str]:
    """Parse CORS origins from string or list"""
    if isinstance(v, list):
        return v
    if isinstance(v, str):
        # Try JSON parsing first
        if v.startswith('['):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                pass
        # Fall back to comma-separated
        return [origin.strip() for origin in v.split(',') if origin.strip()]
    return []


def parse_extensions(v: Any) -> List[str]:
    """Parse allowed extensions from string or list"""
    if isinstance(v, list):
        return [ext.lower().lstrip('.') for ext in v]
    if isinstance(v, str):
        return [ext.strip().lower().lstrip('.') for ext in v.split(',') if ext.strip()]
    return []


class Settings(BaseSettings):
    """Application settings - all configurable via environment variables"""

    # ==========================================
    # Application
    # ==========================================
    APP_NAME: str = "Career Guidance System"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    API_PREFIX: str = "/api"

    # Server Configuration
    SERVER_HOST: str = "0.0.0.0"
    SERVER_PORT: int = 8000

    # ==========================================
    # Firebase (identity provider + document store)
    # ==========================================
    FIREBASE_PROJECT_ID: str = ""
    FIREBASE_SERVICE_ACCOUNT: str = ""  # Service account JSON, for platforms without a key file
    FIREBASE_CREDENTIALS_PATH: str = ""  # Path to a service account key file
    FIREBASE_STORAGE_BUCKET: str = ""

    # Web SDK config handed to browsers via /config (never hard-coded in client code)
    FIREBASE_WEB_API_KEY: str = ""
    FIREBASE_AUTH_DOMAIN: str = ""
    FIREBASE_MESSAGING_SENDER_ID: str = ""
    FIREBASE_APP_ID: str = ""

    # ==========================================
    # Authentication
    # ==========================================
    SEND_VERIFICATION_EMAIL: bool = True
    CHECK_REVOKED_TOKENS: bool = False

    # ==========================================
    # Public URLs (served to clients)
    # ==========================================
    PUBLIC_API_URL: str = "http://localhost:8000"
    PUBLIC_WS_URL: str = "ws://localhost:8000/ws/chat"

    # ==========================================
    # CORS (stored as comma-separated string, parsed to list)
    # ==========================================
    CORS_ORIGINS_STR: str = "http://localhost:3000,http://localhost:5000,http://127.0.0.1:3000,http://127.0.0.1:5000"

    @property
    def CORS_ORIGINS(self) -> List[str]:
        """Parse CORS origins from comma-separated string"""
        return parse_cors_origins(self.CORS_ORIGINS_STR)

    # ==========================================
    # File Upload
    # ==========================================
    MAX_UPLOAD_SIZE: int = 5242880  # 5MB
    MAX_REQUEST_SIZE: int = 10485760  # 10MB
    ALLOWED_PHOTO_EXTENSIONS_STR: str = "png,jpg,jpeg,webp"

    @property
    def ALLOWED_PHOTO_EXTENSIONS(self) -> List[str]:
        """Parse allowed photo extensions from comma-separated string"""
        return parse_extensions(self.ALLOWED_PHOTO_EXTENSIONS_STR)

    # ==========================================
    # Realtime (notification stream + chat)
    # ==========================================
    NOTIFICATION_KEEPALIVE_SECONDS: float = 15.0
    NOTIFICATION_RETRY_MS: int = 5000  # Sent as the SSE "retry:" field
    NOTIFICATION_QUEUE_SIZE: int = 100
    CHAT_HISTORY_LIMIT: int = 100

    # ==========================================
    # Admissions
    # ==========================================
    SEAT_RESERVATION_MAX_RETRIES: int = 3
    DEFAULT_PAGE_SIZE: int = 20
    MAX_PAGE_SIZE: int = 100

    # ==========================================
    # Logging
    # ==========================================
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "logs/app.log"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields in .env that aren't defined in Settings

    @property
    def firebase_configured(self) -> bool:
        """True when explicit service account credentials are available"""
        return bool(self.FIREBASE_SERVICE_ACCOUNT or self.FIREBASE_CREDENTIALS_PATH)

    def get_service_account(self) -> Optional[Dict[str, Any]]:
        """Service account info from FIREBASE_SERVICE_ACCOUNT, if set"""
        if not self.FIREBASE_SERVICE_ACCOUNT:
            return None
        return json.loads(self.FIREBASE_SERVICE_ACCOUNT)

    def get_public_config(self) -> Dict[str, Any]:
        """Client-side configuration resolved at runtime"""
        return {
            "apiUrl": self.PUBLIC_API_URL,
            "wsUrl": self.PUBLIC_WS_URL,
            "notificationRetryMs": self.NOTIFICATION_RETRY_MS,
            "firebase": {
                "apiKey": self.FIREBASE_WEB_API_KEY,
                "authDomain": self.FIREBASE_AUTH_DOMAIN,
                "projectId": self.FIREBASE_PROJECT_ID,
                "storageBucket": self.FIREBASE_STORAGE_BUCKET,
                "messagingSenderId": self.FIREBASE_MESSAGING_SENDER_ID,
                "appId": self.FIREBASE_APP_ID,
            },
        }


settings = Settings()
