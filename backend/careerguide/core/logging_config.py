"""
Career Guidance - Logging Configuration

Every record carries the request id plus the uid and role of the signed-in
user, bound by the auth dependency. Production writes one JSON object per
line; development writes readable text.
"""

import json
import logging
import sys
import traceback
import uuid
from contextvars import ContextVar
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

from careerguide.core.config import settings


request_id_var: ContextVar[str] = ContextVar('request_id', default='')
user_id_var: ContextVar[str] = ContextVar('user_id', default='')
role_var: ContextVar[str] = ContextVar('role', default='')

# Standard LogRecord attributes; everything else arrived through `extra`
_RECORD_ATTRS = set(vars(logging.LogRecord('', 0, '', 0, '', (), None))) | {
    'message', 'asctime', 'request_id', 'user_id', 'role',
}

# Third-party loggers that are too chatty at INFO
_QUIET_LOGGERS = (
    'httpx', 'httpcore', 'websockets', 'uvicorn.access',
    'google', 'google.auth', 'firebase_admin', 'urllib3', 'grpc',
)


def get_request_id() -> str:
    return request_id_var.get()


def set_request_id(request_id: str) -> None:
    request_id_var.set(request_id)


def generate_request_id() -> str:
    return uuid.uuid4().hex[:8]


def get_user_id() -> str:
    return user_id_var.get()


def get_role() -> str:
    return role_var.get()


def set_user_id(user_id: str, role: Optional[str] = None) -> None:
    """Bind the signed-in user (and role, when known) to the current context"""
    user_id_var.set(user_id)
    role_var.set(role or '')


class JSONFormatter(logging.Formatter):
    """One JSON object per line for log aggregation"""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "service": settings.APP_NAME,
            "environment": settings.ENVIRONMENT,
            "message": record.getMessage(),
            "location": f"{record.module}:{record.lineno}",
        }

        for key, value in (("request_id", get_request_id()), ("user_id", get_user_id()), ("role", get_role())):
            if value:
                entry[key] = value

        if record.exc_info and record.exc_info[0]:
            exc_type, exc_value, _ = record.exc_info
            entry["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc_value),
                "traceback": traceback.format_exception(*record.exc_info),
            }

        entry.update(
            (key, value) for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRS and not key.startswith('_')
        )
        return json.dumps(entry, default=str)


class ContextualFormatter(logging.Formatter):
    """Readable development output with the request context filled in"""

    def format(self, record: logging.LogRecord) -> str:
        record.request_id = get_request_id() or '-'
        record.user_id = get_user_id() or '-'
        record.role = get_role() or '-'
        return super().format(record)


class CareerGuideLogger(logging.Logger):
    """Logger with helpers for the events this service emits"""

    def log_request(self, method: str, path: str, status_code: int,
                    duration_ms: float, level: int = logging.INFO, **kwargs) -> None:
        self.log(
            level,
            f"{method} {path} -> {status_code} ({duration_ms:.1f}ms)",
            extra={
                "event_type": "http_request",
                "http_method": method,
                "http_path": path,
                "http_status": status_code,
                "duration_ms": round(duration_ms, 2),
                **kwargs
            }
        )

    def log_store_op(self, operation: str, collection: str, duration_ms: float,
                     documents: int = 0, **kwargs) -> None:
        """Firestore call timing, at DEBUG"""
        self.debug(
            f"Firestore {operation} {collection}: {documents} doc(s) in {duration_ms:.1f}ms",
            extra={
                "event_type": "store_op",
                "store_operation": operation,
                "store_collection": collection,
                "documents": documents,
                "duration_ms": round(duration_ms, 2),
                **kwargs
            }
        )

    def log_auth_event(self, event: str, success: bool, user_email: Optional[str] = None,
                       reason: Optional[str] = None, role: Optional[str] = None, **kwargs) -> None:
        """Registration, login and role-check outcomes"""
        details = " ".join(
            part for part in (
                user_email and f"email={user_email}",
                role and f"role={role}",
                reason and f"reason={reason}",
            ) if part
        )
        self.log(
            logging.INFO if success else logging.WARNING,
            f"Auth {event} {'ok' if success else 'failed'}" + (f": {details}" if details else ""),
            extra={
                "event_type": "auth",
                "auth_event": event,
                "auth_success": success,
                "user_email": user_email,
                "auth_role": role,
                "failure_reason": reason,
                **kwargs
            }
        )

    def log_error_with_context(self, error: Exception, context: Optional[str] = None, **kwargs) -> None:
        self.error(
            f"{type(error).__name__} in {context or 'unknown context'}: {error}",
            exc_info=error,
            extra={
                "event_type": "error",
                "error_type": type(error).__name__,
                "error_context": context,
                **kwargs
            }
        )


def setup_logging() -> CareerGuideLogger:
    """Configure the `careerguide` logger tree for the current environment"""
    logging.setLoggerClass(CareerGuideLogger)
    logger = logging.getLogger("careerguide")
    logger.__class__ = CareerGuideLogger
    logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    logger.propagate = False
    logger.handlers.clear()

    json_logs = settings.ENVIRONMENT == "production"
    if json_logs:
        console_formatter: logging.Formatter = JSONFormatter()
        file_formatter: logging.Formatter = console_formatter
    else:
        console_formatter = ContextualFormatter("%(levelname)-8s [%(request_id)s] %(message)s")
        file_formatter = ContextualFormatter(
            "%(asctime)s %(levelname)-8s [%(request_id)s %(user_id)s/%(role)s] "
            "%(name)s:%(lineno)d %(message)s"
        )

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(console_formatter)
    logger.addHandler(console)

    if settings.LOG_FILE:
        log_path = Path(settings.LOG_FILE)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(log_path, maxBytes=5 * 1024 * 1024, backupCount=5)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(file_formatter)
        logger.addHandler(file_handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger.debug(f"Logging ready (environment={settings.ENVIRONMENT}, json={json_logs})")
    return logger


logger: CareerGuideLogger = setup_logging()


__all__ = [
    'logger',
    'setup_logging',
    'get_request_id',
    'set_request_id',
    'generate_request_id',
    'get_user_id',
    'get_role',
    'set_user_id',
    'CareerGuideLogger',
    'JSONFormatter',
    'ContextualFormatter',
]
