# API endpoints
from . import auth, health, client_config, notifications, chat, student, company

__all__ = ["auth", "health", "client_config", "notifications", "chat", "student", "company"]
