from careerguide.services.store import DocumentStore, FileStorage, IdentityProvider, Filter, eq
from careerguide.services.notifications import NotificationHub, notification_hub, notify
from careerguide.services.chat import ChatConnectionManager, chat_manager

__all__ = [
    # Provider interfaces
    "DocumentStore",
    "FileStorage",
    "IdentityProvider",
    "Filter",
    "eq",
    # Realtime
    "NotificationHub",
    "notification_hub",
    "notify",
    "ChatConnectionManager",
    "chat_manager",
]
