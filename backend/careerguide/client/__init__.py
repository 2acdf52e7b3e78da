from careerguide.client.api import ApiError, CareerGuideClient
from careerguide.client.config import ClientConfig
from careerguide.client.dashboard import InstitutionDashboard, StudentDashboard
from careerguide.client.reconnect import ConnectionStatus, Reconnector, ReconnectPolicy
from careerguide.client.streams import ChatConnection, NotificationStream

__all__ = [
    # HTTP
    "ApiError",
    "CareerGuideClient",
    "ClientConfig",
    # Dashboards
    "InstitutionDashboard",
    "StudentDashboard",
    # Live channels
    "ChatConnection",
    "NotificationStream",
    "ConnectionStatus",
    "Reconnector",
    "ReconnectPolicy",
]
