"""
Client Configuration

Everything a dashboard needs to reach the backend. Values come from the
server's public `/config` endpoint rather than being baked into client code.
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional


@dataclass
class ClientConfig:
    """Configuration for dashboard clients"""

    # Endpoints
    api_url: str = "http://localhost:8000"
    ws_url: str = "ws://localhost:8000/ws/chat"
    api_prefix: str = "/api"

    # Authentication (populated after login)
    token: Optional[str] = None
    uid: Optional[str] = None
    role: Optional[str] = None

    # Outbound request timeout (seconds)
    timeout: float = 30.0

    # Reconnection for notification stream and chat
    reconnect_base_delay: float = 5.0
    reconnect_max_delay: float = 5.0
    reconnect_multiplier: float = 1.0
    reconnect_jitter: float = 0.0

    # Search inputs fire after this much idle time (seconds)
    search_debounce: float = 0.3

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_public_config(cls, payload: Dict[str, Any], **overrides: Any) -> "ClientConfig":
        """Build from the `config` object served by GET /config"""
        config = cls(
            api_url=payload.get("apiUrl", cls.api_url).rstrip("/"),
            ws_url=payload.get("wsUrl", cls.ws_url),
        )
        retry_ms = payload.get("notificationRetryMs")
        if retry_ms:
            config.reconnect_base_delay = config.reconnect_max_delay = retry_ms / 1000.0
        for key, value in overrides.items():
            setattr(config, key, value)
        return config
