"""
HTTP client for the Career Guidance API

Thin wrapper over httpx.AsyncClient: attaches the bearer token, applies
the configured timeout and unwraps the `{success, ...}` envelope.
"""

from typing import Any, Dict, Iterable, Optional, Tuple

import httpx

from careerguide.client.config import ClientConfig


class ApiError(Exception):
    """Non-success envelope or transport failure"""

    def __init__(self, message: str, status_code: int = 0, code: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.status_code = status_code
        self.code = code
        self.details = details or {}
        super().__init__(message)


class CareerGuideClient:
    """
    Usage:
        async with CareerGuideClient(config) as api:
            profile = (await api.get("/student/profile"))["profile"]
    """

    def __init__(self, config: ClientConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        headers = {"Accept": "application/json"}
        if config.token:
            headers["Authorization"] = f"Bearer {config.token}"
        self._client = httpx.AsyncClient(
            base_url=config.api_url,
            headers=headers,
            timeout=config.timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "CareerGuideClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    def _url(self, path: str, prefixed: bool) -> str:
        return f"{self.config.api_prefix}{path}" if prefixed else path

    @staticmethod
    def _unwrap(response: httpx.Response) -> Dict[str, Any]:
        try:
            body = response.json()
        except ValueError:
            raise ApiError(f"Unexpected response ({response.status_code})", response.status_code)
        if response.is_error or not body.get("success", False):
            raise ApiError(
                body.get("message", "Request failed"),
                response.status_code,
                code=body.get("code"),
                details=body.get("details"),
            )
        return body

    async def request(self, method: str, path: str, prefixed: bool = True, **kwargs: Any) -> Dict[str, Any]:
        try:
            response = await self._client.request(method, self._url(path, prefixed), **kwargs)
        except httpx.TimeoutException:
            raise ApiError(f"Request timed out: {method} {path}")
        except httpx.HTTPError as e:
            raise ApiError(f"Request failed: {e}")
        return self._unwrap(response)

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None, **kwargs: Any) -> Dict[str, Any]:
        if params:
            params = {k: v for k, v in params.items() if v not in (None, "")}
        return await self.request("GET", path, params=params, **kwargs)

    async def post(self, path: str, json: Optional[Dict[str, Any]] = None, **kwargs: Any) -> Dict[str, Any]:
        return await self.request("POST", path, json=json, **kwargs)

    async def put(self, path: str, json: Optional[Dict[str, Any]] = None, **kwargs: Any) -> Dict[str, Any]:
        return await self.request("PUT", path, json=json, **kwargs)

    async def download(self, path: str, params: Optional[Dict[str, Any]] = None) -> bytes:
        """Raw body of an export endpoint"""
        response = await self._client.get(self._url(path, True), params=params)
        if response.is_error:
            self._unwrap(response)
        return response.content

    # ==================== Auth / config ====================

    async def login(self, id_token: str) -> Dict[str, Any]:
        body = await self.post("/login", json={"idToken": id_token}, prefixed=False)
        self.config.token = id_token
        self.config.uid = body.get("uid")
        self.config.role = body.get("role")
        self._client.headers["Authorization"] = f"Bearer {id_token}"
        return body

    @classmethod
    async def fetch_config(cls, api_url: str, transport: Optional[httpx.AsyncBaseTransport] = None,
                           timeout: float = 10.0) -> ClientConfig:
        """Resolve the client configuration from the server's /config endpoint"""
        async with httpx.AsyncClient(base_url=api_url, timeout=timeout, transport=transport) as client:
            try:
                response = await client.get("/config")
            except httpx.HTTPError as e:
                raise ApiError(f"Could not load configuration: {e}")
        return ClientConfig.from_public_config(cls._unwrap(response)["config"])

    # ==================== Student ====================

    async def update_profile(self, fields: Dict[str, Any],
                             photo: Optional[Tuple[str, bytes, str]] = None) -> Dict[str, Any]:
        """Multipart profile update; list fields are sent comma-separated"""
        data = {
            key: ",".join(value) if isinstance(value, (list, tuple)) else value
            for key, value in fields.items() if value is not None
        }
        files = {"photo": photo} if photo else None
        return await self.request("PUT", "/student/profile", data=data, files=files)

    async def apply(self, course_id: str, documents: Iterable[str] = ()) -> Dict[str, Any]:
        return await self.post("/student/applications", json={"courseId": course_id, "documents": list(documents)})

    async def rsvp(self, event_id: str) -> Dict[str, Any]:
        return await self.post(f"/student/events/{event_id}/rsvp")
