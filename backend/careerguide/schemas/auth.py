from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class RegisterRequest(BaseModel):
    # Optional here so absent fields produce the envelope error, not a 422
    email: Optional[str] = None
    password: Optional[str] = None
    role: Optional[str] = None

    def missing_fields(self) -> List[str]:
        return [name for name in ("email", "password", "role") if not getattr(self, name)]


class LoginRequest(BaseModel):
    idToken: Optional[str] = None


@dataclass
class Principal:
    """Decoded identity attached to an authenticated request"""
    uid: str
    role: Optional[str]
    email: Optional[str] = None
    email_verified: bool = False
    claims: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_claims(cls, claims: Dict[str, Any]) -> "Principal":
        return cls(
            uid=claims.get("uid") or claims.get("sub") or "",
            role=claims.get("role"),
            email=claims.get("email"),
            email_verified=bool(claims.get("email_verified", False)),
            claims=claims,
        )
