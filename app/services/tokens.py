from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

import jwt

from app.errors import AuthenticationError
from app.utils.constants import Plan, Role
from app.utils.timeutil import utcnow


@dataclass(frozen=True)
class Identity:
    """Who is calling, as carried in the access token."""
    user_id: int
    role: Role
    email: str = ""
    name: str = ""
    client_id: Optional[int] = None
    plan: Optional[Plan] = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


def expires_in(minutes: int, now: Optional[datetime] = None) -> datetime:
    return (now or utcnow()) + timedelta(minutes=minutes)


class TokenService:
    def __init__(
        self,
        secret: str,
        *,
        algorithm: str = "HS256",
        expires_minutes: int = 480,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.secret = secret
        self.algorithm = algorithm
        self.expires_minutes = expires_minutes
        self.clock = clock

    def issue(self, identity: Identity) -> str:
        payload = {
            "sub": str(identity.user_id),
            "role": identity.role.value,
            "email": identity.email,
            "name": identity.name,
            "client_id": identity.client_id,
            "plan": identity.plan.value if identity.plan else None,
            "exp": expires_in(self.expires_minutes, self.clock()),
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify(self, token: str) -> Identity:
        if not token:
            raise AuthenticationError("Missing token")
        try:
            claims = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            raise AuthenticationError("Token expired")
        except jwt.InvalidTokenError:
            raise AuthenticationError("Invalid token")

        try:
            return Identity(
                user_id=int(claims["sub"]),
                role=Role(claims["role"]),
                email=claims.get("email") or "",
                name=claims.get("name") or "",
                client_id=claims.get("client_id"),
                plan=Plan(claims["plan"]) if claims.get("plan") else None,
            )
        except (KeyError, ValueError, TypeError):
            raise AuthenticationError("Invalid token claims")
