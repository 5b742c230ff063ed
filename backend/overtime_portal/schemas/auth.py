from __future__ import annotations

from pydantic import BaseModel, Field

from overtime_portal.workflow import Actor


class AuthContext(BaseModel):
    """Resolved session taken from request headers."""

    email: str
    roles: list[str] = Field(default_factory=list)

    @property
    def actor(self) -> Actor:
        return Actor.from_roles(self.email, self.roles)
