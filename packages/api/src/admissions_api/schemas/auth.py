# This project was developed with assistance from AI tools.
"""Authentication and authorization schemas."""

from admissions_db.enums import Actor, UserRole
from pydantic import BaseModel, ConfigDict, Field


class UserContext(BaseModel):
    """Injected by auth middleware into every authenticated request."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    role: UserRole
    email: str
    name: str
    partner_id: int | None = Field(
        default=None,
        description="Partner organisation the user belongs to; scopes partner access.",
    )

    @property
    def actor(self) -> Actor:
        return self.role.actor


class TokenPayload(BaseModel):
    """Decoded JWT token claims from Keycloak."""

    sub: str
    email: str = ""
    preferred_username: str = ""
    name: str = ""
    partner_id: int | None = None
    realm_access: dict = Field(default_factory=dict)
