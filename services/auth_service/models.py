"""
Identity and credential models for the authentication service.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, AliasChoices


class Role(str, Enum):
    """Account roles; chosen at sign-up and never changed by the client"""
    ADMIN = "admin"  # organizer
    USER = "user"    # attendee


class Identity(BaseModel):
    """The authenticated account as returned by the backend"""
    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True, coerce_numbers_to_str=True)

    id: str = Field(validation_alias=AliasChoices("id", "_id"))
    email: str
    full_name: str = Field(default="", validation_alias=AliasChoices("full_name", "fullName"))
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def display_name(self) -> str:
        return self.full_name or self.email


class AuthResult(BaseModel):
    """Response of the login and register endpoints"""
    model_config = ConfigDict(extra="ignore")

    token: str = Field(min_length=1)
    user: Identity
