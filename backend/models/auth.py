"""Pydantic schemas for login credentials and session payloads."""
from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel


class LoginCredentials(BaseModel):
    username: str
    password: str

    @field_validator("username")
    @classmethod
    def _username_required(cls, v: str) -> str:
        if not v:
            raise ValueError("Username is required")
        return v

    @field_validator("password")
    @classmethod
    def _password_required(cls, v: str) -> str:
        if not v:
            raise ValueError("Password is required")
        return v


class User(BaseModel):
    id: str
    username: str


class SessionData(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    user_id: str
    username: str
    created_at: int     # epoch milliseconds
    expires_at: int     # epoch milliseconds
