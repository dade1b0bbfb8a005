"""Pydantic schemas for authentication endpoints.

Fields are optional so that missing values reach the flows, which answer
with their own messages. ``email`` is left untyped because a non-string
email has its own rejection message.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class RegisterRequest(BaseModel):
    name: str | None = None
    email: Any = None
    password: str | None = None


class LoginRequest(BaseModel):
    email: Any = None
    password: str | None = None


class LoginResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    token: str
    name: str
    email: str
    github_username: str | None = Field(default=None, alias="githubUsername")


class EmailRequest(BaseModel):
    email: Any = None


class ResetPasswordRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    token: str | None = None
    new_password: str | None = Field(default=None, alias="newPassword")


class ConfirmEmailRequest(BaseModel):
    token: str | None = None


class MessageResponse(BaseModel):
    message: str
