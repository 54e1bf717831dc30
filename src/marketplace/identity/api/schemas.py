"""Pydantic request schemas for the Identity API."""

from __future__ import annotations

from pydantic import BaseModel, Field


class RegisterUserRequest(BaseModel):
    email: str = Field(max_length=254)
    password: str = Field(min_length=8, max_length=128)
    first_name: str = Field(min_length=2, max_length=50)
    last_name: str = Field(min_length=2, max_length=50)
    phone: str | None = Field(default=None, max_length=20)
    role: str = "buyer"


class LogInRequest(BaseModel):
    email: str
    password: str


class ChangeRoleRequest(BaseModel):
    role: str
