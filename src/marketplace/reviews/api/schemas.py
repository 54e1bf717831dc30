"""Pydantic request schemas for the Reviews API.

These are separate from Protean commands (anti-corruption pattern). Range
checks on ``rating`` are left to the eligibility gate so that its ordering
(ownership and delivery before rating) holds over HTTP too.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class SubmitReviewRequest(BaseModel):
    product_id: str
    order_id: str
    rating: float
    title: str = Field(max_length=100)
    content: str = Field(max_length=1000)
    images: list[str] | None = Field(default=None, max_length=5)


class EditReviewRequest(BaseModel):
    title: str | None = Field(default=None, max_length=100)
    content: str | None = Field(default=None, max_length=1000)
    rating: int | None = None


class ModerateReviewRequest(BaseModel):
    status: str
    moderator_notes: str | None = Field(default=None, max_length=500)


class MarkHelpfulRequest(BaseModel):
    is_helpful: bool = True
