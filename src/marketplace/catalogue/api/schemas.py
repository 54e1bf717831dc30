"""Pydantic request schemas for the Catalogue API."""

from __future__ import annotations

from pydantic import BaseModel, Field


class CreateProductRequest(BaseModel):
    name: str = Field(max_length=200)
    description: str | None = None
    price: float = Field(ge=0)
    stock: int = Field(default=0, ge=0)
    category_id: str | None = None


class RestockRequest(BaseModel):
    quantity: int = Field(ge=1)


class CreateCategoryRequest(BaseModel):
    name: str = Field(max_length=100)
    slug: str | None = Field(default=None, max_length=120)
    description: str | None = Field(default=None, max_length=500)
    parent_id: str | None = None
    sort_order: int = 0
    is_featured: bool = False


class UpdateCategoryRequest(BaseModel):
    name: str | None = Field(default=None, max_length=100)
    slug: str | None = Field(default=None, max_length=120)
    description: str | None = Field(default=None, max_length=500)
    parent_id: str | None = None
    make_root: bool = False


class ReorderCategoryRequest(BaseModel):
    sort_order: int


class FeatureCategoryRequest(BaseModel):
    is_featured: bool = True
