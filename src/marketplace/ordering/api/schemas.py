"""Pydantic request schemas for the Orders API."""

from __future__ import annotations

from pydantic import BaseModel, Field


class OrderLineSchema(BaseModel):
    product_id: str
    quantity: int = Field(default=1, ge=1)


class ShippingAddressSchema(BaseModel):
    street: str
    city: str
    state: str | None = None
    postal_code: str
    country: str


class PlaceOrderRequest(BaseModel):
    items: list[OrderLineSchema] = Field(min_length=1)
    shipping_address: ShippingAddressSchema | None = None
    notes: str | None = None


class TransitionStatusRequest(BaseModel):
    status: str
    tracking_number: str | None = None


class CancelOrderRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=500)


class CheckoutRequest(BaseModel):
    shipping_address: ShippingAddressSchema | None = None
    notes: str | None = None


class AddToCartRequest(BaseModel):
    product_id: str
    quantity: int = Field(default=1, ge=1)


class UpdateCartItemRequest(BaseModel):
    quantity: int = Field(ge=1)
