"""Product aggregate — the sellable items orders are placed against."""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from marketplace.catalogue.product.events import ProductCreated, ProductDeactivated, StockAdjusted
from marketplace.domain import marketplace
from marketplace.shared.errors import PreconditionFailed
from marketplace.shared.slug import slugify


class ProductStatus(Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


@marketplace.aggregate
class Product:
    name = String(required=True, max_length=200)
    slug = String(max_length=220)
    description = Text()
    price = Float(required=True, min_value=0.0)
    stock = Integer(default=0, min_value=0)
    seller_id = Identifier(required=True)
    category_id = Identifier()
    status = String(choices=ProductStatus, default=ProductStatus.ACTIVE.value)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, name, price, seller_id, stock=0, description=None, category_id=None):
        now = datetime.now(UTC)
        product = cls(
            name=name,
            slug=slugify(name),
            description=description,
            price=price,
            stock=stock,
            seller_id=seller_id,
            category_id=category_id,
            status=ProductStatus.ACTIVE.value,
            created_at=now,
            updated_at=now,
        )
        product.raise_(
            ProductCreated(
                product_id=product.id,
                name=name,
                seller_id=seller_id,
                price=price,
                stock=stock,
            )
        )
        return product

    @property
    def is_active(self):
        return self.status == ProductStatus.ACTIVE.value

    def reserve(self, quantity):
        """Take ``quantity`` units out of stock for an order."""
        if not self.is_active:
            raise PreconditionFailed(f"Product {self.name} is not available")
        if quantity > self.stock:
            raise PreconditionFailed(f"Insufficient stock for {self.name}")

        self.stock = self.stock - quantity
        self.updated_at = datetime.now(UTC)
        self.raise_(StockAdjusted(product_id=self.id, change=-quantity, stock=self.stock))

    def release(self, quantity):
        """Return ``quantity`` reserved units to stock after a cancellation.

        Inactive products take their stock back too.
        """
        if quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be positive"]})
        self.stock = self.stock + quantity
        self.updated_at = datetime.now(UTC)
        self.raise_(StockAdjusted(product_id=self.id, change=quantity, stock=self.stock))

    def restock(self, quantity):
        if quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be positive"]})
        self.stock = self.stock + quantity
        self.updated_at = datetime.now(UTC)
        self.raise_(StockAdjusted(product_id=self.id, change=quantity, stock=self.stock))

    def deactivate(self):
        if not self.is_active:
            raise ValidationError({"status": ["Product is already inactive"]})
        self.status = ProductStatus.INACTIVE.value
        self.updated_at = datetime.now(UTC)
        self.raise_(ProductDeactivated(product_id=self.id))
