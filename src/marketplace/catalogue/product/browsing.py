"""Read-side queries for products."""

from protean.utils.globals import current_domain

from marketplace.catalogue.product.product import Product, ProductStatus
from marketplace.shared.errors import load
from marketplace.utils.db import fetch_all


def product_payload(product: Product) -> dict:
    return {
        "id": str(product.id),
        "name": product.name,
        "slug": product.slug,
        "description": product.description,
        "price": product.price,
        "stock": product.stock,
        "seller_id": str(product.seller_id),
        "category_id": str(product.category_id) if product.category_id else None,
        "status": product.status,
    }


def list_products(category_id=None, seller_id=None) -> list[dict]:
    filters = {"status": ProductStatus.ACTIVE.value}
    if category_id:
        filters["category_id"] = str(category_id)
    if seller_id:
        filters["seller_id"] = str(seller_id)

    repo = current_domain.repository_for(Product)
    products = fetch_all(repo._dao.query.filter(**filters))
    return [product_payload(p) for p in sorted(products, key=lambda p: (p.name or "").lower())]


def get_product(product_id) -> dict:
    return product_payload(load(current_domain.repository_for(Product), product_id, "Product"))
