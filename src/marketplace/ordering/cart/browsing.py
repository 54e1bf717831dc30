"""Read-side views of a user's cart: lines at current prices, a priced summary and availability."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from marketplace.catalogue.product.product import Product
from marketplace.config import get_settings
from marketplace.ordering.cart.cart import Cart
from marketplace.ordering.order.order import OrderPricing


def _products(cart):
    """Current catalogue entries for the cart's products; missing ones map to None."""
    repo = current_domain.repository_for(Product)
    products = {}
    for item in cart.items if cart else []:
        try:
            products[str(item.product_id)] = repo.get(item.product_id)
        except ObjectNotFoundError:
            products[str(item.product_id)] = None
    return products


def _summary(lines):
    settings = get_settings()
    subtotal = sum(line["line_total"] for line in lines if line["available"])
    pricing = OrderPricing.calculate(
        subtotal=subtotal,
        tax_rate=settings.tax_rate,
        free_shipping_threshold=settings.free_shipping_threshold,
        flat_shipping=settings.flat_shipping if lines else 0.0,
        currency=settings.currency,
    )
    return {
        "item_count": sum(line["quantity"] for line in lines),
        "subtotal": pricing.subtotal,
        "tax": pricing.tax_total,
        "shipping": pricing.shipping_cost,
        "total": pricing.grand_total,
        "currency": pricing.currency,
    }


def cart_payload(user_id) -> dict:
    cart = current_domain.repository_for(Cart).active_for(user_id)
    products = _products(cart)

    lines = []
    for item in cart.items if cart else []:
        product = products[str(item.product_id)]
        unit_price = product.price if product else 0.0
        lines.append(
            {
                "product_id": str(item.product_id),
                "product_name": product.name if product else None,
                "quantity": item.quantity,
                "unit_price": unit_price,
                "line_total": round(unit_price * item.quantity, 2),
                "available": bool(product and product.is_active),
            }
        )

    return {
        "id": str(cart.id) if cart else None,
        "user_id": str(user_id),
        "items": lines,
        "summary": _summary(lines),
    }


def availability(user_id) -> dict:
    """Lines that can no longer be bought, and lines asking for more than is in stock."""
    cart = current_domain.repository_for(Cart).active_for(user_id)
    products = _products(cart)

    unavailable, low_stock = [], []
    for item in cart.items if cart else []:
        product_id = str(item.product_id)
        product = products[product_id]
        if product is None:
            unavailable.append({"product_id": product_id, "reason": "Product not found"})
        elif not product.is_active:
            unavailable.append(
                {"product_id": product_id, "product_name": product.name, "reason": "Product is not available"}
            )
        elif product.stock < item.quantity:
            low_stock.append(
                {
                    "product_id": product_id,
                    "product_name": product.name,
                    "requested_quantity": item.quantity,
                    "available_stock": product.stock,
                }
            )
    return {"unavailable_items": unavailable, "low_stock_items": low_stock}
