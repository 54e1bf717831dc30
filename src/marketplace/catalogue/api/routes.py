"""FastAPI endpoints for the Catalogue domain."""

from fastapi import APIRouter, Depends
from protean.utils.globals import current_domain

from marketplace.catalogue.api.schemas import (
    CreateCategoryRequest,
    CreateProductRequest,
    FeatureCategoryRequest,
    ReorderCategoryRequest,
    RestockRequest,
    UpdateCategoryRequest,
)
from marketplace.catalogue.category.browsing import get_category, get_category_by_slug, list_featured, list_tree
from marketplace.catalogue.category.management import (
    CreateCategory,
    DeactivateCategory,
    FeatureCategory,
    ReorderCategory,
    UpdateCategory,
)
from marketplace.catalogue.product.browsing import get_product, list_products
from marketplace.catalogue.product.management import CreateProduct, DeactivateProduct, RestockProduct
from marketplace.reviews.review.statistics import statistics
from marketplace.shared.http import Envelope, current_actor, ok
from marketplace.shared.policy import Actor

product_router = APIRouter(prefix="/products", tags=["products"])
category_router = APIRouter(prefix="/categories", tags=["categories"])

_ENVELOPE = {"response_model": Envelope, "response_model_exclude_none": True}


# --- Product endpoints ---


@product_router.get("", **_ENVELOPE)
async def browse_products(category_id: str | None = None, seller_id: str | None = None) -> Envelope:
    return ok(list_products(category_id=category_id, seller_id=seller_id))


@product_router.get("/{product_id}", **_ENVELOPE)
async def show_product(product_id: str) -> Envelope:
    product = get_product(product_id)
    product["reviews"] = statistics(product_id).to_dict()
    return ok(product)


@product_router.post("", status_code=201, **_ENVELOPE)
async def create_product(body: CreateProductRequest, actor: Actor = Depends(current_actor)) -> Envelope:
    command = CreateProduct(
        name=body.name,
        description=body.description,
        price=body.price,
        stock=body.stock,
        category_id=body.category_id,
        actor_id=actor.user_id,
        actor_role=actor.role,
    )
    product_id = current_domain.process(command, asynchronous=False)
    return ok(get_product(product_id), "Product created")


@product_router.put("/{product_id}/restock", **_ENVELOPE)
async def restock_product(product_id: str, body: RestockRequest, actor: Actor = Depends(current_actor)) -> Envelope:
    command = RestockProduct(
        product_id=product_id,
        quantity=body.quantity,
        actor_id=actor.user_id,
        actor_role=actor.role,
    )
    current_domain.process(command, asynchronous=False)
    return ok(get_product(product_id), "Stock updated")


@product_router.put("/{product_id}/deactivate", **_ENVELOPE)
async def deactivate_product(product_id: str, actor: Actor = Depends(current_actor)) -> Envelope:
    command = DeactivateProduct(product_id=product_id, actor_id=actor.user_id, actor_role=actor.role)
    current_domain.process(command, asynchronous=False)
    return ok(get_product(product_id), "Product deactivated")


# --- Category endpoints ---


@category_router.get("/tree", **_ENVELOPE)
async def category_tree() -> Envelope:
    return ok(list_tree())


@category_router.get("/featured", **_ENVELOPE)
async def featured_categories() -> Envelope:
    return ok(list_featured())


@category_router.get("/slug/{slug}", **_ENVELOPE)
async def show_category_by_slug(slug: str) -> Envelope:
    return ok(get_category_by_slug(slug))


@category_router.get("/{category_id}", **_ENVELOPE)
async def show_category(category_id: str) -> Envelope:
    return ok(get_category(category_id))


@category_router.post("", status_code=201, **_ENVELOPE)
async def create_category(body: CreateCategoryRequest, actor: Actor = Depends(current_actor)) -> Envelope:
    command = CreateCategory(
        name=body.name,
        slug=body.slug,
        description=body.description,
        parent_id=body.parent_id,
        sort_order=body.sort_order,
        is_featured=body.is_featured,
        actor_id=actor.user_id,
        actor_role=actor.role,
    )
    category_id = current_domain.process(command, asynchronous=False)
    return ok(get_category(category_id), "Category created")


@category_router.put("/{category_id}", **_ENVELOPE)
async def update_category(
    category_id: str, body: UpdateCategoryRequest, actor: Actor = Depends(current_actor)
) -> Envelope:
    command = UpdateCategory(
        category_id=category_id,
        name=body.name,
        slug=body.slug,
        description=body.description,
        parent_id=body.parent_id,
        make_root=body.make_root,
        actor_id=actor.user_id,
        actor_role=actor.role,
    )
    current_domain.process(command, asynchronous=False)
    return ok(get_category(category_id), "Category updated")


@category_router.put("/{category_id}/reorder", **_ENVELOPE)
async def reorder_category(
    category_id: str, body: ReorderCategoryRequest, actor: Actor = Depends(current_actor)
) -> Envelope:
    command = ReorderCategory(
        category_id=category_id,
        sort_order=body.sort_order,
        actor_id=actor.user_id,
        actor_role=actor.role,
    )
    current_domain.process(command, asynchronous=False)
    return ok(get_category(category_id), "Category reordered")


@category_router.put("/{category_id}/feature", **_ENVELOPE)
async def feature_category(
    category_id: str, body: FeatureCategoryRequest, actor: Actor = Depends(current_actor)
) -> Envelope:
    command = FeatureCategory(
        category_id=category_id,
        is_featured=body.is_featured,
        actor_id=actor.user_id,
        actor_role=actor.role,
    )
    current_domain.process(command, asynchronous=False)
    return ok(get_category(category_id))


@category_router.put("/{category_id}/deactivate", **_ENVELOPE)
async def deactivate_category(category_id: str, actor: Actor = Depends(current_actor)) -> Envelope:
    command = DeactivateCategory(category_id=category_id, actor_id=actor.user_id, actor_role=actor.role)
    current_domain.process(command, asynchronous=False)
    return ok(get_category(category_id), "Category deactivated")
