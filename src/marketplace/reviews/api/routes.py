"""FastAPI routes for the Reviews bounded context.

Each route translates between Pydantic schemas (external contract) and
Protean commands (internal domain concepts).
"""

import json

from fastapi import APIRouter, Depends, Query
from protean.utils.globals import current_domain

from marketplace.reviews.api.schemas import (
    EditReviewRequest,
    MarkHelpfulRequest,
    ModerateReviewRequest,
    SubmitReviewRequest,
)
from marketplace.reviews.review.browsing import (
    get_review,
    pending_reviews,
    product_reviews,
    review_payload,
    user_reviews,
)
from marketplace.reviews.review.editing import EditReview
from marketplace.reviews.review.helpfulness import MarkReviewHelpful
from marketplace.reviews.review.moderation import ModerateReview
from marketplace.reviews.review.review import Review
from marketplace.reviews.review.statistics import statistics
from marketplace.reviews.review.submission import SubmitReview
from marketplace.shared.http import Envelope, current_actor, ok, optional_actor
from marketplace.shared.policy import Actor

review_router = APIRouter(prefix="/reviews", tags=["reviews"])

_ENVELOPE = {"response_model": Envelope, "response_model_exclude_none": True}


@review_router.post("", status_code=201, **_ENVELOPE)
async def submit_review(body: SubmitReviewRequest, actor: Actor = Depends(current_actor)) -> Envelope:
    """Review a product from one of the caller's delivered orders."""
    command = SubmitReview(
        user_id=actor.user_id,
        user_role=actor.role,
        product_id=body.product_id,
        order_id=body.order_id,
        rating=body.rating,
        title=body.title,
        content=body.content,
        images=json.dumps(body.images) if body.images else None,
    )
    review_id = current_domain.process(command, asynchronous=False)
    review = current_domain.repository_for(Review).get(review_id)
    return ok(review_payload(review), "Review submitted and awaiting moderation")


@review_router.get("/product/{product_id}", **_ENVELOPE)
async def list_product_reviews(
    product_id: str,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
) -> Envelope:
    reviews, pagination = product_reviews(product_id, page, limit)
    return ok({"reviews": reviews, "pagination": pagination})


@review_router.get("/product/{product_id}/statistics", **_ENVELOPE)
async def product_statistics(product_id: str) -> Envelope:
    return ok(statistics(product_id).to_dict())


@review_router.get("/mine", **_ENVELOPE)
async def my_reviews(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    actor: Actor = Depends(current_actor),
) -> Envelope:
    reviews, pagination = user_reviews(actor, page, limit)
    return ok({"reviews": reviews, "pagination": pagination})


@review_router.get("/admin/pending", **_ENVELOPE)
async def moderation_queue(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    actor: Actor = Depends(current_actor),
) -> Envelope:
    reviews, pagination = pending_reviews(actor, page, limit)
    return ok({"reviews": reviews, "pagination": pagination})


@review_router.get("/{review_id}", **_ENVELOPE)
async def show_review(review_id: str, actor: Actor | None = Depends(optional_actor)) -> Envelope:
    return ok(get_review(review_id, actor))


@review_router.put("/{review_id}", **_ENVELOPE)
async def edit_review(review_id: str, body: EditReviewRequest, actor: Actor = Depends(current_actor)) -> Envelope:
    command = EditReview(
        review_id=review_id,
        user_id=actor.user_id,
        user_role=actor.role,
        title=body.title,
        content=body.content,
        rating=body.rating,
    )
    current_domain.process(command, asynchronous=False)
    return ok(get_review(review_id, actor), "Review updated")


@review_router.post("/{review_id}/helpful", **_ENVELOPE)
async def mark_helpful(review_id: str, body: MarkHelpfulRequest, actor: Actor = Depends(current_actor)) -> Envelope:
    command = MarkReviewHelpful(
        review_id=review_id,
        user_id=actor.user_id,
        is_helpful=body.is_helpful,
    )
    counts = current_domain.process(command, asynchronous=False)
    return ok(counts, "Vote recorded")


@review_router.patch("/{review_id}/moderate", **_ENVELOPE)
async def moderate_review(
    review_id: str, body: ModerateReviewRequest, actor: Actor = Depends(current_actor)
) -> Envelope:
    command = ModerateReview(
        review_id=review_id,
        status=body.status,
        moderator_notes=body.moderator_notes,
        actor_id=actor.user_id,
        actor_role=actor.role,
    )
    current_domain.process(command, asynchronous=False)
    return ok(get_review(review_id, actor), "Review moderated")
