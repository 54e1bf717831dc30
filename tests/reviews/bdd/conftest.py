"""Shared BDD fixtures and step definitions for reviews."""

import pytest
from protean import current_domain
from pytest_bdd import given, parsers, then

from marketplace.reviews.review.review import Review


@pytest.fixture()
def error():
    """Container for the failure raised by the last step."""
    return {"exc": None}


@pytest.fixture()
def world():
    """Named users, products and orders introduced by the scenario."""
    return {"users": {}, "products": {}, "orders": {}, "review_id": None}


@given(parsers.cfparse('a buyer "{first}" and a buyer "{second}"'))
def two_buyers(world, buyer, other_buyer, first, second):
    world["users"][first] = buyer
    world["users"][second] = other_buyer


@given(parsers.cfparse('a product "{name}"'))
def a_product(world, make_product, name):
    world["products"][name] = make_product(name=f"Product {name}")


@given(parsers.cfparse('an order "{order}" by "{owner}" for "{product}" that is "{status}"'))
def an_order(world, place_order, advance_order, order, owner, product, status):
    order_id = place_order({world["products"][product]: 1}, user=world["users"][owner])
    path = ["pending", "processing", "shipped", "delivered"]
    advance_order(order_id, *path[1 : path.index(status) + 1])
    world["orders"][order] = order_id


@then(parsers.cfparse("the review has {helpful:d} helpful and {not_helpful:d} not helpful votes"))
def vote_counts(world, helpful, not_helpful):
    review = current_domain.repository_for(Review).get(world["review_id"])
    assert review.helpful_count == helpful
    assert review.not_helpful_count == not_helpful
