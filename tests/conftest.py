import os
from pathlib import Path

import pytest
from protean.integrations.pytest import DomainFixture


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = str(Path(item.fspath))

        if "/domain/" in test_path:
            item.add_marker(pytest.mark.domain)
        elif "/application/" in test_path:
            item.add_marker(pytest.mark.application)
        elif "/bdd/" in test_path:
            item.add_marker(pytest.mark.bdd)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)
            # Integration tests are often slower
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


@pytest.fixture(scope="session")
def marketplace_bed(request):
    os.environ["PROTEAN_ENV"] = request.config.option.env

    import importlib

    import marketplace as marketplace_pkg
    from marketplace.domain import marketplace

    # Protean's traversal only descends one directory level, but elements live
    # two levels deep (e.g. identity/user/events.py); import them before init.
    package_root = Path(marketplace_pkg.__file__).parent
    for module_path in sorted(package_root.rglob("*.py")):
        relative = module_path.relative_to(package_root.parent).with_suffix("")
        if relative.name != "__init__":
            importlib.import_module(".".join(relative.parts))

    bed = DomainFixture(marketplace)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(marketplace_bed):
    """Push the domain context for each test and wipe every store afterwards."""
    with marketplace_bed.domain_context():
        yield

        from protean import current_domain

        for _, provider in current_domain.providers.items():
            provider._data_reset()
        current_domain.event_store.store._data_reset()


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch):
    """Settings are cached; drop the cache around every test."""
    from marketplace.config import reset_settings

    for name in list(os.environ):
        if name.startswith("MARKETPLACE_"):
            monkeypatch.delenv(name)
    reset_settings()
    yield
    reset_settings()


# ---------------------------------------------------------------------------
# Shared builders
# ---------------------------------------------------------------------------
def _add_user(role, email, first_name="Test", last_name="User"):
    from protean import current_domain

    from marketplace.identity.user.user import User
    from marketplace.shared.policy import Actor

    user = User.register(
        email=email,
        password="s3cret-pass",
        first_name=first_name,
        last_name=last_name,
        role=role,
    )
    current_domain.repository_for(User).add(user)
    return Actor(user_id=str(user.id), role=user.role)


@pytest.fixture()
def buyer():
    return _add_user("buyer", "buyer@example.com", first_name="Beatriz")


@pytest.fixture()
def other_buyer():
    return _add_user("buyer", "other@example.com", first_name="Vasco")


@pytest.fixture()
def seller():
    return _add_user("seller", "seller@example.com", first_name="Samuel")


@pytest.fixture()
def admin():
    return _add_user("admin", "admin@example.com", first_name="Ana")


@pytest.fixture()
def make_product(seller):
    """Factory: list a product owned by ``seller`` and return its id."""
    from protean import current_domain

    from marketplace.catalogue.product.management import CreateProduct

    def _make(name="Capulana Tote", price=20.0, stock=10, **overrides):
        command = CreateProduct(
            name=name,
            price=price,
            stock=stock,
            actor_id=overrides.pop("actor_id", seller.user_id),
            actor_role=overrides.pop("actor_role", seller.role),
            **overrides,
        )
        return current_domain.process(command, asynchronous=False)

    return _make


@pytest.fixture()
def place_order(buyer):
    """Factory: place an order for ``{product_id: quantity}`` and return its id."""
    import json

    from protean import current_domain

    from marketplace.ordering.order.placement import PlaceOrder

    def _place(lines, user=None):
        user = user or buyer
        command = PlaceOrder(
            user_id=user.user_id,
            items=json.dumps([{"product_id": pid, "quantity": qty} for pid, qty in lines.items()]),
        )
        return current_domain.process(command, asynchronous=False)

    return _place


@pytest.fixture()
def advance_order(seller):
    """Factory: walk an order forward through the given statuses as ``seller``."""
    from protean import current_domain

    from marketplace.ordering.order.fulfillment import TransitionOrderStatus

    def _advance(order_id, *statuses, actor=None):
        actor = actor or seller
        for status in statuses:
            current_domain.process(
                TransitionOrderStatus(
                    order_id=order_id,
                    status=status,
                    actor_id=actor.user_id,
                    actor_role=actor.role,
                ),
                asynchronous=False,
            )

    return _advance


@pytest.fixture()
def delivered_order(make_product, place_order, advance_order):
    """A delivered order owned by ``buyer`` containing one product.

    Returns ``(order_id, product_id)``.
    """
    product_id = make_product()
    order_id = place_order({product_id: 1})
    advance_order(order_id, "processing", "shipped", "delivered")
    return order_id, product_id


@pytest.fixture()
def client():
    """A TestClient over every router, wired the way ``app.py`` wires them."""
    from fastapi import FastAPI
    from fastapi.testclient import TestClient

    from marketplace.catalogue.api.routes import category_router, product_router
    from marketplace.domain import marketplace
    from marketplace.identity.api.routes import auth_router
    from marketplace.ordering.api.routes import cart_router, order_router
    from marketplace.reviews.api.routes import review_router
    from marketplace.shared.http import install_domain_context, register_exception_handlers

    app = FastAPI()
    install_domain_context(app, marketplace)
    register_exception_handlers(app)
    for router in (auth_router, product_router, category_router, cart_router, order_router, review_router):
        app.include_router(router)
    return TestClient(app, raise_server_exceptions=False)


def as_user(actor):
    return {"X-User-Id": actor.user_id}


@pytest.fixture()
def headers():
    """Build the identifying header for an ``Actor``."""
    return as_user
