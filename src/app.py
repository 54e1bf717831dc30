"""Vitrine marketplace FastAPI application.

Processes commands synchronously via HTTP. Every request runs inside the
marketplace domain context; the caller is identified by the ``X-User-Id``
header (token issuance happens upstream).

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# PROTEAN_ENV selects the config overlay from domain.toml:
#   - unset / "test" → in-memory providers
#   - "production"   → PostgreSQL from DATABASE_URL
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from marketplace.domain import marketplace
from marketplace.utils.logging import configure_logging

configure_logging()
marketplace.init()

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
from marketplace.catalogue.api.routes import category_router, product_router  # noqa: E402
from marketplace.identity.api.routes import auth_router  # noqa: E402
from marketplace.ordering.api.routes import cart_router, order_router  # noqa: E402
from marketplace.reviews.api.routes import review_router  # noqa: E402
from marketplace.shared.http import install_domain_context, register_exception_handlers  # noqa: E402

app = FastAPI(
    title="Vitrine API",
    description="Marketplace: accounts, catalogue, orders and verified reviews",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

install_domain_context(app, marketplace)
register_exception_handlers(app)

app.include_router(auth_router)
app.include_router(product_router)
app.include_router(category_router)
app.include_router(cart_router)
app.include_router(order_router)
app.include_router(review_router)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": marketplace.name})
