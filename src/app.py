"""Storefront FastAPI application.

Serves checkout, order lookup, gateway webhooks and the admin
reconciliation endpoints. Every request runs inside the storefront domain
context.

Usage:
    uvicorn src.app:app --host 0.0.0.0 --port 3001 --reload
"""

import os

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV controls which config overlay is applied:
#   - unset/"test" → in-memory provider
#   - "production" → PostgreSQL via DATABASE_URL
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from storefront.domain import storefront  # noqa: E402

storefront.init()

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Storefront API",
    description="Checkout, order reconciliation and order lookup",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=os.environ.get("CORS_ORIGINS", "*").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the storefront domain context for each request."""
    with storefront.domain_context():
        response = await call_next(request)
    return response


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from storefront.api import admin_router, checkout_router, order_router  # noqa: E402
from storefront.api.errors import register_exception_handlers  # noqa: E402

app.include_router(checkout_router)
app.include_router(order_router)
app.include_router(admin_router)
register_exception_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    from storefront.gateway import get_gateway

    gateway = get_gateway()
    return JSONResponse(
        content={
            "status": "ok",
            "domain": storefront.name,
            "gateway": {"name": type(gateway).__name__, "configured": gateway.configured},
        }
    )
