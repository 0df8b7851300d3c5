import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from storefront.api import admin_router, checkout_router, order_router
from storefront.api.errors import register_exception_handlers


@pytest.fixture()
def client(gateway, identity):
    app = FastAPI()
    app.include_router(checkout_router)
    app.include_router(order_router)
    app.include_router(admin_router)
    register_exception_handlers(app)
    return TestClient(app)
