"""
Pytest fixtures and configuration for WaterJunction backend tests

Repositories are exercised against a mocked psycopg2 connection, services
against mocked repositories, and the API through FastAPI's TestClient with
the auth dependencies overridden. No database is needed.

Author: Water Junction
Date: 2025-06-30
"""
import pytest
from decimal import Decimal
from unittest.mock import MagicMock, patch

import httpx

from fastapi.testclient import TestClient

from waterjunction.core.auth import get_current_user
from waterjunction.core.cache import categories_cache
from waterjunction.core.rate_limit import rate_limiter
from waterjunction.domain.cart import Cart, CartItem, ProductSnapshot
from waterjunction.domain.order import Order, OrderItem
from waterjunction.domain.product import Product
from waterjunction.domain.user import User


@pytest.fixture(autouse=True)
def reset_process_state():
    """Rate limiter and category cache are module globals"""
    rate_limiter.reset()
    categories_cache.clear()
    yield
    rate_limiter.reset()
    categories_cache.clear()


@pytest.fixture
def mock_db():
    """
    (connection, cursor) pair standing in for get_db_connection_dict()

    Usage:
        @patch('waterjunction.repositories.x_repository.get_db_connection_dict')
        def test_x(self, mock_get_conn, mock_db):
            mock_conn, mock_cursor = mock_db
            mock_get_conn.return_value = mock_conn
    """
    mock_conn = MagicMock()
    mock_cursor = MagicMock()
    mock_conn.cursor.return_value = mock_cursor
    return mock_conn, mock_cursor


# ============================================================================
# Domain builders
# ============================================================================

def make_user(**overrides) -> User:
    data = {
        'id': 1,
        'name': 'Asha Rao',
        'email': 'asha@example.com',
        'phone': '9876543210',
        'role': 'user',
        'auth_provider': 'email',
    }
    data.update(overrides)
    return User(**data)


def make_product(**overrides) -> Product:
    data = {
        'id': 10,
        'name': 'Aqua Pure RO',
        'slug': 'aqua-pure-ro',
        'category_id': 2,
        'category_name': 'RO Purifiers',
        'category_slug': 'ro-purifiers',
        'images': ['https://cdn.example.com/ro-1.jpg', 'https://cdn.example.com/ro-2.jpg'],
        'price': Decimal('1000'),
        'mrp': Decimal('1250'),
        'discount_percent': 20,
        'stock': 5,
    }
    data.update(overrides)
    return Product(**data)


def make_cart_item(item_id: int = 100, product_id: int = 10, quantity: int = 1,
                   price: str = '1000', stock: int = 5, variant=None, **product_overrides) -> CartItem:
    snapshot = {
        'id': product_id,
        'name': 'Aqua Pure RO',
        'slug': 'aqua-pure-ro',
        'price': Decimal(price),
        'stock': stock,
        'image': 'https://cdn.example.com/ro-1.jpg',
    }
    snapshot.update(product_overrides)
    return CartItem(
        id=item_id,
        product_id=product_id,
        quantity=quantity,
        variant=variant or {},
        product=ProductSnapshot(**snapshot),
    )


def make_cart(items=None, **overrides) -> Cart:
    data = {'id': 50, 'user_id': 1, 'items': items or []}
    data.update(overrides)
    return Cart(**data)


def make_order(**overrides) -> Order:
    data = {
        'id': 7,
        'order_number': 'WJ123456ABC',
        'user_id': 1,
        'items': [OrderItem(product_id=10, name='Aqua Pure RO', price=Decimal('1000'), quantity=2)],
        'shipping_address': {
            'name': 'Asha Rao',
            'phone': '9876543210',
            'email': 'asha@example.com',
            'address_line1': '12 MG Road',
            'city': 'Bengaluru',
            'state': 'Karnataka',
            'pincode': '560001',
        },
        'subtotal': Decimal('2000'),
        'tax': Decimal('360'),
        'total': Decimal('2360'),
        'razorpay_order_id': 'order_rzp_1',
    }
    data.update(overrides)
    return Order(**data)


def mock_async_client(handler):
    """
    Patch httpx.AsyncClient so every client the connectors open is served
    by handler(request) -> httpx.Response
    """
    real_client = httpx.AsyncClient
    transport = httpx.MockTransport(handler)

    def build(*args, **kwargs):
        kwargs['transport'] = transport
        return real_client(*args, **kwargs)

    return patch('httpx.AsyncClient', side_effect=build)


@pytest.fixture
def customer() -> User:
    return make_user()


@pytest.fixture
def admin_user() -> User:
    return make_user(id=99, name='Store Admin', email='admin@waterjunction.in', role='admin')


@pytest.fixture
def app():
    from waterjunction.main import app as fastapi_app
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def customer_client(app, client, customer):
    """TestClient signed in as a regular customer"""
    app.dependency_overrides[get_current_user] = lambda: customer
    return client


@pytest.fixture
def admin_client(app, client, admin_user):
    """TestClient signed in as an admin"""
    app.dependency_overrides[get_current_user] = lambda: admin_user
    return client
