"""
API tests for categories, wishlist and flash sales

Author: Water Junction
Date: 2025-07-07
"""
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import patch

import pytest

from conftest import make_product
from waterjunction.core.auth import get_current_user_optional
from waterjunction.core.cache import categories_cache
from waterjunction.domain.cart import Wishlist, WishlistItem
from waterjunction.domain.catalog import Category
from waterjunction.domain.flash_sale import FlashSale, FlashSaleProduct


def make_category(**overrides) -> Category:
    data = {'id': 2, 'name': 'RO Purifiers', 'slug': 'ro-purifiers'}
    data.update(overrides)
    return Category(**data)


@pytest.fixture
def admin_browser(app, admin_client, admin_user):
    """Admin client that is also recognised on public routes"""
    app.dependency_overrides[get_current_user_optional] = lambda: admin_user
    return admin_client


class TestCategoriesApi:

    @patch('waterjunction.api.categories.CategoryRepository')
    def test_public_list_is_cached(self, mock_repo_class, client):
        mock_repo_class.return_value.find_all.return_value = [make_category()]

        first = client.get("/api/categories/")
        second = client.get("/api/categories/")

        assert first.json() == second.json()
        assert first.json()["categories"][0]["slug"] == "ro-purifiers"
        mock_repo_class.return_value.find_all.assert_called_once_with(active_only=True)

    @patch('waterjunction.api.categories.CategoryRepository')
    def test_admin_sees_inactive_categories_uncached(self, mock_repo_class, admin_browser):
        categories_cache.set([make_category().to_dict()])
        mock_repo_class.return_value.find_all.return_value = [
            make_category(),
            make_category(id=3, name='Old Spares', slug='old-spares', is_active=False),
        ]

        response = admin_browser.get("/api/categories/")

        assert [c["slug"] for c in response.json()["categories"]] == ["ro-purifiers", "old-spares"]
        mock_repo_class.return_value.find_all.assert_called_once_with(active_only=False)

    @patch('waterjunction.api.categories.CategoryRepository')
    def test_create_clears_cache_and_dedupes_slug(self, mock_repo_class, admin_client):
        mock_repo = mock_repo_class.return_value
        mock_repo.find_by_name.return_value = None
        mock_repo.slug_exists.side_effect = lambda slug: slug == 'ro-filters'
        mock_repo.create.return_value = make_category(id=4, name='RO-Filters', slug='ro-filters-1')
        categories_cache.set([make_category().to_dict()])

        response = admin_client.post("/api/categories/", json={"name": " RO-Filters "})

        assert response.status_code == 201
        fields = mock_repo.create.call_args[0][0]
        assert fields['name'] == 'RO-Filters'
        assert fields['slug'] == 'ro-filters-1'
        assert categories_cache.get() is None

    @patch('waterjunction.api.categories.CategoryRepository')
    def test_duplicate_name(self, mock_repo_class, admin_client):
        mock_repo_class.return_value.find_by_name.return_value = make_category()

        response = admin_client.post("/api/categories/", json={"name": "RO Purifiers"})

        assert response.status_code == 400
        mock_repo_class.return_value.create.assert_not_called()

    @patch('waterjunction.api.categories.CategoryRepository')
    def test_rename_keeps_own_slug_free(self, mock_repo_class, admin_client):
        mock_repo = mock_repo_class.return_value
        mock_repo.find_by_name.return_value = None
        mock_repo.slug_exists.return_value = False
        mock_repo.update.return_value = make_category(name='RO Systems', slug='ro-systems')
        categories_cache.set([make_category().to_dict()])

        response = admin_client.put("/api/categories/2", json={"name": "RO Systems"})

        assert response.status_code == 200
        mock_repo.slug_exists.assert_called_once_with('ro-systems', exclude_id=2)
        assert mock_repo.update.call_args[0][1]['slug'] == 'ro-systems'
        assert categories_cache.get() is None

    @patch('waterjunction.api.categories.CategoryRepository')
    def test_delete_clears_cache(self, mock_repo_class, admin_client):
        mock_repo_class.return_value.delete.return_value = True
        categories_cache.set([make_category().to_dict()])

        response = admin_client.delete("/api/categories/2")

        assert response.status_code == 200
        assert categories_cache.get() is None

    @patch('waterjunction.api.categories.CategoryRepository')
    def test_unknown_category(self, mock_repo_class, client):
        mock_repo_class.return_value.find_by_id.return_value = None

        response = client.get("/api/categories/42")

        assert response.status_code == 404
        assert response.json() == {"detail": "Category not found"}

    def test_writes_require_admin(self, customer_client):
        assert customer_client.post("/api/categories/", json={"name": "Spares"}).status_code == 403


class TestWishlistApi:

    @patch('waterjunction.api.wishlist.WishlistRepository')
    @patch('waterjunction.api.wishlist.ProductRepository')
    def test_add(self, mock_product_repo_class, mock_repo_class, customer_client):
        mock_product_repo_class.return_value.find_by_id.return_value = make_product()
        mock_repo = mock_repo_class.return_value
        mock_repo.get_or_create.return_value = Wishlist(id=1, user_id=1)
        mock_repo.find_by_user.return_value = Wishlist(
            id=1, user_id=1, items=[WishlistItem(id=4, product_id=10)]
        )

        response = customer_client.post("/api/wishlist/", json={"productId": 10})

        assert response.status_code == 200
        assert response.json()["wishlist"]["items"][0]["product_id"] == 10
        mock_repo.add_item.assert_called_once_with(1, 10)

    @patch('waterjunction.api.wishlist.WishlistRepository')
    @patch('waterjunction.api.wishlist.ProductRepository')
    def test_add_twice(self, mock_product_repo_class, mock_repo_class, customer_client):
        mock_product_repo_class.return_value.find_by_id.return_value = make_product()
        mock_repo_class.return_value.get_or_create.return_value = Wishlist(
            id=1, user_id=1, items=[WishlistItem(id=4, product_id=10)]
        )

        response = customer_client.post("/api/wishlist/", json={"productId": 10})

        assert response.status_code == 400
        assert response.json() == {"detail": "Product already in wishlist"}
        mock_repo_class.return_value.add_item.assert_not_called()

    @patch('waterjunction.api.wishlist.WishlistRepository')
    @patch('waterjunction.api.wishlist.ProductRepository')
    def test_add_unknown_product(self, mock_product_repo_class, mock_repo_class, customer_client):
        mock_product_repo_class.return_value.find_by_id.return_value = None

        response = customer_client.post("/api/wishlist/", json={"productId": 999})

        assert response.status_code == 404
        assert response.json() == {"detail": "Product not found"}
        mock_repo_class.return_value.get_or_create.assert_not_called()

    @patch('waterjunction.api.wishlist.WishlistRepository')
    def test_remove_without_wishlist(self, mock_repo_class, customer_client):
        mock_repo_class.return_value.find_by_user.return_value = None

        response = customer_client.delete("/api/wishlist/4")

        assert response.status_code == 404
        assert response.json() == {"detail": "Wishlist not found"}

    @patch('waterjunction.api.wishlist.WishlistRepository')
    def test_remove_missing_item(self, mock_repo_class, customer_client):
        mock_repo_class.return_value.find_by_user.return_value = Wishlist(id=1, user_id=1)
        mock_repo_class.return_value.remove_item.return_value = False

        response = customer_client.delete("/api/wishlist/4")

        assert response.status_code == 404
        mock_repo_class.return_value.remove_item.assert_called_once_with(1, 4)

    def test_requires_login(self, client):
        assert client.get("/api/wishlist/").status_code == 401


def make_sale(**overrides) -> FlashSale:
    now = datetime.now(timezone.utc)
    data = {
        'id': 5,
        'name': 'Monsoon Sale',
        'products': [FlashSaleProduct(product_id=10, sale_price=Decimal('6999'), stock=5)],
        'start_time': now - timedelta(hours=1),
        'end_time': now + timedelta(hours=5),
    }
    data.update(overrides)
    return FlashSale(**data)


class TestFlashSalesApi:

    @patch('waterjunction.api.flash_sales.FlashSaleRepository')
    def test_list_running_sales(self, mock_repo_class, client):
        mock_repo_class.return_value.find_all.return_value = [make_sale()]

        response = client.get("/api/flash-sales/")

        assert response.status_code == 200
        sale = response.json()["flashSales"][0]
        assert sale["is_currently_active"] is True
        assert sale["products"][0]["sale_price"] == 6999.0
        mock_repo_class.return_value.find_all.assert_called_once_with(currently_active=True)

    @patch('waterjunction.api.flash_sales.FlashSaleRepository')
    def test_unknown_sale(self, mock_repo_class, client):
        mock_repo_class.return_value.find_by_id.return_value = None

        response = client.get("/api/flash-sales/5")

        assert response.status_code == 404
        assert response.json() == {"detail": "Flash sale not found"}

    @patch('waterjunction.api.flash_sales.FlashSaleRepository')
    def test_create(self, mock_repo_class, admin_client):
        mock_repo_class.return_value.create.return_value = make_sale()

        response = admin_client.post("/api/flash-sales/", json={
            "name": "Monsoon Sale",
            "startTime": "2025-07-10T00:00:00Z",
            "endTime": "2025-07-12T00:00:00Z",
            "products": [{"product": 10, "salePrice": 6999, "stock": 5}],
        })

        assert response.status_code == 201
        fields, products = mock_repo_class.return_value.create.call_args[0]
        assert fields['name'] == 'Monsoon Sale'
        assert products == [{'product_id': 10, 'sale_price': Decimal('6999'), 'stock': 5, 'sold': 0}]

    @patch('waterjunction.api.flash_sales.FlashSaleRepository')
    def test_end_before_start(self, mock_repo_class, admin_client):
        response = admin_client.post("/api/flash-sales/", json={
            "name": "Backwards Sale",
            "startTime": "2025-07-12T00:00:00Z",
            "endTime": "2025-07-10T00:00:00Z",
        })

        assert response.status_code == 400
        mock_repo_class.return_value.create.assert_not_called()

    @patch('waterjunction.api.flash_sales.FlashSaleRepository')
    def test_update_unknown_sale(self, mock_repo_class, admin_client):
        mock_repo_class.return_value.update.return_value = None

        response = admin_client.put("/api/flash-sales/5", json={"isActive": False})

        assert response.status_code == 404
        mock_repo_class.return_value.update.assert_called_once_with(5, {'is_active': False}, None)

    def test_create_requires_admin(self, customer_client):
        response = customer_client.post("/api/flash-sales/", json={
            "name": "Sale", "startTime": "2025-07-10T00:00:00Z", "endTime": "2025-07-12T00:00:00Z",
        })

        assert response.status_code == 403
