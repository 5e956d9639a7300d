"""
API tests for the storefront endpoints

Services and repositories are patched where the routers import them;
auth is provided through dependency overrides (see conftest.py).

Author: Water Junction
Date: 2025-06-30
"""
from unittest.mock import AsyncMock, patch

from conftest import make_cart, make_cart_item, make_order, make_product, make_user
from waterjunction.core.auth import hash_password
from waterjunction.core.config import settings
from waterjunction.core.exceptions import BadRequestError, NotFoundError
from waterjunction.domain.contact import Contact


class TestHealthAndRateLimit:

    def test_health(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        assert response.json() == {"status": "OK", "message": "WaterJunction API is running"}
        assert "X-RateLimit-Limit" not in response.headers

    def test_root_banner(self, client):
        assert client.get("/").json()["status"] == "online"

    def test_too_many_requests(self, client):
        with patch.object(settings, 'RATE_LIMIT_MAX_REQUESTS', 2):
            first = client.get("/api/auth/me")
            second = client.get("/api/auth/me")
            third = client.get("/api/auth/me")

        assert first.status_code == 401
        assert first.headers["X-RateLimit-Remaining"] == "1"
        assert second.headers["X-RateLimit-Remaining"] == "0"
        assert third.status_code == 429
        assert third.json()["detail"] == "Too many requests from this IP, please try again later."
        assert int(third.headers["Retry-After"]) >= 1

    def test_health_is_never_limited(self, client):
        with patch.object(settings, 'RATE_LIMIT_MAX_REQUESTS', 1):
            statuses = [client.get("/api/health").status_code for _ in range(3)]

        assert statuses == [200, 200, 200]


class TestAuthApi:

    @patch('waterjunction.services.auth_service.UserRepository')
    def test_login_sets_cookie(self, mock_repo_class, client):
        mock_repo = mock_repo_class.return_value
        mock_repo.find_by_email.return_value = make_user(password_hash=hash_password('s3cret-pass'))

        response = client.post("/api/auth/login", json={"email": "asha@example.com", "password": "s3cret-pass"})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["user"]["email"] == "asha@example.com"
        assert f"token={body['token']}" in response.headers["set-cookie"]
        assert "HttpOnly" in response.headers["set-cookie"]

    @patch('waterjunction.services.auth_service.UserRepository')
    def test_login_wrong_password(self, mock_repo_class, client):
        mock_repo_class.return_value.find_by_email.return_value = make_user(
            password_hash=hash_password('s3cret-pass')
        )

        response = client.post("/api/auth/login", json={"email": "asha@example.com", "password": "nope"})

        assert response.status_code == 401
        assert response.json() == {"detail": "Invalid email or password."}

    def test_me_requires_token(self, client):
        response = client.get("/api/auth/me")

        assert response.status_code == 401
        assert response.json()["detail"] == "Not authorized, no token provided"

    def test_register_validates_email(self, client):
        response = client.post("/api/auth/register", json={"name": "Asha", "email": "nope", "password": "s3cret-pass"})

        assert response.status_code == 422


class TestProductsApi:

    @patch('waterjunction.api.products.ProductRepository')
    def test_list_products(self, mock_repo_class, client):
        mock_repo_class.return_value.find_all.return_value = ([make_product()], 13)

        response = client.get("/api/products/", params={"category": "ro-purifiers", "sort": "price-asc", "limit": 12})

        assert response.status_code == 200
        body = response.json()
        assert body["pagination"] == {"page": 1, "limit": 12, "total": 13, "pages": 2}
        assert body["products"][0]["images"] == ["https://cdn.example.com/ro-1.jpg"]
        kwargs = mock_repo_class.return_value.find_all.call_args.kwargs
        assert kwargs["category"] == "ro-purifiers"
        assert kwargs["sort"] == "price-asc"
        assert kwargs["active_only"] is True

    @patch('waterjunction.api.products.ProductService')
    def test_unknown_product(self, mock_service_class, client):
        mock_service_class.return_value.get_public.side_effect = NotFoundError("Product not found")

        response = client.get("/api/products/999")

        assert response.status_code == 404
        assert response.json() == {"detail": "Product not found"}

    def test_create_requires_admin(self, customer_client):
        response = customer_client.post("/api/products/", json={"name": "Aqua RO", "price": 100})

        assert response.status_code == 403
        assert response.json()["detail"] == "Not authorized as an admin"


class TestCartApi:

    @patch('waterjunction.api.cart.CartService')
    def test_add_to_cart(self, mock_service_class, customer_client):
        mock_service_class.return_value.add_item.return_value = make_cart([make_cart_item(quantity=2)])

        response = customer_client.post("/api/cart/", json={"productId": 10, "quantity": 2})

        assert response.status_code == 200
        assert response.json()["cart"]["total_items"] == 2
        mock_service_class.return_value.add_item.assert_called_once_with(1, 10, 2, None)

    @patch('waterjunction.api.cart.CartService')
    def test_service_errors_map_to_status(self, mock_service_class, customer_client):
        mock_service_class.return_value.add_item.side_effect = BadRequestError("Insufficient stock")

        response = customer_client.post("/api/cart/", json={"productId": 10, "quantity": 50})

        assert response.status_code == 400
        assert response.json() == {"detail": "Insufficient stock"}

    @patch('waterjunction.api.cart.CartService')
    def test_merge_guest_cart(self, mock_service_class, customer_client):
        mock_service_class.return_value.merge_guest_cart.return_value = (
            make_cart([make_cart_item()]),
            [10],
            [{"productId": 11, "reason": "Product not found"}],
        )

        response = customer_client.post("/api/cart/merge", json={"items": [
            {"productId": 10, "quantity": 1},
            {"productId": 11, "quantity": 2, "variant": {"Color": "Blue"}},
        ]})

        assert response.status_code == 200
        body = response.json()
        assert body["merged"] == [10]
        assert body["skipped"] == [{"productId": 11, "reason": "Product not found"}]
        _, items = mock_service_class.return_value.merge_guest_cart.call_args[0]
        assert items[1] == {"product_id": 11, "quantity": 2, "variant": {"Color": "Blue"}}

    def test_cart_requires_login(self, client):
        assert client.get("/api/cart/").status_code == 401


class TestOrdersApi:

    @patch('waterjunction.api.orders.OrderService')
    def test_place_order(self, mock_service_class, customer_client):
        mock_service_class.return_value.place_order = AsyncMock(return_value=(
            make_order(),
            {"id": "order_rzp_1", "amount": 236000, "currency": "INR", "keyId": "rzp_test"},
        ))

        response = customer_client.post("/api/orders/", json={
            "shippingAddress": {
                "name": "Asha Rao", "phone": "9876543210", "addressLine1": "12 MG Road",
                "city": "Bengaluru", "state": "Karnataka", "pincode": "560001",
            },
            "paymentMethod": "razorpay",
        })

        assert response.status_code == 201
        body = response.json()
        assert body["razorpayOrder"]["amount"] == 236000
        assert body["order"]["order_number"] == "WJ123456ABC"

    def test_place_order_rejects_other_payment_methods(self, customer_client):
        response = customer_client.post("/api/orders/", json={
            "shippingAddress": {
                "name": "Asha Rao", "phone": "9876543210", "addressLine1": "12 MG Road",
                "city": "Bengaluru", "state": "Karnataka", "pincode": "560001",
            },
            "paymentMethod": "cod",
        })

        assert response.status_code == 422

    @patch('waterjunction.api.orders.OrderService')
    def test_verify_payment_failure(self, mock_service_class, customer_client):
        mock_service_class.return_value.verify_payment = AsyncMock(
            side_effect=BadRequestError("Payment verification failed")
        )

        response = customer_client.post("/api/orders/verify-payment", json={
            "razorpay_order_id": "order_rzp_1",
            "razorpay_payment_id": "pay_1",
            "razorpay_signature": "forged",
            "orderId": 7,
        })

        assert response.status_code == 400
        assert response.json()["detail"] == "Payment verification failed"

    def test_admin_listing_requires_admin(self, customer_client):
        assert customer_client.get("/api/orders/admin/all").status_code == 403


class TestContactApi:

    def test_invalid_email(self, client):
        response = client.post("/api/contact/", json={"name": "Ravi", "email": "not-an-email", "message": "Hi"})

        assert response.status_code == 400
        assert response.json() == {"detail": "Please provide a valid email"}

    def test_missing_name_reported_first(self, client):
        response = client.post("/api/contact/", json={"email": "bad", "message": ""})

        assert response.json() == {"detail": "Name is required"}

    @patch('waterjunction.api.contact.NotificationService')
    @patch('waterjunction.api.contact.ContactRepository')
    def test_submit(self, mock_repo_class, mock_notifications_class, client):
        mock_repo_class.return_value.create.return_value = Contact(
            id=3, name='Ravi', email='ravi@example.com', message='Need an AMC quote'
        )
        mock_notifications_class.return_value.notify_contact_received = AsyncMock(return_value=False)

        response = client.post("/api/contact/", json={
            "name": "  Ravi ", "email": "Ravi@Example.com", "message": " Need an AMC quote ",
        })

        assert response.status_code == 201
        assert response.json()["contact"]["id"] == 3
        mock_repo_class.return_value.create.assert_called_once_with(
            name='Ravi', email='ravi@example.com', message='Need an AMC quote', phone=None
        )

    def test_listing_is_admin_only(self, customer_client):
        assert customer_client.get("/api/contact/").status_code == 403


class TestAdminApi:

    @patch('waterjunction.api.admin.UserRepository')
    def test_admin_cannot_block_self(self, mock_repo_class, admin_client, admin_user):
        response = admin_client.put(f"/api/admin/users/{admin_user.id}/block")

        assert response.status_code == 400
        mock_repo_class.return_value.update.assert_not_called()

    @patch('waterjunction.api.admin.UserRepository')
    def test_toggle_block(self, mock_repo_class, admin_client):
        mock_repo = mock_repo_class.return_value
        mock_repo.find_by_id.return_value = make_user(id=5)
        mock_repo.update.return_value = make_user(id=5, is_blocked=True)

        response = admin_client.put("/api/admin/users/5/block")

        assert response.status_code == 200
        assert response.json()["message"] == "User blocked successfully"
        mock_repo.update.assert_called_once_with(5, {'is_blocked': True})

    @patch('waterjunction.api.admin.ProductService')
    def test_export_csv(self, mock_service_class, admin_client):
        mock_service_class.return_value.export_csv.return_value = "Name,Category\nAqua RO,RO Purifiers\n"

        response = admin_client.get("/api/admin/products/export")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert response.headers["content-disposition"] == "attachment; filename=products.csv"

    @patch('waterjunction.api.admin.ProductService')
    def test_import_csv(self, mock_service_class, admin_client):
        mock_service_class.return_value.import_csv.return_value = (1, [])

        response = admin_client.post(
            "/api/admin/products/import",
            files={"file": ("products.csv", b"\xef\xbb\xbfName,Price\nAqua RO,100\n", "text/csv")}
        )

        assert response.status_code == 200
        assert response.json()["created"] == 1
        mock_service_class.return_value.import_csv.assert_called_once_with("Name,Price\nAqua RO,100\n")

    def test_import_rejects_non_csv(self, admin_client):
        response = admin_client.post(
            "/api/admin/products/import",
            files={"file": ("products.xlsx", b"PK...", "application/octet-stream")}
        )

        assert response.status_code == 400

    def test_stats_require_admin(self, customer_client):
        assert customer_client.get("/api/admin/stats").status_code == 403

    @patch('waterjunction.api.admin.StatsService')
    def test_stats(self, mock_service_class, admin_client):
        mock_service_class.return_value.get_dashboard.return_value = {"counts": {"totalUsers": 1}}

        response = admin_client.get("/api/admin/stats")

        assert response.json() == {"success": True, "stats": {"counts": {"totalUsers": 1}}}

