"""
Tests for OrderService: checkout, payment verification, cancellation,
tracking and shipment retries

Author: Water Junction
Date: 2025-06-30
"""
import asyncio
import hashlib
import hmac
import pytest
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import httpx

from conftest import make_cart, make_cart_item, make_order, make_user, mock_async_client
from waterjunction.connectors.razorpay_connector import RazorpayConnector
from waterjunction.connectors.shipmozo_connector import ShipmentResult, ShipmozoConnector, TrackingResult
from waterjunction.core.exceptions import (
    BadRequestError,
    ExternalServiceError,
    NotFoundError,
    PermissionDeniedError,
    ServiceError,
)
from waterjunction.services.order_service import OrderService


KEY_SECRET = 'rzp_secret'


def sign(order_id: str, payment_id: str) -> str:
    return hmac.new(KEY_SECRET.encode(), f"{order_id}|{payment_id}".encode(), hashlib.sha256).hexdigest()


@pytest.fixture
def deps():
    order_repo = MagicMock()
    cart_repo = MagicMock()
    product_repo = MagicMock()
    coupon_repo = MagicMock()
    shipmozo = MagicMock()
    shipmozo.create_shipment = AsyncMock()
    shipmozo.track_shipment = AsyncMock()
    razorpay = RazorpayConnector(key_id='rzp_test_key', key_secret=KEY_SECRET)

    # update() echoes the stored order with the changes applied
    def update(order_id, fields):
        current = order_repo.find_by_id.return_value
        return current.model_copy(update=fields)
    order_repo.update.side_effect = update

    service = OrderService(
        order_repo=order_repo,
        cart_repo=cart_repo,
        product_repo=product_repo,
        coupon_repo=coupon_repo,
        razorpay=razorpay,
        shipmozo=shipmozo,
    )
    return {
        'service': service,
        'order_repo': order_repo,
        'cart_repo': cart_repo,
        'product_repo': product_repo,
        'coupon_repo': coupon_repo,
        'shipmozo': shipmozo,
        'razorpay': razorpay,
    }


SHIPPING_ADDRESS = {
    'name': 'Asha Rao',
    'phone': '9876543210',
    'address_line1': '12 MG Road',
    'city': 'Bengaluru',
    'state': 'Karnataka',
    'pincode': '560001',
}


class TestPlaceOrder:

    def test_empty_cart(self, deps):
        deps['cart_repo'].find_by_user.return_value = make_cart()

        with pytest.raises(BadRequestError, match="Cart is empty"):
            asyncio.run(deps['service'].place_order(make_user(), SHIPPING_ADDRESS))

    def test_out_of_stock_item(self, deps):
        deps['cart_repo'].find_by_user.return_value = make_cart([make_cart_item(quantity=3, stock=2)])

        with pytest.raises(BadRequestError, match="Aqua Pure RO is out of stock or unavailable"):
            asyncio.run(deps['service'].place_order(make_user(), SHIPPING_ADDRESS))

        deps['order_repo'].create.assert_not_called()

    def test_creates_order_and_razorpay_order(self, deps):
        deps['cart_repo'].find_by_user.return_value = make_cart([make_cart_item(quantity=1, price='1000')])
        deps['order_repo'].create.return_value = make_order(razorpay_order_id=None)
        deps['order_repo'].find_by_id.return_value = make_order(razorpay_order_id=None)
        deps['razorpay'].create_order = AsyncMock(return_value={
            'id': 'order_rzp_9', 'amount': 118000, 'currency': 'INR',
        })

        order, razorpay_order = asyncio.run(
            deps['service'].place_order(make_user(), SHIPPING_ADDRESS, customer_notes='Ring twice')
        )

        fields, items = deps['order_repo'].create.call_args[0]
        assert fields['subtotal'] == Decimal('1000')
        assert fields['tax'] == Decimal('180')
        assert fields['total'] == Decimal('1180')
        assert fields['order_number'].startswith('WJ')
        assert fields['customer_notes'] == 'Ring twice'
        assert items[0].name == 'Aqua Pure RO'

        deps['razorpay'].create_order.assert_awaited_once()
        assert deps['razorpay'].create_order.call_args.kwargs['amount_paise'] == 118000
        assert razorpay_order == {'id': 'order_rzp_9', 'amount': 118000, 'currency': 'INR', 'keyId': 'rzp_test_key'}
        assert order.razorpay_order_id == 'order_rzp_9'
        deps['cart_repo'].clear.assert_called_once_with(50)

    def test_expired_coupon_is_ignored(self, deps):
        deps['cart_repo'].find_by_user.return_value = make_cart([make_cart_item()], coupon_id=3)
        coupon = MagicMock()
        coupon.is_valid.return_value = False
        deps['coupon_repo'].find_by_id.return_value = coupon
        deps['order_repo'].create.return_value = make_order()
        deps['order_repo'].find_by_id.return_value = make_order()
        deps['razorpay'].create_order = AsyncMock(return_value={'id': 'order_rzp_9'})

        asyncio.run(deps['service'].place_order(make_user(), SHIPPING_ADDRESS))

        fields, _ = deps['order_repo'].create.call_args[0]
        assert fields['discount'] == Decimal('0')
        assert fields['coupon_id'] is None

    def test_gateway_failure_cancels_order_and_keeps_cart(self, deps):
        deps['cart_repo'].find_by_user.return_value = make_cart([make_cart_item()])
        deps['order_repo'].create.return_value = make_order()
        deps['order_repo'].find_by_id.return_value = make_order()
        deps['razorpay'].create_order = AsyncMock(side_effect=ExternalServiceError("Failed to create Razorpay order"))

        with pytest.raises(ExternalServiceError):
            asyncio.run(deps['service'].place_order(make_user(), SHIPPING_ADDRESS))

        updates = deps['order_repo'].update.call_args[0][1]
        assert updates['payment_status'] == 'failed'
        assert updates['status'] == 'cancelled'
        deps['cart_repo'].clear.assert_not_called()

    def test_gateway_html_reply_cancels_order(self, deps):
        deps['cart_repo'].find_by_user.return_value = make_cart([make_cart_item()])
        deps['order_repo'].create.return_value = make_order(razorpay_order_id=None)
        deps['order_repo'].find_by_id.return_value = make_order(razorpay_order_id=None)

        with mock_async_client(lambda request: httpx.Response(200, text="<html>Bad Gateway</html>")):
            with pytest.raises(ExternalServiceError):
                asyncio.run(deps['service'].place_order(make_user(), SHIPPING_ADDRESS))

        updates = deps['order_repo'].update.call_args[0][1]
        assert updates['payment_status'] == 'failed'
        assert updates['cancellation_reason'] == 'Payment gateway unavailable'
        deps['cart_repo'].clear.assert_not_called()


class TestVerifyPayment:

    def test_bad_signature_fails_order(self, deps):
        deps['order_repo'].find_by_id.return_value = make_order()

        with pytest.raises(BadRequestError, match="Payment verification failed"):
            asyncio.run(deps['service'].verify_payment(
                make_user(), 7, 'order_rzp_1', 'pay_1', 'forged'
            ))

        deps['order_repo'].update.assert_called_once_with(7, {'payment_status': 'failed', 'status': 'cancelled'})
        deps['product_repo'].adjust_inventory.assert_not_called()

    def test_mismatched_razorpay_order_is_rejected(self, deps):
        deps['order_repo'].find_by_id.return_value = make_order(razorpay_order_id='order_rzp_1')

        with pytest.raises(BadRequestError):
            asyncio.run(deps['service'].verify_payment(
                make_user(), 7, 'order_rzp_other', 'pay_1', sign('order_rzp_other', 'pay_1')
            ))

    def test_other_users_order(self, deps):
        deps['order_repo'].find_by_id.return_value = make_order(user_id=2)

        with pytest.raises(NotFoundError):
            asyncio.run(deps['service'].verify_payment(make_user(), 7, 'order_rzp_1', 'pay_1', 'sig'))

    def test_success_takes_stock_and_ships(self, deps):
        deps['order_repo'].find_by_id.return_value = make_order(coupon_id=3)
        deps['shipmozo'].create_shipment.return_value = ShipmentResult(
            success=True, awb='AWB123', courier_name='Delhivery',
            tracking_url='https://track.example.com/AWB123', shipment_id='55', status='created'
        )

        order = asyncio.run(deps['service'].verify_payment(
            make_user(), 7, 'order_rzp_1', 'pay_1', sign('order_rzp_1', 'pay_1')
        ))

        deps['product_repo'].adjust_inventory.assert_called_once_with({10: 2}, sold=True)
        deps['coupon_repo'].increment_usage.assert_called_once_with(3)
        assert order.status == 'packed'
        assert order.shipment_awb == 'AWB123'
        assert order.shipping_pending is False

    def test_shipment_failure_leaves_order_paid(self, deps):
        deps['order_repo'].find_by_id.return_value = make_order()
        deps['shipmozo'].create_shipment.return_value = ShipmentResult(success=False, error="Pincode not serviceable")

        asyncio.run(deps['service'].verify_payment(
            make_user(), 7, 'order_rzp_1', 'pay_1', sign('order_rzp_1', 'pay_1')
        ))

        first_update = deps['order_repo'].update.call_args_list[0][0][1]
        assert first_update['payment_status'] == 'paid'
        assert deps['order_repo'].update.call_args_list[-1][0][1] == {'shipping_pending': True}
        deps['coupon_repo'].increment_usage.assert_not_called()

    def test_unreadable_shipmozo_reply_leaves_order_paid(self, deps):
        deps['order_repo'].find_by_id.return_value = make_order()
        deps['service'].shipmozo = ShipmozoConnector(
            public_key='pub', private_key='priv', base_url='https://shipmozo.test'
        )

        with mock_async_client(lambda request: httpx.Response(200, text="<html>gateway</html>")):
            asyncio.run(deps['service'].verify_payment(
                make_user(), 7, 'order_rzp_1', 'pay_1', sign('order_rzp_1', 'pay_1')
            ))

        updates = [c[0][1] for c in deps['order_repo'].update.call_args_list]
        assert updates[0]['payment_status'] == 'paid'
        assert updates[-1] == {'shipping_pending': True}
        deps['product_repo'].adjust_inventory.assert_called_once_with({10: 2}, sold=True)

    def test_already_paid_is_idempotent(self, deps):
        deps['order_repo'].find_by_id.return_value = make_order(payment_status='paid', status='paid')

        order = asyncio.run(deps['service'].verify_payment(make_user(), 7, 'order_rzp_1', 'pay_1', 'anything'))

        assert order.is_paid
        deps['order_repo'].update.assert_not_called()
        deps['product_repo'].adjust_inventory.assert_not_called()


class TestCancel:

    def test_paid_order_is_refunded_and_restocked(self, deps):
        deps['order_repo'].find_by_id.return_value = make_order(payment_status='paid', status='paid')

        order = deps['service'].cancel(make_user(), 7, reason='Changed my mind')

        assert order.status == 'cancelled'
        assert order.payment_status == 'refunded'
        assert order.cancellation_reason == 'Changed my mind'
        deps['product_repo'].adjust_inventory.assert_called_once_with({10: 2}, sold=False)

    def test_pending_order_keeps_stock(self, deps):
        deps['order_repo'].find_by_id.return_value = make_order()

        order = deps['service'].cancel(make_user(), 7)

        assert order.cancellation_reason == 'Cancelled by user'
        deps['product_repo'].adjust_inventory.assert_not_called()

    def test_shipped_order_cannot_be_cancelled(self, deps):
        deps['order_repo'].find_by_id.return_value = make_order(status='shipped', payment_status='paid')

        with pytest.raises(BadRequestError, match="Order cannot be cancelled at this stage"):
            deps['service'].cancel(make_user(), 7)

    def test_other_users_order_is_forbidden(self, deps):
        deps['order_repo'].find_by_id.return_value = make_order(user_id=2)

        with pytest.raises(PermissionDeniedError, match="Not authorized"):
            deps['service'].cancel(make_user(), 7)

        deps['order_repo'].update.assert_not_called()

    def test_missing_order(self, deps):
        deps['order_repo'].find_by_id.return_value = None

        with pytest.raises(NotFoundError):
            deps['service'].cancel(make_user(), 7)


class TestReadsAndStatus:

    def test_other_user_is_forbidden(self, deps):
        deps['order_repo'].find_by_id.return_value = make_order(user_id=2)

        with pytest.raises(PermissionDeniedError):
            deps['service'].get_order(make_user(), 7)

    def test_admin_can_read_any_order(self, deps):
        deps['order_repo'].find_by_id.return_value = make_order(user_id=2)

        assert deps['service'].get_order(make_user(id=99, role='admin'), 7).id == 7

    def test_invalid_status(self, deps):
        with pytest.raises(BadRequestError, match="Invalid order status"):
            deps['service'].update_status(7, 'teleported')

    def test_delivered_sets_timestamp(self, deps):
        deps['order_repo'].find_by_id.return_value = make_order(status='shipped')

        order = deps['service'].update_status(7, 'delivered', tracking_number='TRK1')

        assert order.status == 'delivered'
        assert order.delivered_at is not None
        assert order.tracking_number == 'TRK1'


class TestTracking:

    def test_requires_shipment(self, deps):
        deps['order_repo'].find_by_id.return_value = make_order()

        with pytest.raises(BadRequestError, match="Shipment not created yet"):
            asyncio.run(deps['service'].track(make_user(), 7))

    def test_delivered_updates_order(self, deps):
        deps['order_repo'].find_by_id.return_value = make_order(status='shipped', shipment_awb='AWB123')
        deps['shipmozo'].track_shipment.return_value = TrackingResult(success=True, awb='AWB123', status='Delivered')

        order, result = asyncio.run(deps['service'].track(make_user(), 7))

        assert result.success
        assert order.status == 'delivered'
        assert order.shipment_status == 'Delivered'

    def test_in_transit_marks_packed_order_shipped(self, deps):
        deps['order_repo'].find_by_id.return_value = make_order(status='packed', shipment_awb='AWB123')
        deps['shipmozo'].track_shipment.return_value = TrackingResult(success=True, awb='AWB123', status='In Transit')

        order, _ = asyncio.run(deps['service'].track(make_user(), 7))

        assert order.status == 'shipped'

    def test_failed_lookup_leaves_order_untouched(self, deps):
        deps['order_repo'].find_by_id.return_value = make_order(status='packed', shipment_awb='AWB123')
        deps['shipmozo'].track_shipment.return_value = TrackingResult(success=False, awb='AWB123', error='timeout')

        order, result = asyncio.run(deps['service'].track(make_user(), 7))

        assert result.success is False
        assert order.status == 'packed'
        deps['order_repo'].update.assert_not_called()


class TestCreateShipment:

    def test_unpaid_order(self, deps):
        deps['order_repo'].find_by_id.return_value = make_order()

        with pytest.raises(BadRequestError, match="Cannot create shipment for unpaid order"):
            asyncio.run(deps['service'].create_shipment(7))

    def test_already_shipped(self, deps):
        deps['order_repo'].find_by_id.return_value = make_order(payment_status='paid', shipment_awb='AWB1')

        with pytest.raises(BadRequestError, match="Shipment already created"):
            asyncio.run(deps['service'].create_shipment(7))

    def test_failure_is_reported(self, deps):
        deps['order_repo'].find_by_id.return_value = make_order(payment_status='paid', status='paid')
        deps['shipmozo'].create_shipment.return_value = ShipmentResult(success=False, error='Invalid pincode')

        with pytest.raises(ServiceError, match="Failed to create shipment: Invalid pincode"):
            asyncio.run(deps['service'].create_shipment(7))
