"""
Order Service
Checkout, Razorpay payment verification, cancellation and shipment
handling for orders

Flow:
    cart -> place_order() -> Razorpay order (pending)
         -> verify_payment() -> paid, stock taken, shipment attempted
         -> track() / update_status() -> shipped -> delivered

Author: Water Junction
Date: 2025-06-16
"""
import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from waterjunction.connectors.razorpay_connector import RazorpayConnector
from waterjunction.connectors.shipmozo_connector import ShipmozoConnector, ShipmentResult, TrackingResult
from waterjunction.core.exceptions import (
    BadRequestError,
    NotFoundError,
    PermissionDeniedError,
    ServiceError,
)
from waterjunction.domain.order import (
    ORDER_STATUSES,
    Order,
    OrderItem,
    calculate_order_totals,
    generate_order_number,
)
from waterjunction.domain.user import User
from waterjunction.repositories.cart_repository import CartRepository
from waterjunction.repositories.coupon_repository import CouponRepository
from waterjunction.repositories.order_repository import OrderRepository
from waterjunction.repositories.product_repository import ProductRepository


logger = logging.getLogger(__name__)

DEFAULT_CANCELLATION_REASON = "Cancelled by user"


def _normalize_shipment_status(status: Optional[str]) -> str:
    """'In Transit' / 'in-transit' -> 'in_transit'"""
    return (status or "").strip().lower().replace(" ", "_").replace("-", "_")


class OrderService:
    """
    Order lifecycle

    The Razorpay connector refuses to build without keys, so it is created
    on first use rather than at service construction.
    """

    def __init__(
        self,
        order_repo: OrderRepository = None,
        cart_repo: CartRepository = None,
        product_repo: ProductRepository = None,
        coupon_repo: CouponRepository = None,
        razorpay: RazorpayConnector = None,
        shipmozo: ShipmozoConnector = None
    ):
        self.order_repo = order_repo or OrderRepository()
        self.cart_repo = cart_repo or CartRepository()
        self.product_repo = product_repo or ProductRepository()
        self.coupon_repo = coupon_repo or CouponRepository()
        self._razorpay = razorpay
        self.shipmozo = shipmozo or ShipmozoConnector()

    @property
    def razorpay(self) -> RazorpayConnector:
        if self._razorpay is None:
            self._razorpay = RazorpayConnector()
        return self._razorpay

    # ------------------------------------------------------------------
    # Checkout
    # ------------------------------------------------------------------

    async def place_order(
        self,
        user: User,
        shipping_address: Dict[str, Any],
        payment_method: str = "razorpay",
        customer_notes: Optional[str] = None
    ) -> Tuple[Order, Dict[str, Any]]:
        """
        Turn the user's cart into a pending order and a Razorpay order

        Returns:
            (order, {"id", "amount", "currency", "keyId"}) for the browser checkout

        Raises:
            BadRequestError: empty cart or an item no longer purchasable
            ConfigurationError / ExternalServiceError: Razorpay unavailable
        """
        cart = self.cart_repo.find_by_user(user.id)
        if not cart or cart.is_empty:
            raise BadRequestError("Cart is empty")

        order_items: List[OrderItem] = []
        for item in cart.items:
            product = item.product
            if not product or not product.is_active or product.stock < item.quantity:
                name = product.name if product else "Product"
                raise BadRequestError(f"{name} is out of stock or unavailable")

            order_items.append(OrderItem(
                product_id=product.id,
                name=product.name,
                image=product.image,
                price=product.price,
                quantity=item.quantity,
                variant=item.variant,
            ))

        line_items = [(item.price, item.quantity) for item in order_items]
        subtotal = sum((Decimal(price) * qty for price, qty in line_items), Decimal("0"))

        discount = Decimal("0")
        coupon_id = None
        if cart.coupon_id:
            coupon = self.coupon_repo.find_by_id(cart.coupon_id)
            if coupon and coupon.is_valid():
                discount = coupon.calculate_discount(subtotal)
                coupon_id = coupon.id
            else:
                logger.info(f"Ignoring expired coupon {cart.coupon_id} on cart {cart.id}")

        totals = calculate_order_totals(line_items, discount)

        # Fails fast with ConfigurationError before anything is written
        razorpay = self.razorpay

        order = self.order_repo.create({
            'order_number': generate_order_number(),
            'user_id': user.id,
            'shipping_address': shipping_address,
            'payment_method': payment_method,
            'subtotal': totals.subtotal,
            'shipping_cost': totals.shipping_cost,
            'tax': totals.tax,
            'discount': totals.discount,
            'total': totals.total,
            'coupon_id': coupon_id,
            'customer_notes': customer_notes,
        }, order_items)

        try:
            razorpay_order = await razorpay.create_order(
                amount_paise=totals.amount_in_paise,
                receipt=order.order_number,
                notes={'orderId': str(order.id), 'userId': str(user.id)},
            )
        except ServiceError:
            self.order_repo.update(order.id, {
                'payment_status': 'failed',
                'status': 'cancelled',
                'cancelled_at': datetime.now(timezone.utc),
                'cancellation_reason': 'Payment gateway unavailable',
            })
            raise

        order = self.order_repo.update(order.id, {'razorpay_order_id': razorpay_order['id']})
        self.cart_repo.clear(cart.id)

        logger.info(f"Order {order.order_number} placed by user {user.id}, total {totals.total}")

        return order, {
            'id': razorpay_order['id'],
            'amount': razorpay_order.get('amount', totals.amount_in_paise),
            'currency': razorpay_order.get('currency', 'INR'),
            'keyId': razorpay.key_id,
        }

    async def verify_payment(
        self,
        user: User,
        order_id: int,
        razorpay_order_id: str,
        razorpay_payment_id: str,
        razorpay_signature: str
    ) -> Order:
        """
        Confirm a Razorpay checkout

        A bad signature fails and cancels the order. A good one marks it
        paid, takes stock, counts the coupon use and tries to create the
        shipment; a shipment failure only flags shipping_pending.
        """
        order = self.order_repo.find_by_id(order_id)
        if not order or order.user_id != user.id:
            raise NotFoundError("Order not found")

        if order.is_paid:
            return order

        signature_ok = (
            (not order.razorpay_order_id or order.razorpay_order_id == razorpay_order_id)
            and self.razorpay.verify_payment_signature(
                razorpay_order_id, razorpay_payment_id, razorpay_signature
            )
        )

        if not signature_ok:
            self.order_repo.update(order.id, {
                'payment_status': 'failed',
                'status': 'cancelled',
            })
            logger.warning(f"Payment verification failed for order {order.order_number}")
            raise BadRequestError("Payment verification failed")

        order = self.order_repo.update(order.id, {
            'payment_status': 'paid',
            'status': 'paid',
            'razorpay_order_id': razorpay_order_id,
            'razorpay_payment_id': razorpay_payment_id,
            'razorpay_signature': razorpay_signature,
        })
        logger.info(f"Order {order.order_number} paid ({razorpay_payment_id})")

        quantities: Dict[int, int] = {}
        for item in order.items:
            if item.product_id is not None:
                quantities[item.product_id] = quantities.get(item.product_id, 0) + item.quantity
        self.product_repo.adjust_inventory(quantities, sold=True)

        if order.coupon_id:
            self.coupon_repo.increment_usage(order.coupon_id)

        order, _ = await self._ship(order)
        return order

    async def _ship(self, order: Order) -> Tuple[Order, ShipmentResult]:
        result = await self.shipmozo.create_shipment(order, order.customer_email)

        if result.success:
            order = self.order_repo.update(order.id, {
                'shipment_awb': result.awb,
                'courier_name': result.courier_name,
                'tracking_url': result.tracking_url,
                'shipment_id': result.shipment_id,
                'shipment_status': result.status,
                'status': 'packed',
                'shipping_pending': False,
            })
            logger.info(f"Shipment created for order {order.order_number}: AWB {result.awb}")
        else:
            order = self.order_repo.update(order.id, {'shipping_pending': True})
            logger.warning(f"Shipment pending for order {order.order_number}: {result.error}")

        return order, result

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_for_user(self, user: User) -> List[Order]:
        return self.order_repo.find_by_user(user.id)

    def list_all(self, status: Optional[str] = None, page: int = 1, limit: int = 20) -> Tuple[List[Order], int]:
        return self.order_repo.find_all(status=status, limit=limit, offset=(page - 1) * limit)

    def get_order(self, user: User, order_id: int) -> Order:
        """Owner or admin only"""
        order = self.order_repo.find_by_id(order_id)
        if not order:
            raise NotFoundError("Order not found")
        if order.user_id != user.id and not user.is_admin:
            raise PermissionDeniedError("Not authorized")
        return order

    # ------------------------------------------------------------------
    # Status changes
    # ------------------------------------------------------------------

    def cancel(self, user: User, order_id: int, reason: Optional[str] = None) -> Order:
        order = self.order_repo.find_by_id(order_id)
        if not order:
            raise NotFoundError("Order not found")
        if order.user_id != user.id:
            raise PermissionDeniedError("Not authorized")

        if not order.is_cancellable:
            raise BadRequestError("Order cannot be cancelled at this stage")

        updates = {
            'status': 'cancelled',
            'cancelled_at': datetime.now(timezone.utc),
            'cancellation_reason': reason or DEFAULT_CANCELLATION_REASON,
        }

        if order.is_paid:
            # Refund itself happens in the Razorpay dashboard
            updates['payment_status'] = 'refunded'
            quantities: Dict[int, int] = {}
            for item in order.items:
                if item.product_id is not None:
                    quantities[item.product_id] = quantities.get(item.product_id, 0) + item.quantity
            self.product_repo.adjust_inventory(quantities, sold=False)

        order = self.order_repo.update(order.id, updates)
        logger.info(f"Order {order.order_number} cancelled by user {user.id}")
        return order

    def update_status(self, order_id: int, status: str, tracking_number: Optional[str] = None) -> Order:
        if status not in ORDER_STATUSES:
            raise BadRequestError("Invalid order status")

        order = self.order_repo.find_by_id(order_id)
        if not order:
            raise NotFoundError("Order not found")

        updates: Dict[str, Any] = {'status': status}
        if tracking_number:
            updates['tracking_number'] = tracking_number
        if status == 'delivered':
            updates['delivered_at'] = datetime.now(timezone.utc)

        return self.order_repo.update(order.id, updates)

    # ------------------------------------------------------------------
    # Shipping
    # ------------------------------------------------------------------

    async def track(self, user: User, order_id: int) -> Tuple[Order, TrackingResult]:
        """
        Refresh tracking from Shipmozo

        A failed lookup is returned as-is with the stored order untouched.
        """
        order = self.get_order(user, order_id)
        if not order.has_shipment:
            raise BadRequestError("Tracking not available. Shipment not created yet.")

        result = await self.shipmozo.track_shipment(order.shipment_awb)
        if not result.success:
            logger.warning(f"Tracking failed for order {order.order_number}: {result.error}")
            return order, result

        updates: Dict[str, Any] = {'shipment_status': result.status}
        if result.tracking_url:
            updates['tracking_url'] = result.tracking_url

        shipment_status = _normalize_shipment_status(result.status)
        if shipment_status == 'delivered' and order.status != 'delivered':
            updates['status'] = 'delivered'
            updates['delivered_at'] = datetime.now(timezone.utc)
        elif shipment_status == 'in_transit' and order.status == 'packed':
            updates['status'] = 'shipped'

        return self.order_repo.update(order.id, updates), result

    async def create_shipment(self, order_id: int) -> Order:
        """Admin retry for orders left with shipping_pending"""
        order = self.order_repo.find_by_id(order_id)
        if not order:
            raise NotFoundError("Order not found")
        if order.has_shipment:
            raise BadRequestError("Shipment already created for this order")
        if not order.is_paid:
            raise BadRequestError("Cannot create shipment for unpaid order")

        order, result = await self._ship(order)
        if not result.success:
            raise ServiceError(f"Failed to create shipment: {result.error}")
        return order
