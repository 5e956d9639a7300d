"""
Cart Service
Business rules for the per-user cart: stock checks, line merging, coupons
and folding a guest cart into the signed-in cart

Author: Water Junction
Date: 2025-06-09
"""
import logging
from decimal import Decimal
from typing import Dict, List, Optional, Tuple, Any

from waterjunction.core.exceptions import BadRequestError, NotFoundError, ServiceError
from waterjunction.domain.cart import Cart
from waterjunction.domain.coupon import Coupon
from waterjunction.repositories.cart_repository import CartRepository
from waterjunction.repositories.coupon_repository import CouponRepository
from waterjunction.repositories.product_repository import ProductRepository


logger = logging.getLogger(__name__)


def format_rupees(amount: Decimal) -> str:
    """500.00 -> '500', 499.50 -> '499.50'"""
    amount = Decimal(amount)
    if amount == amount.to_integral_value():
        return str(int(amount))
    return f"{amount:.2f}"


class CartService:
    """Cart operations for one signed-in user at a time"""

    def __init__(
        self,
        cart_repo: CartRepository = None,
        product_repo: ProductRepository = None,
        coupon_repo: CouponRepository = None
    ):
        self.cart_repo = cart_repo or CartRepository()
        self.product_repo = product_repo or ProductRepository()
        self.coupon_repo = coupon_repo or CouponRepository()

    def get_cart(self, user_id: int) -> Cart:
        return self.cart_repo.get_or_create(user_id)

    def add_item(
        self,
        user_id: int,
        product_id: int,
        quantity: int = 1,
        variant: Optional[Dict[str, str]] = None
    ) -> Cart:
        """
        Add a product to the cart

        The same product with the same variant selection merges into the
        existing line; the merged quantity must still fit in stock.

        Raises:
            NotFoundError: product missing or inactive
            BadRequestError: not enough stock
        """
        product = self.product_repo.find_by_id(product_id)
        if not product or not product.is_active:
            raise NotFoundError("Product not found")

        if not product.has_stock_for(quantity):
            raise BadRequestError("Insufficient stock")

        cart = self.cart_repo.get_or_create(user_id)
        existing = cart.find_item(product_id, variant)

        if existing:
            new_quantity = existing.quantity + quantity
            if not product.has_stock_for(new_quantity):
                raise BadRequestError("Insufficient stock")
            self.cart_repo.set_item_quantity(cart.id, existing.id, new_quantity)
        else:
            self.cart_repo.add_item(cart.id, product_id, quantity, variant)

        return self.cart_repo.find_by_user(user_id)

    def update_item(self, user_id: int, item_id: int, quantity: int) -> Cart:
        cart = self.cart_repo.find_by_user(user_id)
        if not cart:
            raise NotFoundError("Cart not found")

        item = cart.get_item(item_id)
        if not item:
            raise NotFoundError("Item not found in cart")

        product = self.product_repo.find_by_id(item.product_id)
        if not product or not product.has_stock_for(quantity):
            raise BadRequestError("Insufficient stock")

        self.cart_repo.set_item_quantity(cart.id, item_id, quantity)
        return self.cart_repo.find_by_user(user_id)

    def remove_item(self, user_id: int, item_id: int) -> Cart:
        cart = self.cart_repo.find_by_user(user_id)
        if not cart:
            raise NotFoundError("Cart not found")

        if not self.cart_repo.remove_item(cart.id, item_id):
            raise NotFoundError("Item not found in cart")

        return self.cart_repo.find_by_user(user_id)

    def clear(self, user_id: int) -> Cart:
        cart = self.cart_repo.get_or_create(user_id)
        self.cart_repo.clear(cart.id)
        return self.cart_repo.find_by_user(user_id)

    def apply_coupon(self, user_id: int, code: str) -> Tuple[Cart, Coupon, Decimal]:
        """
        Attach a coupon to the cart

        Returns:
            (cart, coupon, discount for the current subtotal)
        """
        coupon = self.coupon_repo.find_by_code(code)
        if not coupon or not coupon.is_valid():
            raise BadRequestError("Invalid or expired coupon")

        cart = self.cart_repo.find_by_user(user_id)
        if not cart or cart.is_empty:
            raise BadRequestError("Cart is empty")

        subtotal = cart.subtotal
        if subtotal < coupon.min_order_value:
            raise BadRequestError(
                f"Minimum order value of ₹{format_rupees(coupon.min_order_value)} required"
            )

        self.cart_repo.set_coupon(cart.id, coupon.id)
        return self.cart_repo.find_by_user(user_id), coupon, coupon.calculate_discount(subtotal)

    def remove_coupon(self, user_id: int) -> Cart:
        cart = self.cart_repo.find_by_user(user_id)
        if not cart:
            raise NotFoundError("Cart not found")

        self.cart_repo.set_coupon(cart.id, None)
        return self.cart_repo.find_by_user(user_id)

    def merge_guest_cart(
        self,
        user_id: int,
        items: List[Dict[str, Any]]
    ) -> Tuple[Cart, List[int], List[Dict[str, Any]]]:
        """
        Fold a guest cart into the user's cart after sign-in

        Each item goes through add_item(); a rejected item is skipped with
        its reason and the rest still merge.

        Args:
            items: [{"product_id", "quantity", "variant"}]

        Returns:
            (cart, merged product ids, skipped [{"productId", "reason"}])
        """
        merged: List[int] = []
        skipped: List[Dict[str, Any]] = []

        for item in items:
            product_id = item['product_id']
            try:
                self.add_item(
                    user_id,
                    product_id,
                    item.get('quantity') or 1,
                    item.get('variant')
                )
                merged.append(product_id)
            except ServiceError as e:
                logger.warning(f"Guest cart item {product_id} skipped for user {user_id}: {e.message}")
                skipped.append({"productId": product_id, "reason": e.message})

        return self.cart_repo.get_or_create(user_id), merged, skipped
