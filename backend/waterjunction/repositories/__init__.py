"""
Repository Layer - Data Access

This layer handles all database queries and returns domain models.
Repositories abstract away SQL details from business logic.

Author: Water Junction
Date: 2025-06-02
"""
from waterjunction.repositories.user_repository import UserRepository
from waterjunction.repositories.category_repository import CategoryRepository
from waterjunction.repositories.product_repository import ProductRepository
from waterjunction.repositories.cart_repository import CartRepository
from waterjunction.repositories.wishlist_repository import WishlistRepository
from waterjunction.repositories.coupon_repository import CouponRepository
from waterjunction.repositories.order_repository import OrderRepository
from waterjunction.repositories.review_repository import ReviewRepository
from waterjunction.repositories.contact_repository import ContactRepository
from waterjunction.repositories.flash_sale_repository import FlashSaleRepository
from waterjunction.repositories.stats_repository import StatsRepository

__all__ = [
    'UserRepository',
    'CategoryRepository',
    'ProductRepository',
    'CartRepository',
    'WishlistRepository',
    'CouponRepository',
    'OrderRepository',
    'ReviewRepository',
    'ContactRepository',
    'FlashSaleRepository',
    'StatsRepository'
]
