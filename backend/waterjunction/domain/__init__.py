"""
Domain Layer - Business Entities

This layer contains Pydantic models representing business entities.
These models enforce type safety and validation across the application.

Author: Water Junction
Date: 2025-06-02
"""
from waterjunction.domain.user import User, Address
from waterjunction.domain.catalog import Category
from waterjunction.domain.product import Product, ProductQuestion, ProductVariant
from waterjunction.domain.cart import Cart, CartItem, Wishlist, WishlistItem
from waterjunction.domain.coupon import Coupon
from waterjunction.domain.order import Order, OrderItem, ShippingAddress
from waterjunction.domain.review import Review
from waterjunction.domain.contact import Contact
from waterjunction.domain.flash_sale import FlashSale, FlashSaleProduct

__all__ = [
    'User', 'Address', 'Category', 'Product', 'ProductQuestion', 'ProductVariant',
    'Cart', 'CartItem', 'Wishlist', 'WishlistItem', 'Coupon',
    'Order', 'OrderItem', 'ShippingAddress', 'Review', 'Contact',
    'FlashSale', 'FlashSaleProduct'
]
