"""
Cart Repository - Data Access Layer for Carts and Cart Items

Author: Water Junction
Date: 2025-06-09
"""
from typing import Optional, Dict
from psycopg2.extras import Json

from waterjunction.domain.cart import Cart, CartItem, ProductSnapshot
from waterjunction.core.database import get_db_connection_dict


class CartRepository:
    """
    Repository for the per-user cart

    Every write bumps carts.last_updated.
    """

    @staticmethod
    def _map_row_to_item(row: dict) -> CartItem:
        product = None
        if row.get('product_name') is not None:
            product = ProductSnapshot(
                id=row['product_id'],
                name=row['product_name'],
                slug=row['product_slug'],
                price=row['product_price'],
                mrp=row.get('product_mrp'),
                image=row.get('product_image'),
                stock=row.get('product_stock') or 0,
                is_active=row.get('product_is_active', True),
            )
        return CartItem(
            id=row['id'],
            product_id=row['product_id'],
            quantity=row['quantity'],
            variant=row.get('variant') or {},
            added_at=row.get('added_at'),
            product=product,
        )

    def _load(self, cursor, cart_row: dict) -> Cart:
        cursor.execute("""
            SELECT
                ci.id, ci.product_id, ci.quantity, ci.variant, ci.added_at,
                p.name AS product_name, p.slug AS product_slug,
                p.price AS product_price, p.mrp AS product_mrp,
                p.images->>0 AS product_image, p.stock AS product_stock,
                p.is_active AS product_is_active
            FROM cart_items ci
            LEFT JOIN products p ON p.id = ci.product_id
            WHERE ci.cart_id = %s
            ORDER BY ci.added_at, ci.id
        """, (cart_row['id'],))
        items = [self._map_row_to_item(row) for row in cursor.fetchall()]

        return Cart(
            id=cart_row['id'],
            user_id=cart_row['user_id'],
            coupon_id=cart_row.get('coupon_id'),
            coupon_code=cart_row.get('coupon_code'),
            last_updated=cart_row.get('last_updated'),
            items=items,
        )

    def find_by_user(self, user_id: int) -> Optional[Cart]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT ca.id, ca.user_id, ca.coupon_id, co.code AS coupon_code, ca.last_updated
                FROM carts ca
                LEFT JOIN coupons co ON co.id = ca.coupon_id
                WHERE ca.user_id = %s
            """, (user_id,))
            row = cursor.fetchone()
            if not row:
                return None
            return self._load(cursor, row)

        finally:
            cursor.close()
            conn.close()

    def get_or_create(self, user_id: int) -> Cart:
        """Return the user's cart, creating an empty one on first access"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                INSERT INTO carts (user_id)
                VALUES (%s)
                ON CONFLICT (user_id) DO NOTHING
            """, (user_id,))
            conn.commit()

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

        return self.find_by_user(user_id)

    def _write(self, cart_id: int, sql: str, params: tuple) -> int:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(sql, params)
            affected = cursor.rowcount
            cursor.execute("UPDATE carts SET last_updated = NOW() WHERE id = %s", (cart_id,))
            conn.commit()
            return affected

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def add_item(self, cart_id: int, product_id: int, quantity: int, variant: Optional[Dict[str, str]] = None) -> None:
        self._write(cart_id, """
            INSERT INTO cart_items (cart_id, product_id, quantity, variant)
            VALUES (%s, %s, %s, %s)
        """, (cart_id, product_id, quantity, Json(variant or {})))

    def set_item_quantity(self, cart_id: int, item_id: int, quantity: int) -> bool:
        affected = self._write(cart_id, """
            UPDATE cart_items SET quantity = %s
            WHERE id = %s AND cart_id = %s
        """, (quantity, item_id, cart_id))
        return affected > 0

    def remove_item(self, cart_id: int, item_id: int) -> bool:
        affected = self._write(cart_id, """
            DELETE FROM cart_items WHERE id = %s AND cart_id = %s
        """, (item_id, cart_id))
        return affected > 0

    def set_coupon(self, cart_id: int, coupon_id: Optional[int]) -> None:
        self._write(cart_id, "UPDATE carts SET coupon_id = %s WHERE id = %s", (coupon_id, cart_id))

    def clear(self, cart_id: int) -> None:
        """Remove all items and the applied coupon"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("DELETE FROM cart_items WHERE cart_id = %s", (cart_id,))
            cursor.execute("""
                UPDATE carts SET coupon_id = NULL, last_updated = NOW()
                WHERE id = %s
            """, (cart_id,))
            conn.commit()

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()
