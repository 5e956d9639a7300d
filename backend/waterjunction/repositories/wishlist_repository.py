"""
Wishlist Repository - Data Access Layer for Wishlists

Author: Water Junction
Date: 2025-06-09
"""
from typing import Optional

from waterjunction.domain.cart import Wishlist, WishlistItem, ProductSnapshot
from waterjunction.core.database import get_db_connection_dict


class WishlistRepository:
    """Repository for the per-user wishlist"""

    @staticmethod
    def _map_row_to_item(row: dict) -> WishlistItem:
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
        return WishlistItem(
            id=row['id'],
            product_id=row['product_id'],
            added_at=row.get('added_at'),
            product=product,
        )

    def find_by_user(self, user_id: int) -> Optional[Wishlist]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("SELECT id, user_id FROM wishlists WHERE user_id = %s", (user_id,))
            wishlist_row = cursor.fetchone()
            if not wishlist_row:
                return None

            cursor.execute("""
                SELECT
                    wi.id, wi.product_id, wi.added_at,
                    p.name AS product_name, p.slug AS product_slug,
                    p.price AS product_price, p.mrp AS product_mrp,
                    p.images->>0 AS product_image, p.stock AS product_stock,
                    p.is_active AS product_is_active
                FROM wishlist_items wi
                LEFT JOIN products p ON p.id = wi.product_id
                WHERE wi.wishlist_id = %s
                ORDER BY wi.added_at DESC, wi.id DESC
            """, (wishlist_row['id'],))
            items = [self._map_row_to_item(row) for row in cursor.fetchall()]

            return Wishlist(id=wishlist_row['id'], user_id=wishlist_row['user_id'], items=items)

        finally:
            cursor.close()
            conn.close()

    def get_or_create(self, user_id: int) -> Wishlist:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                INSERT INTO wishlists (user_id)
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

    def add_item(self, wishlist_id: int, product_id: int) -> None:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                INSERT INTO wishlist_items (wishlist_id, product_id)
                VALUES (%s, %s)
                ON CONFLICT (wishlist_id, product_id) DO NOTHING
            """, (wishlist_id, product_id))
            conn.commit()

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def remove_item(self, wishlist_id: int, item_id: int) -> bool:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(
                "DELETE FROM wishlist_items WHERE id = %s AND wishlist_id = %s",
                (item_id, wishlist_id)
            )
            removed = cursor.rowcount > 0
            conn.commit()
            return removed

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()
