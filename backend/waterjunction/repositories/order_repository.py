"""
Order Repository - Data Access Layer for Orders

Handles all database queries for orders and returns Order domain models.

Author: Water Junction
Date: 2025-06-09
"""
from typing import List, Optional, Tuple, Dict, Any
from psycopg2.extras import Json

from waterjunction.domain.order import Order, OrderItem
from waterjunction.core.database import get_db_connection_dict


ORDER_SELECT = """
    SELECT
        o.id, o.order_number, o.user_id, o.shipping_address,
        o.payment_method, o.payment_status, o.status,
        o.subtotal, o.shipping_cost, o.tax, o.discount, o.total, o.coupon_id,
        o.razorpay_order_id, o.razorpay_payment_id, o.razorpay_signature,
        o.shipment_awb, o.courier_name, o.tracking_url, o.shipment_id,
        o.shipment_status, o.shipping_pending, o.tracking_number,
        o.customer_notes, o.admin_notes,
        o.cancelled_at, o.cancellation_reason, o.delivered_at,
        o.created_at, o.updated_at,
        u.name AS customer_name,
        u.email AS customer_email
    FROM orders o
    LEFT JOIN users u ON u.id = o.user_id
"""

# Columns that change after the order is placed
WRITABLE_ORDER_FIELDS = {
    'payment_status', 'status',
    'razorpay_order_id', 'razorpay_payment_id', 'razorpay_signature',
    'shipment_awb', 'courier_name', 'tracking_url', 'shipment_id',
    'shipment_status', 'shipping_pending', 'tracking_number',
    'admin_notes', 'cancelled_at', 'cancellation_reason', 'delivered_at',
}


class OrderRepository:
    """
    Repository for Order data access

    All SQL queries for orders are centralized here.
    Returns Order domain models with their items.
    """

    @staticmethod
    def _map_row_to_order(row: dict, items: List[OrderItem]) -> Order:
        data = dict(row)
        data['items'] = items
        return Order(**data)

    @staticmethod
    def _map_row_to_item(row: dict) -> OrderItem:
        return OrderItem(
            id=row['id'],
            product_id=row.get('product_id'),
            name=row['name'],
            image=row.get('image'),
            price=row['price'],
            quantity=row['quantity'],
            variant=row.get('variant') or {},
        )

    def _items_by_order(self, cursor, order_ids: List[int]) -> Dict[int, List[OrderItem]]:
        items: Dict[int, List[OrderItem]] = {order_id: [] for order_id in order_ids}
        if not order_ids:
            return items

        cursor.execute("""
            SELECT id, order_id, product_id, name, image, price, quantity, variant
            FROM order_items
            WHERE order_id = ANY(%s)
            ORDER BY id
        """, (order_ids,))
        for row in cursor.fetchall():
            items[row['order_id']].append(self._map_row_to_item(row))
        return items

    def _fetch(self, cursor, where: str, params: list, suffix: str = "") -> List[Order]:
        cursor.execute(f"{ORDER_SELECT} WHERE {where} {suffix}", params)
        rows = cursor.fetchall()
        items = self._items_by_order(cursor, [row['id'] for row in rows])
        return [self._map_row_to_order(row, items[row['id']]) for row in rows]

    def find_by_id(self, order_id: int) -> Optional[Order]:
        """
        Find order by ID with its items

        Returns:
            Order or None if not found
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            orders = self._fetch(cursor, "o.id = %s", [order_id])
            return orders[0] if orders else None

        finally:
            cursor.close()
            conn.close()

    def find_by_user(self, user_id: int) -> List[Order]:
        """All orders for one customer, newest first"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            return self._fetch(cursor, "o.user_id = %s", [user_id], "ORDER BY o.created_at DESC")

        finally:
            cursor.close()
            conn.close()

    def find_all(
        self,
        status: Optional[str] = None,
        limit: int = 20,
        offset: int = 0
    ) -> Tuple[List[Order], int]:
        """
        Find orders for the admin panel

        Args:
            status: Filter by order status
            limit: Maximum results to return
            offset: Number of results to skip

        Returns:
            Tuple of (list of orders, total count)
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            conditions = []
            params = []

            if status:
                conditions.append("o.status = %s")
                params.append(status)

            where_clause = " AND ".join(conditions) if conditions else "1=1"

            cursor.execute(f"""
                SELECT COUNT(*) as total
                FROM orders o
                WHERE {where_clause}
            """, params)
            total = cursor.fetchone()['total']

            orders = self._fetch(
                cursor,
                where_clause,
                params + [limit, offset],
                "ORDER BY o.created_at DESC LIMIT %s OFFSET %s"
            )
            return orders, total

        finally:
            cursor.close()
            conn.close()

    def create(self, fields: Dict[str, Any], items: List[OrderItem]) -> Order:
        """
        Insert an order and its items in one transaction

        Args:
            fields: order_number, user_id, shipping_address (dict), payment_method,
                    subtotal, shipping_cost, tax, discount, total, coupon_id, customer_notes
            items: Item snapshots taken from the cart
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                INSERT INTO orders (
                    order_number, user_id, shipping_address, payment_method,
                    subtotal, shipping_cost, tax, discount, total,
                    coupon_id, customer_notes
                ) VALUES (
                    %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s
                )
                RETURNING id
            """, (
                fields['order_number'],
                fields['user_id'],
                Json(fields['shipping_address']),
                fields.get('payment_method', 'razorpay'),
                fields['subtotal'],
                fields.get('shipping_cost', 0),
                fields.get('tax', 0),
                fields.get('discount', 0),
                fields['total'],
                fields.get('coupon_id'),
                fields.get('customer_notes'),
            ))
            order_id = cursor.fetchone()['id']

            for item in items:
                cursor.execute("""
                    INSERT INTO order_items (order_id, product_id, name, image, price, quantity, variant)
                    VALUES (%s, %s, %s, %s, %s, %s, %s)
                """, (
                    order_id, item.product_id, item.name, item.image,
                    item.price, item.quantity, Json(item.variant or {})
                ))

            conn.commit()

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

        return self.find_by_id(order_id)

    def update(self, order_id: int, fields: Dict[str, Any]) -> Optional[Order]:
        """Update post-placement columns; updated_at is always refreshed"""
        data = {k: v for k, v in fields.items() if k in WRITABLE_ORDER_FIELDS}
        if not data:
            return self.find_by_id(order_id)

        update_fields = [f"{column} = %s" for column in data.keys()]
        update_fields.append("updated_at = NOW()")

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                UPDATE orders
                SET {", ".join(update_fields)}
                WHERE id = %s
            """, list(data.values()) + [order_id])
            updated = cursor.rowcount > 0
            conn.commit()

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

        return self.find_by_id(order_id) if updated else None

    def user_has_product(self, order_id: int, user_id: int, product_id: int) -> Tuple[bool, bool]:
        """
        Returns:
            (order belongs to user, order contains product)
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(
                "SELECT id FROM orders WHERE id = %s AND user_id = %s",
                (order_id, user_id)
            )
            if not cursor.fetchone():
                return False, False

            cursor.execute(
                "SELECT 1 FROM order_items WHERE order_id = %s AND product_id = %s",
                (order_id, product_id)
            )
            return True, cursor.fetchone() is not None

        finally:
            cursor.close()
            conn.close()
