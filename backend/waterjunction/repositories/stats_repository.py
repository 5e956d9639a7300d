"""
Stats Repository - Aggregate queries for the admin dashboard

Author: Water Junction
Date: 2025-06-23
"""
from typing import Dict, Any
from datetime import datetime

from waterjunction.core.database import get_db_connection_dict_with_retry


class StatsRepository:
    """
    Read-only aggregates. Revenue only counts orders with payment_status = 'paid'.
    """

    def get_dashboard_data(
        self,
        month_start: datetime,
        day_start: datetime,
        chart_start: datetime
    ) -> Dict[str, Any]:
        """
        Collect every dashboard figure in one connection

        Args:
            month_start: First instant of the current month
            day_start: First instant of today
            chart_start: First instant of the oldest charted month

        Returns:
            Dict with counts, revenue, order_status_counts, top_products,
            recent_orders, monthly_revenue and monthly_orders rows
        """
        conn = get_db_connection_dict_with_retry()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT
                    (SELECT COUNT(*) FROM users) AS users,
                    (SELECT COUNT(*) FROM products) AS products,
                    (SELECT COUNT(*) FROM orders) AS orders,
                    (SELECT COUNT(*) FROM categories) AS categories
            """)
            counts = cursor.fetchone()

            cursor.execute("""
                SELECT
                    COALESCE(SUM(total), 0) AS total,
                    COALESCE(SUM(total) FILTER (WHERE created_at >= %s), 0) AS monthly,
                    COALESCE(SUM(total) FILTER (WHERE created_at >= %s), 0) AS today
                FROM orders
                WHERE payment_status = 'paid'
            """, (month_start, day_start))
            revenue = cursor.fetchone()

            cursor.execute("""
                SELECT status, COUNT(*) AS total
                FROM orders
                GROUP BY status
            """)
            status_counts = {row['status']: row['total'] for row in cursor.fetchall()}

            cursor.execute("""
                SELECT id, name, images->>0 AS image, price, sales
                FROM products
                ORDER BY sales DESC, id
                LIMIT 10
            """)
            top_products = cursor.fetchall()

            cursor.execute("""
                SELECT o.id, o.order_number, o.status, o.payment_status, o.total,
                       o.created_at, u.name AS customer_name, u.email AS customer_email
                FROM orders o
                LEFT JOIN users u ON u.id = o.user_id
                ORDER BY o.created_at DESC
                LIMIT 10
            """)
            recent_orders = cursor.fetchall()

            cursor.execute("""
                SELECT
                    EXTRACT(YEAR FROM created_at)::int AS year,
                    EXTRACT(MONTH FROM created_at)::int AS month,
                    COALESCE(SUM(total), 0) AS revenue
                FROM orders
                WHERE payment_status = 'paid' AND created_at >= %s
                GROUP BY 1, 2
            """, (chart_start,))
            monthly_revenue = cursor.fetchall()

            cursor.execute("""
                SELECT
                    EXTRACT(YEAR FROM created_at)::int AS year,
                    EXTRACT(MONTH FROM created_at)::int AS month,
                    COUNT(*) AS orders
                FROM orders
                WHERE created_at >= %s
                GROUP BY 1, 2
            """, (chart_start,))
            monthly_orders = cursor.fetchall()

            return {
                'counts': dict(counts),
                'revenue': dict(revenue),
                'order_status_counts': status_counts,
                'top_products': [dict(row) for row in top_products],
                'recent_orders': [dict(row) for row in recent_orders],
                'monthly_revenue': [dict(row) for row in monthly_revenue],
                'monthly_orders': [dict(row) for row in monthly_orders],
            }

        finally:
            cursor.close()
            conn.close()
