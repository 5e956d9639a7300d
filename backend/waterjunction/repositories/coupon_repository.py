"""
Coupon Repository - Data Access Layer for Coupons

Author: Water Junction
Date: 2025-06-09
"""
from typing import List, Optional, Dict, Any
from psycopg2.extras import Json

from waterjunction.domain.coupon import Coupon
from waterjunction.core.database import get_db_connection_dict


COUPON_COLUMNS = """
    id, code, description, discount_type, value, min_order_value, max_discount,
    valid_from, valid_until, usage_limit, used_count, user_limit,
    applicable_category_ids, applicable_product_ids, is_active,
    created_at, updated_at
"""

WRITABLE_COUPON_FIELDS = {
    'code', 'description', 'discount_type', 'value', 'min_order_value', 'max_discount',
    'valid_from', 'valid_until', 'usage_limit', 'user_limit',
    'applicable_category_ids', 'applicable_product_ids', 'is_active',
}

JSONB_COUPON_FIELDS = {'applicable_category_ids', 'applicable_product_ids'}


def _adapt(fields: Dict[str, Any]) -> Dict[str, Any]:
    data = {}
    for key, value in fields.items():
        if key not in WRITABLE_COUPON_FIELDS:
            continue
        if key == 'code' and value:
            value = value.strip().upper()
        data[key] = Json(value) if key in JSONB_COUPON_FIELDS else value
    return data


class CouponRepository:
    """Repository for Coupon data access"""

    @staticmethod
    def _map_row_to_coupon(row: dict) -> Coupon:
        data = dict(row)
        data['applicable_category_ids'] = data.get('applicable_category_ids') or []
        data['applicable_product_ids'] = data.get('applicable_product_ids') or []
        return Coupon(**data)

    def find_by_id(self, coupon_id: int) -> Optional[Coupon]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"SELECT {COUPON_COLUMNS} FROM coupons WHERE id = %s", (coupon_id,))
            row = cursor.fetchone()
            if not row:
                return None
            return self._map_row_to_coupon(row)

        finally:
            cursor.close()
            conn.close()

    def find_by_code(self, code: str) -> Optional[Coupon]:
        """Codes are stored uppercase; lookup is normalized the same way"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(
                f"SELECT {COUPON_COLUMNS} FROM coupons WHERE code = %s",
                (code.strip().upper(),)
            )
            row = cursor.fetchone()
            if not row:
                return None
            return self._map_row_to_coupon(row)

        finally:
            cursor.close()
            conn.close()

    def find_all(self, currently_valid: bool = False) -> List[Coupon]:
        """
        List coupons, newest first

        Args:
            currently_valid: Only active coupons inside their validity
                window with redemptions left
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            where_clause = "1=1"
            if currently_valid:
                where_clause = """
                    is_active = TRUE
                    AND valid_from <= NOW() AND valid_until >= NOW()
                    AND (usage_limit IS NULL OR usage_limit = 0 OR used_count < usage_limit)
                """
            cursor.execute(f"""
                SELECT {COUPON_COLUMNS}
                FROM coupons
                WHERE {where_clause}
                ORDER BY created_at DESC
            """)
            return [self._map_row_to_coupon(row) for row in cursor.fetchall()]

        finally:
            cursor.close()
            conn.close()

    def create(self, fields: Dict[str, Any]) -> Coupon:
        data = _adapt(fields)
        columns = ", ".join(data.keys())
        placeholders = ", ".join(["%s"] * len(data))

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                INSERT INTO coupons ({columns})
                VALUES ({placeholders})
                RETURNING {COUPON_COLUMNS}
            """, list(data.values()))
            row = cursor.fetchone()
            conn.commit()
            return self._map_row_to_coupon(row)

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def update(self, coupon_id: int, fields: Dict[str, Any]) -> Optional[Coupon]:
        data = _adapt(fields)
        if not data:
            return self.find_by_id(coupon_id)

        update_fields = [f"{column} = %s" for column in data.keys()]
        update_fields.append("updated_at = NOW()")

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                UPDATE coupons
                SET {", ".join(update_fields)}
                WHERE id = %s
                RETURNING {COUPON_COLUMNS}
            """, list(data.values()) + [coupon_id])
            row = cursor.fetchone()
            conn.commit()
            if not row:
                return None
            return self._map_row_to_coupon(row)

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def delete(self, coupon_id: int) -> bool:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("DELETE FROM coupons WHERE id = %s", (coupon_id,))
            deleted = cursor.rowcount > 0
            conn.commit()
            return deleted

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def increment_usage(self, coupon_id: int) -> None:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(
                "UPDATE coupons SET used_count = used_count + 1, updated_at = NOW() WHERE id = %s",
                (coupon_id,)
            )
            conn.commit()

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()
