"""
Category Repository - Data Access Layer for Categories

Author: Water Junction
Date: 2025-06-02
"""
from typing import List, Optional, Dict, Any
from waterjunction.domain.catalog import Category
from waterjunction.core.database import get_db_connection_dict


CATEGORY_COLUMNS = """
    id, name, slug, description, image, is_active,
    parent_category_id, display_order, created_at, updated_at
"""

WRITABLE_CATEGORY_FIELDS = {
    'name', 'slug', 'description', 'image', 'is_active',
    'parent_category_id', 'display_order',
}


class CategoryRepository:
    """Repository for Category data access"""

    @staticmethod
    def _map_row_to_category(row: dict) -> Category:
        return Category(**row)

    def find_by_id(self, category_id: int) -> Optional[Category]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {CATEGORY_COLUMNS}
                FROM categories
                WHERE id = %s
            """, (category_id,))
            row = cursor.fetchone()
            if not row:
                return None
            return self._map_row_to_category(row)

        finally:
            cursor.close()
            conn.close()

    def find_by_name(self, name: str) -> Optional[Category]:
        """Case-insensitive lookup, used by the CSV import"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {CATEGORY_COLUMNS}
                FROM categories
                WHERE LOWER(name) = LOWER(%s)
            """, (name.strip(),))
            row = cursor.fetchone()
            if not row:
                return None
            return self._map_row_to_category(row)

        finally:
            cursor.close()
            conn.close()

    def slug_exists(self, slug: str, exclude_id: Optional[int] = None) -> bool:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(
                "SELECT 1 FROM categories WHERE slug = %s AND id IS DISTINCT FROM %s",
                (slug, exclude_id)
            )
            return cursor.fetchone() is not None

        finally:
            cursor.close()
            conn.close()

    def find_all(self, active_only: bool = True) -> List[Category]:
        """
        List categories ordered by display order, then name

        Args:
            active_only: Hide inactive categories (public listing)
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            where_clause = "is_active = TRUE" if active_only else "1=1"
            cursor.execute(f"""
                SELECT {CATEGORY_COLUMNS}
                FROM categories
                WHERE {where_clause}
                ORDER BY display_order, name
            """)
            return [self._map_row_to_category(row) for row in cursor.fetchall()]

        finally:
            cursor.close()
            conn.close()

    def create(self, fields: Dict[str, Any]) -> Category:
        data = {k: v for k, v in fields.items() if k in WRITABLE_CATEGORY_FIELDS}
        columns = ", ".join(data.keys())
        placeholders = ", ".join(["%s"] * len(data))

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                INSERT INTO categories ({columns})
                VALUES ({placeholders})
                RETURNING {CATEGORY_COLUMNS}
            """, list(data.values()))
            row = cursor.fetchone()
            conn.commit()
            return self._map_row_to_category(row)

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def update(self, category_id: int, fields: Dict[str, Any]) -> Optional[Category]:
        data = {k: v for k, v in fields.items() if k in WRITABLE_CATEGORY_FIELDS}
        if not data:
            return self.find_by_id(category_id)

        update_fields = [f"{column} = %s" for column in data.keys()]
        update_fields.append("updated_at = NOW()")

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                UPDATE categories
                SET {", ".join(update_fields)}
                WHERE id = %s
                RETURNING {CATEGORY_COLUMNS}
            """, list(data.values()) + [category_id])
            row = cursor.fetchone()
            conn.commit()
            if not row:
                return None
            return self._map_row_to_category(row)

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def delete(self, category_id: int) -> bool:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("DELETE FROM categories WHERE id = %s", (category_id,))
            deleted = cursor.rowcount > 0
            conn.commit()
            return deleted

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def count(self) -> int:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("SELECT COUNT(*) as total FROM categories")
            return cursor.fetchone()['total']

        finally:
            cursor.close()
            conn.close()
