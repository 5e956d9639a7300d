"""
Product Repository - Data Access Layer for Products

Handles all database queries for products and returns Product domain models.

Author: Water Junction
Date: 2025-06-02
"""
from typing import List, Optional, Tuple, Dict, Any
from psycopg2.extras import Json

from waterjunction.domain.product import Product, ProductQuestion
from waterjunction.core.database import get_db_connection_dict, like_pattern


PRODUCT_SELECT = """
    SELECT
        p.id, p.name, p.slug, p.category_id,
        c.name AS category_name, c.slug AS category_slug,
        p.description, p.images, p.video,
        p.price, p.mrp, p.discount_percent, p.stock,
        p.ratings_average, p.ratings_count,
        p.specifications, p.variants, p.related_product_ids,
        p.is_active, p.is_featured, p.views, p.sales,
        p.created_at, p.updated_at
    FROM products p
    LEFT JOIN categories c ON c.id = p.category_id
"""

WRITABLE_PRODUCT_FIELDS = {
    'name', 'slug', 'category_id', 'description', 'images', 'video',
    'price', 'mrp', 'discount_percent', 'stock',
    'specifications', 'variants', 'related_product_ids',
    'is_active', 'is_featured',
}

JSONB_PRODUCT_FIELDS = {'images', 'specifications', 'variants', 'related_product_ids'}

# Public sort keys -> ORDER BY clause
SORT_OPTIONS = {
    'price-asc': 'p.price ASC',
    'price-desc': 'p.price DESC',
    'rating-desc': 'p.ratings_average DESC',
    'newest': 'p.created_at DESC',
    'name-asc': 'p.name ASC',
}
DEFAULT_SORT = 'newest'


def _adapt(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Keep writable columns and wrap JSONB values"""
    data = {}
    for key, value in fields.items():
        if key not in WRITABLE_PRODUCT_FIELDS:
            continue
        data[key] = Json(value) if key in JSONB_PRODUCT_FIELDS else value
    return data


class ProductRepository:
    """
    Repository for Product data access

    All SQL queries for products are centralized here.
    Returns Product domain models, not raw dictionaries.
    """

    @staticmethod
    def _map_row_to_product(row: dict) -> Product:
        return Product(
            id=row['id'],
            name=row['name'],
            slug=row['slug'],
            category_id=row.get('category_id'),
            category_name=row.get('category_name'),
            category_slug=row.get('category_slug'),
            description=row.get('description'),
            images=row.get('images') or [],
            video=row.get('video'),
            price=row['price'],
            mrp=row.get('mrp'),
            discount_percent=row.get('discount_percent') or 0,
            stock=row.get('stock') or 0,
            ratings_average=row.get('ratings_average') or 0,
            ratings_count=row.get('ratings_count') or 0,
            specifications=row.get('specifications') or {},
            variants=row.get('variants') or [],
            related_product_ids=row.get('related_product_ids') or [],
            is_active=row['is_active'],
            is_featured=row.get('is_featured', False),
            views=row.get('views') or 0,
            sales=row.get('sales') or 0,
            created_at=row.get('created_at'),
            updated_at=row.get('updated_at')
        )

    @staticmethod
    def _map_row_to_question(row: dict) -> ProductQuestion:
        return ProductQuestion(**row)

    def _find_one(self, where: str, params: tuple) -> Optional[Product]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"{PRODUCT_SELECT} WHERE {where}", params)
            row = cursor.fetchone()
            if not row:
                return None
            return self._map_row_to_product(row)

        finally:
            cursor.close()
            conn.close()

    def find_by_id(self, product_id: int) -> Optional[Product]:
        """
        Find product by ID

        Returns:
            Product or None if not found
        """
        return self._find_one("p.id = %s", (product_id,))

    def find_by_slug(self, slug: str) -> Optional[Product]:
        return self._find_one("p.slug = %s", (slug,))

    def find_all(
        self,
        category: Optional[str] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        search: Optional[str] = None,
        sort: str = DEFAULT_SORT,
        active_only: bool = True,
        limit: int = 12,
        offset: int = 0
    ) -> Tuple[List[Product], int]:
        """
        Find products with filters

        Args:
            category: Category ID or slug
            min_price / max_price: Inclusive price bounds
            search: Case-insensitive match on name or description
            sort: One of SORT_OPTIONS, unknown values fall back to newest
            active_only: Hide inactive products (storefront)
            limit: Maximum results to return
            offset: Number of results to skip

        Returns:
            Tuple of (list of products, total count)
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            conditions = []
            params = []

            if active_only:
                conditions.append("p.is_active = TRUE")

            if category:
                if str(category).isdigit():
                    conditions.append("p.category_id = %s")
                    params.append(int(category))
                else:
                    conditions.append("c.slug = %s")
                    params.append(category)

            if min_price is not None:
                conditions.append("p.price >= %s")
                params.append(min_price)

            if max_price is not None:
                conditions.append("p.price <= %s")
                params.append(max_price)

            if search:
                conditions.append("(p.name ILIKE %s ESCAPE '\\' OR p.description ILIKE %s ESCAPE '\\')")
                search_term = like_pattern(search)
                params.extend([search_term, search_term])

            where_clause = " AND ".join(conditions) if conditions else "1=1"
            order_by = SORT_OPTIONS.get(sort, SORT_OPTIONS[DEFAULT_SORT])

            cursor.execute(f"""
                SELECT COUNT(*) as total
                FROM products p
                LEFT JOIN categories c ON c.id = p.category_id
                WHERE {where_clause}
            """, params)
            total = cursor.fetchone()['total']

            cursor.execute(f"""
                {PRODUCT_SELECT}
                WHERE {where_clause}
                ORDER BY {order_by}, p.id DESC
                LIMIT %s OFFSET %s
            """, params + [limit, offset])

            products = [self._map_row_to_product(row) for row in cursor.fetchall()]
            return products, total

        finally:
            cursor.close()
            conn.close()

    def find_all_for_export(self) -> List[Product]:
        """Every product, active or not, ordered by name"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"{PRODUCT_SELECT} ORDER BY p.name")
            return [self._map_row_to_product(row) for row in cursor.fetchall()]

        finally:
            cursor.close()
            conn.close()

    def slug_exists(self, slug: str, exclude_id: Optional[int] = None) -> bool:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            if exclude_id is not None:
                cursor.execute(
                    "SELECT 1 FROM products WHERE slug = %s AND id <> %s",
                    (slug, exclude_id)
                )
            else:
                cursor.execute("SELECT 1 FROM products WHERE slug = %s", (slug,))
            return cursor.fetchone() is not None

        finally:
            cursor.close()
            conn.close()

    def create(self, fields: Dict[str, Any]) -> Product:
        data = _adapt(fields)
        columns = ", ".join(data.keys())
        placeholders = ", ".join(["%s"] * len(data))

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                INSERT INTO products ({columns})
                VALUES ({placeholders})
                RETURNING id
            """, list(data.values()))
            product_id = cursor.fetchone()['id']
            conn.commit()

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

        return self.find_by_id(product_id)

    def update(self, product_id: int, fields: Dict[str, Any]) -> Optional[Product]:
        data = _adapt(fields)
        if not data:
            return self.find_by_id(product_id)

        update_fields = [f"{column} = %s" for column in data.keys()]
        update_fields.append("updated_at = NOW()")

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                UPDATE products
                SET {", ".join(update_fields)}
                WHERE id = %s
            """, list(data.values()) + [product_id])
            updated = cursor.rowcount > 0
            conn.commit()

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

        return self.find_by_id(product_id) if updated else None

    def delete(self, product_id: int) -> bool:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("DELETE FROM products WHERE id = %s", (product_id,))
            deleted = cursor.rowcount > 0
            conn.commit()
            return deleted

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def increment_views(self, product_id: int) -> None:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("UPDATE products SET views = views + 1 WHERE id = %s", (product_id,))
            conn.commit()

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def adjust_inventory(self, quantities: Dict[int, int], sold: bool = True) -> None:
        """
        Move stock for a set of products in one transaction

        Args:
            quantities: {product_id: quantity}
            sold: True takes stock and adds sales (payment captured),
                  False puts stock back and removes sales (paid order cancelled)
        """
        if not quantities:
            return

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            for product_id, quantity in quantities.items():
                if sold:
                    cursor.execute("""
                        UPDATE products
                        SET stock = GREATEST(stock - %s, 0), sales = sales + %s, updated_at = NOW()
                        WHERE id = %s
                    """, (quantity, quantity, product_id))
                else:
                    cursor.execute("""
                        UPDATE products
                        SET stock = stock + %s, sales = GREATEST(sales - %s, 0), updated_at = NOW()
                        WHERE id = %s
                    """, (quantity, quantity, product_id))
            conn.commit()

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def update_ratings(self, product_id: int, average, count: int) -> None:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                UPDATE products
                SET ratings_average = %s, ratings_count = %s, updated_at = NOW()
                WHERE id = %s
            """, (average, count, product_id))
            conn.commit()

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
            cursor.execute("SELECT COUNT(*) as total FROM products")
            return cursor.fetchone()['total']

        finally:
            cursor.close()
            conn.close()

    # ------------------------------------------------------------------
    # Questions
    # ------------------------------------------------------------------

    def list_questions(self, product_id: int) -> List[ProductQuestion]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT id, product_id, question, answer, asked_by, answered_by,
                       answered_at, is_approved, created_at
                FROM product_questions
                WHERE product_id = %s
                ORDER BY created_at DESC
            """, (product_id,))
            return [self._map_row_to_question(row) for row in cursor.fetchall()]

        finally:
            cursor.close()
            conn.close()

    def add_question(self, product_id: int, question: str, asked_by: int) -> ProductQuestion:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                INSERT INTO product_questions (product_id, question, asked_by)
                VALUES (%s, %s, %s)
                RETURNING id, product_id, question, answer, asked_by, answered_by,
                          answered_at, is_approved, created_at
            """, (product_id, question, asked_by))
            row = cursor.fetchone()
            conn.commit()
            return self._map_row_to_question(row)

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def answer_question(
        self,
        product_id: int,
        question_id: int,
        answer: str,
        answered_by: int
    ) -> Optional[ProductQuestion]:
        """Store an admin answer and publish the question"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                UPDATE product_questions
                SET answer = %s, answered_by = %s, answered_at = NOW(), is_approved = TRUE
                WHERE id = %s AND product_id = %s
                RETURNING id, product_id, question, answer, asked_by, answered_by,
                          answered_at, is_approved, created_at
            """, (answer, answered_by, question_id, product_id))
            row = cursor.fetchone()
            conn.commit()
            if not row:
                return None
            return self._map_row_to_question(row)

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()
