"""
Review Repository - Data Access Layer for Reviews

Author: Water Junction
Date: 2025-06-16
"""
from typing import List, Optional, Dict, Any
from psycopg2.extras import Json

from waterjunction.domain.review import Review
from waterjunction.core.database import get_db_connection_dict


REVIEW_SELECT = """
    SELECT
        r.id, r.user_id, r.product_id, r.order_id, r.rating, r.title, r.comment,
        r.images, r.is_approved, r.is_reported, r.helpful_count,
        r.created_at, r.updated_at,
        u.name AS user_name, u.profile_photo AS user_photo
    FROM reviews r
    LEFT JOIN users u ON u.id = r.user_id
"""


class ReviewRepository:
    """Repository for Review data access"""

    @staticmethod
    def _map_row_to_review(row: dict) -> Review:
        data = dict(row)
        data['images'] = data.get('images') or []
        return Review(**data)

    def find_by_id(self, review_id: int) -> Optional[Review]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"{REVIEW_SELECT} WHERE r.id = %s", (review_id,))
            row = cursor.fetchone()
            if not row:
                return None
            return self._map_row_to_review(row)

        finally:
            cursor.close()
            conn.close()

    def find_approved_by_product(self, product_id: int) -> List[Review]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                {REVIEW_SELECT}
                WHERE r.product_id = %s AND r.is_approved = TRUE
                ORDER BY r.created_at DESC
            """, (product_id,))
            return [self._map_row_to_review(row) for row in cursor.fetchall()]

        finally:
            cursor.close()
            conn.close()

    def find_pending(self) -> List[Review]:
        """Unapproved reviews with product name and order number for moderation"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT
                    r.id, r.user_id, r.product_id, r.order_id, r.rating, r.title, r.comment,
                    r.images, r.is_approved, r.is_reported, r.helpful_count,
                    r.created_at, r.updated_at,
                    u.name AS user_name, u.profile_photo AS user_photo,
                    p.name AS product_name, o.order_number
                FROM reviews r
                LEFT JOIN users u ON u.id = r.user_id
                LEFT JOIN products p ON p.id = r.product_id
                LEFT JOIN orders o ON o.id = r.order_id
                WHERE r.is_approved = FALSE
                ORDER BY r.created_at DESC
            """)
            return [self._map_row_to_review(row) for row in cursor.fetchall()]

        finally:
            cursor.close()
            conn.close()

    def exists_for_order(self, user_id: int, product_id: int, order_id: int) -> bool:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT 1 FROM reviews
                WHERE user_id = %s AND product_id = %s AND order_id = %s
            """, (user_id, product_id, order_id))
            return cursor.fetchone() is not None

        finally:
            cursor.close()
            conn.close()

    def create(self, fields: Dict[str, Any]) -> Review:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                INSERT INTO reviews (user_id, product_id, order_id, rating, title, comment, images)
                VALUES (%s, %s, %s, %s, %s, %s, %s)
                RETURNING id
            """, (
                fields['user_id'], fields['product_id'], fields['order_id'],
                fields['rating'], fields.get('title'), fields.get('comment'),
                Json(fields.get('images') or []),
            ))
            review_id = cursor.fetchone()['id']
            conn.commit()

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

        return self.find_by_id(review_id)

    def approve(self, review_id: int) -> Optional[Review]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                UPDATE reviews SET is_approved = TRUE, updated_at = NOW()
                WHERE id = %s
            """, (review_id,))
            updated = cursor.rowcount > 0
            conn.commit()

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

        return self.find_by_id(review_id) if updated else None

    def delete(self, review_id: int) -> bool:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("DELETE FROM reviews WHERE id = %s", (review_id,))
            deleted = cursor.rowcount > 0
            conn.commit()
            return deleted

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def approved_ratings(self, product_id: int) -> List[int]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT rating FROM reviews
                WHERE product_id = %s AND is_approved = TRUE
            """, (product_id,))
            return [row['rating'] for row in cursor.fetchall()]

        finally:
            cursor.close()
            conn.close()

    def add_report(self, review_id: int, user_id: int) -> bool:
        """
        Record a report by this user

        Returns:
            False when the user had already reported the review
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                INSERT INTO review_reports (review_id, user_id)
                VALUES (%s, %s)
                ON CONFLICT DO NOTHING
            """, (review_id, user_id))
            added = cursor.rowcount > 0
            if added:
                cursor.execute("""
                    UPDATE reviews SET is_reported = TRUE, updated_at = NOW()
                    WHERE id = %s
                """, (review_id,))
            conn.commit()
            return added

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def add_helpful_vote(self, review_id: int, user_id: int) -> bool:
        """
        Record a helpful vote by this user and bump helpful_count

        Returns:
            False when the user had already voted
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                INSERT INTO review_helpful_votes (review_id, user_id)
                VALUES (%s, %s)
                ON CONFLICT DO NOTHING
            """, (review_id, user_id))
            added = cursor.rowcount > 0
            if added:
                cursor.execute("""
                    UPDATE reviews SET helpful_count = helpful_count + 1
                    WHERE id = %s
                """, (review_id,))
            conn.commit()
            return added

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()
