"""
Contact Repository - Data Access Layer for contact form messages

Author: Water Junction
Date: 2025-06-02
"""
from typing import List, Optional

from waterjunction.domain.contact import Contact
from waterjunction.core.database import get_db_connection_dict


CONTACT_COLUMNS = """
    id, name, email, phone, message, status,
    replied_at, reply_message, created_at, updated_at
"""


class ContactRepository:
    """Repository for Contact data access"""

    @staticmethod
    def _map_row_to_contact(row: dict) -> Contact:
        return Contact(**row)

    def create(self, name: str, email: str, message: str, phone: Optional[str] = None) -> Contact:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                INSERT INTO contacts (name, email, phone, message)
                VALUES (%s, %s, %s, %s)
                RETURNING {CONTACT_COLUMNS}
            """, (name, email, phone, message))
            row = cursor.fetchone()
            conn.commit()
            return self._map_row_to_contact(row)

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def find_all(self) -> List[Contact]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {CONTACT_COLUMNS}
                FROM contacts
                ORDER BY created_at DESC
            """)
            return [self._map_row_to_contact(row) for row in cursor.fetchall()]

        finally:
            cursor.close()
            conn.close()

    def update_status(
        self,
        contact_id: int,
        status: str,
        reply_message: Optional[str] = None
    ) -> Optional[Contact]:
        """Set status; 'replied' also stamps replied_at"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                UPDATE contacts
                SET status = %s,
                    reply_message = COALESCE(%s, reply_message),
                    replied_at = CASE WHEN %s = 'replied' THEN NOW() ELSE replied_at END,
                    updated_at = NOW()
                WHERE id = %s
                RETURNING {CONTACT_COLUMNS}
            """, (status, reply_message, status, contact_id))
            row = cursor.fetchone()
            conn.commit()
            if not row:
                return None
            return self._map_row_to_contact(row)

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()
