"""
User Repository - Data Access Layer for Users and Addresses

Author: Water Junction
Date: 2025-06-02
"""
from typing import List, Optional, Tuple, Dict, Any
from waterjunction.domain.user import User, Address
from waterjunction.core.database import get_db_connection_dict, like_pattern


USER_COLUMNS = """
    id, name, email, phone, password_hash, role, auth_provider,
    google_id, facebook_id, profile_photo,
    is_email_verified, is_phone_verified, is_blocked,
    otp, otp_expires_at, reset_password_token, reset_password_expires_at,
    refresh_token, created_at, updated_at
"""

# Columns callers may set through create()/update()
WRITABLE_USER_FIELDS = {
    'name', 'email', 'phone', 'password_hash', 'role', 'auth_provider',
    'google_id', 'facebook_id', 'profile_photo',
    'is_email_verified', 'is_phone_verified', 'is_blocked',
    'otp', 'otp_expires_at', 'reset_password_token', 'reset_password_expires_at',
    'refresh_token',
}

WRITABLE_ADDRESS_FIELDS = {
    'name', 'phone', 'address_line1', 'address_line2',
    'city', 'state', 'pincode', 'country', 'is_default',
}

ADDRESS_COLUMNS = """
    id, user_id, name, phone, address_line1, address_line2,
    city, state, pincode, country, is_default
"""

PROVIDER_ID_COLUMNS = {'google': 'google_id', 'facebook': 'facebook_id'}


class UserRepository:
    """
    Repository for User data access

    All SQL queries for users and their saved addresses are centralized here.
    """

    @staticmethod
    def _map_row_to_user(row: dict) -> User:
        return User(**row)

    @staticmethod
    def _map_row_to_address(row: dict) -> Address:
        return Address(**row)

    def _find_one(self, where: str, params: tuple) -> Optional[User]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"SELECT {USER_COLUMNS} FROM users WHERE {where} LIMIT 1", params)
            row = cursor.fetchone()
            if not row:
                return None
            return self._map_row_to_user(row)

        finally:
            cursor.close()
            conn.close()

    def find_by_id(self, user_id: int) -> Optional[User]:
        return self._find_one("id = %s", (user_id,))

    def find_by_email(self, email: str) -> Optional[User]:
        return self._find_one("email = %s", (email.lower().strip(),))

    def find_by_phone(self, phone: str) -> Optional[User]:
        return self._find_one("phone = %s", (phone,))

    def find_by_provider_id(self, provider: str, provider_id: str) -> Optional[User]:
        """Find a user by Google or Facebook account id"""
        column = PROVIDER_ID_COLUMNS[provider]
        return self._find_one(f"{column} = %s", (provider_id,))

    def find_by_reset_token(self, token_hash: str) -> Optional[User]:
        """Find a user whose reset token matches and has not expired"""
        return self._find_one(
            "reset_password_token = %s AND reset_password_expires_at > NOW()",
            (token_hash,)
        )

    def find_with_addresses(self, user_id: int) -> Optional[User]:
        user = self.find_by_id(user_id)
        if user:
            user.addresses = self.list_addresses(user_id)
        return user

    def create(self, fields: Dict[str, Any]) -> User:
        """
        Insert a user

        Args:
            fields: Column values, only WRITABLE_USER_FIELDS are used

        Returns:
            Created User
        """
        data = {k: v for k, v in fields.items() if k in WRITABLE_USER_FIELDS}
        columns = ", ".join(data.keys())
        placeholders = ", ".join(["%s"] * len(data))

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                INSERT INTO users ({columns})
                VALUES ({placeholders})
                RETURNING {USER_COLUMNS}
            """, list(data.values()))
            row = cursor.fetchone()
            conn.commit()
            return self._map_row_to_user(row)

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def update(self, user_id: int, fields: Dict[str, Any]) -> Optional[User]:
        """
        Update the given columns; updated_at is always refreshed

        Returns:
            Updated User or None if it doesn't exist
        """
        data = {k: v for k, v in fields.items() if k in WRITABLE_USER_FIELDS}
        if not data:
            return self.find_by_id(user_id)

        update_fields = [f"{column} = %s" for column in data.keys()]
        update_fields.append("updated_at = NOW()")
        params = list(data.values()) + [user_id]

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                UPDATE users
                SET {", ".join(update_fields)}
                WHERE id = %s
                RETURNING {USER_COLUMNS}
            """, params)
            row = cursor.fetchone()
            conn.commit()
            if not row:
                return None
            return self._map_row_to_user(row)

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def find_all(
        self,
        search: Optional[str] = None,
        limit: int = 20,
        offset: int = 0
    ) -> Tuple[List[User], int]:
        """
        List users for the admin panel, newest first

        Args:
            search: Case-insensitive match on name, email or phone

        Returns:
            Tuple of (list of users, total count)
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            conditions = []
            params = []

            if search:
                conditions.append(
                    "(name ILIKE %s ESCAPE '\\' OR email ILIKE %s ESCAPE '\\' OR phone ILIKE %s ESCAPE '\\')"
                )
                search_term = like_pattern(search)
                params.extend([search_term, search_term, search_term])

            where_clause = " AND ".join(conditions) if conditions else "1=1"

            cursor.execute(f"""
                SELECT COUNT(*) as total
                FROM users
                WHERE {where_clause}
            """, params)
            total = cursor.fetchone()['total']

            cursor.execute(f"""
                SELECT {USER_COLUMNS}
                FROM users
                WHERE {where_clause}
                ORDER BY created_at DESC
                LIMIT %s OFFSET %s
            """, params + [limit, offset])

            users = [self._map_row_to_user(row) for row in cursor.fetchall()]
            return users, total

        finally:
            cursor.close()
            conn.close()

    # ------------------------------------------------------------------
    # Addresses
    # ------------------------------------------------------------------

    def list_addresses(self, user_id: int) -> List[Address]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {ADDRESS_COLUMNS}
                FROM addresses
                WHERE user_id = %s
                ORDER BY id
            """, (user_id,))
            return [self._map_row_to_address(row) for row in cursor.fetchall()]

        finally:
            cursor.close()
            conn.close()

    def add_address(self, user_id: int, fields: Dict[str, Any]) -> Address:
        """
        Add an address. It becomes the default when requested or when it
        is the user's first address; any other default is cleared.
        """
        data = {k: v for k, v in fields.items() if k in WRITABLE_ADDRESS_FIELDS}

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("SELECT COUNT(*) as total FROM addresses WHERE user_id = %s", (user_id,))
            is_first = cursor.fetchone()['total'] == 0
            data['is_default'] = bool(data.get('is_default')) or is_first

            if data['is_default']:
                cursor.execute(
                    "UPDATE addresses SET is_default = FALSE WHERE user_id = %s",
                    (user_id,)
                )

            columns = ", ".join(['user_id'] + list(data.keys()))
            placeholders = ", ".join(["%s"] * (len(data) + 1))
            cursor.execute(f"""
                INSERT INTO addresses ({columns})
                VALUES ({placeholders})
                RETURNING {ADDRESS_COLUMNS}
            """, [user_id] + list(data.values()))
            row = cursor.fetchone()
            conn.commit()
            return self._map_row_to_address(row)

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def update_address(self, user_id: int, address_id: int, fields: Dict[str, Any]) -> Optional[Address]:
        """
        Partially update one of the user's addresses

        Returns:
            Updated Address or None if the user has no such address
        """
        data = {k: v for k, v in fields.items() if k in WRITABLE_ADDRESS_FIELDS}

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(
                "SELECT id FROM addresses WHERE id = %s AND user_id = %s",
                (address_id, user_id)
            )
            if not cursor.fetchone():
                return None

            if data.get('is_default'):
                cursor.execute(
                    "UPDATE addresses SET is_default = FALSE WHERE user_id = %s AND id <> %s",
                    (user_id, address_id)
                )

            if data:
                update_fields = [f"{column} = %s" for column in data.keys()]
                cursor.execute(f"""
                    UPDATE addresses
                    SET {", ".join(update_fields)}
                    WHERE id = %s AND user_id = %s
                    RETURNING {ADDRESS_COLUMNS}
                """, list(data.values()) + [address_id, user_id])
            else:
                cursor.execute(f"""
                    SELECT {ADDRESS_COLUMNS} FROM addresses WHERE id = %s
                """, (address_id,))

            row = cursor.fetchone()
            conn.commit()
            return self._map_row_to_address(row)

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def delete_address(self, user_id: int, address_id: int) -> bool:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(
                "DELETE FROM addresses WHERE id = %s AND user_id = %s",
                (address_id, user_id)
            )
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
            cursor.execute("SELECT COUNT(*) as total FROM users")
            return cursor.fetchone()['total']

        finally:
            cursor.close()
            conn.close()
