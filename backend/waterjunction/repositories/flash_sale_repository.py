"""
Flash Sale Repository - Data Access Layer for Flash Sales

Author: Water Junction
Date: 2025-06-23
"""
from typing import List, Optional, Dict, Any

from waterjunction.domain.flash_sale import FlashSale, FlashSaleProduct
from waterjunction.core.database import get_db_connection_dict


FLASH_SALE_COLUMNS = """
    id, name, description, start_time, end_time, is_active,
    banner_image, created_at, updated_at
"""

WRITABLE_FLASH_SALE_FIELDS = {
    'name', 'description', 'start_time', 'end_time', 'is_active', 'banner_image',
}


class FlashSaleRepository:
    """Repository for FlashSale data access"""

    def _products_by_sale(self, cursor, sale_ids: List[int]) -> Dict[int, List[FlashSaleProduct]]:
        products: Dict[int, List[FlashSaleProduct]] = {sale_id: [] for sale_id in sale_ids}
        if not sale_ids:
            return products

        cursor.execute("""
            SELECT fp.flash_sale_id, fp.product_id, p.name AS product_name,
                   fp.sale_price, fp.stock, fp.sold
            FROM flash_sale_products fp
            LEFT JOIN products p ON p.id = fp.product_id
            WHERE fp.flash_sale_id = ANY(%s)
            ORDER BY fp.id
        """, (sale_ids,))
        for row in cursor.fetchall():
            data = dict(row)
            sale_id = data.pop('flash_sale_id')
            products[sale_id].append(FlashSaleProduct(**data))
        return products

    def _fetch(self, cursor, where: str, params: list) -> List[FlashSale]:
        cursor.execute(f"""
            SELECT {FLASH_SALE_COLUMNS}
            FROM flash_sales
            WHERE {where}
            ORDER BY start_time DESC
        """, params)
        rows = cursor.fetchall()
        products = self._products_by_sale(cursor, [row['id'] for row in rows])
        return [FlashSale(products=products[row['id']], **row) for row in rows]

    def find_by_id(self, sale_id: int) -> Optional[FlashSale]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            sales = self._fetch(cursor, "id = %s", [sale_id])
            return sales[0] if sales else None

        finally:
            cursor.close()
            conn.close()

    def find_all(self, currently_active: bool = False) -> List[FlashSale]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            where_clause = "1=1"
            if currently_active:
                where_clause = "is_active = TRUE AND start_time <= NOW() AND end_time >= NOW()"
            return self._fetch(cursor, where_clause, [])

        finally:
            cursor.close()
            conn.close()

    def _replace_products(self, cursor, sale_id: int, products: List[Dict[str, Any]]) -> None:
        cursor.execute("DELETE FROM flash_sale_products WHERE flash_sale_id = %s", (sale_id,))
        for product in products:
            cursor.execute("""
                INSERT INTO flash_sale_products (flash_sale_id, product_id, sale_price, stock, sold)
                VALUES (%s, %s, %s, %s, %s)
            """, (
                sale_id, product['product_id'], product['sale_price'],
                product.get('stock', 0), product.get('sold', 0)
            ))

    def create(self, fields: Dict[str, Any], products: List[Dict[str, Any]]) -> FlashSale:
        data = {k: v for k, v in fields.items() if k in WRITABLE_FLASH_SALE_FIELDS}
        columns = ", ".join(data.keys())
        placeholders = ", ".join(["%s"] * len(data))

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                INSERT INTO flash_sales ({columns})
                VALUES ({placeholders})
                RETURNING id
            """, list(data.values()))
            sale_id = cursor.fetchone()['id']
            self._replace_products(cursor, sale_id, products)
            conn.commit()

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

        return self.find_by_id(sale_id)

    def update(
        self,
        sale_id: int,
        fields: Dict[str, Any],
        products: Optional[List[Dict[str, Any]]] = None
    ) -> Optional[FlashSale]:
        """
        Update sale columns; when products is given the product list is replaced
        """
        data = {k: v for k, v in fields.items() if k in WRITABLE_FLASH_SALE_FIELDS}
        update_fields = [f"{column} = %s" for column in data.keys()]
        update_fields.append("updated_at = NOW()")

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                UPDATE flash_sales
                SET {", ".join(update_fields)}
                WHERE id = %s
            """, list(data.values()) + [sale_id])
            if cursor.rowcount == 0:
                conn.rollback()
                return None
            if products is not None:
                self._replace_products(cursor, sale_id, products)
            conn.commit()

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

        return self.find_by_id(sale_id)

    def delete(self, sale_id: int) -> bool:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("DELETE FROM flash_sales WHERE id = %s", (sale_id,))
            deleted = cursor.rowcount > 0
            conn.commit()
            return deleted

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()
