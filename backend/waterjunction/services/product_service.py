"""
Product Service
Catalog writes (slugs, derived discount, specifications) and the admin
CSV export/import

Author: Water Junction
Date: 2025-06-23
"""
import csv
import io
import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Tuple

from waterjunction.core.exceptions import BadRequestError, NotFoundError
from waterjunction.domain.catalog import slugify, unique_slug
from waterjunction.domain.product import Product, calculate_discount_percent, normalize_specifications
from waterjunction.repositories.category_repository import CategoryRepository
from waterjunction.repositories.product_repository import ProductRepository


logger = logging.getLogger(__name__)

CSV_COLUMNS = ["Name", "Category", "Price", "MRP", "Stock", "Description", "Images", "Is Active"]

TRUE_VALUES = {"true", "1", "yes", "y"}


def _parse_decimal(value: Optional[str], column: str, required: bool = False) -> Optional[Decimal]:
    value = (value or "").strip()
    if not value:
        if required:
            raise ValueError(f"{column} is required")
        return None
    try:
        amount = Decimal(value)
    except InvalidOperation:
        raise ValueError(f"{column} must be a number")
    if amount < 0:
        raise ValueError(f"{column} must be positive")
    return amount


def _parse_int(value: Optional[str], column: str) -> int:
    value = (value or "").strip()
    if not value:
        return 0
    try:
        number = int(value)
    except ValueError:
        raise ValueError(f"{column} must be a whole number")
    if number < 0:
        raise ValueError(f"{column} must be positive")
    return number


class ProductService:

    def __init__(self, product_repo: ProductRepository = None, category_repo: CategoryRepository = None):
        self.product_repo = product_repo or ProductRepository()
        self.category_repo = category_repo or CategoryRepository()

    def get_public(self, product_id: Optional[int] = None, slug: Optional[str] = None) -> Product:
        """
        Load an active product for the storefront and count the view

        Raises:
            NotFoundError: unknown or inactive product
        """
        if slug is not None:
            product = self.product_repo.find_by_slug(slug)
        else:
            product = self.product_repo.find_by_id(product_id)

        if not product or not product.is_active:
            raise NotFoundError("Product not found")

        self.product_repo.increment_views(product.id)
        product.views += 1
        product.questions = self.product_repo.list_questions(product.id)
        return product

    def _prepare(self, fields: Dict[str, Any], current: Optional[Product] = None) -> Dict[str, Any]:
        data = dict(fields)

        if 'specifications' in data:
            data['specifications'] = normalize_specifications(data['specifications'])

        price = data.get('price', current.price if current else None)
        mrp = data.get('mrp', current.mrp if current else None)
        data['discount_percent'] = calculate_discount_percent(price, mrp)
        return data

    def create(self, fields: Dict[str, Any]) -> Product:
        data = self._prepare(fields)
        base_slug = slugify(data.get('slug') or data['name'])
        if not base_slug:
            raise BadRequestError("Product name must contain letters or digits")
        data['slug'] = unique_slug(base_slug, self.product_repo.slug_exists)

        product = self.product_repo.create(data)
        logger.info(f"Created product {product.id} ({product.slug})")
        return product

    def update(self, product_id: int, fields: Dict[str, Any]) -> Product:
        """
        Partial update

        The slug follows a name change unless a slug is given explicitly.
        """
        current = self.product_repo.find_by_id(product_id)
        if not current:
            raise NotFoundError("Product not found")

        data = self._prepare(fields, current)

        if data.get('slug'):
            base_slug = slugify(data['slug'])
        elif data.get('name') and data['name'] != current.name:
            base_slug = slugify(data['name'])
        else:
            base_slug = None

        if base_slug:
            data['slug'] = unique_slug(
                base_slug,
                lambda slug: self.product_repo.slug_exists(slug, exclude_id=product_id)
            )

        return self.product_repo.update(product_id, data)

    def delete(self, product_id: int) -> None:
        if not self.product_repo.delete(product_id):
            raise NotFoundError("Product not found")

    # ------------------------------------------------------------------
    # CSV
    # ------------------------------------------------------------------

    def export_csv(self) -> str:
        """All products as CSV text, images joined with '|'"""
        output = io.StringIO()
        writer = csv.writer(output)
        writer.writerow(CSV_COLUMNS)

        for product in self.product_repo.find_all_for_export():
            writer.writerow([
                product.name,
                product.category_name or "",
                product.price,
                product.mrp if product.mrp is not None else "",
                product.stock,
                product.description or "",
                "|".join(product.images),
                "true" if product.is_active else "false",
            ])

        return output.getvalue()

    def import_csv(self, content: str) -> Tuple[int, List[Dict[str, Any]]]:
        """
        Create products from CSV rows in the export format

        A bad row is reported and skipped; the other rows still import.

        Returns:
            (created count, [{"row", "name", "error"}])
        """
        reader = csv.DictReader(io.StringIO(content))
        missing = [column for column in ("Name", "Price") if column not in (reader.fieldnames or [])]
        if missing:
            raise BadRequestError(f"CSV is missing columns: {', '.join(missing)}")

        created = 0
        errors: List[Dict[str, Any]] = []
        categories: Dict[str, Optional[int]] = {}

        # Header is line 1
        for line_number, row in enumerate(reader, start=2):
            name = (row.get("Name") or "").strip()
            try:
                if not name:
                    raise ValueError("Name is required")

                category_id = None
                category_name = (row.get("Category") or "").strip()
                if category_name:
                    key = category_name.lower()
                    if key not in categories:
                        category = self.category_repo.find_by_name(category_name)
                        categories[key] = category.id if category else None
                    category_id = categories[key]
                    if category_id is None:
                        raise ValueError(f"Category '{category_name}' not found")

                images = [url.strip() for url in (row.get("Images") or "").split("|") if url.strip()]
                is_active = (row.get("Is Active") or "true").strip().lower() in TRUE_VALUES

                self.create({
                    'name': name,
                    'category_id': category_id,
                    'price': _parse_decimal(row.get("Price"), "Price", required=True),
                    'mrp': _parse_decimal(row.get("MRP"), "MRP"),
                    'stock': _parse_int(row.get("Stock"), "Stock"),
                    'description': (row.get("Description") or "").strip() or None,
                    'images': images,
                    'is_active': is_active,
                })
                created += 1

            except (ValueError, BadRequestError) as e:
                message = e.message if isinstance(e, BadRequestError) else str(e)
                errors.append({"row": line_number, "name": name, "error": message})

        logger.info(f"Product import finished: {created} created, {len(errors)} errors")
        return created, errors
