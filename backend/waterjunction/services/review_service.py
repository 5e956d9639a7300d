"""
Review Service
Verified-purchase reviews and the product rating aggregate

Author: Water Junction
Date: 2025-06-16
"""
import logging
from typing import Any, Dict, List, Optional

from waterjunction.core.exceptions import BadRequestError, NotFoundError
from waterjunction.domain.review import Review, summarize_ratings
from waterjunction.repositories.order_repository import OrderRepository
from waterjunction.repositories.product_repository import ProductRepository
from waterjunction.repositories.review_repository import ReviewRepository


logger = logging.getLogger(__name__)


class ReviewService:

    def __init__(
        self,
        review_repo: ReviewRepository = None,
        order_repo: OrderRepository = None,
        product_repo: ProductRepository = None
    ):
        self.review_repo = review_repo or ReviewRepository()
        self.order_repo = order_repo or OrderRepository()
        self.product_repo = product_repo or ProductRepository()

    def create(
        self,
        user_id: int,
        product_id: int,
        order_id: int,
        rating: int,
        title: Optional[str] = None,
        comment: Optional[str] = None,
        images: Optional[List[str]] = None
    ) -> Review:
        """
        Submit a review for a product the user bought

        The review is stored unapproved and does not count towards the
        product rating until an admin approves it.
        """
        owns_order, contains_product = self.order_repo.user_has_product(order_id, user_id, product_id)
        if not owns_order:
            raise NotFoundError("Order not found")
        if not contains_product:
            raise BadRequestError("Product not in this order")
        if self.review_repo.exists_for_order(user_id, product_id, order_id):
            raise BadRequestError("Review already exists for this order")

        fields: Dict[str, Any] = {
            'user_id': user_id,
            'product_id': product_id,
            'order_id': order_id,
            'rating': rating,
            'title': title,
            'comment': comment,
            'images': images or [],
        }
        return self.review_repo.create(fields)

    def refresh_product_rating(self, product_id: int) -> None:
        average, count = summarize_ratings(self.review_repo.approved_ratings(product_id))
        self.product_repo.update_ratings(product_id, average, count)
        logger.info(f"Product {product_id} rating now {average} from {count} reviews")

    def approve(self, review_id: int) -> Review:
        review = self.review_repo.approve(review_id)
        if not review:
            raise NotFoundError("Review not found")

        self.refresh_product_rating(review.product_id)
        return review

    def reject(self, review_id: int) -> None:
        """Rejected reviews are deleted outright"""
        review = self.review_repo.find_by_id(review_id)
        if not review:
            raise NotFoundError("Review not found")

        self.review_repo.delete(review_id)
        self.refresh_product_rating(review.product_id)

    def report(self, review_id: int, user_id: int) -> bool:
        """Returns False when this user already reported the review"""
        if not self.review_repo.find_by_id(review_id):
            raise NotFoundError("Review not found")
        return self.review_repo.add_report(review_id, user_id)

    def mark_helpful(self, review_id: int, user_id: int) -> Review:
        if not self.review_repo.find_by_id(review_id):
            raise NotFoundError("Review not found")
        self.review_repo.add_helpful_vote(review_id, user_id)
        return self.review_repo.find_by_id(review_id)
