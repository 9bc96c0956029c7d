"""
Reviews: append-only, with a single admin reply field per review.
"""
import logging
from datetime import datetime, timezone
from typing import List, Optional

from database import REVIEWS, Store
from errors import NotFound
from schemas import Review, ReviewCreate

logger = logging.getLogger(__name__)


class ReviewBoard:

    def __init__(self, store: Store):
        self.store = store

    def list_reviews(self, product_id: Optional[int] = None,
                     user_id: Optional[int] = None) -> List[Review]:
        reviews = [Review.model_validate(r) for r in self.store.read(REVIEWS)]
        if product_id is not None:
            reviews = [r for r in reviews if r.product_id == product_id]
        if user_id is not None:
            reviews = [r for r in reviews if r.user_id == user_id]
        return reviews

    def submit_review(self, user_id: int, user_name: str, product_id: int,
                      text: str, rating: int) -> Review:
        # product id, rating range and repeat reviews are deliberately not checked
        with self.store.lock(REVIEWS):
            reviews = self.store.read(REVIEWS)
            review = Review(
                id=self.store.next_id(REVIEWS),
                user_id=user_id,
                user_name=user_name,
                product_id=product_id,
                text=text,
                rating=rating,
                created_at=datetime.now(timezone.utc),
                admin_reply=None,
            )
            reviews.append(review.to_record())
            self.store.write(REVIEWS, reviews)
        return review

    def submit(self, payload: ReviewCreate) -> Review:
        return self.submit_review(payload.user_id, payload.user_name, payload.product_id,
                                  payload.text, payload.rating)

    def attach_admin_reply(self, review_id: int, reply_text: str) -> Review:
        with self.store.lock(REVIEWS):
            reviews = self.store.read(REVIEWS)
            for index, record in enumerate(reviews):
                if record.get("id") == review_id:
                    review = Review.model_validate(record).model_copy(
                        update={"admin_reply": reply_text})
                    reviews[index] = review.to_record()
                    self.store.write(REVIEWS, reviews)
                    logger.info("Admin reply attached to review %s", review_id)
                    return review
        raise NotFound("Review not found")
