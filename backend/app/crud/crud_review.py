from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload
from typing import List, Optional

from .. import models, schemas


class CRUDReview:
    def get_reviews(
        self,
        db: Session,
        *,
        craftsman_id: Optional[int] = None,
        booking_id: Optional[int] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[models.Review]:
        query = db.query(models.Review).options(joinedload(models.Review.customer))
        if craftsman_id is not None:
            query = query.filter(models.Review.craftsman_id == craftsman_id)
        if booking_id is not None:
            query = query.filter(models.Review.booking_id == booking_id)
        return (
            query.order_by(models.Review.created_at.desc(), models.Review.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def get_review_by_booking(
        self, db: Session, booking_id: int
    ) -> Optional[models.Review]:  # A booking has at most one review
        return db.query(models.Review).filter(models.Review.booking_id == booking_id).first()

    def create_review(
        self, db: Session, review: schemas.ReviewCreate, booking: models.Booking
    ) -> models.Review:
        """Store the review and refresh the craftsman's aggregate rating."""
        db_review = models.Review(
            booking_id=booking.id,
            customer_id=booking.customer_id,
            craftsman_id=booking.craftsman_id,
            rating=review.rating,
            comment=review.comment,
        )
        db.add(db_review)
        db.flush()
        self.recompute_rating(db, booking.craftsman_id)
        db.commit()
        db.refresh(db_review)
        return db_review

    def recompute_rating(self, db: Session, craftsman_id: int) -> None:
        avg, count = (
            db.query(func.avg(models.Review.rating), func.count(models.Review.id))
            .filter(models.Review.craftsman_id == craftsman_id)
            .one()
        )
        profile = db.get(models.CraftsmanProfile, craftsman_id)
        if profile is None:
            return
        profile.rating = round(float(avg or 0.0), 2)
        profile.reviews_count = int(count or 0)


review = CRUDReview()
