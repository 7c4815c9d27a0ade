from sqlalchemy.orm import Session, joinedload
from typing import List, Optional

from .. import models, schemas
from ..models.booking_status import BookingStatus


class CRUDBooking:
    def get_booking(self, db: Session, booking_id: int) -> Optional[models.Booking]:
        return db.query(models.Booking).filter(models.Booking.id == booking_id).first()

    def get_bookings(
        self,
        db: Session,
        *,
        customer_id: Optional[int] = None,
        craftsman_id: Optional[int] = None,
        status: Optional[BookingStatus] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[models.Booking]:
        """Bookings newest first; unset filters are not applied."""
        query = db.query(models.Booking).options(
            joinedload(models.Booking.customer),
            joinedload(models.Booking.craftsman).joinedload(models.User.craftsman_profile),
            joinedload(models.Booking.service),
            joinedload(models.Booking.review),
        )
        if customer_id is not None:
            query = query.filter(models.Booking.customer_id == customer_id)
        if craftsman_id is not None:
            query = query.filter(models.Booking.craftsman_id == craftsman_id)
        if status is not None:
            query = query.filter(models.Booking.status == status)
        return (
            query.order_by(models.Booking.created_at.desc(), models.Booking.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def create_booking(
        self, db: Session, booking_in: schemas.BookingCreate, customer_id: int
    ) -> models.Booking:
        db_booking = models.Booking(
            customer_id=customer_id,
            craftsman_id=booking_in.craftsman_id,
            service_id=booking_in.service_id,
            service_type=booking_in.service_type,
            description=booking_in.description,
            scheduled_date=booking_in.scheduled_date,
            price=booking_in.price,
            location=booking_in.location,
            status=BookingStatus.PENDING,  # New bookings always wait for the craftsman
        )
        db.add(db_booking)
        db.commit()
        db.refresh(db_booking)
        return db_booking


booking = CRUDBooking()
