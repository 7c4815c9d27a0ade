from datetime import datetime
from sqlalchemy.orm import Session
from typing import List, Optional

from .. import models
from ..models.records import PaymentMetadata
from ..services.payment_gateway import ChargeResult


class CRUDPayment:
    def get_payments(
        self,
        db: Session,
        *,
        customer_id: Optional[int] = None,
        craftsman_id: Optional[int] = None,
        booking_id: Optional[int] = None,
    ) -> List[models.Payment]:
        query = db.query(models.Payment)
        if customer_id is not None:
            query = query.filter(models.Payment.customer_id == customer_id)
        if craftsman_id is not None:
            query = query.filter(models.Payment.craftsman_id == craftsman_id)
        if booking_id is not None:
            query = query.filter(models.Payment.booking_id == booking_id)
        return query.order_by(models.Payment.created_at.desc(), models.Payment.id.desc()).all()

    def get_completed_for_booking(
        self, db: Session, booking_id: int
    ) -> Optional[models.Payment]:
        return (
            db.query(models.Payment)
            .filter(
                models.Payment.booking_id == booking_id,
                models.Payment.status == models.PaymentStatus.COMPLETED,
            )
            .first()
        )

    def record_success(
        self,
        db: Session,
        booking: models.Booking,
        charge: ChargeResult,
        payment_method_id: str,
    ) -> models.Payment:
        """Store a completed payment; a PENDING booking becomes CONFIRMED."""
        db_payment = models.Payment(
            booking_id=booking.id,
            customer_id=booking.customer_id,
            craftsman_id=booking.craftsman_id,
            amount=charge.amount,
            currency=charge.currency,
            provider=models.PaymentProvider(charge.provider),
            transaction_id=charge.transaction_id,
            status=models.PaymentStatus.COMPLETED,
            payment_method_id=payment_method_id,
            payment_metadata=PaymentMetadata(
                processed_at=charge.processed_at,
                gateway_response=charge.gateway_response,
            ),
        )
        db.add(db_payment)
        if booking.status == models.BookingStatus.PENDING:
            booking.status = models.BookingStatus.CONFIRMED
        db.commit()
        db.refresh(db_payment)
        return db_payment

    def record_failure(
        self,
        db: Session,
        booking: models.Booking,
        *,
        amount,
        currency: str,
        provider: models.PaymentProvider,
        transaction_id: str,
        payment_method_id: str,
        error: str,
    ) -> models.Payment:
        """Keep a FAILED attempt for audit."""
        db_payment = models.Payment(
            booking_id=booking.id,
            customer_id=booking.customer_id,
            craftsman_id=booking.craftsman_id,
            amount=amount,
            currency=currency,
            provider=provider,
            transaction_id=transaction_id,
            status=models.PaymentStatus.FAILED,
            payment_method_id=payment_method_id,
            payment_metadata=PaymentMetadata(error=error, failed_at=datetime.utcnow()),
        )
        db.add(db_payment)
        db.commit()
        db.refresh(db_payment)
        return db_payment


payment = CRUDPayment()
