import random
import re
from datetime import datetime
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from app import crud
from app.main import app
from app.models import (
    Booking,
    BookingStatus,
    Notification,
    NotificationType,
    Payment,
    PaymentProvider,
    PaymentStatus,
    UserRole,
)
from app.models.base import BaseModel
from app.services.payment_gateway import ChargeResult, SimulatedGateway, get_payment_gateway

from conftest import auth_headers, make_booking, make_user

PAYMENTS = "/api/v1/payments"


def _pay(client, customer, booking, amount="200.00", **extra):
    body = {"booking_id": booking.id, "amount": amount, "payment_method_id": "pm_card_visa"}
    body.update(extra)
    return client.post(f"{PAYMENTS}/", json=body, headers=auth_headers(customer))


def test_gateway_transaction_ids():
    gateway = SimulatedGateway(failure_rate=0, delay_seconds=0, rng=random.Random(1))
    result = gateway.charge(
        amount=Decimal("10"), currency="SAR", provider="LOCAL", payment_method_id="pm", booking_id=1
    )
    assert re.fullmatch(r"txn_\d+_[a-z0-9]{9}", result.transaction_id)
    assert result.gateway_response["status"] == "COMPLETED"
    assert re.fullmatch(r"failed_\d+_[a-z0-9]{9}", gateway.failed_reference())


def test_successful_payment_confirms_pending_booking(client, db, channel, parties):
    customer, craftsman = parties["customer"], parties["craftsman"]
    booking = make_booking(db, customer, craftsman)

    res = _pay(client, customer, booking)

    assert res.status_code == 201, res.text
    body = res.json()
    assert body["message"] == "Payment completed successfully"
    payment = body["payment"]
    assert payment["status"] == "COMPLETED"
    assert payment["currency"] == "SAR"
    assert payment["transaction_id"].startswith("txn_")
    assert payment["metadata"]["gateway_response"]["success"] is True

    db.expire_all()
    assert db.get(Booking, booking.id).status == BookingStatus.CONFIRMED

    customer_note = db.query(Notification).filter_by(user_id=customer.id).one()
    assert customer_note.type == NotificationType.PAYMENT_CONFIRMED
    assert customer_note.message == "Payment of 200.00 SAR for your booking has been confirmed"
    craftsman_note = db.query(Notification).filter_by(user_id=craftsman.id).one()
    assert craftsman_note.type == NotificationType.PAYMENT_RECEIVED
    assert craftsman_note.title == "New payment"
    assert len(channel.for_user(craftsman.id)) == 1


def test_paying_confirmed_booking_keeps_status(client, db, parties):
    booking = make_booking(
        db, parties["customer"], parties["craftsman"], status=BookingStatus.CONFIRMED
    )
    assert _pay(client, parties["customer"], booking).status_code == 201
    db.expire_all()
    assert db.get(Booking, booking.id).status == BookingStatus.CONFIRMED


def test_booking_cannot_be_paid_twice(client, db, parties):
    booking = make_booking(db, parties["customer"], parties["craftsman"])
    assert _pay(client, parties["customer"], booking).status_code == 201

    again = _pay(client, parties["customer"], booking)

    assert again.status_code == 400
    assert again.json()["detail"]["field_errors"] == {"booking_id": "already_paid"}


def test_declined_charge_is_recorded(client, db, channel, parties):
    booking = make_booking(db, parties["customer"], parties["craftsman"])
    app.dependency_overrides[get_payment_gateway] = lambda: SimulatedGateway(
        failure_rate=1.0, delay_seconds=0
    )

    res = _pay(client, parties["customer"], booking)

    assert res.status_code == 400
    assert res.json()["detail"]["message"] == "Payment failed, please try again"
    db.expire_all()
    failed = db.query(Payment).filter_by(booking_id=booking.id).one()
    assert failed.status == PaymentStatus.FAILED
    assert failed.transaction_id.startswith("failed_")
    assert failed.payment_metadata.error == "Payment failed, please try again"
    assert db.get(Booking, booking.id).status == BookingStatus.PENDING
    assert channel.events == []


def test_amount_must_be_positive(client, db, parties):
    booking = make_booking(db, parties["customer"], parties["craftsman"])
    res = _pay(client, parties["customer"], booking, amount="0")
    assert res.status_code == 400
    assert res.json()["detail"]["field_errors"] == {"amount": "must_be_positive"}


def test_only_booking_customer_can_pay(client, db, parties):
    booking = make_booking(db, parties["customer"], parties["craftsman"])
    assert _pay(client, parties["outsider"], booking).status_code == 403
    assert _pay(client, parties["craftsman"], booking).status_code == 403


def test_completed_booking_cannot_be_paid(client, db, parties):
    booking = make_booking(
        db, parties["customer"], parties["craftsman"], status=BookingStatus.COMPLETED
    )
    res = _pay(client, parties["customer"], booking)
    assert res.status_code == 400
    assert res.json()["detail"]["field_errors"] == {"status": "COMPLETED"}


def test_unknown_booking(client, parties):
    res = client.post(
        f"{PAYMENTS}/",
        json={"booking_id": 4040, "amount": "10", "payment_method_id": "pm"},
        headers=auth_headers(parties["customer"]),
    )
    assert res.status_code == 404


def test_list_payments_is_scoped(client, db, parties):
    customer, craftsman, outsider = parties["customer"], parties["craftsman"], parties["outsider"]
    booking = make_booking(db, customer, craftsman)
    other = make_booking(db, outsider, craftsman)
    _pay(client, customer, booking)
    _pay(client, outsider, other, currency="usd")

    mine = client.get(f"{PAYMENTS}/", headers=auth_headers(customer)).json()
    assert [p["booking_id"] for p in mine] == [booking.id]

    earned = client.get(f"{PAYMENTS}/", headers=auth_headers(craftsman)).json()
    assert {p["booking_id"] for p in earned} == {booking.id, other.id}
    assert {p["currency"] for p in earned} == {"SAR", "USD"}

    filtered = client.get(
        f"{PAYMENTS}/", params={"booking_id": other.id}, headers=auth_headers(parties["admin"])
    ).json()
    assert [p["booking_id"] for p in filtered] == [other.id]


def _charge(transaction_id):
    return ChargeResult(
        transaction_id=transaction_id,
        amount=Decimal("200.00"),
        currency="SAR",
        provider="LOCAL",
        processed_at=datetime.utcnow(),
    )


def test_concurrent_charges_store_one_completed_payment(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'pay-race.db'}", connect_args={"check_same_thread": False}
    )
    BaseModel.metadata.create_all(engine)
    Session = sessionmaker(bind=engine, expire_on_commit=False)

    setup = Session()
    customer = make_user(setup, UserRole.CUSTOMER)
    craftsman = make_user(setup, UserRole.CRAFTSMAN)
    booking = make_booking(setup, customer, craftsman, status=BookingStatus.CONFIRMED)
    setup.close()

    first, second = Session(), Session()
    # both requests pass the "not paid yet" check before either stores a row
    first_booking = first.get(Booking, booking.id)
    second_booking = second.get(Booking, booking.id)
    assert crud.payment.get_completed_for_booking(first, booking.id) is None
    assert crud.payment.get_completed_for_booking(second, booking.id) is None

    crud.payment.record_success(first, first_booking, _charge("txn_first"), "pm_card_visa")
    with pytest.raises(IntegrityError):
        crud.payment.record_success(second, second_booking, _charge("txn_second"), "pm_card_visa")
    second.rollback()

    check = Session()
    completed = (
        check.query(Payment)
        .filter_by(booking_id=booking.id, status=PaymentStatus.COMPLETED)
        .all()
    )
    assert [p.transaction_id for p in completed] == ["txn_first"]
    for session in (first, second, check):
        session.close()
    engine.dispose()


def test_failed_attempts_do_not_block_a_completed_payment(db, parties):
    booking = make_booking(db, parties["customer"], parties["craftsman"])
    for reference in ("failed_1", "failed_2"):
        crud.payment.record_failure(
            db,
            booking,
            amount=Decimal("200.00"),
            currency="SAR",
            provider=PaymentProvider.LOCAL,
            transaction_id=reference,
            payment_method_id="pm_card_visa",
            error="declined",
        )

    payment = crud.payment.record_success(db, booking, _charge("txn_ok"), "pm_card_visa")

    assert payment.status == PaymentStatus.COMPLETED
    assert db.query(Payment).filter_by(booking_id=booking.id).count() == 3


def test_duplicate_payment_lost_race_is_conflict(client, db, channel, parties, monkeypatch):
    booking = make_booking(db, parties["customer"], parties["craftsman"])
    assert _pay(client, parties["customer"], booking).status_code == 201
    # a racing request that saw no completed payment yet
    monkeypatch.setattr(crud.payment, "get_completed_for_booking", lambda db, booking_id: None)

    res = _pay(client, parties["customer"], booking)

    assert res.status_code == 409
    assert res.json()["detail"] == {
        "message": "This booking has already been paid",
        "field_errors": {"booking_id": "already_paid"},
    }
    db.expire_all()
    assert db.query(Payment).filter_by(booking_id=booking.id).count() == 1
    assert db.get(Booking, booking.id).status == BookingStatus.CONFIRMED
    assert len(channel.for_user(parties["craftsman"].id)) == 1
