from app.models import BookingStatus, CraftsmanProfile, Notification, NotificationType

from conftest import auth_headers, make_booking

REVIEWS = "/api/v1/reviews"


def _review(client, customer, booking, rating=5, comment="Great work"):
    return client.post(
        f"{REVIEWS}/",
        json={"booking_id": booking.id, "rating": rating, "comment": comment},
        headers=auth_headers(customer),
    )


def test_reviews_update_craftsman_rating(client, db, channel, parties):
    customer, craftsman, outsider = parties["customer"], parties["craftsman"], parties["outsider"]
    first = make_booking(db, customer, craftsman, status=BookingStatus.COMPLETED)
    second = make_booking(db, outsider, craftsman, status=BookingStatus.COMPLETED)

    res = _review(client, customer, first, rating=5)
    assert res.status_code == 201, res.text
    assert res.json()["customer"]["id"] == customer.id
    assert _review(client, outsider, second, rating=4).status_code == 201

    db.expire_all()
    profile = db.get(CraftsmanProfile, craftsman.id)
    assert profile.rating == 4.5
    assert profile.reviews_count == 2

    notes = (
        db.query(Notification)
        .filter_by(user_id=craftsman.id, type=NotificationType.REVIEW_RECEIVED)
        .order_by(Notification.id)
        .all()
    )
    assert [n.message for n in notes] == [
        f"Customer {customer.email} rated you 5 stars",
        f"Customer {outsider.email} rated you 4 stars",
    ]
    assert [p["title"] for p in channel.for_user(craftsman.id)] == ["New review", "New review"]


def test_review_requires_completed_booking(client, db, parties):
    booking = make_booking(
        db, parties["customer"], parties["craftsman"], status=BookingStatus.CONFIRMED
    )
    res = _review(client, parties["customer"], booking)
    assert res.status_code == 400
    assert res.json()["detail"]["field_errors"] == {"status": "CONFIRMED"}


def test_one_review_per_booking(client, db, parties):
    booking = make_booking(
        db, parties["customer"], parties["craftsman"], status=BookingStatus.COMPLETED
    )
    assert _review(client, parties["customer"], booking).status_code == 201
    res = _review(client, parties["customer"], booking, rating=1)
    assert res.status_code == 400
    assert res.json()["detail"]["field_errors"] == {"booking_id": "already_reviewed"}


def test_only_booking_customer_can_review(client, db, parties):
    booking = make_booking(
        db, parties["customer"], parties["craftsman"], status=BookingStatus.COMPLETED
    )
    assert _review(client, parties["outsider"], booking).status_code == 403
    assert _review(client, parties["craftsman"], booking).status_code == 403


def test_rating_out_of_range(client, db, parties):
    booking = make_booking(
        db, parties["customer"], parties["craftsman"], status=BookingStatus.COMPLETED
    )
    assert _review(client, parties["customer"], booking, rating=6).status_code == 422


def test_reviews_are_public(client, db, parties):
    customer, craftsman = parties["customer"], parties["craftsman"]
    booking = make_booking(db, customer, craftsman, status=BookingStatus.COMPLETED)
    _review(client, customer, booking, rating=3, comment="Fine")

    res = client.get(f"{REVIEWS}/", params={"craftsman_id": craftsman.id})

    assert res.status_code == 200
    (review,) = res.json()
    assert review["rating"] == 3
    assert review["comment"] == "Fine"
    assert review["booking_id"] == booking.id
    assert client.get(f"{REVIEWS}/", params={"craftsman_id": customer.id}).json() == []
