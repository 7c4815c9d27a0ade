import logging

from app import crud
from app.core.errors import (
    ConflictError,
    DomainError,
    ForbiddenError,
    NotFoundError,
    UnauthenticatedError,
)
from app.utils.errors import error_detail

from conftest import auth_headers


def test_route_errors_are_logged_and_enveloped(client, caplog):
    caplog.set_level(logging.WARNING, logger="app.main")
    response = client.get("/api/v1/craftsmen/4040")
    assert response.status_code == 404
    assert response.json() == {
        "detail": {"message": "Craftsman not found", "field_errors": {"user_id": "not_found"}}
    }
    assert any(
        "NotFoundError at GET /api/v1/craftsmen/4040" in r.getMessage() for r in caplog.records
    )


def test_missing_booking_reads_the_same_on_every_route(client, parties):
    headers = auth_headers(parties["customer"])
    read = client.get("/api/v1/bookings/4040", headers=headers)
    update = client.patch(
        "/api/v1/bookings/4040", json={"status": "CANCELLED"}, headers=headers
    )
    delete = client.delete("/api/v1/bookings/4040", headers=headers)
    pay = client.post(
        "/api/v1/payments/",
        json={"booking_id": 4040, "amount": "10", "payment_method_id": "pm"},
        headers=headers,
    )
    for response in (read, update, delete, pay):
        assert response.status_code == 404
        assert response.json()["detail"] == {
            "message": "Booking not found",
            "field_errors": {"booking_id": "not_found"},
        }


def test_wrong_role_is_forbidden_envelope(client, parties):
    response = client.post(
        "/api/v1/reviews/",
        json={"booking_id": 1, "rating": 5},
        headers=auth_headers(parties["craftsman"]),
    )
    assert response.status_code == 403
    assert response.json()["detail"] == {
        "message": "Not authorized",
        "field_errors": {"role": "forbidden"},
    }


def test_error_detail_defaults():
    assert error_detail("Oops") == {"message": "Oops", "field_errors": {}}


def test_domain_error_defaults():
    assert NotFoundError().status_code == 404
    assert ForbiddenError().status_code == 403
    assert ConflictError().status_code == 409
    err = DomainError()
    assert err.status_code == 400
    assert err.message == "Request could not be processed"
    assert err.field_errors == {}
    assert UnauthenticatedError().headers == {"WWW-Authenticate": "Bearer"}


def test_unhandled_error_becomes_500(client, monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError("kaboom")

    monkeypatch.setattr(crud.craftsman, "search", boom)
    response = client.get("/api/v1/craftsmen/")
    assert response.status_code == 500
    assert response.json() == {
        "detail": {"message": "Internal Server Error", "field_errors": {}}
    }


def test_validation_errors_keep_pydantic_detail(client):
    response = client.get("/api/v1/craftsmen/", params={"limit": 0})
    assert response.status_code == 422
    assert any(err["loc"][-1] == "limit" for err in response.json()["detail"])
