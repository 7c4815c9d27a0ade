def test_security_headers(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.headers.get("X-Frame-Options") == "SAMEORIGIN"
    assert response.headers.get("X-Content-Type-Options") == "nosniff"
    assert response.headers.get("Referrer-Policy") == "origin-when-cross-origin"
    assert (
        response.headers.get("Strict-Transport-Security")
        == "max-age=63072000; includeSubDomains; preload"
    )
    assert response.headers.get("Permissions-Policy") == "camera=(), microphone=(), geolocation=()"
    assert response.headers.get("X-Response-Time", "").endswith("ms")


def test_headers_on_error_responses(client):
    response = client.get("/api/v1/bookings/")
    assert response.status_code == 401
    assert response.headers.get("X-Content-Type-Options") == "nosniff"


def test_healthz(client):
    response = client.get("/healthz")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"
