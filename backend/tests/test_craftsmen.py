from sqlalchemy import event

from app.models import UserRole
from app.models.records import Address, PriceRange

from conftest import auth_headers, make_user

CRAFTSMEN = "/api/v1/craftsmen"


def _craftsman(db, name, city, **profile):
    user = make_user(db, UserRole.CRAFTSMAN, name=name, **profile)
    user.address = Address(city=city)
    db.commit()
    return user


def _directory(db):
    return {
        "ali": _craftsman(
            db, "Ali", "Riyadh", profession="Plumber", rating=4.8, experience=10,
            reviews_count=30, price_range=PriceRange(min=100, max=300),
        ),
        "badr": _craftsman(
            db, "Badr", "Jeddah", profession="Electrician", rating=4.2, experience=3,
            reviews_count=5, price_range=PriceRange(min=50, max=150),
        ),
        "cyrus": _craftsman(
            db, "Cyrus", "Riyadh", profession="Carpenter", rating=3.5, experience=7,
            reviews_count=12, price_range=PriceRange(min=200, max=500),
            description="Custom kitchens",
        ),
    }


def _ids(res):
    return [c["user_id"] for c in res.json()["craftsmen"]]


def test_default_listing_sorted_by_rating(client, db):
    crew = _directory(db)
    make_user(db, UserRole.CRAFTSMAN, approved=False)
    make_user(db, UserRole.CRAFTSMAN, blocked=True)

    res = client.get(f"{CRAFTSMEN}/")

    assert res.status_code == 200
    assert _ids(res) == [crew["ali"].id, crew["badr"].id, crew["cyrus"].id]
    assert res.json()["pagination"] == {"total": 3, "page": 1, "limit": 10, "total_pages": 1}


def test_filters(client, db):
    crew = _directory(db)

    assert _ids(client.get(f"{CRAFTSMEN}/", params={"profession": "plumb"})) == [crew["ali"].id]
    assert _ids(client.get(f"{CRAFTSMEN}/", params={"search": "kitchen"})) == [crew["cyrus"].id]
    assert _ids(client.get(f"{CRAFTSMEN}/", params={"location": "riyadh"})) == [
        crew["ali"].id,
        crew["cyrus"].id,
    ]
    assert _ids(client.get(f"{CRAFTSMEN}/", params={"min_rating": 4})) == [
        crew["ali"].id,
        crew["badr"].id,
    ]
    assert _ids(
        client.get(f"{CRAFTSMEN}/", params={"min_price": 80, "max_price": 400})
    ) == [crew["ali"].id]


def test_sorting(client, db):
    crew = _directory(db)
    by_price = client.get(f"{CRAFTSMEN}/", params={"sort_by": "price", "sort_order": "asc"})
    assert _ids(by_price) == [crew["badr"].id, crew["ali"].id, crew["cyrus"].id]
    by_experience = client.get(f"{CRAFTSMEN}/", params={"sort_by": "experience"})
    assert _ids(by_experience) == [crew["ali"].id, crew["cyrus"].id, crew["badr"].id]
    assert client.get(f"{CRAFTSMEN}/", params={"sort_by": "name"}).status_code == 422


def test_pagination(client, db):
    crew = _directory(db)
    res = client.get(f"{CRAFTSMEN}/", params={"page": 2, "limit": 2})
    assert _ids(res) == [crew["cyrus"].id]
    assert res.json()["pagination"] == {"total": 3, "page": 2, "limit": 2, "total_pages": 2}
    assert client.get(f"{CRAFTSMEN}/", params={"page": 0}).status_code == 422


def test_column_sort_pages_in_the_database(client, db):
    crew = _directory(db)
    statements = []

    def capture(conn, cursor, statement, parameters, context, executemany):
        statements.append(statement)

    engine = db.get_bind()
    event.listen(engine, "before_cursor_execute", capture)
    try:
        res = client.get(
            f"{CRAFTSMEN}/",
            params={"sort_by": "reviews", "sort_order": "asc", "page": 2, "limit": 1},
        )
    finally:
        event.remove(engine, "before_cursor_execute", capture)

    assert _ids(res) == [crew["cyrus"].id]
    assert res.json()["pagination"] == {"total": 3, "page": 2, "limit": 1, "total_pages": 3}
    assert any(
        "LIMIT" in s and "reviews_count ASC" in s for s in statements if "craftsman_profiles" in s
    )


def test_json_filter_pages_after_loading(client, db):
    crew = _directory(db)
    res = client.get(
        f"{CRAFTSMEN}/",
        params={"location": "riyadh", "sort_by": "experience", "page": 2, "limit": 1},
    )
    assert _ids(res) == [crew["cyrus"].id]
    assert res.json()["pagination"]["total"] == 2


def test_read_single_craftsman(client, db):
    crew = _directory(db)
    pending = make_user(db, UserRole.CRAFTSMAN, approved=False)

    res = client.get(f"{CRAFTSMEN}/{crew['ali'].id}")
    assert res.status_code == 200
    body = res.json()
    assert body["profession"] == "Plumber"
    assert body["price_range"] == {"min": 100.0, "max": 300.0}
    assert body["address"]["city"] == "Riyadh"

    assert client.get(f"{CRAFTSMEN}/{pending.id}").status_code == 404
    assert client.get(f"{CRAFTSMEN}/99999").status_code == 404


def test_admin_approves_craftsman(client, db):
    admin = make_user(db, UserRole.ADMIN)
    pending = make_user(db, UserRole.CRAFTSMAN, approved=False)

    res = client.patch(
        f"{CRAFTSMEN}/{pending.id}/approval",
        json={"is_approved": True},
        headers=auth_headers(admin),
    )

    assert res.status_code == 200
    assert res.json()["is_approved"] is True
    assert client.get(f"{CRAFTSMEN}/{pending.id}").status_code == 200


def test_only_admin_can_approve(client, db):
    pending = make_user(db, UserRole.CRAFTSMAN, approved=False)
    res = client.patch(
        f"{CRAFTSMEN}/{pending.id}/approval",
        json={"is_approved": True},
        headers=auth_headers(pending),
    )
    assert res.status_code == 403
