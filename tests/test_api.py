import asyncio
from datetime import date, datetime

import httpx
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from config.database import Base, get_db
from modules.cart.models import CartLine
from modules.cart.service import cart_service
from modules.order.models import ScheduledPickup
from modules.order.service import order_service
from modules.user.service import user_service

FIXED_NOW = datetime(2025, 4, 14, 10, 0)


@pytest.fixture
def fixed_clock(monkeypatch):
    monkeypatch.setattr("modules.order.service.now_local", lambda: FIXED_NOW)
    monkeypatch.setattr("modules.order.routes.now_local", lambda: FIXED_NOW)
    return FIXED_NOW


def login(client, user_id):
    client.cookies.set("user_id", user_id)
    return client


def add(client, item_id, limit=1):
    return client.post("/api/cart/items", json={"id": item_id, "name": item_id.title(), "limit": limit})


def test_health(client):
    assert client.get("/health").json()["status"] == "ok"


def test_cart_requires_student(client):
    assert client.get("/api/cart").status_code == 401
    login(client, "1")
    assert client.get("/api/cart").status_code == 401


def test_cart_caps_at_five_without_error(client):
    login(client, "4")
    for i in range(5):
        r = add(client, f"item-{i}")
        assert r.status_code == 200
        assert r.json()["added"] is True

    r = add(client, "item-5")
    assert r.status_code == 200
    body = r.json()
    assert body["added"] is False
    assert body["count"] == 5
    assert body["limit_reached"] is True

    notes = client.get("/api/notifications").json()
    assert notes["unread"] == 1
    assert "limit of 5 items" in notes["items"][0]["title"]


def test_update_and_remove_items(client):
    login(client, "4")
    add(client, "rice", limit=3)
    r = client.put("/api/cart/items/rice", json={"quantity": 7})
    assert r.json()["count"] == 3

    r = client.delete("/api/cart/items/rice")
    assert r.json()["items"] == []

    add(client, "rice", limit=3)
    assert client.delete("/api/cart").json()["count"] == 0


def test_checkout_then_weekly_limit_then_admin_reset(client, fixed_clock):
    login(client, "4")
    assert client.get("/api/orders/eligibility").json() == {"allowed": True, "next_eligible_date": None}

    add(client, "rice")
    r = client.post("/api/orders/checkout", json={"pickup_date": "2025-04-14", "pickup_time": "2:00 PM"})
    assert r.status_code == 200
    pickup = r.json()
    assert pickup["status"] == "in-progress"
    assert pickup["remaining"] == "270 minutes"
    assert client.get("/api/cart").json()["count"] == 0

    add(client, "beans")
    r = client.post("/api/orders/checkout", json={"pickup_date": "2025-04-14", "pickup_time": "15:00"})
    assert r.status_code == 409
    assert r.json()["next_eligible_date"] == "2025-04-21"

    login(client, "1")
    r = client.post("/api/admin/users/4/reset-limit")
    assert r.status_code == 200
    assert r.json()["user"]["orderLimitReset"] is True

    login(client, "4")
    r = client.post("/api/orders/checkout", json={"pickup_date": "2025-04-14", "pickup_time": "15:00"})
    assert r.status_code == 200

    requests = client.get("/api/orders/requests").json()
    assert len(requests) == 2


def test_checkout_errors_are_json(client, fixed_clock):
    login(client, "4")
    r = client.post("/api/orders/checkout", json={"pickup_date": "2025-04-14", "pickup_time": "14:00"})
    assert r.status_code == 400
    assert r.json()["detail"] == "Your cart is empty."


def test_time_slots(client, fixed_clock):
    login(client, "4")
    body = client.get("/api/orders/time-slots").json()
    assert body["pickup_date"] == "2025-04-14"
    assert body["slots"][0] == {"value": "12:00", "label": "12:00 PM"}


def test_student_cancels_own_request_only(client, fixed_clock):
    login(client, "4")
    add(client, "rice")
    pickup_id = client.post(
        "/api/orders/checkout", json={"pickup_date": "2025-04-14", "pickup_time": "14:00"},
    ).json()["id"]

    login(client, "2")
    assert client.post(f"/api/orders/requests/{pickup_id}/cancel").status_code == 404

    login(client, "4")
    r = client.post(f"/api/orders/requests/{pickup_id}/cancel")
    assert r.json()["status"] == "cancelled"
    assert client.post(f"/api/orders/requests/{pickup_id}/cancel").status_code == 409


def test_admin_endpoints_require_admin(client):
    login(client, "4")
    assert client.get("/api/admin/users").status_code == 403
    assert client.post("/api/admin/users/2/reset-limit").status_code == 403


def test_admin_status_change_and_reset_rules(client, fixed_clock):
    login(client, "4")
    add(client, "rice")
    pickup_id = client.post(
        "/api/orders/checkout", json={"pickup_date": "2025-04-14", "pickup_time": "14:00"},
    ).json()["id"]

    login(client, "1")
    r = client.post(f"/api/admin/requests/{pickup_id}/status", json={"status": "successful"})
    assert r.json()["status"] == "successful"

    r = client.post("/api/admin/users/1/reset-limit")
    assert r.status_code == 400
    assert r.json()["detail"] == "Only student order limits can be reset."

    users = client.get("/api/admin/users", params={"user_type": "student"}).json()
    assert {u["id"] for u in users} == {"2", "3", "4"}


@pytest.fixture
def file_sessions(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'cupboard.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


def test_sweep_job_and_checkout_keep_both_writes(file_sessions, fixed_clock, monkeypatch):
    import main

    assert asyncio.iscoroutinefunction(main._sweep_expired_pickups)
    monkeypatch.setattr(main, "SessionLocal", file_sessions)

    def override_get_db():
        session = file_sessions()
        try:
            yield session
        finally:
            session.close()

    db = file_sessions()
    user_service.list_users(db)
    overdue = ScheduledPickup(
        id="overdue", order_number="CC-100000", user_id="2",
        scheduled_date=date(2025, 4, 13), scheduled_time="14:00",
    )
    order_service._save_pickups(db, [overdue])
    cart_service.add_item(db, "4", CartLine(id="rice", name="Rice"))
    db.commit()

    async def checkout_while_sweeping():
        transport = httpx.ASGITransport(app=main.app)
        async with httpx.AsyncClient(
            transport=transport, base_url="http://testserver", cookies={"user_id": "4"},
        ) as ac:
            response, _ = await asyncio.gather(
                ac.post("/api/orders/checkout", json={"pickup_date": "2025-04-14", "pickup_time": "14:00"}),
                main._sweep_expired_pickups(),
            )
        return response

    main.app.dependency_overrides[get_db] = override_get_db
    try:
        response = asyncio.run(checkout_while_sweeping())
    finally:
        main.app.dependency_overrides.clear()

    assert response.status_code == 200
    db.expire_all()
    stored = {p.id: p.status for p in order_service.list_pickups(db)}
    assert stored == {"overdue": "cancelled", response.json()["id"]: "in-progress"}
    db.close()
