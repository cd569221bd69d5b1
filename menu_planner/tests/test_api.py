"""
API endpoint tests for menus, items, selections, ratings and admin views.
Uses in-memory SQLite + dependency-overridden FastAPI test client.
"""
from datetime import date, datetime, timedelta, timezone

from sqlalchemy import select, func

from menu_planner.models import Menu, MenuItem, Selection, MenuRating, User, UserRole
from menu_planner.api.auth import get_password_hash, create_access_token
from menu_planner.utils.helpers import as_utc


def _ids(seed_data, day):
    """(main course id, second main course id) for a day"""
    items = seed_data["items"][day]
    return items[0].id, items[2].id


# ===================== HEALTH / ROOT =====================


async def test_root(unauth_client):
    r = await unauth_client.get("/")
    assert r.status_code == 200
    assert r.json()["status"] == "running"


async def test_health(unauth_client):
    r = await unauth_client.get("/health")
    assert r.status_code == 200
    assert r.json()["database"] == "ok"


# ===================== MENUS =====================


async def test_list_menus(client, seed_data):
    r = await client.get("/api/menus/")
    assert r.status_code == 200
    assert [m["id"] for m in r.json()] == [seed_data["menu"].id]


async def test_create_menu_requires_admin(client):
    r = await client.post("/api/menus/", json={
        "week_start": "2030-01-07",
        "deadline": "2030-01-04T17:00:00",
    })
    assert r.status_code == 403


async def test_create_menu_deactivates_others(admin_client, db_session, seed_data):
    r = await admin_client.post("/api/menus/", json={
        "week_start": "2030-01-07",
        "deadline": "2030-01-04T17:00:00",
    })
    assert r.status_code == 201
    new_id = r.json()["id"]
    assert r.json()["is_active"] is True

    r = await admin_client.get("/api/menus/", params={"active": "true"})
    assert [m["id"] for m in r.json()] == [new_id]


async def test_create_menu_missing_fields(admin_client):
    r = await admin_client.post("/api/menus/", json={"week_start": "2030-01-07"})
    assert r.status_code == 400


async def test_create_menu_week_must_start_on_monday(admin_client):
    r = await admin_client.post("/api/menus/", json={
        "week_start": "2030-01-09",
        "deadline": "2030-01-04T17:00:00",
    })
    assert r.status_code == 400
    assert r.json()["detail"] == "Week start must be a Monday."


async def _menu_with_offset_deadline(admin_client, seed_data, deadline):
    """Create an active menu a week after the seeded one, with one Monday item"""
    week_start = seed_data["menu"].week_start + timedelta(days=7)
    r = await admin_client.post("/api/menus/", json={
        "week_start": week_start.isoformat(),
        "deadline": deadline.isoformat(),
    })
    assert r.status_code == 201
    menu = r.json()

    r = await admin_client.post("/api/menu-items/", json={
        "menu_id": menu["id"],
        "items": [{"name": "Kenkey", "day": "Monday"}],
    })
    assert r.status_code == 201
    return menu, r.json()[0]["id"]


async def test_offset_deadline_in_future_accepts_selections(admin_client, client, seed_data):
    deadline = datetime.now(timezone(timedelta(hours=-5))) + timedelta(hours=2)
    menu, item_id = await _menu_with_offset_deadline(admin_client, seed_data, deadline)

    stored = datetime.fromisoformat(menu["deadline"])
    assert as_utc(stored) == deadline.astimezone(timezone.utc)

    r = await client.post("/api/selections/", json={"selections": {"Monday": item_id}, "menuId": menu["id"]})
    assert r.status_code == 201


async def test_offset_deadline_in_past_rejects_selections(admin_client, client, seed_data):
    deadline = datetime.now(timezone(timedelta(hours=5))) - timedelta(hours=1)
    menu, item_id = await _menu_with_offset_deadline(admin_client, seed_data, deadline)

    r = await client.post("/api/selections/", json={"selections": {"Monday": item_id}, "menuId": menu["id"]})
    assert r.status_code == 400
    assert r.json()["detail"] == "Selection deadline has passed."


async def test_toggle_menu_active(admin_client, seed_data):
    menu_id = seed_data["menu"].id
    r = await admin_client.patch("/api/menus/", params={"menuId": menu_id}, json={"is_active": False})
    assert r.status_code == 200
    assert r.json()["is_active"] is False

    r = await admin_client.get("/api/menus/", params={"active": "true"})
    assert r.json() == []


async def test_toggle_menu_requires_boolean(admin_client, seed_data):
    r = await admin_client.patch(
        "/api/menus/", params={"menuId": seed_data["menu"].id}, json={}
    )
    assert r.status_code == 400


async def test_toggle_unknown_menu(admin_client):
    r = await admin_client.patch("/api/menus/", params={"menuId": 9999}, json={"is_active": True})
    assert r.status_code == 404


async def test_delete_menu_cascades(admin_client, client, db_session, seed_data):
    menu_id = seed_data["menu"].id
    monday, _ = _ids(seed_data, "Monday")
    tuesday, _ = _ids(seed_data, "Tuesday")
    r = await client.post("/api/selections/", json={
        "selections": {"Monday": monday, "Tuesday": tuesday},
        "menuId": menu_id,
    })
    assert r.status_code == 201
    r = await client.post("/api/menu-ratings/", json={"menu_id": menu_id, "rating": 4})
    assert r.status_code == 201

    r = await admin_client.delete("/api/menus/", params={"menuId": menu_id})
    assert r.status_code == 200
    assert r.json()["menu"]["id"] == menu_id

    for model in (Menu, MenuItem, Selection, MenuRating):
        count = await db_session.execute(select(func.count(model.id)))
        assert count.scalar() == 0, model.__tablename__


async def test_delete_unknown_menu(admin_client):
    r = await admin_client.delete("/api/menus/", params={"menuId": 9999})
    assert r.status_code == 404


# ===================== MENU ITEMS =====================


async def test_list_menu_items(client, seed_data):
    r = await client.get("/api/menu-items/", params={"menuId": seed_data["menu"].id})
    assert r.status_code == 200
    assert len(r.json()) == 20
    # Ordered by day then id
    fridays = [i for i in r.json() if i["day"] == "Friday"]
    assert [i["name"] for i in fridays] == [
        "Friday Jollof", "Friday Fruit Salad", "Friday Banku", "Friday Ice Cream",
    ]


async def test_list_meals_pairs_main_and_dessert(client, seed_data):
    r = await client.get("/api/menu-items/meals", params={"menuId": seed_data["menu"].id})
    assert r.status_code == 200
    monday = r.json()["Monday"]
    assert len(monday) == 2
    assert monday[0]["main_course"]["name"] == "Monday Jollof"
    assert monday[0]["dessert"]["name"] == "Monday Fruit Salad"
    assert monday[1]["main_course"]["name"] == "Monday Banku"
    assert monday[1]["meal_id"] == monday[1]["main_course"]["id"]


async def test_create_menu_items(admin_client, seed_data):
    r = await admin_client.post("/api/menu-items/", json={
        "menu_id": seed_data["menu"].id,
        "items": [
            {"name": "Waakye", "day": "Monday", "description": "With shito"},
            {"name": "Bofrot", "day": "Monday"},
        ],
    })
    assert r.status_code == 201
    created = r.json()
    assert [i["name"] for i in created] == ["Waakye", "Bofrot"]
    assert created[0]["id"] < created[1]["id"]
    assert created[1]["description"] is None


async def test_create_menu_items_validation(admin_client, seed_data):
    menu_id = seed_data["menu"].id
    r = await admin_client.post("/api/menu-items/", json={"menu_id": menu_id, "items": []})
    assert r.status_code == 400

    r = await admin_client.post("/api/menu-items/", json={
        "menu_id": menu_id, "items": [{"name": "Kelewele"}],
    })
    assert r.status_code == 400

    r = await admin_client.post("/api/menu-items/", json={
        "menu_id": menu_id, "items": [{"name": "Kelewele", "day": "Saturday"}],
    })
    assert r.status_code == 400


async def test_create_menu_items_unknown_menu(admin_client, seed_data):
    r = await admin_client.post("/api/menu-items/", json={
        "menu_id": 9999, "items": [{"name": "Kenkey", "day": "Friday"}],
    })
    assert r.status_code == 404


async def test_delete_menu_item_removes_its_selections(admin_client, client, db_session, seed_data):
    monday, _ = _ids(seed_data, "Monday")
    await client.post("/api/selections/", json={
        "selections": {"Monday": monday}, "menuId": seed_data["menu"].id,
    })

    r = await admin_client.delete("/api/menu-items/", params={"itemId": monday})
    assert r.status_code == 200

    count = await db_session.execute(select(func.count(Selection.id)))
    assert count.scalar() == 0


# ===================== SELECTIONS =====================


async def test_submit_selections(client, seed_data):
    menu = seed_data["menu"]
    monday, _ = _ids(seed_data, "Monday")
    wednesday, _ = _ids(seed_data, "Wednesday")

    r = await client.post("/api/selections/", json={
        "selections": {"Monday": monday, "Tuesday": None, "Wednesday": wednesday},
        "menuId": menu.id,
    })
    assert r.status_code == 201
    saved = {s["menu_item_id"]: s for s in r.json()["selections"]}
    assert set(saved) == {monday, wednesday}
    assert saved[monday]["selection_date"] == menu.week_start.isoformat()
    assert saved[wednesday]["selection_date"] == (menu.week_start + timedelta(days=2)).isoformat()
    assert saved[monday]["user_id"] == seed_data["staff"].id


async def test_resubmitting_a_day_updates_instead_of_duplicating(client, db_session, seed_data):
    menu_id = seed_data["menu"].id
    first, second = _ids(seed_data, "Thursday")

    r = await client.post("/api/selections/", json={"selections": {"Thursday": first}, "menuId": menu_id})
    assert r.status_code == 201
    original_id = r.json()["selections"][0]["id"]

    r = await client.post("/api/selections/", json={"selections": {"Thursday": second}, "menuId": menu_id})
    assert r.status_code == 201
    assert r.json()["selections"][0]["id"] == original_id

    rows = await db_session.execute(
        select(Selection).where(Selection.user_id == seed_data["staff"].id)
    )
    rows = rows.scalars().all()
    assert len(rows) == 1
    assert rows[0].menu_item_id == second


async def test_get_selections(client, seed_data):
    menu_id = seed_data["menu"].id
    monday, _ = _ids(seed_data, "Monday")
    await client.post("/api/selections/", json={"selections": {"Monday": monday}, "menuId": menu_id})

    r = await client.get("/api/selections/", params={"menuId": menu_id})
    assert r.status_code == 200
    assert len(r.json()) == 1
    assert r.json()[0]["name"] == "Monday Jollof"
    assert r.json()[0]["day"] == "Monday"


async def test_selection_item_must_match_day(client, seed_data):
    monday, _ = _ids(seed_data, "Monday")
    r = await client.post("/api/selections/", json={
        "selections": {"Tuesday": monday}, "menuId": seed_data["menu"].id,
    })
    assert r.status_code == 400


async def test_selection_item_must_belong_to_menu(client, db_session, seed_data):
    other = Menu(week_start=date(2030, 1, 7), deadline=datetime(2030, 1, 4, 17), is_active=False)
    db_session.add(other)
    await db_session.commit()
    foreign = MenuItem(menu_id=other.id, name="Fufu", day="Monday")
    db_session.add(foreign)
    await db_session.commit()

    r = await client.post("/api/selections/", json={
        "selections": {"Monday": foreign.id}, "menuId": seed_data["menu"].id,
    })
    assert r.status_code == 400


async def test_selection_unknown_day(client, seed_data):
    monday, _ = _ids(seed_data, "Monday")
    r = await client.post("/api/selections/", json={
        "selections": {"Funday": monday}, "menuId": seed_data["menu"].id,
    })
    assert r.status_code == 400


async def test_selection_failure_writes_nothing(client, db_session, seed_data):
    monday, _ = _ids(seed_data, "Monday")
    r = await client.post("/api/selections/", json={
        "selections": {"Monday": monday, "Tuesday": monday}, "menuId": seed_data["menu"].id,
    })
    assert r.status_code == 400

    count = await db_session.execute(select(func.count(Selection.id)))
    assert count.scalar() == 0


async def test_selection_after_deadline(client, db_session, seed_data):
    menu = seed_data["menu"]
    menu.deadline = datetime.now(timezone.utc) - timedelta(hours=1)
    await db_session.commit()

    monday, _ = _ids(seed_data, "Monday")
    r = await client.post("/api/selections/", json={"selections": {"Monday": monday}, "menuId": menu.id})
    assert r.status_code == 400
    assert r.json()["detail"] == "Selection deadline has passed."


async def test_selection_requires_fields(client):
    r = await client.post("/api/selections/", json={"selections": {}})
    assert r.status_code == 400


async def test_selection_unknown_menu(client, seed_data):
    r = await client.post("/api/selections/", json={"selections": {"Monday": 1}, "menuId": 9999})
    assert r.status_code == 404


async def test_staff_cannot_submit_for_someone_else(client, seed_data):
    monday, _ = _ids(seed_data, "Monday")
    r = await client.post("/api/selections/", json={
        "selections": {"Monday": monday},
        "menuId": seed_data["menu"].id,
        "userId": seed_data["admin"].id,
    })
    assert r.status_code == 403


async def test_admin_can_submit_for_staff(admin_client, seed_data):
    monday, _ = _ids(seed_data, "Monday")
    r = await admin_client.post("/api/selections/", json={
        "selections": {"Monday": monday},
        "menuId": seed_data["menu"].id,
        "userId": seed_data["staff"].id,
    })
    assert r.status_code == 201
    assert r.json()["selections"][0]["user_id"] == seed_data["staff"].id


# ===================== RATINGS =====================


async def test_rating_upsert(client, db_session, seed_data):
    menu_id = seed_data["menu"].id
    r = await client.post("/api/menu-ratings/", json={"menu_id": menu_id, "rating": 3, "comment": "ok"})
    assert r.status_code == 201
    first_id = r.json()["id"]

    r = await client.post("/api/menu-ratings/", json={"menu_id": menu_id, "rating": 5, "comment": "great"})
    assert r.status_code == 201
    assert r.json()["id"] == first_id
    assert r.json()["rating"] == 5
    assert r.json()["comment"] == "great"

    count = await db_session.execute(select(func.count(MenuRating.id)))
    assert count.scalar() == 1


async def test_rating_out_of_range(client, seed_data):
    r = await client.post("/api/menu-ratings/", json={"menu_id": seed_data["menu"].id, "rating": 6})
    assert r.status_code == 400


# ===================== ADMIN =====================


async def test_admin_routes_forbidden_for_staff(client):
    for path in ("/api/admin/overview", "/api/admin/selections", "/api/admin/menu-ratings", "/api/users/staff"):
        r = await client.get(path)
        assert r.status_code == 403, path


async def test_admin_overview(admin_client, client, db_session, seed_data):
    menu_id = seed_data["menu"].id
    # Second staff member with no selections
    db_session.add(User(username="kofi boateng", password_hash=get_password_hash("Kofipass1!"), role=UserRole.STAFF))
    await db_session.commit()

    choices = {day: _ids(seed_data, day)[0] for day in seed_data["items"]}
    r = await client.post("/api/selections/", json={"selections": choices, "menuId": menu_id})
    assert r.status_code == 201

    r = await admin_client.get("/api/admin/overview")
    assert r.status_code == 200
    data = r.json()
    assert data["active_menu_id"] == menu_id
    assert data["total_staff"] == 2
    assert data["total_menu_items"] == 20
    assert data["total_selections"] == 5
    assert data["complete_profiles"] == 1
    assert data["max_possible_selections"] == 10
    assert data["progress_percentage"] == 50

    rows = {row["username"]: row for row in data["staff_selections"]}
    assert rows["ama mensah"]["progress"] == "5/5"
    assert rows["ama mensah"]["selections"][0] == "Monday Jollof"
    assert rows["kofi boateng"]["progress"] == "0/5"
    assert rows["kofi boateng"]["selections"] == [None] * 5


async def test_admin_selections(admin_client, client, seed_data):
    tuesday, _ = _ids(seed_data, "Tuesday")
    await client.post("/api/selections/", json={
        "selections": {"Tuesday": tuesday}, "menuId": seed_data["menu"].id,
    })

    r = await admin_client.get("/api/admin/selections")
    assert r.status_code == 200
    assert r.json() == [{
        "user_id": seed_data["staff"].id,
        "username": "ama mensah",
        "selections": [None, "Tuesday Jollof", None, None, None],
        "progress": "1/5",
    }]


async def test_admin_menu_ratings(admin_client, client, seed_data):
    await client.post("/api/menu-ratings/", json={
        "menu_id": seed_data["menu"].id, "rating": 4, "comment": "Nice jollof",
    })

    r = await admin_client.get("/api/admin/menu-ratings")
    assert r.status_code == 200
    assert len(r.json()) == 1
    row = r.json()[0]
    assert row["username"] == "ama mensah"
    assert row["week_start"] == seed_data["menu"].week_start.isoformat()
    assert row["comment"] == "Nice jollof"


# ===================== USERS =====================


async def test_eligible_staff_is_public(unauth_client, seed_data):
    r = await unauth_client.get("/api/users/eligible-staff")
    assert r.status_code == 200
    names = [u["username"] for u in r.json()]
    # "Ama Mensah" already has an account
    assert "Ama Mensah" not in names
    assert "Efua Owusu" in names
    assert len(names) == 2


async def test_staff_users(admin_client, seed_data):
    r = await admin_client.get("/api/users/staff")
    assert r.status_code == 200
    assert r.json() == [{"id": seed_data["staff"].id, "username": "ama mensah"}]


async def test_deleted_user_token_rejected(unauth_client, db_session, seed_data):
    ghost = User(username="ghost", password_hash="x", role=UserRole.STAFF)
    db_session.add(ghost)
    await db_session.commit()
    token = create_access_token(ghost)
    await db_session.delete(ghost)
    await db_session.commit()

    r = await unauth_client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401
