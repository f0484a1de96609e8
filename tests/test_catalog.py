import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from app.corpoativo.db import session_scope
from app.corpoativo.modules.catalog.models import Plan
from app.corpoativo.modules.catalog.repository import PlanRepository


def _featured(plans):
    return [p["name"] for p in plans if p["featured"]]


def test_create_plan_trims_fields(owner_client):
    r = owner_client.post(
        "/api/admin/plans",
        json={"name": "  Fit ", "price": " R$ 99 ", "description": " Basic access. "},
    )
    assert r.status_code == 201
    assert r.json["plan"]["name"] == "Fit"
    assert r.json["plan"]["price"] == "R$ 99"
    assert r.json["plan"]["featured"] is False
    assert [p["name"] for p in r.json["plans"]][-1] == "Fit"


def test_create_featured_plan_unfeatures_previous(owner_client):
    r = owner_client.post(
        "/api/admin/plans",
        json={"name": "Promo", "price": "R$ 59", "description": "Summer promo.", "featured": True},
    )
    assert r.status_code == 201
    plans = owner_client.get("/api/public-data").json["plans"]
    assert _featured(plans) == ["Promo"]
    assert plans[0]["name"] == "Promo"


def test_update_plan_to_featured_moves_the_flag(owner_client):
    plans = owner_client.get("/api/admin/plans").json["plans"]
    assert _featured(plans) == ["Black"]
    elite = next(p for p in plans if p["name"] == "Elite")

    r = owner_client.put(f"/api/admin/plans/{elite['id']}", json={"featured": True})
    assert r.status_code == 200
    assert r.json["plan"]["featured"] is True

    plans = owner_client.get("/api/public-data").json["plans"]
    assert _featured(plans) == ["Elite"]
    black = next(p for p in plans if p["name"] == "Black")
    assert black["featured"] is False


def test_update_featured_plan_keeps_it_featured(owner_client):
    plans = owner_client.get("/api/admin/plans").json["plans"]
    black = next(p for p in plans if p["featured"])
    r = owner_client.put(f"/api/admin/plans/{black['id']}", json={"featured": "true", "price": "R$ 159"})
    assert r.status_code == 200
    plans = owner_client.get("/api/public-data").json["plans"]
    assert _featured(plans) == ["Black"]
    assert plans[0]["price"] == "R$ 159"


def test_unfeaturing_leaves_no_featured_plan(owner_client):
    black = owner_client.get("/api/admin/plans").json["plans"][0]
    owner_client.put(f"/api/admin/plans/{black['id']}", json={"featured": False})
    plans = owner_client.get("/api/public-data").json["plans"]
    assert _featured(plans) == []
    assert [p["name"] for p in plans] == ["Start", "Black", "Elite"]


def test_partial_update_keeps_other_fields(owner_client):
    coach = owner_client.get("/api/admin/coaches").json["coaches"][0]
    r = owner_client.put(f"/api/admin/coaches/{coach['id']}", json={"role": " Crossfit "})
    assert r.status_code == 200
    assert r.json["coach"] == {"id": coach["id"], "name": coach["name"], "role": "Crossfit"}


def test_update_with_blank_required_field_is_400(owner_client):
    schedule = owner_client.get("/api/admin/schedules").json["schedules"][0]
    r = owner_client.put(f"/api/admin/schedules/{schedule['id']}", json={"hours": "  "})
    assert r.status_code == 400
    assert r.json["error"] == "Missing required field: hours"


def test_update_unknown_id_is_404(owner_client):
    r = owner_client.put("/api/admin/plans/999", json={"name": "Nope"})
    assert r.status_code == 404
    assert r.json["error"] == "Plan not found."


@pytest.mark.parametrize(
    "collection,body,missing",
    [
        ("plans", {"name": "X", "price": "R$ 1"}, "description"),
        ("coaches", {"name": "X"}, "role"),
        ("schedules", {"day": "X", "hours": "", "details": "Z"}, "hours"),
    ],
)
def test_create_names_missing_field(owner_client, collection, body, missing):
    before = owner_client.get(f"/api/admin/{collection}").json[collection]
    r = owner_client.post(f"/api/admin/{collection}", json=body)
    assert r.status_code == 400
    assert r.json["error"] == f"Missing required field: {missing}"
    assert owner_client.get(f"/api/admin/{collection}").json[collection] == before


@pytest.mark.parametrize("collection", ["plans", "coaches", "schedules", "leads"])
def test_delete_missing_id_is_idempotent(owner_client, collection):
    before = owner_client.get(f"/api/admin/{collection}").json[collection]
    r = owner_client.delete(f"/api/admin/{collection}/9999")
    assert r.status_code == 200
    assert r.json[collection] == before


@pytest.mark.parametrize("collection", ["plans", "coaches", "schedules"])
def test_delete_removes_item(owner_client, collection):
    items = owner_client.get(f"/api/admin/{collection}").json[collection]
    target = items[-1]
    r = owner_client.delete(f"/api/admin/{collection}/{target['id']}")
    assert r.status_code == 200
    assert target["id"] not in {i["id"] for i in r.json[collection]}
    # Second delete of the same id is still a success.
    assert owner_client.delete(f"/api/admin/{collection}/{target['id']}").status_code == 200


def test_coaches_and_schedules_keep_creation_order(owner_client):
    owner_client.post("/api/admin/coaches", json={"name": "Zeca", "role": "Boxe"})
    names = [c["name"] for c in owner_client.get("/api/public-data").json["coaches"]]
    assert names == ["Lucas Mendes", "Ana Ribeiro", "Bruno Costa", "Zeca"]


def test_leads_listed_newest_first_and_deleted(app, owner_client):
    anon = app.test_client()
    anon.post("/api/leads", json={"name": "First", "email": "first@x.com"})
    anon.post("/api/leads", json={"name": "Second", "email": "SECOND@x.com "})

    leads = owner_client.get("/api/admin/leads").json["leads"]
    assert [lead["name"] for lead in leads] == ["Second", "First"]
    assert leads[0]["email"] == "second@x.com"
    assert leads[0]["createdAt"]

    r = owner_client.delete(f"/api/admin/leads/{leads[0]['id']}")
    assert r.status_code == 200
    assert [lead["name"] for lead in r.json["leads"]] == ["First"]


def test_leads_not_in_public_data(app):
    app.test_client().post("/api/leads", json={"name": "Lead", "email": "lead@x.com"})
    data = app.test_client().get("/api/public-data").json
    assert "leads" not in data


def test_mutations_are_audited(owner_client):
    owner_client.post("/api/admin/coaches", json={"name": "Rita", "role": "Yoga"})
    events = owner_client.get("/api/admin/audit?limit=5").json["events"]
    assert events[0]["action"] == "coach.create"
    assert events[0]["actorUserEmail"] == "admin@corpoativo.com"
    assert events[0]["metadata"] == {"name": "Rita", "role": "Yoga"}


def test_store_rejects_a_second_featured_plan(app):
    with pytest.raises(IntegrityError):
        with session_scope(app) as s:
            s.add(Plan(name="Rogue", price="R$ 1", description="Direct insert.", featured=True))
            s.flush()
    with session_scope(app) as s:
        assert s.execute(select(Plan.name).where(Plan.featured.is_(True))).scalars().all() == ["Black"]


def test_featured_write_losing_a_race_is_409(owner_client, monkeypatch):
    # Skip the clear step, as if another writer featured a plan after it ran.
    monkeypatch.setattr(PlanRepository, "before_write", lambda self, obj, values: None)
    r = owner_client.post(
        "/api/admin/plans",
        json={"name": "Promo", "price": "R$ 59", "description": "Summer promo.", "featured": True},
    )
    assert r.status_code == 409
    assert r.json == {"error": "Another plan was featured at the same time. Please retry."}

    plans = owner_client.get("/api/admin/plans").json["plans"]
    assert "Promo" not in [p["name"] for p in plans]
    elite = next(p for p in plans if p["name"] == "Elite")
    assert owner_client.put(f"/api/admin/plans/{elite['id']}", json={"featured": True}).status_code == 409
    assert _featured(owner_client.get("/api/admin/plans").json["plans"]) == ["Black"]
