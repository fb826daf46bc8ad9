import uuid

from sqlmodel import select

from funnel.models import Lead
from funnel.tests.utils import make_page


def test_lead_with_empty_fields_is_stored_verbatim(client, session, user):
    page = make_page(session, user)

    response = client.post(
        "/api/leads",
        json={"pageId": str(page.id), "name": "", "email": "a@b.com", "phone": ""},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"]["email"] == "a@b.com"
    lead = session.exec(select(Lead)).one()
    assert lead.name == ""
    assert lead.phone == ""
    assert lead.email == "a@b.com"
    assert lead.landing_page_id == page.id


def test_lead_with_numeric_fields_is_stored_as_text(client, session, user):
    page = make_page(session, user)

    response = client.post(
        "/api/leads",
        json={"pageId": str(page.id), "name": "", "email": "a@b.com", "phone": 912345678},
    )

    assert response.status_code == 200
    assert response.json()["data"]["phone"] == "912345678"
    lead = session.exec(select(Lead)).one()
    assert lead.phone == "912345678"
    assert lead.name == ""


def test_lead_keeps_additional_info(client, session, user):
    page = make_page(session, user)

    response = client.post(
        "/api/leads",
        json={
            "pageId": str(page.id),
            "name": "Amy",
            "email": "amy@example.com",
            "phone": "0912345678",
            "instagram": "@amy",
            "additionalInfo": {"formType": "cyber"},
        },
    )

    assert response.status_code == 200
    assert response.json()["data"]["additionalInfo"] == {"formType": "cyber"}
    assert response.json()["data"]["instagram"] == "@amy"


def test_lead_without_page_id_is_rejected(client, session):
    response = client.post("/api/leads", json={"name": "Amy", "email": "amy@example.com", "phone": ""})

    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Page ID is required"}
    assert session.exec(select(Lead)).all() == []


def test_lead_for_unknown_page_is_rejected(client):
    for page_id in (str(uuid.uuid4()), "abc"):
        response = client.post("/api/leads", json={"pageId": page_id, "email": "a@b.com"})
        assert response.status_code == 404
        assert response.json()["success"] is False


def test_malformed_body_uses_error_envelope(client):
    response = client.post(
        "/api/leads",
        content="{not json",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json()["success"] is False


def test_owner_lists_leads_with_page_title(client, session, user, auth_headers):
    first = make_page(session, user, title="第一頁")
    second = make_page(session, user, title="第二頁")
    client.post("/api/leads", json={"pageId": str(first.id), "email": "one@example.com"})
    client.post("/api/leads", json={"pageId": str(second.id), "email": "two@example.com"})

    everything = client.get("/api/leads", headers=auth_headers).json()["data"]
    filtered = client.get(f"/api/leads?pageId={second.id}", headers=auth_headers).json()["data"]

    assert {lead["email"] for lead in everything} == {"one@example.com", "two@example.com"}
    assert [(lead["email"], lead["pageTitle"]) for lead in filtered] == [("two@example.com", "第二頁")]


def test_leads_of_other_users_are_not_listed(client, session, user, other_headers):
    page = make_page(session, user)
    client.post("/api/leads", json={"pageId": str(page.id), "email": "one@example.com"})

    response = client.get("/api/leads", headers=other_headers)

    assert response.json()["data"] == []


def test_listing_leads_requires_authentication(client):
    response = client.get("/api/leads")

    assert response.status_code == 401
    assert response.json() == {"success": False, "error": "Authentication required"}
