import json

from sqlalchemy import Text
from sqlmodel import select

from funnel.core.config import settings
from funnel.generation.llm_client import LLMTransportError
from funnel.models import FormSubmission, LandingPage, Lead
from funnel.tests.utils import make_page

REQUIRED_FORM = {
    "businessInfo": "瑜珈教室",
    "webinarContent": "基礎體式",
    "targetAudience": "上班族",
    "webinarInfo": "週三晚上",
    "instructorCreds": "RYT-500 認證",
}


def _form(**overrides) -> dict[str, str]:
    values = {**REQUIRED_FORM, **overrides}
    return {name: json.dumps(value) for name, value in values.items()}


def test_generate_creates_page_and_submission(client, session, auth_headers, llm):
    response = client.post(
        "/api/generate-landing-page",
        data=_form(visualStyle="專業商務", contactFields=["姓名", "Email"]),
        headers=auth_headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["landingPage"]["title"] == "瑜珈入門"
    assert body["landingPage"]["metaDescription"] == "免費瑜珈講座"

    page = session.exec(select(LandingPage)).one()
    assert str(page.id) == body["landingPage"]["id"]
    assert page.template_key == "business"
    assert "30天建立瑜珈習慣" in page.html_content
    assert ".form-field--phone" in page.css_content
    assert page.content["visualStyle"] == "專業商務"
    assert page.content["generated"]["heroTitle"] == "30天建立瑜珈習慣"

    submission = session.exec(select(FormSubmission)).one()
    assert submission.landing_page_id == page.id
    assert submission.contact_fields == ["姓名", "Email"]
    llm.generate_page_content.assert_awaited_once()


def test_generate_falls_back_to_default_content(client, session, auth_headers, llm):
    llm.generate_page_content.return_value = "not json at all"

    response = client.post("/api/generate-landing-page", data=_form(), headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["landingPage"]["title"] == "瑜珈教室"
    page = session.exec(select(LandingPage)).one()
    assert page.template_key == "default"


def test_generate_rejects_missing_required_fields(client, session, auth_headers, llm):
    form = _form()
    del form["instructorCreds"]
    form["targetAudience"] = json.dumps("   ")

    response = client.post("/api/generate-landing-page", data=form, headers=auth_headers)

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert "instructorCreds" in body["error"]
    assert "targetAudience" in body["error"]
    llm.generate_page_content.assert_not_awaited()
    assert session.exec(select(LandingPage)).all() == []


def test_generate_rejects_parts_that_are_not_json(client, auth_headers, llm):
    form = _form()
    form["brandColors"] = "#ff0000, not quoted"

    response = client.post("/api/generate-landing-page", data=form, headers=auth_headers)

    assert response.status_code == 400
    assert "brandColors" in response.json()["error"]
    llm.generate_page_content.assert_not_awaited()


def test_generate_rejects_contact_fields_that_are_not_a_list(client, session, auth_headers, llm):
    for value in (5, True, {"name": "姓名"}):
        response = client.post(
            "/api/generate-landing-page",
            data=_form(contactFields=value),
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "error": "contactFields must be a list of strings",
        }
    llm.generate_page_content.assert_not_awaited()
    assert session.exec(select(LandingPage)).all() == []


def test_generate_transport_failure_is_a_500_without_rows(client, session, auth_headers, llm):
    llm.generate_page_content.side_effect = LLMTransportError("service down")

    response = client.post("/api/generate-landing-page", data=_form(), headers=auth_headers)

    assert response.status_code == 500
    assert response.json()["success"] is False
    assert "service down" in response.json()["error"]
    assert session.exec(select(LandingPage)).all() == []
    assert session.exec(select(FormSubmission)).all() == []


def test_generate_stores_uploaded_photos(client, session, auth_headers, monkeypatch, tmp_path):
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(tmp_path))

    response = client.post(
        "/api/generate-landing-page",
        data=_form(),
        files=[("photos", ("studio photo.png", b"\x89PNG fake", "image/png"))],
        headers=auth_headers,
    )

    assert response.status_code == 200
    stored = list(tmp_path.iterdir())
    assert len(stored) == 1
    assert stored[0].name.endswith("-studio_photo.png")
    page = session.exec(select(LandingPage)).one()
    assert page.content["photos"] == [f"{settings.UPLOAD_URL_PREFIX}/{stored[0].name}"]


def test_generate_requires_authentication(client, llm):
    response = client.post("/api/generate-landing-page", data=_form())

    assert response.status_code == 401
    llm.generate_page_content.assert_not_awaited()


def test_regenerate_updates_page_in_place(client, session, user, auth_headers, llm):
    page = make_page(session, user, title="舊標題")
    llm.generate_page_content.return_value = '{"pageTitle": "新標題", "heroTitle": "新主標"}'

    response = client.post("/api/regenerate-page", json={"pageId": str(page.id)}, headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["landingPage"]["id"] == str(page.id)
    session.refresh(page)
    assert page.title == "新標題"
    assert "新主標" in page.html_content
    assert page.content["businessInfo"] == "瑜珈教室"
    assert len(session.exec(select(LandingPage)).all()) == 1
    prompt = llm.generate_page_content.await_args.args[1]
    assert "**業務描述**: 瑜珈教室" in prompt


def test_regenerate_rejects_other_users_and_missing_ids(client, session, user, other_headers, auth_headers):
    page = make_page(session, user)

    assert client.post("/api/regenerate-page", json={}, headers=auth_headers).status_code == 400
    response = client.post("/api/regenerate-page", json={"pageId": str(page.id)}, headers=other_headers)
    assert response.status_code == 404


def test_regenerate_rejects_page_without_form_snapshot(client, session, user, auth_headers):
    page = make_page(session, user, content={"businessInfo": "only one field"})

    response = client.post("/api/regenerate-page", json={"pageId": str(page.id)}, headers=auth_headers)

    assert response.status_code == 400
    assert "Missing required fields" in response.json()["error"]


def test_refine_block_returns_refined_and_original(client, auth_headers, llm):
    response = client.post(
        "/api/refine-block",
        json={
            "blockType": "hero",
            "currentContent": "<h2>old</h2>",
            "userInstructions": "make it punchier",
            "pageContext": {"businessInfo": "瑜珈教室"},
        },
        headers=auth_headers,
    )

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "refinedContent": "<h2>refined</h2>",
        "blockType": "hero",
        "originalContent": "<h2>old</h2>",
    }
    llm.generate_text.assert_awaited_once()


def test_refine_block_rejects_blank_fields(client, auth_headers, llm):
    response = client.post(
        "/api/refine-block",
        json={"blockType": "hero", "currentContent": "  ", "userInstructions": ""},
        headers=auth_headers,
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Missing required fields: currentContent, userInstructions"
    llm.generate_text.assert_not_awaited()


def test_refine_block_transport_failure_is_a_500(client, auth_headers, llm):
    llm.generate_text.side_effect = LLMTransportError("down")

    response = client.post(
        "/api/refine-block",
        json={"blockType": "faq", "currentContent": "<p>q</p>", "userInstructions": "shorter"},
        headers=auth_headers,
    )

    assert response.status_code == 500
    llm.generate_text.assert_awaited_once()


def test_long_business_description_is_kept_as_fallback_title(client, session, auth_headers, llm):
    llm.generate_page_content.return_value = "not json at all"
    business_info = "瑜珈教室" * 80

    response = client.post(
        "/api/generate-landing-page",
        data=_form(businessInfo=business_info, visualStyle="簡約現代" * 70, brandColors="#ff0000 " * 40),
        headers=auth_headers,
    )

    assert response.status_code == 200
    assert response.json()["landingPage"]["title"] == business_info
    page = session.exec(select(LandingPage)).one()
    assert page.title == business_info
    submission = session.exec(select(FormSubmission)).one()
    assert submission.visual_style == "簡約現代" * 70


def test_free_text_columns_have_no_length_limit():
    assert isinstance(LandingPage.__table__.c.title.type, Text)
    assert isinstance(FormSubmission.__table__.c.visual_style.type, Text)
    assert isinstance(FormSubmission.__table__.c.brand_colors.type, Text)
    for column in ("name", "email", "phone", "instagram"):
        assert isinstance(Lead.__table__.c[column].type, Text)
