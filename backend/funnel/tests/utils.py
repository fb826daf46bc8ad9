import uuid

from sqlmodel import Session

from funnel.models import LandingPage, User


def make_page(session: Session, owner: User, **overrides) -> LandingPage:
    values = {
        "title": "瑜珈入門",
        "slug": f"page-{uuid.uuid4().hex[:12]}",
        "meta_description": "免費瑜珈講座",
        "content": {
            "businessInfo": "瑜珈教室",
            "webinarContent": "基礎體式",
            "targetAudience": "上班族",
            "webinarInfo": "週三晚上",
            "instructorCreds": "RYT-500 認證",
        },
        "html_content": "<html><head></head><body><h1>瑜珈入門</h1></body></html>",
        "css_content": "h1 { color: teal; }",
        "js_content": "console.log('page');",
        "owner_id": owner.id,
    }
    values.update(overrides)
    page = LandingPage(**values)
    session.add(page)
    session.commit()
    session.refresh(page)
    return page
