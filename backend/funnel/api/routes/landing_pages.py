import uuid
from typing import Any

from fastapi import APIRouter, HTTPException
from fastapi.responses import HTMLResponse

from funnel import crud
from funnel.api.deps import CurrentUser, SessionDep
from funnel.generation.compositor import assemble_document
from funnel.models import (
    LandingPage,
    LandingPageListItem,
    LandingPagePublic,
    LandingPageResponse,
    LandingPagesResponse,
    LandingPageUpdate,
    MessageResponse,
)

router = APIRouter(prefix="/landing-pages", tags=["landing-pages"])

# Served outside the API prefix: the address visitors open and the page scripts parse.
public_router = APIRouter(tags=["pages"])


def get_owned_page(session, page_id: uuid.UUID, current_user) -> LandingPage:
    page = session.get(LandingPage, page_id)
    if not page:
        raise HTTPException(status_code=404, detail="Landing page not found")
    if page.owner_id != current_user.id:
        raise HTTPException(status_code=403, detail="Not enough permissions")
    return page


def render_page(page: LandingPage) -> HTMLResponse:
    return HTMLResponse(assemble_document(page.html_content, page.css_content, page.js_content))


@router.get("", response_model=LandingPagesResponse)
def read_landing_pages(session: SessionDep, current_user: CurrentUser) -> Any:
    pages = crud.list_landing_pages(session=session, owner_id=current_user.id)
    return LandingPagesResponse(data=[LandingPageListItem.model_validate(page) for page in pages])


@router.get("/{id}", response_model=LandingPageResponse)
def read_landing_page(id: uuid.UUID, session: SessionDep, current_user: CurrentUser) -> Any:
    page = get_owned_page(session, id, current_user)
    return LandingPageResponse(data=LandingPagePublic.model_validate(page))


@router.put("/{id}", response_model=LandingPageResponse)
def update_landing_page(
    *,
    id: uuid.UUID,
    session: SessionDep,
    current_user: CurrentUser,
    page_in: LandingPageUpdate,
) -> Any:
    page = get_owned_page(session, id, current_user)
    page = crud.update_landing_page(session=session, db_page=page, page_in=page_in)
    return LandingPageResponse(data=LandingPagePublic.model_validate(page))


@router.delete("/{id}", response_model=MessageResponse)
def delete_landing_page(id: uuid.UUID, session: SessionDep, current_user: CurrentUser) -> Any:
    page = get_owned_page(session, id, current_user)
    crud.delete_landing_page(session=session, db_page=page)
    return MessageResponse(message="Landing page deleted successfully")


@router.get("/{id}/preview", response_class=HTMLResponse)
def preview_landing_page(id: uuid.UUID, session: SessionDep, current_user: CurrentUser) -> HTMLResponse:
    return render_page(get_owned_page(session, id, current_user))


@public_router.get("/pages/{id}", response_class=HTMLResponse)
def read_public_page(id: str, session: SessionDep) -> HTMLResponse:
    page = crud.get_landing_page(session=session, page_id=id)
    if not page or not page.is_published:
        raise HTTPException(status_code=404, detail="Landing page not found")
    return render_page(page)
