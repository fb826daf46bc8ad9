import logging
from typing import Annotated, Any

from fastapi import APIRouter, HTTPException, Query

from funnel import crud
from funnel.api.deps import CurrentUser, SessionDep
from funnel.models import LeadCreate, LeadPublic, LeadResponse, LeadsResponse, LeadWithPage

router = APIRouter(prefix="/leads", tags=["leads"])
logger = logging.getLogger(__name__)


@router.post("", response_model=LeadResponse)
def create_lead(lead_in: LeadCreate, session: SessionDep) -> Any:
    """
    Public endpoint used by the published page scripts.
    Only the page id is checked; contact fields are stored exactly as sent.
    """
    if not (lead_in.page_id or "").strip():
        raise HTTPException(status_code=400, detail="Page ID is required")
    page = crud.get_landing_page(session=session, page_id=lead_in.page_id)
    if not page:
        raise HTTPException(status_code=404, detail="Landing page not found")

    lead = crud.create_lead(session=session, db_page=page, lead_in=lead_in)
    logger.info("Captured lead %s for page %s", lead.id, page.id)
    return LeadResponse(data=LeadPublic.model_validate(lead))


@router.get("", response_model=LeadsResponse)
def read_leads(
    session: SessionDep,
    current_user: CurrentUser,
    page_id: Annotated[str | None, Query(alias="pageId")] = None,
) -> Any:
    parsed_page_id = None
    if page_id:
        parsed_page_id = crud.parse_page_id(page_id)
        if parsed_page_id is None:
            raise HTTPException(status_code=400, detail="Invalid page ID")
    rows = crud.list_leads(session=session, owner_id=current_user.id, page_id=parsed_page_id)
    return LeadsResponse(
        data=[
            LeadWithPage.model_validate(lead).model_copy(update={"page_title": title})
            for lead, title in rows
        ]
    )
