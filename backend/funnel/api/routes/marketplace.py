from typing import Annotated, Any, Literal

from fastapi import APIRouter, Query

from funnel import crud
from funnel.api.deps import SessionDep
from funnel.models import MarketplacePage, MarketplaceResponse

router = APIRouter(prefix="/marketplace", tags=["marketplace"])


@router.get("", response_model=MarketplaceResponse)
def read_marketplace(
    session: SessionDep,
    search: str | None = None,
    sort_by: Annotated[Literal["newest", "oldest"], Query(alias="sortBy")] = "newest",
) -> Any:
    rows = crud.list_marketplace_pages(session=session, search=search, sort_by=sort_by)
    pages = []
    for page, owner in rows:
        owner_name = (owner.full_name or owner.email) if owner else None
        pages.append(
            MarketplacePage.model_validate(page).model_copy(update={"owner_name": owner_name})
        )
    return MarketplaceResponse(pages=pages)
