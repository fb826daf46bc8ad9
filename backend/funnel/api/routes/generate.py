import json
import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Request
from pydantic import ValidationError
from starlette.datastructures import UploadFile

from funnel import crud
from funnel.api.deps import CurrentUser, LLMClientDep, SessionDep
from funnel.core.uploads import save_uploads
from funnel.generation.llm_client import LLMTransportError
from funnel.generation.pipeline import LandingPageGenerator, refine_block
from funnel.generation.schemas import GenerationRequest, validation_error_message
from funnel.models import (
    LandingPageCreated,
    LandingPageSummary,
    RefineBlockRequest,
    RefineBlockResponse,
    RegeneratePageRequest,
)

router = APIRouter(tags=["generate"])
logger = logging.getLogger(__name__)

# Multipart text parts of the generation form; each carries a JSON-encoded value.
FORM_TEXT_FIELDS: tuple[str, ...] = (
    "businessInfo",
    "webinarContent",
    "targetAudience",
    "webinarInfo",
    "instructorCreds",
    "contactFields",
    "visualStyle",
    "brandColors",
    "uniqueSellingPoints",
    "upsellProducts",
    "specialRequirements",
)


async def read_generation_form(request: Request) -> tuple[GenerationRequest, list[UploadFile]]:
    form = await request.form()
    values: dict[str, Any] = {}
    for name in FORM_TEXT_FIELDS:
        raw = form.get(name)
        if raw is None or isinstance(raw, UploadFile):
            continue
        try:
            values[name] = json.loads(raw)
        except json.JSONDecodeError:
            raise HTTPException(status_code=400, detail=f"Invalid JSON in form field '{name}'")

    photos = [item for item in form.getlist("photos") if isinstance(item, UploadFile)]
    try:
        generation_request = GenerationRequest.model_validate(values)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=validation_error_message(exc))
    return generation_request, photos


@router.post("/generate-landing-page", response_model=LandingPageCreated)
async def generate_landing_page(
    request: Request,
    session: SessionDep,
    current_user: CurrentUser,
    llm: LLMClientDep,
) -> Any:
    generation_request, photos = await read_generation_form(request)
    if photos:
        photo_urls = await save_uploads(photos)
        generation_request = generation_request.model_copy(
            update={"photos": [*generation_request.photos, *photo_urls]}
        )

    logger.info(
        "Generating landing page for user %s (style=%r, %s photos)",
        current_user.id,
        generation_request.visual_style,
        len(generation_request.photos),
    )
    try:
        result = await LandingPageGenerator(llm).generate(generation_request)
    except LLMTransportError as exc:
        raise HTTPException(status_code=500, detail=f"Failed to generate landing page: {exc}")

    page = crud.create_landing_page(
        session=session,
        owner_id=current_user.id,
        request=generation_request,
        result=result,
    )
    return LandingPageCreated(landing_page=LandingPageSummary.model_validate(page))


@router.post("/regenerate-page", response_model=LandingPageCreated)
async def regenerate_page(
    body: RegeneratePageRequest,
    session: SessionDep,
    current_user: CurrentUser,
    llm: LLMClientDep,
) -> Any:
    if not body.page_id:
        raise HTTPException(status_code=400, detail="Page ID is required")
    page = crud.get_landing_page(session=session, page_id=body.page_id)
    if not page or page.owner_id != current_user.id:
        raise HTTPException(status_code=404, detail="Page not found or access denied")

    # The form snapshot stored on the page is the source for regeneration.
    try:
        generation_request = GenerationRequest.model_validate(page.content or {})
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=validation_error_message(exc))

    logger.info("Regenerating landing page %s for user %s", page.id, current_user.id)
    try:
        result = await LandingPageGenerator(llm).generate(generation_request)
    except LLMTransportError as exc:
        raise HTTPException(status_code=500, detail=f"Failed to regenerate page: {exc}")

    page = crud.replace_landing_page_content(
        session=session, db_page=page, request=generation_request, result=result
    )
    return LandingPageCreated(landing_page=LandingPageSummary.model_validate(page))


@router.post("/refine-block", response_model=RefineBlockResponse)
async def refine_page_block(
    body: RefineBlockRequest,
    current_user: CurrentUser,
    llm: LLMClientDep,
) -> Any:
    block_type = (body.block_type or "").strip()
    current_content = body.current_content or ""
    user_instructions = (body.user_instructions or "").strip()
    missing = [
        name
        for name, value in (
            ("blockType", block_type),
            ("currentContent", current_content.strip()),
            ("userInstructions", user_instructions),
        )
        if not value
    ]
    if missing:
        raise HTTPException(status_code=400, detail=f"Missing required fields: {', '.join(missing)}")

    try:
        refined = await refine_block(
            llm,
            block_type=block_type,
            current_content=current_content,
            user_instructions=user_instructions,
            page_context=body.page_context,
        )
    except LLMTransportError as exc:
        raise HTTPException(status_code=500, detail=f"Failed to refine content: {exc}")

    return RefineBlockResponse(
        refined_content=refined,
        block_type=block_type,
        original_content=current_content,
    )
