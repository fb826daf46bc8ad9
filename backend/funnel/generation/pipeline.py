import logging
from dataclasses import dataclass
from typing import Any

from funnel.core.config import settings
from funnel.generation.compositor import compose_page
from funnel.generation.llm_client import LLMClient
from funnel.generation.prompt_builder import build_generation_prompt
from funnel.generation.prompts.landing_page import LANDING_PAGE_SYSTEM_PROMPT
from funnel.generation.prompts.refinement import (
    REFINEMENT_PROMPT_TEMPLATE,
    REFINEMENT_SYSTEM_PROMPT,
)
from funnel.generation.response_parser import parse_generated_content
from funnel.generation.schemas import ComposedPage, GeneratedContent, GenerationRequest

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationResult:
    content: GeneratedContent
    page: ComposedPage

    def stored_content(self, request: GenerationRequest) -> dict[str, Any]:
        """Form snapshot plus the generated copy, as kept on the landing page record."""
        return {**request.snapshot(), "generated": self.content}


class LandingPageGenerator:
    """
    Prompt -> completion (bounded retries) -> parse with fallback -> compose.

    Only a transport failure after the last attempt escapes, as ``LLMTransportError``.
    """

    def __init__(self, llm: LLMClient):
        self.llm = llm

    async def generate_content(self, request: GenerationRequest) -> GeneratedContent:
        prompt = build_generation_prompt(request)
        raw_text = await self.llm.generate_page_content(LANDING_PAGE_SYSTEM_PROMPT, prompt)
        return parse_generated_content(
            raw_text,
            business_info=request.business_info,
            webinar_content=request.webinar_content,
            target_audience=request.target_audience,
            instructor_creds=request.instructor_creds,
        )

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        content = await self.generate_content(request)
        page = compose_page(content, request)
        logger.info("Generated landing page '%s' using template %s", page.title, page.template_key)
        return GenerationResult(content=content, page=page)


def _context_value(page_context: dict[str, Any] | None, key: str) -> str:
    value = (page_context or {}).get(key)
    if value is None:
        return ""
    return str(value).strip()


def build_refinement_prompt(
    *,
    block_type: str,
    current_content: str,
    user_instructions: str,
    page_context: dict[str, Any] | None = None,
    language: str | None = None,
) -> str:
    return REFINEMENT_PROMPT_TEMPLATE.format(
        block_type=block_type,
        current_content=current_content,
        user_instructions=user_instructions,
        business_info=_context_value(page_context, "businessInfo") or "N/A",
        target_audience=_context_value(page_context, "targetAudience") or "N/A",
        webinar_content=_context_value(page_context, "webinarContent") or "N/A",
        language=language or settings.CONTENT_LANGUAGE,
    )


async def refine_block(
    llm: LLMClient,
    *,
    block_type: str,
    current_content: str,
    user_instructions: str,
    page_context: dict[str, Any] | None = None,
) -> str:
    """One free-text completion for one block of an existing page. Not retried."""
    prompt = build_refinement_prompt(
        block_type=block_type,
        current_content=current_content,
        user_instructions=user_instructions,
        page_context=page_context,
    )
    refined = await llm.generate_text(
        REFINEMENT_SYSTEM_PROMPT,
        prompt,
        max_tokens=settings.REFINE_MAX_TOKENS,
    )
    logger.info("Refined %s block (%s -> %s chars)", block_type, len(current_content), len(refined))
    return refined
