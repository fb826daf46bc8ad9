from funnel.core.config import settings
from funnel.generation.prompts.landing_page import (
    FIELD_LABELS,
    LANDING_PAGE_OUTPUT_INSTRUCTIONS,
    LANDING_PAGE_PROMPT_HEADER,
)
from funnel.generation.schemas import GenerationRequest


def _format_value(value: str | list[str]) -> str:
    if isinstance(value, list):
        return ", ".join(value)
    return value


def filled_fields(request: GenerationRequest) -> list[tuple[str, str | list[str]]]:
    """Form fields with a non-blank value, in label-table order."""
    fields: list[tuple[str, str | list[str]]] = []
    for name in FIELD_LABELS:
        value = getattr(request, name)
        if isinstance(value, list):
            if not value:
                continue
        elif not value.strip():
            continue
        fields.append((name, value))
    return fields


def build_generation_prompt(request: GenerationRequest, *, language: str | None = None) -> str:
    lines = [
        f"**{FIELD_LABELS[name]}**: {_format_value(value)}"
        for name, value in filled_fields(request)
    ]
    instructions = LANDING_PAGE_OUTPUT_INSTRUCTIONS.format(
        language=language or settings.CONTENT_LANGUAGE
    )
    return f"{LANDING_PAGE_PROMPT_HEADER}\n" + "\n".join(lines) + f"\n\n{instructions}"
