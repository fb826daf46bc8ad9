"""
Pre-authored landing-page bundles and the slot renderer that fills them.

A bundle is three text files shipped as package data under ``bundles/<key>/``:
``index.html``, ``style.css`` and ``app.js``. The HTML carries placeholders of
the form ``{{slotName|default copy}}``. Slot names come from a closed set
(``SLOT_NAMES``); a bundle that mentions anything else is rejected on load.
"""
import html
import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from importlib import resources
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE_KEY = "default"
TEMPLATE_KEYS: tuple[str, ...] = ("default", "cyber", "business")

# Visual-style value (lower-cased) -> bundle key.
STYLE_ALIASES: dict[str, str] = {
    "科技": "cyber",
    "賽博": "cyber",
    "tech": "cyber",
    "cyber": "cyber",
    "專業商務": "business",
    "商務": "business",
    "professional": "business",
    "business": "business",
}

SCALAR_SLOTS: tuple[str, ...] = (
    "pageTitle",
    "metaDescription",
    "heroTitle",
    "heroSubtitle",
    "ctaText",
    "urgencyText",
    "instructorHeading",
    "instructorBio",
    "webinarDetails",
    "formTitle",
    "formSubtitle",
    "submitText",
    "thankYouTitle",
    "thankYouMessage",
)

# content key -> (slot prefix, item fields, max items). Empty fields = list of strings.
LIST_SLOTS: dict[str, tuple[str, tuple[str, ...], int]] = {
    "valuePoints": ("valuePoint", ("title", "description"), 3),
    "testimonials": ("testimonial", ("quote", "author", "role"), 3),
    "faq": ("faq", ("question", "answer"), 3),
    "nextSteps": ("nextStep", (), 3),
}


def _list_slot_names() -> tuple[str, ...]:
    names: list[str] = []
    for prefix, fields, max_items in LIST_SLOTS.values():
        for index in range(1, max_items + 1):
            if not fields:
                names.append(f"{prefix}{index}")
                continue
            names.extend(f"{prefix}{index}{field[0].upper()}{field[1:]}" for field in fields)
    return tuple(names)


SLOT_NAMES: frozenset[str] = frozenset(SCALAR_SLOTS + _list_slot_names())

PLACEHOLDER_PATTERN = re.compile(r"\{\{\s*(\w+)\s*\|(.*?)\}\}", re.DOTALL)


class TemplateError(ValueError):
    """Raised when a bundle is missing or references an unknown slot."""


@dataclass(frozen=True)
class TemplateBundle:
    key: str
    html: str
    css: str
    js: str

    @property
    def slots(self) -> frozenset[str]:
        return frozenset(match.group(1) for match in PLACEHOLDER_PATTERN.finditer(self.html))


def resolve_template_key(visual_style: str | None) -> str:
    """Map a free-text visual style onto a bundle key; anything unknown is the default bundle."""
    style = (visual_style or "").strip().lower()
    return STYLE_ALIASES.get(style, DEFAULT_TEMPLATE_KEY)


def _read_bundle_file(key: str, filename: str) -> str:
    resource = resources.files("funnel.page_templates").joinpath("bundles", key, filename)
    try:
        return resource.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise TemplateError(f"Template bundle '{key}' has no {filename}") from exc


@lru_cache(maxsize=None)
def load_bundle(key: str) -> TemplateBundle:
    if key not in TEMPLATE_KEYS:
        raise TemplateError(f"Unknown template bundle '{key}'")

    bundle = TemplateBundle(
        key=key,
        html=_read_bundle_file(key, "index.html"),
        css=_read_bundle_file(key, "style.css"),
        js=_read_bundle_file(key, "app.js"),
    )
    unknown = sorted(bundle.slots - SLOT_NAMES)
    if unknown:
        raise TemplateError(f"Template bundle '{key}' uses unknown slots: {', '.join(unknown)}")

    logger.debug("Loaded template bundle %s with %s slots", key, len(bundle.slots))
    return bundle


def select_bundle(visual_style: str | None) -> TemplateBundle:
    return load_bundle(resolve_template_key(visual_style))


def _scalar_text(value: Any) -> str:
    if value is None or isinstance(value, (dict, list)):
        return ""
    return str(value).strip()


def content_to_slots(content: dict[str, Any]) -> dict[str, str]:
    """Flatten a generated content object into slot values. Blank values are left out."""
    slots: dict[str, str] = {}

    for name in SCALAR_SLOTS:
        text = _scalar_text(content.get(name))
        if text:
            slots[name] = text

    for content_key, (prefix, fields, max_items) in LIST_SLOTS.items():
        items = content.get(content_key)
        if not isinstance(items, list):
            continue
        for index, item in enumerate(items[:max_items], start=1):
            if not fields:
                text = _scalar_text(item)
                if text:
                    slots[f"{prefix}{index}"] = text
                continue
            if not isinstance(item, dict):
                continue
            for field in fields:
                text = _scalar_text(item.get(field))
                if text:
                    slots[f"{prefix}{index}{field[0].upper()}{field[1:]}"] = text

    return slots


def render_template(template_html: str, slots: dict[str, str]) -> str:
    """Replace every placeholder with its escaped slot value, or with the baked-in copy."""

    def _substitute(match: re.Match) -> str:
        value = slots.get(match.group(1))
        if value:
            return html.escape(value)
        return match.group(2)

    return PLACEHOLDER_PATTERN.sub(_substitute, template_html)
