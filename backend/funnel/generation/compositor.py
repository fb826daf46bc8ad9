import logging
import re

from funnel.generation.response_parser import DEFAULT_PAGE_TITLE, ensure_required_fields
from funnel.generation.schemas import ComposedPage, GeneratedContent, GenerationRequest
from funnel.page_templates.store import content_to_slots, render_template, select_bundle

logger = logging.getLogger(__name__)

HEX_COLOR_PATTERN = re.compile(r"^(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")
BRAND_COLOR_VARIABLES: tuple[str, ...] = ("--color-primary", "--color-secondary", "--color-accent")

# Contact-field label or key -> name of the lead form input.
CONTACT_FIELD_INPUTS: dict[str, str] = {
    "姓名": "name",
    "name": "name",
    "email": "email",
    "電郵": "email",
    "電話": "phone",
    "phone": "phone",
    "instagram帳號": "instagram",
    "instagram": "instagram",
}
LEAD_FORM_INPUTS: tuple[str, ...] = ("name", "email", "phone", "instagram")

VISUAL_STYLE_RULES: dict[str, str] = {
    "現代簡約": """/* Modern minimalist */
.hero-section {
    background: linear-gradient(135deg, var(--color-primary) 0%, var(--color-secondary) 100%);
}

.cta-button {
    border-radius: 8px;
}""",
    "溫暖生活化": """/* Warm lifestyle */
.hero-section {
    background: linear-gradient(135deg, #ff9a9e 0%, #fecfef 100%);
    color: #2d3748;
}

.cta-button {
    background: linear-gradient(135deg, var(--color-accent) 0%, #fecfef 100%);
    color: #2d3748;
    border-radius: 25px;
}""",
    "專業商務": """/* Professional business */
.hero-section {
    background: linear-gradient(135deg, #2c3e50 0%, #34495e 100%);
    color: white;
}

.cta-button {
    background: linear-gradient(135deg, var(--color-primary) 0%, var(--color-secondary) 100%);
    border-radius: 4px;
}""",
    "創意活潑": """/* Creative playful */
.hero-section {
    background: linear-gradient(135deg, var(--color-accent) 0%, #4ecdc4 100%);
    color: white;
}

.cta-button {
    background: linear-gradient(135deg, var(--color-accent) 0%, #4ecdc4 100%);
    border-radius: 50px;
}

.cta-button:hover {
    transform: translateY(-2px) scale(1.05);
}""",
}


def visual_style_rules(visual_style: str) -> str:
    return VISUAL_STYLE_RULES.get((visual_style or "").strip(), "")


def parse_brand_colors(brand_colors: str) -> list[str]:
    """Comma-separated colours -> normalised ``#rrggbb`` values, skipping anything that is not hex."""
    colors: list[str] = []
    for token in (brand_colors or "").split(","):
        value = token.strip().lstrip("#")
        if not value:
            continue
        if not HEX_COLOR_PATTERN.match(value):
            logger.warning("Ignoring brand colour %r: not a hex colour", token.strip())
            continue
        colors.append(f"#{value.lower()}")
    return colors[: len(BRAND_COLOR_VARIABLES)]


def brand_color_rules(brand_colors: str) -> str:
    colors = parse_brand_colors(brand_colors)
    if not colors:
        return ""
    declarations = "\n".join(
        f"    {variable}: {color};" for variable, color in zip(BRAND_COLOR_VARIABLES, colors)
    )
    return f"/* Brand colours */\n:root {{\n{declarations}\n}}"


def requested_inputs(contact_fields: list[str]) -> set[str]:
    requested: set[str] = set()
    for field in contact_fields:
        input_name = CONTACT_FIELD_INPUTS.get(field.strip().lower())
        if input_name:
            requested.add(input_name)
    return requested


def contact_field_rules(contact_fields: list[str]) -> str:
    requested = requested_inputs(contact_fields)
    if not requested:
        return ""
    hidden = [name for name in LEAD_FORM_INPUTS if name not in requested]
    if not hidden:
        return ""
    selectors = ",\n".join(f".form-field--{name}" for name in hidden)
    return f"/* Contact fields */\n{selectors} {{\n    display: none;\n}}"


def build_css_overrides(request: GenerationRequest) -> str:
    """CSS appended after the bundle stylesheet. Later rules win through source order."""
    parts = [
        visual_style_rules(request.visual_style),
        brand_color_rules(request.brand_colors),
        contact_field_rules(request.contact_fields),
    ]
    return "\n\n".join(part for part in parts if part)


def _text(value) -> str:
    if value is None or isinstance(value, (dict, list)):
        return ""
    return str(value).strip()


def compose_page(content: GeneratedContent, request: GenerationRequest) -> ComposedPage:
    ensure_required_fields(content)
    bundle = select_bundle(request.visual_style)

    html = render_template(bundle.html, content_to_slots(content))
    overrides = build_css_overrides(request)
    css = bundle.css
    if overrides:
        css = f"{bundle.css.rstrip()}\n\n{overrides}\n"

    logger.info(
        "Composed page with template %s (%s override chars)",
        bundle.key,
        len(overrides),
    )
    return ComposedPage(
        html=html,
        css=css,
        js=bundle.js,
        title=_text(content.get("pageTitle")) or DEFAULT_PAGE_TITLE,
        meta_description=_text(content.get("metaDescription")),
        template_key=bundle.key,
    )


def assemble_document(html: str, css: str, js: str) -> str:
    """Inline stylesheet and script into the page HTML so it can be served as one document."""
    document = html or ""
    if css:
        style_tag = f"<style>\n{css}\n</style>\n"
        head_end = document.lower().rfind("</head>")
        if head_end == -1:
            document = style_tag + document
        else:
            document = document[:head_end] + style_tag + document[head_end:]
    if js:
        safe_js = js.replace("</script", "<\\/script")
        script_tag = f"<script>\n{safe_js}\n</script>\n"
        body_end = document.lower().rfind("</body>")
        if body_end == -1:
            document = document + script_tag
        else:
            document = document[:body_end] + script_tag + document[body_end:]
    return document
