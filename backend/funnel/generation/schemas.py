from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

# Keys the model must return for the page to be usable.
REQUIRED_CONTENT_KEYS: tuple[str, ...] = ("pageTitle", "heroTitle")

REQUIRED_REQUEST_FIELDS: tuple[str, ...] = (
    "business_info",
    "webinar_content",
    "target_audience",
    "webinar_info",
    "instructor_creds",
)

GeneratedContent = dict[str, Any]


class GenerationRequest(BaseModel):
    """Everything the user filled in on the multi-step webinar form."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    # Required; checked together by _require_core_fields.
    business_info: str = ""
    webinar_content: str = ""
    target_audience: str = ""
    webinar_info: str = ""
    instructor_creds: str = ""
    contact_fields: list[str] = Field(default_factory=list)
    visual_style: str = ""
    brand_colors: str = ""
    unique_selling_points: str = ""
    upsell_products: str = ""
    special_requirements: str = ""
    photos: list[str] = Field(default_factory=list)

    @field_validator(
        "business_info",
        "webinar_content",
        "target_audience",
        "webinar_info",
        "instructor_creds",
        "visual_style",
        "brand_colors",
        "unique_selling_points",
        "upsell_products",
        "special_requirements",
        mode="before",
    )
    @classmethod
    def _strip_text(cls, value: Any) -> str:
        if value is None:
            return ""
        return str(value).strip()

    @field_validator("contact_fields", "photos", mode="before")
    @classmethod
    def _clean_list(cls, value: Any, info: ValidationInfo) -> list[str]:
        if value is None or value == "":
            return []
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, list):
            raise ValueError(f"{to_camel(info.field_name)} must be a list of strings")
        return [str(item).strip() for item in value if str(item).strip()]

    @model_validator(mode="after")
    def _require_core_fields(self) -> "GenerationRequest":
        missing = [name for name in REQUIRED_REQUEST_FIELDS if not getattr(self, name)]
        if missing:
            labels = ", ".join(to_camel(name) for name in missing)
            raise ValueError(f"Missing required fields: {labels}")
        return self

    def snapshot(self) -> dict[str, Any]:
        """camelCase copy of the form, the shape stored on the landing page."""
        return self.model_dump(by_alias=True)


class ComposedPage(BaseModel):
    """Final page text ready to be persisted."""

    html: str
    css: str
    js: str
    title: str
    meta_description: str
    template_key: str


def validation_error_message(exc: ValidationError) -> str:
    """Flatten a pydantic error on ``GenerationRequest`` into one client-facing sentence."""
    missing = [
        str(error["loc"][-1])
        for error in exc.errors()
        if error["type"] == "missing" and error.get("loc")
    ]
    if missing:
        return f"Missing required fields: {', '.join(missing)}"
    first = exc.errors()[0] if exc.errors() else {"msg": str(exc)}
    return str(first["msg"]).removeprefix("Value error, ")
