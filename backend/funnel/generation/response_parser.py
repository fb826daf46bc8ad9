import json
import logging
import re
from typing import Any

from funnel.generation.schemas import REQUIRED_CONTENT_KEYS, GeneratedContent

logger = logging.getLogger(__name__)

DEFAULT_PAGE_TITLE = "專業Webinar"
DEFAULT_TOPIC = "專業技能"


class MissingContentFieldsError(ValueError):
    """Raised when a content object reaches composition without its required keys."""


def strip_code_fences(text: str) -> str:
    if not text:
        return ""
    fenced = re.match(r"^\s*```[a-zA-Z0-9_-]*\s*([\s\S]*?)\s*```\s*$", text)
    if fenced:
        return fenced.group(1).strip()
    return text.strip()


def missing_required_keys(content: Any) -> list[str]:
    if not isinstance(content, dict):
        return list(REQUIRED_CONTENT_KEYS)
    return [key for key in REQUIRED_CONTENT_KEYS if key not in content]


def content_validation_error(raw_text: str | None) -> str | None:
    """
    Cheap local check run on every model response.
    Returns a description of what is wrong, or None when the text is usable.
    """
    cleaned = strip_code_fences(raw_text or "")
    if not cleaned:
        return "Response was empty"
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        return f"Invalid JSON: {exc}"
    if not isinstance(parsed, dict):
        return f"Expected a JSON object, got {type(parsed).__name__}"
    missing = missing_required_keys(parsed)
    if missing:
        return f"Missing required keys: {', '.join(missing)}"
    return None


def build_default_content(
    business_info: str = "",
    *,
    webinar_content: str = "",
    target_audience: str = "",
    instructor_creds: str = "",
) -> GeneratedContent:
    """Fixed placeholder copy used when the model output cannot be used."""
    business = (business_info or "").strip()
    topic = business or DEFAULT_TOPIC
    webinar = (webinar_content or "").strip()
    audience = (target_audience or "").strip() or "學習者"
    creds = (instructor_creds or "").strip()

    return {
        "pageTitle": business or DEFAULT_PAGE_TITLE,
        "metaDescription": webinar or f"立即註冊參加專業webinar，掌握{topic}的核心技能",
        "heroTitle": f"掌握{topic}的完整秘訣",
        "heroSubtitle": webinar or "立即註冊參加專業webinar，掌握核心技能",
        "ctaText": "立即搶先報名",
        "urgencyText": "名額有限，額滿即止",
        "valuePoints": [
            {"title": f"{topic}的核心原理", "description": "從基礎開始，建立完整而系統化的觀念。"},
            {"title": "實戰技巧與最佳實踐", "description": "學會可以立即應用在工作上的方法。"},
            {"title": "常見問題解決方案", "description": "避開新手最常遇到的錯誤與陷阱。"},
        ],
        "instructorHeading": "專業講師介紹",
        "instructorBio": creds or "擁有豐富的實戰經驗和專業知識",
        "testimonials": [
            {"quote": "內容清楚實用，讓我少走很多冤枉路。", "author": "學員", "role": audience},
        ],
        "webinarDetails": "線上直播進行，報名後將以Email寄送參加連結。",
        "faq": [
            {
                "question": "這個webinar適合什麼程度的人參加？",
                "answer": f"適合所有對{topic}感興趣的{audience}，從初學者到進階者都能有所收穫。",
            },
            {
                "question": "真的完全免費嗎？",
                "answer": "完全免費，只需要填寫基本信息即可參加。",
            },
        ],
        "formTitle": "立即免費報名",
        "formSubtitle": "填寫以下信息，保留您的席位",
        "submitText": "確認報名",
        "thankYouTitle": "感謝您的報名！",
        "thankYouMessage": "我們已收到您的資料，會盡快與您聯繫確認詳情。",
        "nextSteps": [
            "留意您的Email信箱，確認報名資訊",
            "將webinar時間加入您的行事曆",
        ],
    }


def parse_generated_content(
    raw_text: str | None,
    *,
    business_info: str = "",
    webinar_content: str = "",
    target_audience: str = "",
    instructor_creds: str = "",
) -> GeneratedContent:
    """Never raises: unusable output is replaced by the default content object."""
    cleaned = strip_code_fences(raw_text or "")
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        logger.warning("Model output is not valid JSON (%s); using default content.", exc)
        parsed = None

    if parsed is not None and not missing_required_keys(parsed):
        return parsed

    if parsed is not None:
        logger.warning(
            "Model output lacks required keys %s; using default content.",
            missing_required_keys(parsed),
        )
    return build_default_content(
        business_info,
        webinar_content=webinar_content,
        target_audience=target_audience,
        instructor_creds=instructor_creds,
    )


def ensure_required_fields(content: GeneratedContent) -> GeneratedContent:
    missing = missing_required_keys(content)
    if missing:
        raise MissingContentFieldsError(f"Generated content is missing required fields: {', '.join(missing)}")
    return content
