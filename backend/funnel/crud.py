import uuid
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, col, or_, select

from funnel.core.security import get_password_hash, verify_password
from funnel.generation.pipeline import GenerationResult
from funnel.generation.schemas import GenerationRequest
from funnel.models import (
    FormSubmission,
    FormSubmissionCreate,
    LandingPage,
    LandingPageUpdate,
    Lead,
    LeadCreate,
    User,
    UserRegister,
    get_datetime_utc,
)


def _commit(session: Session) -> None:
    try:
        session.commit()
    except SQLAlchemyError:
        session.rollback()
        raise


def create_user(*, session: Session, user_create: UserRegister) -> User:
    db_obj = User.model_validate(
        user_create, update={"hashed_password": get_password_hash(user_create.password)}
    )
    session.add(db_obj)
    _commit(session)
    session.refresh(db_obj)
    return db_obj


def update_user_domain(*, session: Session, db_user: User, custom_domain: str | None) -> User:
    db_user.custom_domain = (custom_domain or "").strip() or None
    session.add(db_user)
    _commit(session)
    session.refresh(db_user)
    return db_user


def get_user_by_email(*, session: Session, email: str) -> User | None:
    statement = select(User).where(User.email == email)
    session_user = session.exec(statement).first()
    return session_user


# Dummy hash to use for timing attack prevention when user is not found
# This is an Argon2 hash of a random password, used to ensure constant-time comparison
DUMMY_HASH = "$argon2id$v=19$m=65536,t=3,p=4$MjQyZWE1MzBjYjJlZTI0Yw$YTU4NGM5ZTZmYjE2NzZlZjY0ZWY3ZGRkY2U2OWFjNjk"


def authenticate(*, session: Session, email: str, password: str) -> User | None:
    db_user = get_user_by_email(session=session, email=email)
    if not db_user:
        # Keep response time similar whether or not the email exists
        verify_password(password, DUMMY_HASH)
        return None
    verified, updated_password_hash = verify_password(password, db_user.hashed_password)
    if not verified:
        return None
    if updated_password_hash:
        db_user.hashed_password = updated_password_hash
        session.add(db_user)
        _commit(session)
        session.refresh(db_user)
    return db_user


def new_page_slug() -> str:
    return f"page-{uuid.uuid4().hex[:12]}"


def create_landing_page(
    *,
    session: Session,
    owner_id: uuid.UUID,
    request: GenerationRequest,
    result: GenerationResult,
) -> LandingPage:
    """Persist the generated page and its form-history record in one commit."""
    page = result.page
    db_page = LandingPage(
        title=page.title,
        slug=new_page_slug(),
        meta_description=page.meta_description,
        template_key=page.template_key,
        content=result.stored_content(request),
        html_content=page.html,
        css_content=page.css,
        js_content=page.js,
        owner_id=owner_id,
    )
    db_submission = FormSubmission.model_validate(
        request.model_dump(),
        update={"owner_id": owner_id, "landing_page_id": db_page.id},
    )
    session.add(db_page)
    session.add(db_submission)
    _commit(session)
    session.refresh(db_page)
    return db_page


def replace_landing_page_content(
    *,
    session: Session,
    db_page: LandingPage,
    request: GenerationRequest,
    result: GenerationResult,
) -> LandingPage:
    page = result.page
    db_page.sqlmodel_update(
        {
            "title": page.title,
            "meta_description": page.meta_description,
            "template_key": page.template_key,
            "content": result.stored_content(request),
            "html_content": page.html,
            "css_content": page.css,
            "js_content": page.js,
            "updated_at": get_datetime_utc(),
        }
    )
    session.add(db_page)
    _commit(session)
    session.refresh(db_page)
    return db_page


def update_landing_page(*, session: Session, db_page: LandingPage, page_in: LandingPageUpdate) -> LandingPage:
    page_data = page_in.model_dump(exclude_unset=True, exclude={"published", "listed"})
    extra_data: dict[str, Any] = {"updated_at": get_datetime_utc()}
    if page_in.published is not None:
        extra_data["is_published"] = page_in.published
        extra_data["published_at"] = get_datetime_utc() if page_in.published else None
    if page_in.listed is not None:
        extra_data["is_listed"] = page_in.listed
    db_page.sqlmodel_update(page_data, update=extra_data)
    session.add(db_page)
    _commit(session)
    session.refresh(db_page)
    return db_page


def delete_landing_page(*, session: Session, db_page: LandingPage) -> None:
    session.delete(db_page)
    _commit(session)


def list_landing_pages(*, session: Session, owner_id: uuid.UUID) -> list[LandingPage]:
    statement = (
        select(LandingPage)
        .where(LandingPage.owner_id == owner_id)
        .order_by(col(LandingPage.updated_at).desc())
    )
    return list(session.exec(statement).all())


def parse_page_id(page_id: Any) -> uuid.UUID | None:
    if isinstance(page_id, uuid.UUID):
        return page_id
    try:
        return uuid.UUID(str(page_id).strip())
    except (TypeError, ValueError):
        return None


def get_landing_page(*, session: Session, page_id: Any) -> LandingPage | None:
    parsed = parse_page_id(page_id)
    if parsed is None:
        return None
    return session.get(LandingPage, parsed)


def normalize_additional_info(value: Any) -> dict[str, Any]:
    if isinstance(value, dict):
        return value
    if isinstance(value, str) and value.strip():
        return {"text": value}
    return {}


def create_lead(*, session: Session, db_page: LandingPage, lead_in: LeadCreate) -> Lead:
    # Fields are stored as received; the page scripts do the shape checks.
    db_lead = Lead(
        landing_page_id=db_page.id,
        name=lead_in.name or "",
        email=lead_in.email or "",
        phone=lead_in.phone or "",
        instagram=lead_in.instagram or "",
        additional_info=normalize_additional_info(lead_in.additional_info),
    )
    session.add(db_lead)
    _commit(session)
    session.refresh(db_lead)
    return db_lead


def list_leads(
    *,
    session: Session,
    owner_id: uuid.UUID,
    page_id: uuid.UUID | None = None,
) -> list[tuple[Lead, str]]:
    statement = (
        select(Lead, LandingPage.title)
        .join(LandingPage, col(Lead.landing_page_id) == col(LandingPage.id))
        .where(LandingPage.owner_id == owner_id)
    )
    if page_id is not None:
        statement = statement.where(Lead.landing_page_id == page_id)
    statement = statement.order_by(col(Lead.created_at).desc())
    return [(lead, title) for lead, title in session.exec(statement).all()]


def create_form_submission(
    *,
    session: Session,
    owner_id: uuid.UUID,
    submission_in: FormSubmissionCreate,
) -> FormSubmission:
    db_submission = FormSubmission.model_validate(submission_in.model_dump(), update={"owner_id": owner_id})
    session.add(db_submission)
    _commit(session)
    session.refresh(db_submission)
    return db_submission


def list_form_submissions(*, session: Session, owner_id: uuid.UUID) -> list[FormSubmission]:
    statement = (
        select(FormSubmission)
        .where(FormSubmission.owner_id == owner_id)
        .order_by(col(FormSubmission.created_at).desc())
    )
    return list(session.exec(statement).all())


def _matches_search(page: LandingPage, needle: str) -> bool:
    business_info = str((page.content or {}).get("businessInfo") or "")
    return needle in page.title.lower() or needle in business_info.lower()


def list_marketplace_pages(
    *,
    session: Session,
    search: str | None = None,
    sort_by: str = "newest",
) -> list[tuple[LandingPage, User | None]]:
    created = col(LandingPage.created_at)
    statement = (
        select(LandingPage, User)
        .join(User, col(LandingPage.owner_id) == col(User.id), isouter=True)
        .where(or_(col(LandingPage.is_listed), col(LandingPage.is_published)))
        .order_by(created.asc() if sort_by == "oldest" else created.desc())
    )
    rows = list(session.exec(statement).all())
    needle = (search or "").strip().lower()
    if needle:
        # businessInfo lives inside the JSON content column, so the match is done here.
        rows = [(page, owner) for page, owner in rows if _matches_search(page, needle)]
    return rows
