from typing import Any

from fastapi import APIRouter

from funnel import crud
from funnel.api.deps import CurrentUser, SessionDep
from funnel.models import (
    FormSubmissionCreate,
    FormSubmissionPublic,
    FormSubmissionResponse,
    FormSubmissionsResponse,
)

router = APIRouter(prefix="/form-submissions", tags=["form-submissions"])


@router.get("", response_model=FormSubmissionsResponse)
def read_form_submissions(session: SessionDep, current_user: CurrentUser) -> Any:
    submissions = crud.list_form_submissions(session=session, owner_id=current_user.id)
    return FormSubmissionsResponse(
        submissions=[FormSubmissionPublic.model_validate(item) for item in submissions]
    )


@router.post("", response_model=FormSubmissionResponse)
def create_form_submission(
    submission_in: FormSubmissionCreate,
    session: SessionDep,
    current_user: CurrentUser,
) -> Any:
    submission = crud.create_form_submission(
        session=session, owner_id=current_user.id, submission_in=submission_in
    )
    return FormSubmissionResponse(submission=FormSubmissionPublic.model_validate(submission))
