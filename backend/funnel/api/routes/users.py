from typing import Any

from fastapi import APIRouter, HTTPException

from funnel import crud
from funnel.api.deps import CurrentUser, SessionDep
from funnel.models import UserPublic, UserRegister, UserResponse, UserUpdateDomain

router = APIRouter(prefix="/users", tags=["users"])


@router.post("/signup", response_model=UserPublic)
def register_user(session: SessionDep, user_in: UserRegister) -> Any:
    """
    Create new user without the need to be logged in.
    """
    user = crud.get_user_by_email(session=session, email=user_in.email)
    if user:
        raise HTTPException(
            status_code=400,
            detail="The user with this email already exists in the system",
        )
    return crud.create_user(session=session, user_create=user_in)


@router.get("/me", response_model=UserResponse)
def read_user_me(current_user: CurrentUser) -> Any:
    """
    Get current user.
    """
    return UserResponse(user=UserPublic.model_validate(current_user))


@router.patch("/me/domain", response_model=UserResponse)
def update_user_domain(
    *, session: SessionDep, current_user: CurrentUser, domain_in: UserUpdateDomain
) -> Any:
    user = crud.update_user_domain(
        session=session, db_user=current_user, custom_domain=domain_in.custom_domain
    )
    return UserResponse(user=UserPublic.model_validate(user))
