"""Profile updates, limited to the account owner (admins may update anyone)."""

from typing import Annotated

from fastapi import APIRouter, Depends

from app.api.deps import get_users, require_ownership
from app.repositories import UserRepository
from app.schemas.auth import ProfileUpdate, UserOut, UserResponse
from app.services import accounts
from app.services.audit import audit_action

router = APIRouter()


@router.put(
    "/{id}",
    response_model=UserResponse,
    dependencies=[
        Depends(require_ownership),
        Depends(audit_action("UPDATE_PROFILE", "user")),
    ],
)
def update_profile(
    id: str,
    body: ProfileUpdate,
    users: Annotated[UserRepository, Depends(get_users)],
) -> UserResponse:
    user = accounts.update_profile(users, id, name=body.name, phone=body.phone)
    return UserResponse(message="Profile updated successfully", user=UserOut.model_validate(user))
