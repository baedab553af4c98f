"""Admin endpoints: reservation management and user administration (RBAC)."""

from typing import Annotated

from fastapi import APIRouter, Depends

from app.api.deps import get_reservations, get_users, require_permissions, require_roles
from app.repositories import ReservationRepository, UserRepository
from app.schemas.auth import (
    DeletedUserResponse,
    RoleUpdate,
    UserOut,
    UserResponse,
    UsersListResponse,
)
from app.schemas.reservation import (
    ReservationDeletedResponse,
    ReservationOut,
    ReservationResponse,
    ReservationsListResponse,
    ReservationStatusUpdate,
)
from app.services import accounts
from app.services import reservations as reservation_service
from app.services.audit import audit_action

router = APIRouter(dependencies=[Depends(require_roles("admin"))])


@router.get(
    "/reservations",
    response_model=ReservationsListResponse,
    dependencies=[Depends(require_permissions("view_reservations"))],
)
def list_reservations(
    reservations: Annotated[ReservationRepository, Depends(get_reservations)],
) -> ReservationsListResponse:
    """All reservations, newest first, each with its owner's id, name and email."""
    items = reservation_service.list_all(reservations)
    return ReservationsListResponse(
        message="All reservations retrieved",
        count=len(items),
        reservations=[ReservationOut.model_validate(item) for item in items],
    )


@router.put(
    "/reservations/{id}",
    response_model=ReservationResponse,
    dependencies=[
        Depends(require_permissions("manage_reservations")),
        Depends(audit_action("UPDATE_RESERVATION", "reservation")),
    ],
)
def update_reservation_status(
    id: str,
    body: ReservationStatusUpdate,
    reservations: Annotated[ReservationRepository, Depends(get_reservations)],
) -> ReservationResponse:
    """Set status to confirmed, cancelled or completed."""
    reservation = reservation_service.set_status(reservations, id, body.status)
    return ReservationResponse(
        message="Reservation updated", reservation=ReservationOut.model_validate(reservation)
    )


@router.delete(
    "/reservations/{id}",
    response_model=ReservationDeletedResponse,
    dependencies=[
        Depends(require_permissions("manage_reservations")),
        Depends(audit_action("DELETE_RESERVATION", "reservation")),
    ],
)
def delete_reservation(
    id: str,
    reservations: Annotated[ReservationRepository, Depends(get_reservations)],
) -> ReservationDeletedResponse:
    reservation_service.delete_reservation(reservations, id)
    return ReservationDeletedResponse(message="Reservation deleted", deleted_id=id)


@router.get(
    "/users",
    response_model=UsersListResponse,
    dependencies=[Depends(require_permissions("view_users"))],
)
def list_users(
    users: Annotated[UserRepository, Depends(get_users)],
) -> UsersListResponse:
    """List all users (no passwords)."""
    records = users.list_all()
    return UsersListResponse(
        message="Users retrieved",
        count=len(records),
        users=[UserOut.model_validate(u) for u in records],
    )


@router.put(
    "/users/{id}/role",
    response_model=UserResponse,
    dependencies=[
        Depends(require_permissions("update_users")),
        Depends(audit_action("UPDATE_ROLE", "user")),
    ],
)
def update_user_role(
    id: str,
    body: RoleUpdate,
    users: Annotated[UserRepository, Depends(get_users)],
) -> UserResponse:
    user = accounts.change_role(users, id, body.role)
    return UserResponse(message="User role updated", user=UserOut.model_validate(user))


@router.delete(
    "/users/{id}",
    response_model=DeletedUserResponse,
    dependencies=[
        Depends(require_permissions("delete_users")),
        Depends(audit_action("DELETE_USER", "user")),
    ],
)
def delete_user(
    id: str,
    users: Annotated[UserRepository, Depends(get_users)],
) -> DeletedUserResponse:
    deleted = accounts.delete_user(users, id)
    return DeletedUserResponse(message="User deleted successfully", deleted_user=deleted.email)
