from fastapi import APIRouter

from app.api.dependencies import AuthServiceDep, CurrentUserDep, StoreDep
from app.core.auth_service import to_public
from app.core.exceptions import NotFoundError
from app.models.user import ProfileUpdate, UserPublic

router = APIRouter(
    prefix="/users",
    tags=["users"],
    responses={404: {"description": "User not found"}},
)


@router.get("/me", response_model=UserPublic)
async def get_my_profile(store: StoreDep, current_user: CurrentUserDep) -> UserPublic:
    """
    Profile of the authenticated user.

    Args:
        store: Record store (injected)
        current_user: Current authenticated user

    Returns:
        The public user projection

    Raises:
        NotFoundError: 404 if the user no longer exists
    """
    user = store.get_user(current_user.sub)
    if not user:
        raise NotFoundError("User not found")
    return to_public(user)


@router.put("/me", response_model=UserPublic)
async def update_my_profile(
    request: ProfileUpdate,
    auth: AuthServiceDep,
    current_user: CurrentUserDep,
) -> UserPublic:
    """
    Update display name, position or profile image of the authenticated user.

    Only the fields present in the request are changed.

    Args:
        request: Fields to change
        auth: Auth service (injected)
        current_user: Current authenticated user

    Returns:
        The updated profile
    """
    user = auth.update_profile(current_user.sub, request)
    return to_public(user)
