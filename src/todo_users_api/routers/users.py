from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends, HTTPException, status

from ..dependencies import get_user_service
from ..schemas import BulkUpdateOut, MessageOut, UserBulkItem, UserCreate, UserMutationOut, UserOut, UserReplace, UserUpdate
from ..services import UserService
from ..utils import bulk_envelope, raise_for_outcome

router = APIRouter(
    prefix="/api/users",
    tags=["users"],
)


def _user_out(record: Dict[str, Any]) -> Dict[str, Any]:
    return UserOut(**record).model_dump(mode="json")


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=List[UserOut],
    summary="List Users",
    description="Return every user. Password digests are never included.",
)
def list_users(svc: UserService = Depends(get_user_service)) -> List[UserOut]:
    return [UserOut(**u) for u in svc.list_all()]


# PUBLIC_INTERFACE
@router.get(
    "/{user_id}",
    response_model=UserOut,
    summary="Get User",
    responses={404: {"description": "User not found"}},
)
def get_user(user_id: int, svc: UserService = Depends(get_user_service)) -> UserOut:
    user = svc.get(user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return UserOut(**user)


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=UserMutationOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create User",
    description="Register a user. The password is stored as a bcrypt digest.",
    responses={
        201: {"description": "User created"},
        409: {"description": "Email already registered"},
    },
)
def create_user(payload: UserCreate, svc: UserService = Depends(get_user_service)) -> UserMutationOut:
    result = svc.create(payload.model_dump())
    raise_for_outcome(result)
    return UserMutationOut(message=result.message, user=UserOut(**result.data))


# PUBLIC_INTERFACE
@router.put(
    "",
    response_model=BulkUpdateOut,
    summary="Update Users in bulk",
    description=(
        "Update several users in one request. Items are applied in order without an existence "
        "check; each item reports its own success or failure."
    ),
    responses={
        200: {"description": "Per-item results"},
        400: {"description": "Empty batch"},
    },
)
def update_users(
    payload: List[UserBulkItem] = Body(...),
    svc: UserService = Depends(get_user_service),
) -> Dict[str, Any]:
    if not payload:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid or empty user data")
    items = [(item.user_id, item.model_dump(exclude={"user_id"}, exclude_unset=True)) for item in payload]
    return bulk_envelope("Users", svc.update_bulk(items), _user_out)


# PUBLIC_INTERFACE
@router.put(
    "/{user_id}",
    response_model=UserMutationOut,
    summary="Replace User",
    description="Replace a user's fields. Omitting password keeps the current one.",
    responses={
        404: {"description": "User not found"},
        500: {"description": "Failed to update user"},
    },
)
def put_user(user_id: int, payload: UserReplace, svc: UserService = Depends(get_user_service)) -> UserMutationOut:
    fields = payload.model_dump()
    if "password" not in payload.model_fields_set:
        fields.pop("password", None)
    result = svc.update_full(user_id, fields)
    raise_for_outcome(result)
    return UserMutationOut(message=result.message, user=UserOut(**result.data))


# PUBLIC_INTERFACE
@router.patch(
    "/{user_id}",
    response_model=UserMutationOut,
    summary="Update User",
    description="Partially update a user; omitted fields keep their value.",
    responses={404: {"description": "User not found"}},
)
def patch_user(user_id: int, payload: UserUpdate, svc: UserService = Depends(get_user_service)) -> UserMutationOut:
    result = svc.update_partial(user_id, payload.model_dump(exclude_unset=True, exclude_none=True))
    raise_for_outcome(result)
    return UserMutationOut(message=result.message, user=UserOut(**result.data))


# PUBLIC_INTERFACE
@router.delete(
    "/{user_id}",
    response_model=MessageOut,
    summary="Delete User",
    responses={404: {"description": "User not found"}},
)
def delete_user(user_id: int, svc: UserService = Depends(get_user_service)) -> MessageOut:
    result = svc.delete(user_id)
    raise_for_outcome(result)
    return MessageOut(message=result.message)
