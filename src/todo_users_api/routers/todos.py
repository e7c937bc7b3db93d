from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends, HTTPException, status

from ..auth import require_admin
from ..dependencies import get_todo_service
from ..schemas import BulkUpdateOut, MessageOut, TodoBulkItem, TodoCreate, TodoMutationOut, TodoOut, TodoUpdate
from ..services import TodoService
from ..utils import bulk_envelope, raise_for_outcome

router = APIRouter(
    prefix="/api/todos",
    tags=["todos"],
)


def _todo_out(record: Dict[str, Any]) -> Dict[str, Any]:
    return TodoOut(**record).model_dump(mode="json")


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=List[TodoOut],
    summary="List Todos",
    description="Return every todo. Restricted to admins when role auth is enabled.",
    dependencies=[Depends(require_admin)],
    responses={
        200: {"description": "List retrieved successfully"},
        401: {"description": "Not authenticated"},
        403: {"description": "Admin role required"},
    },
)
def list_todos(svc: TodoService = Depends(get_todo_service)) -> List[TodoOut]:
    """
    List all todos.
    """
    return [TodoOut(**t) for t in svc.list_all()]


# PUBLIC_INTERFACE
@router.get(
    "/{todo_id}",
    response_model=TodoOut,
    summary="Get Todo",
    description="Get a single Todo item by ID.",
    responses={
        200: {"description": "Todo found"},
        404: {"description": "Todo not found"},
    },
)
def get_todo(todo_id: int, svc: TodoService = Depends(get_todo_service)) -> TodoOut:
    """
    Retrieve a single Todo item by its ID.
    """
    item = svc.get(todo_id)
    if item is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Todo not found")
    return TodoOut(**item)


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=TodoMutationOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create Todo",
    description="Create a new Todo item and return the created resource.",
    responses={
        201: {"description": "Todo created successfully"},
        422: {"description": "Validation error"},
        500: {"description": "Failed to create todo"},
    },
)
def create_todo(payload: TodoCreate, svc: TodoService = Depends(get_todo_service)) -> TodoMutationOut:
    """
    Create a new Todo.
    """
    result = svc.create(payload.model_dump())
    raise_for_outcome(result)
    return TodoMutationOut(message=result.message, todo=TodoOut(**result.data))


# PUBLIC_INTERFACE
@router.put(
    "",
    response_model=BulkUpdateOut,
    summary="Replace Todos in bulk",
    description=(
        "Replace several todos in one request. Items are applied in order; a failing item "
        "does not stop the others and is reported in its own entry."
    ),
    responses={
        200: {"description": "Per-item results"},
        400: {"description": "Empty batch"},
    },
)
def replace_todos(
    payload: List[TodoBulkItem] = Body(...),
    svc: TodoService = Depends(get_todo_service),
) -> Dict[str, Any]:
    """
    Bulk full update of todos.
    """
    if not payload:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid or empty todo data")
    items = [(item.todo_id, item.model_dump(exclude={"todo_id"})) for item in payload]
    return bulk_envelope("Todos", svc.update_bulk(items), _todo_out)


# PUBLIC_INTERFACE
@router.put(
    "/{todo_id}",
    response_model=TodoMutationOut,
    summary="Replace Todo",
    description="Replace every field of an existing Todo item. All fields are required.",
    responses={
        200: {"description": "Todo updated"},
        404: {"description": "Todo not found"},
        500: {"description": "Failed to update todo"},
    },
)
def put_todo(todo_id: int, payload: TodoCreate, svc: TodoService = Depends(get_todo_service)) -> TodoMutationOut:
    """
    Full update (replace) of a Todo item.
    """
    result = svc.update_full(todo_id, payload.model_dump())
    raise_for_outcome(result)
    return TodoMutationOut(message=result.message, todo=TodoOut(**result.data))


# PUBLIC_INTERFACE
@router.patch(
    "/{todo_id}",
    response_model=TodoMutationOut,
    summary="Update Todo",
    description="Partially update fields of a Todo item; omitted fields keep their value.",
    responses={
        200: {"description": "Todo updated"},
        404: {"description": "Todo not found"},
    },
)
def patch_todo(todo_id: int, payload: TodoUpdate, svc: TodoService = Depends(get_todo_service)) -> TodoMutationOut:
    """
    Partial update of a Todo item.
    """
    result = svc.update_partial(todo_id, payload.model_dump(exclude_unset=True, exclude_none=True))
    raise_for_outcome(result)
    return TodoMutationOut(message=result.message, todo=TodoOut(**result.data))


# PUBLIC_INTERFACE
@router.delete(
    "/{todo_id}",
    response_model=MessageOut,
    summary="Delete Todo",
    description="Delete a Todo item by ID.",
    responses={
        200: {"description": "Todo deleted"},
        404: {"description": "Todo not found"},
    },
)
def delete_todo(todo_id: int, svc: TodoService = Depends(get_todo_service)) -> MessageOut:
    """
    Delete a Todo. Returns 404 if it does not exist.
    """
    result = svc.delete(todo_id)
    raise_for_outcome(result)
    return MessageOut(message=result.message)
