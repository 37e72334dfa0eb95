from __future__ import annotations

from typing import List

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.responses import JSONResponse

from ..dispatch import dispatch
from ..errors import ConcurrencyConflictError
from ..interpreter import InstructionInterpreter, get_interpreter
from ..repositories import ReplaceOutcome, Repository, get_repository
from ..schemas import ProcessInstructionRequest, ProcessResponse, TodoIn, TodoOut

log = structlog.get_logger()

router = APIRouter(
    prefix="/api/todo",
    tags=["todos"],
)


def _get_repo(repo: Repository = Depends(get_repository)) -> Repository:
    """
    Dependency wrapper for repository to keep signatures clean.
    """
    return repo


def _get_interpreter(interpreter: InstructionInterpreter = Depends(get_interpreter)) -> InstructionInterpreter:
    return interpreter


# PUBLIC_INTERFACE
@router.get(
    "/",
    response_model=List[TodoOut],
    summary="List Todos",
    description="Return every stored Todo item.",
    responses={200: {"description": "List retrieved successfully"}},
)
def list_todos(repo: Repository = Depends(_get_repo)) -> List[TodoOut]:
    """
    List all todos.
    """
    return [TodoOut(**it) for it in repo.list_all()]  # type: ignore[arg-type]


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
def get_todo(todo_id: int, repo: Repository = Depends(_get_repo)) -> TodoOut:
    """
    Retrieve a single Todo item by its ID.
    """
    item = repo.get(todo_id)
    if not item:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Todo not found")
    return TodoOut(**item)  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.post(
    "/",
    response_model=TodoOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create Todo",
    description=(
        "Create a new Todo item. The category is assigned by the instruction interpreter; "
        "any id or category in the body is ignored."
    ),
    responses={
        201: {"description": "Todo created successfully; Location points to the new resource"},
        502: {"description": "Instruction interpreter unavailable"},
    },
)
def create_todo(
    payload: TodoIn,
    request: Request,
    response: Response,
    repo: Repository = Depends(_get_repo),
    interpreter: InstructionInterpreter = Depends(_get_interpreter),
) -> TodoOut:
    """
    Categorize and store a new Todo.
    """
    category = interpreter.categorize(payload)
    created = repo.insert(payload.model_copy(update={"category": category}))
    log.info("todo created", todo_id=created["id"], category=category)
    response.headers["Location"] = str(request.url_for("get_todo", todo_id=created["id"]))
    return TodoOut(**created)  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.put(
    "/{todo_id}",
    response_model=TodoOut,
    summary="Replace Todo",
    description=(
        "Replace every field of an existing Todo item. The body id must equal the path id; "
        "the category is recomputed by the instruction interpreter."
    ),
    responses={
        200: {"description": "Todo updated"},
        400: {"description": "Body id does not match path id"},
        404: {"description": "Todo not found"},
        500: {"description": "Todo was modified concurrently"},
    },
)
def put_todo(
    todo_id: int,
    payload: TodoIn,
    repo: Repository = Depends(_get_repo),
    interpreter: InstructionInterpreter = Depends(_get_interpreter),
) -> TodoOut:
    """
    Full replace. The id check happens before the interpreter or the store is touched.
    """
    if payload.id != todo_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Todo ID mismatch")

    category = interpreter.categorize(payload)
    replacement = payload.model_copy(update={"category": category})
    outcome = repo.replace(todo_id, replacement)

    if outcome is ReplaceOutcome.NOT_FOUND:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Todo not found")
    if outcome is ReplaceOutcome.CONFLICT:
        raise ConcurrencyConflictError(todo_id)

    log.info("todo replaced", todo_id=todo_id, category=category)
    return TodoOut(**replacement.model_dump())


# PUBLIC_INTERFACE
@router.delete(
    "/{todo_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Todo",
    description="Delete a Todo item by ID.",
    responses={
        204: {"description": "Todo deleted"},
        404: {"description": "Todo not found"},
    },
)
def delete_todo(todo_id: int, repo: Repository = Depends(_get_repo)) -> None:
    """
    Delete a Todo. Returns 204 on success, 404 if not found.
    """
    ok = repo.delete(todo_id)
    if not ok:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Todo not found")
    log.info("todo deleted", todo_id=todo_id)
    return None


# PUBLIC_INTERFACE
@router.post(
    "/process",
    summary="Process Instruction",
    description=(
        "Send a free-text instruction and the prior chat messages to the instruction "
        "interpreter, then act on the returned intent. The shape of `data` depends on the action."
    ),
    responses={
        200: {"model": ProcessResponse, "description": "Action handled"},
        400: {"description": "Empty instruction, missing todo id, or invalid action"},
        404: {"description": "Update requested without a todo"},
        500: {"model": ProcessResponse, "description": "Interpreter reported an error"},
        502: {"description": "Instruction interpreter unavailable"},
    },
)
def process_instruction(
    payload: ProcessInstructionRequest,
    repo: Repository = Depends(_get_repo),
    interpreter: InstructionInterpreter = Depends(_get_interpreter),
) -> JSONResponse:
    """
    Interpret an instruction and dispatch on the resulting action.
    """
    if payload.instruction is None or not payload.instruction.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Instruction cannot be null or empty.")

    result = interpreter.process_instruction(payload.instruction, payload.chat_history)
    return dispatch(result, repo)
