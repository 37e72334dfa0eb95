"""
Maps an InstructionResult onto storage operations and an HTTP response.

Each Action has exactly one handler in ACTION_HANDLERS, INVALID included, so a
new Action cannot fall through unnoticed.
"""
from __future__ import annotations

from typing import Any, Callable, Dict

import structlog
from fastapi import HTTPException, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from .actions import Action
from .repositories import Repository
from .schemas import InstructionResult, TodoIn

log = structlog.get_logger()

CAPABILITIES_MESSAGE = (
    "I can help you manage your todo list. You can ask me to create, update, delete, show, "
    "and count your todos."
)
OUT_OF_DOMAIN_MESSAGE = "I can only help with your todo list."

Handler = Callable[[InstructionResult, Repository], JSONResponse]


def _ok(summary: Any, data: Any) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_200_OK, content=jsonable_encoder({"summary": summary, "data": data}))


def _require_id(result: InstructionResult, purpose: str) -> int:
    if result.id is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Todo ID is required for {purpose}.")
    return result.id


def _create_todo(result: InstructionResult, repo: Repository) -> JSONResponse:
    # The interpreter already chose the category; no categorization pass here.
    if result.todo is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Todo payload is required for creating.")
    try:
        todo = TodoIn.model_validate(result.todo.model_dump(exclude_none=True))
    except ValidationError as e:
        log.warning("interpreter proposed an invalid todo", error=str(e))
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Todo payload is invalid.") from e
    created = repo.insert(todo)
    log.info("todo created", todo_id=created["id"], category=created["category"], via="instruction")
    return _ok("Created todo", created)


def _update_todo(result: InstructionResult, repo: Repository) -> JSONResponse:
    todo_id = _require_id(result, "updating")
    if result.todo is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Todo with ID {todo_id} not found.")
    # Nothing is written; the proposed todo is only echoed back.
    return _ok("Updated todo", result.todo)


def _confirm_delete_todo(result: InstructionResult, repo: Repository) -> JSONResponse:
    todo_id = _require_id(result, "deleting")
    return _ok(result.message, {"id": todo_id, "action": Action.CONFIRM_DELETE_TODO.value})


def _delete_todo(result: InstructionResult, repo: Repository) -> JSONResponse:
    todo_id = _require_id(result, "deleting")
    if repo.delete(todo_id):
        log.info("todo deleted", todo_id=todo_id, via="instruction")
    else:
        log.warning("todo to delete was not found", todo_id=todo_id, via="instruction")
    return _ok("Deleted todo", {"id": todo_id})


def _search_todos(result: InstructionResult, repo: Repository) -> JSONResponse:
    todos = repo.search_by_keyword(result.title)
    return _ok(
        f"Showing todos with the search key: {result.title}",
        {"todos": todos, "action": Action.SEARCH_TODOS.value},
    )


def _filter_todos(result: InstructionResult, repo: Repository) -> JSONResponse:
    filtered = repo.filter_by_category(result.title)
    return _ok(
        f"Showing todos with the filter applied: Category={result.title}",
        {"filteredTodos": filtered, "action": Action.FILTER_TODOS.value},
    )


def _count_todos_by_category(result: InstructionResult, repo: Repository) -> JSONResponse:
    count = repo.count_by_category(result.category)
    return _ok(
        f"Counted todos in category {result.category}",
        {"category": result.category, "count": count},
    )


def _clarification_needed(result: InstructionResult, repo: Repository) -> JSONResponse:
    return _ok("Clarification needed", {"message": result.message})


def _what_can_you_do(result: InstructionResult, repo: Repository) -> JSONResponse:
    return _ok("Available actions", {"message": CAPABILITIES_MESSAGE})


def _non_todo_related(result: InstructionResult, repo: Repository) -> JSONResponse:
    return _ok("Non-todo related", {"message": OUT_OF_DOMAIN_MESSAGE})


def _clear_search(result: InstructionResult, repo: Repository) -> JSONResponse:
    return _ok("Search filter cleared", {"action": Action.CLEAR_SEARCH.value})


def _error(result: InstructionResult, repo: Repository) -> JSONResponse:
    log.error("interpreter reported an error", message=result.message)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"summary": "Error", "data": {"message": result.message}},
    )


def _invalid(result: InstructionResult, repo: Repository) -> JSONResponse:
    log.warning("interpreter returned an unknown action", action=result.action)
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid action.")


ACTION_HANDLERS: Dict[Action, Handler] = {
    Action.CREATE_TODO: _create_todo,
    Action.UPDATE_TODO: _update_todo,
    Action.CONFIRM_DELETE_TODO: _confirm_delete_todo,
    Action.DELETE_TODO: _delete_todo,
    Action.SEARCH_TODOS: _search_todos,
    Action.FILTER_TODOS: _filter_todos,
    Action.COUNT_TODOS_BY_CATEGORY: _count_todos_by_category,
    Action.CLARIFICATION_NEEDED: _clarification_needed,
    Action.WHAT_CAN_YOU_DO: _what_can_you_do,
    Action.NON_TODO_RELATED: _non_todo_related,
    Action.CLEAR_SEARCH: _clear_search,
    Action.ERROR: _error,
    Action.INVALID: _invalid,
}


# PUBLIC_INTERFACE
def dispatch(result: InstructionResult, repo: Repository) -> JSONResponse:
    """Run the handler for `result.action` and return its response."""
    action = Action.parse(result.action)
    log.info("dispatching action", action=action.value, raw_action=result.action)
    return ACTION_HANDLERS[action](result, repo)
