from __future__ import annotations

from typing import Optional


class ConcurrencyConflictError(Exception):
    """
    The store reported that a todo changed underneath a replace even though it
    still exists. Never retried; surfaced to the caller as a fatal error.
    """

    def __init__(self, todo_id: int) -> None:
        super().__init__(f"Todo with ID {todo_id} was modified concurrently.")
        self.todo_id = todo_id


class InterpreterError(Exception):
    """The instruction interpreter could not produce a usable answer."""

    def __init__(self, message: str, cause: Optional[Exception] = None) -> None:
        super().__init__(message)
        self.cause = cause
