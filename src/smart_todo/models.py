from __future__ import annotations

from typing import Optional, TypedDict


# PUBLIC_INTERFACE
class TodoEntity(TypedDict):
    """
    A lightweight domain model representing a stored Todo item.

    Fields:
    - id: Unique integer identifier, assigned by the repository on insert and never changed
    - title: Short title (trimmed on input via schemas)
    - description: Optional detailed description
    - category: Category derived by the instruction interpreter, or None
    - completed: Boolean completion flag
    """

    id: int
    title: str
    description: Optional[str]
    category: Optional[str]
    completed: bool
