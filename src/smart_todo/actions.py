from __future__ import annotations

from enum import Enum
from typing import List, Optional


# PUBLIC_INTERFACE
class Action(str, Enum):
    """
    Closed set of intents the instruction interpreter may return.

    INVALID stands for any label outside the known set and is never sent by
    the interpreter itself.
    """

    CREATE_TODO = "create_todo"
    UPDATE_TODO = "update_todo"
    CONFIRM_DELETE_TODO = "confirm_delete_todo"
    DELETE_TODO = "delete_todo"
    SEARCH_TODOS = "search_todos"
    FILTER_TODOS = "filter_todos"
    COUNT_TODOS_BY_CATEGORY = "count_todos_by_category"
    CLARIFICATION_NEEDED = "clarification_needed"
    WHAT_CAN_YOU_DO = "what_can_you_do"
    NON_TODO_RELATED = "non_todo_related"
    CLEAR_SEARCH = "clear_search"
    ERROR = "error"
    INVALID = "invalid"

    @classmethod
    def parse(cls, value: Optional[str]) -> "Action":
        """Map an interpreter label to an Action; unknown labels become INVALID."""
        if value is None or value == cls.INVALID.value:
            return cls.INVALID
        try:
            return cls(value)
        except ValueError:
            return cls.INVALID

    @classmethod
    def known(cls) -> List["Action"]:
        """Every action the interpreter is allowed to answer with."""
        return [a for a in cls if a is not cls.INVALID]
