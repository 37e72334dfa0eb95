from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# PUBLIC_INTERFACE
class TodoIn(BaseModel):
    """
    Schema for a Todo item sent by clients (create/replace) or proposed by the
    instruction interpreter.

    `id` is ignored on create and must match the path id on replace. `category`
    is always recomputed by the server on the REST endpoints.
    """

    model_config = ConfigDict(
        extra="ignore",
        json_schema_extra={
            "example": {
                "id": 0,
                "title": "Buy groceries",
                "description": "Milk, eggs, bread",
                "category": None,
                "completed": False,
            }
        },
    )

    id: int = Field(default=0, description="Identifier of the todo item; ignored on create")
    title: str = Field(..., description="Short title for the todo item", min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, description="Optional detailed description")
    category: Optional[str] = Field(default=None, description="Category; computed by the server")
    completed: bool = Field(default=False, description="Completion status flag")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """
        Strip whitespace and enforce 1..200 length.
        """
        if v is None:
            raise ValueError("title is required")
        s = v.strip()
        if not (1 <= len(s) <= 200):
            raise ValueError("title length must be between 1 and 200 characters")
        return s


# PUBLIC_INTERFACE
class TodoOut(BaseModel):
    """
    Schema returned by the API for a Todo item.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": 123,
                "title": "Buy groceries",
                "description": "Milk, eggs, bread",
                "category": "Shopping",
                "completed": False,
            }
        }
    )

    id: int = Field(..., description="Unique identifier of the todo item")
    title: str = Field(..., description="Short title for the todo item")
    description: Optional[str] = Field(default=None, description="Optional detailed description")
    category: Optional[str] = Field(default=None, description="Category assigned by the interpreter")
    completed: bool = Field(..., description="Completion status flag")


# PUBLIC_INTERFACE
class ProcessInstructionRequest(BaseModel):
    """
    Free-text instruction plus the prior chat messages of the conversation.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "instruction": "Remind me to call the dentist tomorrow",
                "chatHistory": ["Show my work todos"],
            }
        },
    )

    instruction: Optional[str] = Field(default=None, description="Instruction in natural language")
    chat_history: List[Optional[str]] = Field(
        default_factory=list,
        alias="chatHistory",
        description="Earlier user messages, oldest first; null entries are skipped",
    )

    @field_validator("chat_history", mode="before")
    @classmethod
    def default_history(cls, v: Any) -> Any:
        """Treat an explicit null history as an empty conversation."""
        return [] if v is None else v


# PUBLIC_INTERFACE
class ProposedTodo(BaseModel):
    """
    Todo as proposed by the interpreter. Every field is optional; handlers that
    store it validate it into TodoIn first.
    """

    model_config = ConfigDict(extra="ignore")

    id: Optional[int] = None
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    completed: Optional[bool] = None


# PUBLIC_INTERFACE
class InstructionResult(BaseModel):
    """
    Structured intent returned by the instruction interpreter. Transient, never stored.
    """

    model_config = ConfigDict(extra="ignore")

    action: str = Field(..., description="Intent label driving the dispatch")
    id: Optional[int] = Field(default=None, description="Target todo id, when the action addresses one")
    todo: Optional[ProposedTodo] = Field(default=None, description="Todo payload for create/update")
    title: Optional[str] = Field(default=None, description="Search key or category filter")
    category: Optional[str] = Field(default=None, description="Category for counting")
    message: Optional[str] = Field(default=None, description="Human-readable explanation")


# PUBLIC_INTERFACE
class ProcessResponse(BaseModel):
    """
    Envelope returned by the instruction endpoint; `data` varies by action.
    """

    summary: Optional[str] = Field(default=None, description="Short human-readable outcome")
    data: Optional[Dict[str, Any]] = Field(default=None, description="Action specific payload")
