from __future__ import annotations

import json
from abc import ABC, abstractmethod
from functools import lru_cache
from typing import Dict, List, Optional, Sequence

import structlog
from pydantic import ValidationError

from .actions import Action
from .errors import InterpreterError
from .llm_client import LLMClient
from .schemas import InstructionResult, TodoIn
from .settings import get_settings

log = structlog.get_logger()


# PUBLIC_INTERFACE
class InstructionInterpreter(ABC):
    """Natural-language capability consumed by the todo endpoints."""

    name: str = "abstract"

    @abstractmethod
    def categorize(self, todo: TodoIn) -> Optional[str]:
        """Return the category for `todo`, or None when none applies."""

    @abstractmethod
    def process_instruction(self, instruction: str, chat_history: Sequence[Optional[str]]) -> InstructionResult:
        """Translate a user instruction plus earlier messages into a structured intent."""


_CATEGORIZE_PROMPT = """You sort todo items into categories.
Pick the single best category for the todo the user sends.
Prefer one of these categories: {categories}.
Answer with the category name only, without punctuation or explanation."""

_INSTRUCTION_PROMPT = """You are the assistant of a todo list application.
Read the user's latest message, using the earlier messages as context, and
answer with exactly one JSON object of this shape:

{{
  "action": one of {actions},
  "id": integer id of the todo the action targets, or null,
  "todo": {{"id": int, "title": str, "description": str, "category": str, "completed": bool}} or null,
  "title": search keyword (search_todos) or category name (filter_todos), or null,
  "category": category name (count_todos_by_category), or null,
  "message": short explanation for the user, or null
}}

Rules:
- create_todo and update_todo must carry "todo"; pick its category from: {categories}.
- Before deleting, answer confirm_delete_todo with the id and a question in "message";
  answer delete_todo only after the user confirmed.
- Use clarification_needed with a question in "message" when the request is ambiguous.
- Use what_can_you_do when the user asks about your abilities and non_todo_related
  for requests unrelated to todos.
- Use clear_search when the user wants to see all todos again.
- Use error with a "message" when you cannot handle the request."""


class OpenAIInterpreter(InstructionInterpreter):
    """
    Interpreter backed by an OpenAI-compatible chat model.

    Categorization is a plain completion; instructions use JSON mode and the
    answer is validated into an InstructionResult.
    """

    name = "openai"

    def __init__(self, client: LLMClient, categories: Sequence[str]) -> None:
        self._client = client
        self._categories = list(categories)

    def _categories_text(self) -> str:
        return ", ".join(self._categories) if self._categories else "any short noun"

    def categorize(self, todo: TodoIn) -> Optional[str]:
        text = todo.title if not todo.description else f"{todo.title}\n{todo.description}"
        messages = [
            {"role": "system", "content": _CATEGORIZE_PROMPT.format(categories=self._categories_text())},
            {"role": "user", "content": text},
        ]
        answer = self._client.complete(messages, max_tokens=16).strip().strip(".\"'")
        return answer or None

    def _build_messages(self, instruction: str, chat_history: Sequence[Optional[str]]) -> List[Dict[str, str]]:
        system = _INSTRUCTION_PROMPT.format(
            actions=", ".join(a.value for a in Action.known()),
            categories=self._categories_text(),
        )
        messages = [{"role": "system", "content": system}]
        messages.extend({"role": "user", "content": m} for m in chat_history if m)
        messages.append({"role": "user", "content": instruction})
        return messages

    def process_instruction(self, instruction: str, chat_history: Sequence[Optional[str]]) -> InstructionResult:
        raw = self._client.complete(self._build_messages(instruction, chat_history), json_mode=True)
        try:
            result = InstructionResult.model_validate(json.loads(raw))
        except (ValueError, ValidationError) as e:
            log.warning("unparseable interpreter answer", raw=raw[:500], error=str(e))
            raise InterpreterError("AI service returned an invalid instruction result", cause=e) from e
        log.info("instruction interpreted", action=result.action, todo_id=result.id)
        return result


# PUBLIC_INTERFACE
@lru_cache
def get_interpreter() -> InstructionInterpreter:
    """Factory returning the process-wide interpreter built from settings."""
    settings = get_settings()
    client = LLMClient(
        model=settings.openai_model,
        api_key=settings.openai_api_key,
        base_url=settings.openai_base_url,
        timeout=settings.openai_timeout,
    )
    return OpenAIInterpreter(client, settings.todo_categories)
