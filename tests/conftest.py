import os
from typing import List, Optional, Sequence, Tuple

import pytest
from fastapi.testclient import TestClient

# Default to the memory backend so tests never touch the filesystem
os.environ.setdefault("PERSISTENCE_BACKEND", "memory")

from smart_todo.interpreter import InstructionInterpreter, get_interpreter  # noqa: E402
from smart_todo.main import app  # noqa: E402
from smart_todo.repositories import InMemoryRepository, get_repository  # noqa: E402
from smart_todo.schemas import InstructionResult, TodoIn  # noqa: E402


class FakeInterpreter(InstructionInterpreter):
    """Deterministic interpreter: work-ish titles are 'Work', everything else 'Personal'."""

    name = "fake"

    def __init__(self) -> None:
        self.next_result = InstructionResult(action="what_can_you_do")
        self.categorized: List[TodoIn] = []
        self.instructions: List[Tuple[str, List[Optional[str]]]] = []

    def categorize(self, todo: TodoIn) -> Optional[str]:
        self.categorized.append(todo)
        text = f"{todo.title} {todo.description or ''}".lower()
        return "Work" if "report" in text or "meeting" in text else "Personal"

    def process_instruction(self, instruction: str, chat_history: Sequence[Optional[str]]) -> InstructionResult:
        self.instructions.append((instruction, list(chat_history)))
        return self.next_result


@pytest.fixture
def repo():
    return InMemoryRepository()


@pytest.fixture
def interpreter():
    return FakeInterpreter()


@pytest.fixture
def client(repo, interpreter):
    app.dependency_overrides[get_repository] = lambda: repo
    app.dependency_overrides[get_interpreter] = lambda: interpreter
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
