"""Pytest fixtures shared by the chat_context test suites."""

from pathlib import Path
from typing import List, Optional

import pytest

from chat_context.events import Emitter
from chat_context.prompt_references import NonPromptSnippetFile, PromptReferenceError


class FakeReference:
    """In-memory reference tree node with a manually driven state."""

    def __init__(
        self,
        uri,
        error_condition: Optional[PromptReferenceError] = None,
        children=(),
    ):
        self.uri = Path(uri)
        self.error_condition = error_condition
        self.children: List["FakeReference"] = list(children)
        self.resolve_calls = 0
        self.disposed = False
        self._on_update = Emitter("fake reference update")

    def flatten(self) -> List["FakeReference"]:
        result = [self]
        for child in self.children:
            result.extend(child.flatten())
        return result

    @property
    def valid_file_reference_uris(self) -> List[Path]:
        return [
            ref.uri for ref in self.flatten()[1:]
            if ref.error_condition is None
            or isinstance(ref.error_condition, NonPromptSnippetFile)
        ]

    def on_update(self, callback):
        return self._on_update.subscribe(callback)

    @property
    def listener_count(self) -> int:
        return self._on_update.listener_count

    def resolve(self) -> "FakeReference":
        self.resolve_calls += 1
        return self

    def update(self, error_condition=None, children=None) -> None:
        """Simulate the resolver finishing with a new state."""
        self.error_condition = error_condition
        if children is not None:
            self.children = list(children)
        self._on_update.fire()

    def dispose(self) -> None:
        self.disposed = True
        self._on_update.dispose()


class FakeReferenceFactory:
    """Reference factory recording the references it creates."""

    def __init__(self):
        self.created: List[FakeReference] = []

    def __call__(self, uri) -> FakeReference:
        reference = FakeReference(uri)
        self.created.append(reference)
        return reference

    @property
    def last(self) -> FakeReference:
        return self.created[-1]


@pytest.fixture
def fake_reference():
    """The FakeReference class, for building trees by hand."""
    return FakeReference


@pytest.fixture
def reference_factory():
    return FakeReferenceFactory()
