"""Shared fixtures: an in-memory language server backend."""

import pytest

from lspcontext_mcp.errors import BackendError, DefinitionExpandError
from lspcontext_mcp.protocol import Location, Position, Range, SymbolResultSet


class FakeBackend:
    """Backend double recording every call."""

    def __init__(self):
        self.symbol_payload = []
        self.symbol_error = None
        self.references_by_uri = {}
        self.references_error = None
        self.definitions = {}
        self.fail_open = set()
        self.symbol_queries = []
        self.opened = []
        self.reference_calls = []

    async def symbol(self, query):
        self.symbol_queries.append(query)
        if self.symbol_error:
            raise self.symbol_error
        return SymbolResultSet(self.symbol_payload)

    async def open_file(self, path):
        if path in self.fail_open:
            raise BackendError(f"cannot open {path}")
        self.opened.append(path)

    async def references(self, uri, position, include_declaration=False):
        self.reference_calls.append((uri, position, include_declaration))
        if self.references_error:
            raise self.references_error
        return list(self.references_by_uri.get(uri, []))

    async def get_full_definition(self, location):
        if location.uri not in self.definitions:
            raise DefinitionExpandError(f"no definition at {location.uri}")
        return self.definitions[location.uri]


def make_location(uri, line, character, end_line=None, end_character=None):
    """Location helper with 0-based coordinates."""
    end = Position(
        line if end_line is None else end_line,
        character if end_character is None else end_character,
    )
    return Location(uri, Range(Position(line, character), end))


def symbol_item(name, uri, line=0, character=0, kind=12, container=None, lightweight=False):
    """Raw workspace/symbol item as a language server would send it."""
    item = {
        "name": name,
        "location": {
            "uri": uri,
            "range": {
                "start": {"line": line, "character": character},
                "end": {"line": line, "character": character + len(name)},
            },
        },
    }
    if kind is not None:
        item["kind"] = kind
    if container is not None:
        item["containerName"] = container
    if lightweight:
        item["data"] = {}
    return item


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture
def loc():
    return make_location


@pytest.fixture
def sym():
    return symbol_item
