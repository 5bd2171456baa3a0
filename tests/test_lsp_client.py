"""Tests for the stdio language server client."""

import asyncio
import json

import pytest

from lspcontext_mcp.errors import BackendError, DefinitionExpandError, JsonRpcError
from lspcontext_mcp.lsp.client import (
    LSPClient,
    encode_message,
    extract_span_text,
    find_symbol_span,
    read_message,
)
from lspcontext_mcp.protocol import Location, Position, Range


class FakeWriter:
    """Collects frames written by the client."""

    def __init__(self):
        self.data = bytearray()

    def write(self, data):
        self.data.extend(data)

    async def drain(self):
        pass

    async def messages(self):
        reader = asyncio.StreamReader()
        reader.feed_data(bytes(self.data))
        reader.feed_eof()
        found = []
        while True:
            message = await read_message(reader)
            if message is None:
                break
            found.append(message)
        return found


def doc_symbol(name, start, end, children=None):
    return {
        "name": name,
        "kind": 12,
        "range": {
            "start": {"line": start[0], "character": start[1]},
            "end": {"line": end[0], "character": end[1]},
        },
        "selectionRange": {
            "start": {"line": start[0], "character": start[1]},
            "end": {"line": start[0], "character": start[1] + len(name)},
        },
        "children": children or [],
    }


def test_encode_message_frames_body():
    frame = encode_message({"jsonrpc": "2.0", "id": 1, "method": "initialize"})
    header, body = frame.split(b"\r\n\r\n", 1)

    assert header == f"Content-Length: {len(body)}".encode()
    assert json.loads(body)["method"] == "initialize"


@pytest.mark.asyncio
async def test_read_message_handles_extra_headers_and_eof():
    reader = asyncio.StreamReader()
    body = json.dumps({"jsonrpc": "2.0", "id": 7, "result": None}).encode()
    reader.feed_data(
        b"Content-Type: application/vscode-jsonrpc; charset=utf-8\r\n"
        + f"Content-Length: {len(body)}\r\n\r\n".encode()
        + body
    )
    reader.feed_eof()

    assert (await read_message(reader))["id"] == 7
    assert await read_message(reader) is None


@pytest.mark.asyncio
async def test_read_message_rejects_missing_length():
    reader = asyncio.StreamReader()
    reader.feed_data(b"X-Nothing: 1\r\n\r\n{}")
    reader.feed_eof()

    with pytest.raises(BackendError):
        await read_message(reader)


@pytest.mark.asyncio
async def test_request_resolves_from_stream(tmp_path):
    client = LSPClient(["clangd"], tmp_path)
    reader, writer = asyncio.StreamReader(), FakeWriter()
    client.attach(reader, writer)

    pending = asyncio.create_task(client.request("workspace/symbol", {"query": "foo"}))
    await asyncio.sleep(0)
    reader.feed_data(encode_message({"jsonrpc": "2.0", "id": 1, "result": [{"name": "foo"}]}))

    assert await pending == [{"name": "foo"}]
    reader.feed_eof()
    sent = await writer.messages()
    assert sent[0]["method"] == "workspace/symbol"
    assert sent[0]["params"] == {"query": "foo"}


@pytest.mark.asyncio
async def test_error_response_raises_jsonrpc_error(tmp_path):
    client = LSPClient(["clangd"], tmp_path)
    reader = asyncio.StreamReader()
    client.attach(reader, FakeWriter())

    pending = asyncio.create_task(client.request("textDocument/references", {}))
    await asyncio.sleep(0)
    reader.feed_data(encode_message({
        "jsonrpc": "2.0", "id": 1, "error": {"code": -32600, "message": "bad request"},
    }))

    with pytest.raises(JsonRpcError) as exc_info:
        await pending
    assert exc_info.value.code == -32600
    reader.feed_eof()


@pytest.mark.asyncio
async def test_closed_stream_fails_pending_requests(tmp_path):
    client = LSPClient(["clangd"], tmp_path)
    reader = asyncio.StreamReader()
    client.attach(reader, FakeWriter())

    pending = asyncio.create_task(client.request("workspace/symbol", {"query": ""}))
    await asyncio.sleep(0)
    reader.feed_eof()

    with pytest.raises(BackendError):
        await pending


@pytest.mark.asyncio
async def test_bad_frame_closes_connection_for_later_requests(tmp_path):
    """After the stream breaks, new requests fail instead of waiting forever."""
    client = LSPClient(["clangd"], tmp_path)
    reader, writer = asyncio.StreamReader(), FakeWriter()
    client.attach(reader, writer)

    reader.feed_data(b"Content-Length: 9\r\n\r\n{not json")
    await client._tasks[0]

    with pytest.raises(BackendError, match="connection closed"):
        await asyncio.wait_for(client.request("workspace/symbol", {"query": "run"}), 1.0)
    assert await writer.messages() == []


@pytest.mark.asyncio
async def test_closed_stream_rejects_new_requests(tmp_path):
    client = LSPClient(["clangd"], tmp_path)
    reader = asyncio.StreamReader()
    client.attach(reader, FakeWriter())

    reader.feed_eof()
    await client._tasks[0]

    with pytest.raises(BackendError):
        await asyncio.wait_for(client.request("workspace/symbol", {"query": ""}), 1.0)


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [b"[1, 2]", b"\xff\xfe"])
async def test_read_message_rejects_non_object_bodies(body):
    reader = asyncio.StreamReader()
    reader.feed_data(f"Content-Length: {len(body)}\r\n\r\n".encode() + body)
    reader.feed_eof()

    with pytest.raises(BackendError):
        await read_message(reader)


@pytest.mark.asyncio
async def test_server_requests_get_answered(tmp_path):
    client = LSPClient(["clangd"], tmp_path)
    writer = FakeWriter()
    client._writer = writer

    await client._dispatch({
        "jsonrpc": "2.0", "id": 3, "method": "workspace/configuration",
        "params": {"items": [{"section": "a"}, {"section": "b"}]},
    })
    await client._dispatch({"jsonrpc": "2.0", "id": "p1", "method": "window/workDoneProgress/create"})

    assert await writer.messages() == [
        {"jsonrpc": "2.0", "id": 3, "result": [None, None]},
        {"jsonrpc": "2.0", "id": "p1", "result": None},
    ]


@pytest.mark.asyncio
async def test_open_file_sends_did_open_once(tmp_path):
    source = tmp_path / "main.cpp"
    source.write_text("int main() { return 0; }\n")
    client = LSPClient(["clangd"], tmp_path)
    writer = FakeWriter()
    client._writer = writer

    await client.open_file(str(source))
    await client.open_file(str(source))

    sent = await writer.messages()
    assert len(sent) == 1
    document = sent[0]["params"]["textDocument"]
    assert sent[0]["method"] == "textDocument/didOpen"
    assert document["languageId"] == "cpp"
    assert document["uri"] == source.resolve().as_uri()
    assert document["text"].startswith("int main()")


@pytest.mark.asyncio
async def test_open_missing_file_raises_backend_error(tmp_path):
    client = LSPClient(["clangd"], tmp_path)
    client._writer = FakeWriter()

    with pytest.raises(BackendError):
        await client.open_file(str(tmp_path / "missing.cpp"))


def test_find_symbol_span_picks_innermost():
    symbols = [
        doc_symbol("Stack", (0, 0), (10, 2), children=[
            doc_symbol("push", (2, 4), (5, 5)),
            doc_symbol("pop", (6, 4), (9, 5)),
        ]),
        doc_symbol("helper", (12, 0), (14, 1)),
    ]

    assert find_symbol_span(symbols, Position(7, 9)) == Range(Position(6, 4), Position(9, 5))
    assert find_symbol_span(symbols, Position(1, 3)) == Range(Position(0, 0), Position(10, 2))
    assert find_symbol_span(symbols, Position(11, 0)) is None


def test_find_symbol_span_flat_symbol_information():
    symbols = [{
        "name": "main",
        "kind": 12,
        "location": {
            "uri": "file:///main.c",
            "range": {"start": {"line": 0, "character": 0}, "end": {"line": 3, "character": 1}},
        },
    }]

    assert find_symbol_span(symbols, Position(0, 4)) == Range(Position(0, 0), Position(3, 1))


def test_extract_span_text():
    content = "a\nb\nc\nd"

    assert extract_span_text(content, Range(Position(1, 0), Position(2, 1))) == "b\nc"
    # Ending at column 0 of the next line excludes that line
    assert extract_span_text(content, Range(Position(0, 0), Position(2, 0))) == "a\nb"


class DocumentSymbolClient(LSPClient):
    """Client answering documentSymbol from a canned payload."""

    def __init__(self, workspace, payload):
        super().__init__(["clangd"], workspace)
        self.payload = payload

    async def document_symbol(self, uri):
        return self.payload


CPP_SOURCE = """#include <vector>

class Stack {
public:
    void push(int v) {
        items.push_back(v);
    }
private:
    std::vector<int> items;
};
"""


@pytest.mark.asyncio
async def test_full_definition_from_document_symbols(tmp_path):
    source = tmp_path / "stack.cpp"
    source.write_text(CPP_SOURCE)
    client = DocumentSymbolClient(tmp_path, [
        doc_symbol("Stack", (2, 0), (9, 1), children=[doc_symbol("push", (4, 4), (6, 5))]),
    ])

    text, location = await client.get_full_definition(
        Location(source.as_uri(), Range(Position(4, 9), Position(4, 13)))
    )

    assert text == "    void push(int v) {\n        items.push_back(v);\n    }"
    assert location.range == Range(Position(4, 4), Position(6, 5))
    assert location.uri == source.as_uri()


@pytest.mark.asyncio
async def test_full_definition_falls_back_to_tree_sitter(tmp_path):
    source = tmp_path / "stack.cpp"
    source.write_text(CPP_SOURCE)
    client = DocumentSymbolClient(tmp_path, None)

    text, location = await client.get_full_definition(
        Location(source.as_uri(), Range(Position(4, 9), Position(4, 13)))
    )

    assert text.startswith("    void push(int v) {")
    assert text.endswith("    }")
    assert location.range.start.line == 4
    assert location.range.end.line == 6


@pytest.mark.asyncio
async def test_full_definition_without_enclosing_symbol(tmp_path):
    source = tmp_path / "notes.txt"
    source.write_text("nothing to see\n")
    client = DocumentSymbolClient(tmp_path, [])

    with pytest.raises(DefinitionExpandError):
        await client.get_full_definition(Location(source.as_uri(), Range(Position(0, 0), Position(0, 1))))


@pytest.mark.asyncio
async def test_initialize_returns_capabilities(tmp_path):
    client = LSPClient(["clangd"], tmp_path)
    reader, writer = asyncio.StreamReader(), FakeWriter()
    client.attach(reader, writer)

    pending = asyncio.create_task(client.initialize())
    await asyncio.sleep(0)
    reader.feed_data(encode_message({
        "jsonrpc": "2.0", "id": 1, "result": {"capabilities": {"referencesProvider": True}},
    }))

    assert await pending == {"referencesProvider": True}
    reader.feed_eof()
    sent = await writer.messages()
    assert [m["method"] for m in sent] == ["initialize", "initialized"]
    assert sent[0]["params"]["rootUri"] == tmp_path.resolve().as_uri()
