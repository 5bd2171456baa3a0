"""Asyncio JSON-RPC client for a language server over stdio.

Messages use the LSP base protocol framing:

    Content-Length: 52\\r\\n
    \\r\\n
    {"jsonrpc":"2.0","id":1,"method":"initialize","params":{}}
"""

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Any, Optional

from .. import __version__
from ..errors import BackendError, DefinitionExpandError, JsonRpcError, ResultParseError
from ..parser import LANGUAGE_REGISTRY, find_enclosing_definition, language_for_path
from ..protocol import (
    Location,
    Position,
    Range,
    SymbolResultSet,
    decode_location,
    decode_locations,
    decode_range,
    path_to_uri,
)

logger = logging.getLogger(__name__)

SHUTDOWN_TIMEOUT = 5.0


def encode_message(message: dict) -> bytes:
    """Frame a JSON-RPC message with a Content-Length header."""
    body = json.dumps(message, separators=(",", ":")).encode("utf-8")
    header = f"Content-Length: {len(body)}\r\n\r\n".encode("ascii")
    return header + body


async def read_message(reader: asyncio.StreamReader) -> Optional[dict]:
    """Read one framed message. Returns None at end of stream."""
    headers = {}
    while True:
        line = await reader.readline()
        if not line:
            return None
        line = line.strip()
        if not line:
            if headers:
                break
            continue
        name, _, value = line.decode("ascii", errors="replace").partition(":")
        headers[name.strip().lower()] = value.strip()

    length = headers.get("content-length")
    if length is None or not length.isdigit():
        raise BackendError(f"Invalid Content-Length header: {headers!r}")

    try:
        body = await reader.readexactly(int(length))
    except asyncio.IncompleteReadError:
        return None

    try:
        message = json.loads(body)
    except ValueError as e:
        raise BackendError(f"Invalid JSON from language server: {e}") from e
    if not isinstance(message, dict):
        raise BackendError(f"Message must be an object, got {type(message).__name__}")
    return message


def find_symbol_span(symbols: Any, position: Position) -> Optional[Range]:
    """Innermost document symbol range containing a position.

    Accepts both hierarchical DocumentSymbol and flat SymbolInformation
    results of textDocument/documentSymbol.
    """
    if symbols is None:
        return None
    if not isinstance(symbols, list):
        raise ResultParseError(f"documentSymbol returned {type(symbols).__name__}")

    best = None
    for item in symbols:
        if not isinstance(item, dict):
            raise ResultParseError(f"Document symbol must be an object: {item!r}")

        if "location" in item:
            span = decode_location(item["location"]).range
            children = None
        else:
            span = decode_range(item.get("range"))
            children = item.get("children")

        if not span.contains(position):
            continue

        candidate = find_symbol_span(children, position) or span
        if best is None or _span_size(candidate) < _span_size(best):
            best = candidate

    return best


def _span_size(span: Range) -> tuple[int, int]:
    return (span.end.line - span.start.line, span.end.character - span.start.character)


def extract_span_text(content: str, span: Range) -> str:
    """Full lines covered by a span.

    A span ending at column 0 of a later line does not include that line.
    """
    lines = content.split("\n")
    end_line = span.end.line
    if span.end.character == 0 and end_line > span.start.line:
        end_line -= 1
    return "\n".join(lines[span.start.line:end_line + 1])


class LSPClient:
    """Language server connection implementing the Backend capabilities."""

    def __init__(
        self,
        command: list[str],
        workspace_dir: Path,
        log: Optional[logging.Logger] = None,
    ):
        """Initialize client.

        Args:
            command: Language server command line (e.g. ["clangd"])
            workspace_dir: Workspace root sent in the initialize request
            log: Logger for protocol traffic and server output
        """
        self.command = list(command)
        self.workspace_dir = Path(workspace_dir)
        self.log = log or logger

        self._process: Optional[asyncio.subprocess.Process] = None
        self._writer: Optional[asyncio.StreamWriter] = None
        self._tasks: list[asyncio.Task] = []
        self._pending: dict[int, asyncio.Future] = {}
        self._next_id = 1
        self._open_files: set[str] = set()
        self._write_lock = asyncio.Lock()
        self._closed: Optional[BackendError] = None

    async def start(self) -> None:
        """Spawn the language server process."""
        try:
            self._process = await asyncio.create_subprocess_exec(
                *self.command,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(self.workspace_dir),
            )
        except OSError as e:
            raise BackendError(f"Failed to start language server {self.command[0]}: {e}") from e

        self.log.info("Started language server: %s (pid %d)", " ".join(self.command), self._process.pid)
        self.attach(self._process.stdout, self._process.stdin)
        self._tasks.append(asyncio.create_task(self._drain_stderr(self._process.stderr)))

    def attach(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        """Use an existing stream pair as the connection."""
        self._writer = writer
        self._tasks.append(asyncio.create_task(self._read_loop(reader)))

    async def initialize(self) -> dict:
        """Run the initialize handshake and return the server capabilities."""
        root_uri = path_to_uri(str(self.workspace_dir))
        result = await self.request("initialize", {
            "processId": os.getpid(),
            "clientInfo": {"name": "lspcontext-mcp", "version": __version__},
            "rootUri": root_uri,
            "rootPath": str(self.workspace_dir),
            "workspaceFolders": [{"uri": root_uri, "name": self.workspace_dir.name}],
            "capabilities": {
                "workspace": {
                    "symbol": {"dynamicRegistration": False},
                    "configuration": True,
                    "workspaceFolders": True,
                },
                "textDocument": {
                    "synchronization": {"dynamicRegistration": False},
                    "references": {"dynamicRegistration": False},
                    "documentSymbol": {"hierarchicalDocumentSymbolSupport": True},
                },
                "window": {"workDoneProgress": True},
            },
        })
        await self.notify("initialized", {})

        self.log.info("Language server initialized")
        return (result or {}).get("capabilities", {})

    async def request(self, method: str, params: Optional[dict] = None) -> Any:
        """Send a request and wait for its result.

        Raises:
            BackendError: the connection is closed or the write failed
            JsonRpcError: the server answered with an error
        """
        if self._closed is not None:
            raise BackendError(str(self._closed))

        request_id = self._next_id
        self._next_id += 1

        future = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future

        message = {"jsonrpc": "2.0", "id": request_id, "method": method}
        if params is not None:
            message["params"] = params

        try:
            self.log.debug("-> %s (id=%d)", method, request_id)
            await self._send(message)
            return await future
        finally:
            self._pending.pop(request_id, None)

    async def notify(self, method: str, params: Optional[dict] = None) -> None:
        message = {"jsonrpc": "2.0", "method": method}
        if params is not None:
            message["params"] = params
        self.log.debug("-> %s (notification)", method)
        await self._send(message)

    async def _send(self, message: dict) -> None:
        if self._writer is None:
            raise BackendError("Language server not started")
        async with self._write_lock:
            try:
                self._writer.write(encode_message(message))
                await self._writer.drain()
            except (ConnectionError, RuntimeError) as e:
                raise BackendError(f"Failed to write to language server: {e}") from e

    async def _read_loop(self, reader: asyncio.StreamReader) -> None:
        try:
            while True:
                message = await read_message(reader)
                if message is None:
                    break
                await self._dispatch(message)
        except BackendError as e:
            self.log.error("Language server stream error: %s", e)
            self._closed = BackendError(f"Language server connection closed: {e}")
        finally:
            if self._closed is None:
                self._closed = BackendError("Language server connection closed")
            self._fail_pending(self._closed)

    async def _drain_stderr(self, stream: asyncio.StreamReader) -> None:
        while True:
            line = await stream.readline()
            if not line:
                break
            self.log.debug("[server] %s", line.decode("utf-8", errors="replace").rstrip())

    def _fail_pending(self, error: BackendError) -> None:
        for future in self._pending.values():
            if not future.done():
                future.set_exception(error)

    async def _dispatch(self, message: dict) -> None:
        """Route a message to its pending request, or answer the server."""
        method = message.get("method")
        message_id = message.get("id")

        if method is None:
            future = self._pending.get(message_id)
            if future is None or future.done():
                self.log.debug("Dropping response for unknown id %r", message_id)
                return
            error = message.get("error")
            if isinstance(error, dict):
                future.set_exception(JsonRpcError(
                    error.get("code", -1), error.get("message", ""), error.get("data")
                ))
            elif error:
                future.set_exception(JsonRpcError(-1, str(error)))
            else:
                future.set_result(message.get("result"))
            return

        if message_id is not None:
            await self._answer_server_request(message_id, method, message.get("params"))
            return

        if method in ("window/logMessage", "window/showMessage"):
            params = message.get("params")
            self.log.debug("[server] %s", params.get("message", "") if isinstance(params, dict) else "")
        else:
            self.log.debug("<- %s (notification)", method)

    async def _answer_server_request(self, message_id: Any, method: str, params: Any) -> None:
        result: Any = None
        if method == "workspace/configuration":
            items = params.get("items", []) if isinstance(params, dict) else []
            result = [None] * len(items)
        self.log.debug("<- %s (server request, id=%r)", method, message_id)
        await self._send({"jsonrpc": "2.0", "id": message_id, "result": result})

    async def open_file(self, path: str) -> None:
        """Send textDocument/didOpen once per file."""
        uri = path_to_uri(path)
        if uri in self._open_files:
            return

        try:
            content = Path(path).read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            raise BackendError(f"Could not read {path}: {e}") from e

        language = language_for_path(path)
        language_id = LANGUAGE_REGISTRY[language].language_id if language else "plaintext"

        await self.notify("textDocument/didOpen", {
            "textDocument": {
                "uri": uri,
                "languageId": language_id,
                "version": 1,
                "text": content,
            }
        })
        self._open_files.add(uri)
        self.log.debug("Opened %s", path)

    async def symbol(self, query: str) -> SymbolResultSet:
        result = await self.request("workspace/symbol", {"query": query})
        return SymbolResultSet(result)

    async def references(
        self,
        uri: str,
        position: Position,
        include_declaration: bool = False,
    ) -> list[Location]:
        result = await self.request("textDocument/references", {
            "textDocument": {"uri": uri},
            "position": position.to_dict(),
            "context": {"includeDeclaration": include_declaration},
        })
        return decode_locations(result)

    async def document_symbol(self, uri: str) -> Any:
        return await self.request("textDocument/documentSymbol", {"textDocument": {"uri": uri}})

    async def get_full_definition(self, location: Location) -> tuple[str, Location]:
        """Expand a symbol location to its enclosing definition.

        Uses the server's document symbols, then tree-sitter when no document
        symbol covers the location.
        """
        path = location.path
        start = location.range.start

        try:
            content = Path(path).read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            raise DefinitionExpandError(f"Could not read {path}: {e}") from e

        try:
            span = find_symbol_span(await self.document_symbol(location.uri), start)
        except ResultParseError as e:
            raise DefinitionExpandError(f"Malformed document symbols for {path}: {e}") from e

        if span is None:
            span = find_enclosing_definition(
                content, language_for_path(path), start.line, start.character
            )

        if span is None:
            raise DefinitionExpandError(
                f"No definition found at {path}:{start.line + 1}:{start.character + 1}"
            )

        return extract_span_text(content, span), Location(location.uri, span)

    async def shutdown(self) -> None:
        """Ask the server to exit and wait for the process."""
        if self._writer is not None:
            try:
                await asyncio.wait_for(self.request("shutdown"), SHUTDOWN_TIMEOUT)
                await self.notify("exit")
            except (BackendError, asyncio.TimeoutError) as e:
                self.log.warning("Language server shutdown failed: %s", e)

        if self._process is not None:
            try:
                await asyncio.wait_for(self._process.wait(), SHUTDOWN_TIMEOUT)
            except asyncio.TimeoutError:
                self.log.warning("Language server did not exit, killing it")
                self._process.kill()
                await self._process.wait()

        for task in self._tasks:
            task.cancel()
        self._tasks.clear()
        self._writer = None
