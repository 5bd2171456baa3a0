"""Error taxonomy shared by the backend client and the tools."""

from typing import Any, Optional


class LSPContextError(Exception):
    """Base class for all lspcontext-mcp errors."""


class BackendError(LSPContextError):
    """Raised by a backend collaborator when an operation fails."""


class JsonRpcError(BackendError):
    """JSON-RPC error response from the language server."""

    def __init__(self, code: int, message: str, data: Optional[Any] = None):
        super().__init__(f"[{code}] {message}")
        self.code = code
        self.message = message
        self.data = data


class BackendQueryError(LSPContextError):
    """Symbol or reference search failed. Fatal for the tool call."""


class ResultParseError(LSPContextError):
    """Backend payload could not be decoded. Fatal for the tool call."""


class FileOpenError(LSPContextError):
    """A matched symbol's file could not be opened in the backend."""


class DefinitionExpandError(LSPContextError):
    """A symbol location could not be expanded to its full definition."""


class FileReadError(LSPContextError):
    """A referencing file could not be read from disk."""


class ConfigError(LSPContextError):
    """An environment setting could not be parsed."""
