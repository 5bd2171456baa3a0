"""Language server backend: protocol, stdio client, and warm-up."""

from .backend import Backend
from .client import LSPClient, encode_message, read_message, find_symbol_span, extract_span_text
from .warmup import WarmUpStrategy, NoWarmUp, ClangdWarmUp, select_warmup

__all__ = [
    "Backend",
    "LSPClient",
    "encode_message",
    "read_message",
    "find_symbol_span",
    "extract_span_text",
    "WarmUpStrategy",
    "NoWarmUp",
    "ClangdWarmUp",
    "select_warmup",
]
