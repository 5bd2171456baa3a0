"""Server configuration, read once from the environment at startup."""

import os
import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

from .errors import ConfigError


DEFAULT_CONTEXT_LINES = 5
DEFAULT_LSP_COMMAND = "clangd"
DEFAULT_LOG_LEVEL = "INFO"

FALSE_VALUES = {"0", "false", "no", "off"}


def parse_context_lines(value: Optional[str]) -> int:
    """Parse LSP_CONTEXT_LINES. Anything invalid or negative gives the default."""
    if not value:
        return DEFAULT_CONTEXT_LINES
    try:
        lines = int(value.strip())
    except ValueError:
        return DEFAULT_CONTEXT_LINES
    return lines if lines >= 0 else DEFAULT_CONTEXT_LINES


@dataclass(frozen=True)
class ServerConfig:
    """Settings passed into the server and tools."""
    workspace_dir: Path
    lsp_command: list[str] = field(default_factory=lambda: [DEFAULT_LSP_COMMAND])
    context_lines: int = DEFAULT_CONTEXT_LINES
    log_level: str = DEFAULT_LOG_LEVEL
    warmup: bool = True

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ServerConfig":
        """Build config from environment variables.

        Args:
            environ: Mapping to read instead of os.environ

        Variables:
            LSP_COMMAND: Language server command line (default "clangd")
            LSP_WORKSPACE_DIR: Workspace root (default: current directory)
            LSP_CONTEXT_LINES: Context lines around references (default 5)
            LSP_LOG_LEVEL: Logging level name (default INFO)
            LSP_WARMUP: "0"/"false"/"no"/"off" disables warm-up

        Raises:
            ConfigError: LSP_COMMAND is not a valid shell command line
        """
        env = os.environ if environ is None else environ

        raw_command = env.get("LSP_COMMAND", "")
        try:
            command = shlex.split(raw_command) or [DEFAULT_LSP_COMMAND]
        except ValueError as e:
            raise ConfigError(f"Invalid LSP_COMMAND {raw_command!r}: {e}") from e
        workspace = Path(env.get("LSP_WORKSPACE_DIR") or os.getcwd()).expanduser().resolve()

        return cls(
            workspace_dir=workspace,
            lsp_command=command,
            context_lines=parse_context_lines(env.get("LSP_CONTEXT_LINES")),
            log_level=(env.get("LSP_LOG_LEVEL") or DEFAULT_LOG_LEVEL).upper(),
            warmup=env.get("LSP_WARMUP", "1").strip().lower() not in FALSE_VALUES,
        )
