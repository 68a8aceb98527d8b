"""codex-mcp — supervise codex CLI agents as background subprocesses."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("codex-mcp")
except PackageNotFoundError:
    __version__ = "1.2.0"  # fallback for development
