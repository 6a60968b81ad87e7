"""Racket language server: LSP message-dispatch core."""

from racket_lsp.config import ConfigLoadError, ServerConfig, load_config
from racket_lsp.server import LanguageServer

__version__ = "1.0.0"

__all__ = [
    "ConfigLoadError",
    "LanguageServer",
    "ServerConfig",
    "load_config",
]
