"""
Yggdra Language Server.

Publishes parser diagnostics and an outline of state, functions, services,
routes and UI elements to LSP clients.
"""

from yggdra.lsp.server import YggdraLanguageServer, create_server, main

__all__ = ["YggdraLanguageServer", "create_server", "main"]
