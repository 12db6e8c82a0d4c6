"""
Entry point for running the Yggdra LSP server as a module.

Usage:
    python -m yggdra.lsp
    python -m yggdra.lsp --tcp --port 2087
"""

from yggdra.lsp.server import main

if __name__ == "__main__":
    main()
