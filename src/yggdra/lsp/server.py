"""
Yggdra Language Server Protocol (LSP) Server.

This module implements an LSP server for the Yggdra language using pygls.
It provides:

- Document synchronization (open, change, save, close)
- Diagnostics (parser errors and warnings, generator failures)
- Document symbols (outline)

Usage:
    # Start the server in stdio mode (for IDE integration)
    ygg-lsp

    # Start in TCP mode (for debugging)
    ygg-lsp --tcp --port 2087
"""

import argparse
import logging
from typing import Optional

from lsprotocol import types
from pygls.lsp.server import LanguageServer

from yggdra import __version__
from yggdra.lsp.diagnostics import get_diagnostics
from yggdra.lsp.symbols import get_document_symbols

logger = logging.getLogger("yggdra-lsp")


class YggdraLanguageServer(LanguageServer):
    """
    Language Server Protocol implementation for Yggdra.

    Every open document is re-parsed from scratch on each change; the
    parser is line-based and fast enough that no incremental state is kept.
    Handlers are registered by :func:`create_server`.
    """

    def __init__(self) -> None:
        super().__init__(
            name="yggdra-lsp",
            version=f"v{__version__}",
        )

    def publish(self, uri: str, diagnostics: list[types.Diagnostic]) -> None:
        """Publish diagnostics to the client."""
        self.text_document_publish_diagnostics(
            types.PublishDiagnosticsParams(uri=uri, diagnostics=diagnostics)
        )

    def validate(self, uri: str, source: str) -> None:
        """Compile a document and publish what the compiler reported."""
        diagnostics = get_diagnostics(source, uri)
        logger.debug("%s: %d diagnostic(s)", uri, len(diagnostics))
        self.publish(uri, diagnostics)

    def validate_open_document(self, uri: str) -> None:
        doc = self.workspace.get_text_document(uri)
        if doc is not None:
            self.validate(uri, doc.source)


def create_server() -> YggdraLanguageServer:
    """Create and configure the Yggdra language server."""
    server = YggdraLanguageServer()

    @server.feature(types.INITIALIZED)
    def on_initialized(
        params: types.InitializedParams,  # noqa: ARG001
    ) -> None:
        """Handle initialized notification."""
        logger.info("Yggdra Language Server initialized successfully")

    @server.feature(types.SHUTDOWN)
    def on_shutdown(
        params: None,  # noqa: ARG001
    ) -> None:
        """Handle shutdown request."""
        logger.info("Shutting down Yggdra Language Server")

    # =========================================================================
    # Document Synchronization
    # =========================================================================

    @server.feature(types.TEXT_DOCUMENT_DID_OPEN)
    def did_open(ls: YggdraLanguageServer, params: types.DidOpenTextDocumentParams) -> None:
        """Handle document open notification."""
        document = params.text_document
        logger.info("Document opened: %s", document.uri)
        ls.validate(document.uri, document.text)

    @server.feature(types.TEXT_DOCUMENT_DID_CHANGE)
    def did_change(ls: YggdraLanguageServer, params: types.DidChangeTextDocumentParams) -> None:
        """Handle document change notification."""
        logger.debug("Document changed: %s", params.text_document.uri)
        ls.validate_open_document(params.text_document.uri)

    @server.feature(types.TEXT_DOCUMENT_DID_SAVE)
    def did_save(ls: YggdraLanguageServer, params: types.DidSaveTextDocumentParams) -> None:
        """Handle document save notification."""
        logger.info("Document saved: %s", params.text_document.uri)
        ls.validate_open_document(params.text_document.uri)

    @server.feature(types.TEXT_DOCUMENT_DID_CLOSE)
    def did_close(ls: YggdraLanguageServer, params: types.DidCloseTextDocumentParams) -> None:
        """Handle document close notification."""
        uri = params.text_document.uri
        logger.info("Document closed: %s", uri)
        ls.publish(uri, [])

    # =========================================================================
    # Document Symbols
    # =========================================================================

    @server.feature(types.TEXT_DOCUMENT_DOCUMENT_SYMBOL)
    def document_symbol(
        ls: YggdraLanguageServer, params: types.DocumentSymbolParams
    ) -> Optional[list[types.DocumentSymbol]]:
        """Handle document symbols request (for outline view)."""
        uri = params.text_document.uri
        doc = ls.workspace.get_text_document(uri)
        if doc is None:
            return None
        return get_document_symbols(doc.source, uri)

    return server


def main(argv: Optional[list[str]] = None) -> None:
    """
    Main entry point for the Yggdra language server.

    Starts the server in stdio mode unless ``--tcp`` is given.
    """
    parser = argparse.ArgumentParser(
        description="Yggdra Language Server",
        prog="ygg-lsp",
    )
    parser.add_argument(
        "--tcp",
        action="store_true",
        help="Start server in TCP mode instead of stdio",
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host to bind to in TCP mode (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=2087,
        help="Port to listen on in TCP mode (default: 2087)",
    )
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        default="info",
        help="Logging level (default: info)",
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper()),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    server = create_server()

    if args.tcp:
        logger.info("Starting Yggdra LSP in TCP mode on %s:%s", args.host, args.port)
        server.start_tcp(args.host, args.port)
    else:
        logger.info("Starting Yggdra LSP in stdio mode")
        server.start_io()


if __name__ == "__main__":
    main()
