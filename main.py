#!/usr/bin/env python3
"""Racket Language Server - Main entry point.

Speaks the Language Server Protocol over stdin/stdout. Diagnostics go to
stderr so they never corrupt the protocol stream.

================================================================================
DEVELOPER GUIDE: Plugging in a Language Backend
================================================================================

The dispatch core validates every request and hands the decoded params to a
LanguageBackend. The default NullBackend answers everything with empty
results; to provide real answers:

1. SUBCLASS THE BACKEND
   Implement every method of src/racket_lsp/operations/base.py:LanguageBackend.
   Open documents are available through ``self.documents``.

2. PASS IT TO THE SERVER
   Replace the ``backend=`` argument in main() below:

       server = LanguageServer(
           emit=transport.write_message,
           config=config,
           backend=MyRacketBackend(),
           log=transport.log,
       )

3. CONFIGURE
   Edit config/server.yaml to override the "open" command used by
   workspace/executeCommand or to enable the JSON Lines message trace.

EXIT CODES
----------
- 0 when the client sent shutdown before exit (or before closing stdin)
- 1 when exit arrives, or stdin closes, without a prior shutdown
- 130 on Ctrl-C

================================================================================
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from racket_lsp.config import ConfigLoadError, ServerConfig, load_config
from racket_lsp.protocol.jsonrpc import JsonRpcError, format_error, parse_message
from racket_lsp.protocol.transport import StdioTransport
from racket_lsp.server import LanguageServer


def main() -> int:
    """Run the language server.

    Returns:
        Exit code (0 for a clean shutdown, non-zero otherwise).
    """
    parser = argparse.ArgumentParser(
        description="Racket Language Server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        default=None,
        help="Path to server configuration YAML file (default: built-in settings)",
    )
    parser.add_argument(
        "--version",
        "-v",
        action="version",
        version="racket-langserver 1.0.0",
    )

    args = parser.parse_args()

    try:
        config = load_config(args.config) if args.config else ServerConfig()
    except ConfigLoadError as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        return 1

    transport = StdioTransport()
    transport.log("Racket language server started")
    if args.config:
        transport.log(f"Config loaded from: {args.config}")

    # The exit notification raises SystemExit from inside process()
    with LanguageServer(emit=transport.write_message, config=config, log=transport.log) as server:
        try:
            while True:
                raw = transport.read_message()
                if raw is None:
                    transport.log("EOF received, shutting down")
                    return server.lifecycle.exit_code

                try:
                    message = parse_message(raw, max_size=config.max_message_size)
                except JsonRpcError as e:
                    transport.write_message(format_error(None, e.code, e.message))
                    continue

                server.process(message)

        except KeyboardInterrupt:
            transport.log("Interrupted, shutting down")
            return 130  # Standard exit code for SIGINT

        except Exception as e:
            transport.log(f"Error: {e}")
            return 1


if __name__ == "__main__":
    sys.exit(main())
