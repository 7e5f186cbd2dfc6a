"""
Entry point for ``python -m sentinells`` and the ``sentinells`` script.
"""
import os
import sys

from sentinells.lsp.server import create_server

DEBUG_ADDRESS = ("127.0.0.1", 5678)


def _wait_for_debugger() -> None:
    # stdout carries the LSP stream
    try:
        import debugpy  # type: ignore
    except ImportError:
        print("DEBUG is set but debugpy is missing: pip install -e .[debug]", file=sys.stderr)
        return

    host, port = DEBUG_ADDRESS
    print(f"sentinells: waiting for a debugger on {host}:{port}", file=sys.stderr)
    debugpy.listen(DEBUG_ADDRESS)
    debugpy.wait_for_client()


def main():
    if os.getenv("DEBUG"):
        _wait_for_debugger()

    create_server().start_io()


if __name__ == "__main__":
    main()
