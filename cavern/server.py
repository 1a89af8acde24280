"""Development server entry point used by ``run.py server``."""

import sys

from cavern import create_app
from cavern.logging_utils import log


def start_server(host: str = "0.0.0.0", port: int = 5000, debug: bool = False) -> None:
    app = create_app()
    log.info(event="listen", host=host, port=port, debug=debug)
    try:
        print(f"[INFO] Starting server on {host}:{port}")
        app.run(host=host, port=port, debug=debug)
    except KeyboardInterrupt:
        print("\n[INFO] Server stopped by user (Ctrl+C)")
        sys.exit(0)
