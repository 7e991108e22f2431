#!/usr/bin/env python3
"""
SafeHome Console Server

Starts the console API server with:
- Session login (custom token or anonymous)
- Device registry, heartbeats and simulated test clips
- Alert lifecycle (Ack / Escalate / Close) with contact notifications
- Quiet hours and per-class detection thresholds
- Live WebSocket feed

Usage:
    python -m safehome.server
    # or
    uvicorn safehome.api.app:create_app --factory --host 0.0.0.0 --port 8080 --reload
"""

import argparse
import logging

import uvicorn

from . import __version__
from .config import Settings


def main():
    settings = Settings()

    parser = argparse.ArgumentParser(description="SafeHome Console Server")
    parser.add_argument("--host", default=settings.host, help="Host to bind to")
    parser.add_argument("--port", type=int, default=settings.port, help="Port to bind to")
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload")
    parser.add_argument("--log-level", default=settings.log_level, help="Logging level (DEBUG, INFO, ...)")

    args = parser.parse_args()

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    print(f"""
╔═══════════════════════════════════════════════════════════╗
║           SafeHome Console v{__version__:<30}║
║                                                           ║
║   API:     http://{args.host}:{args.port}/docs
║   Feed:    ws://{args.host}:{args.port}/ws/feed?token=...
║                                                           ║
║   Features:                                               ║
║   - Device Registry & Heartbeats                          ║
║   - Simulated Clip Ingestion & Inference                  ║
║   - Alert Lifecycle (Ack / Escalate / Close)              ║
║   - Contacts, Quiet Hours, Detection Thresholds           ║
╚═══════════════════════════════════════════════════════════╝
""")

    uvicorn.run(
        "safehome.api.app:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level.lower(),
    )


if __name__ == "__main__":
    main()
