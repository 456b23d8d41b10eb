#!/usr/bin/env python3
"""Startup script for the Odd Trick game backend"""

import uvicorn

from .settings import ServerSettings


def main():
    settings = ServerSettings.from_env()

    print(f"Starting Odd Trick backend on {settings.host}:{settings.port}")
    print(f"Health check available at: http://{settings.host}:{settings.port}/health")
    print(f"WebSocket endpoint: ws://{settings.host}:{settings.port}/ws")

    uvicorn.run(
        "oddtrick_engine.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_level=settings.log_level
    )


if __name__ == "__main__":
    main()
