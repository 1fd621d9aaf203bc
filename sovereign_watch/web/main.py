"""
Web service entry point.
"""

import os

import uvicorn


def serve(host: str | None = None, port: int | None = None, reload: bool | None = None) -> None:
    """Run the API under uvicorn."""

    host = host or os.getenv("SOVEREIGN_WATCH_HOST", "0.0.0.0")
    port = port or int(os.getenv("SOVEREIGN_WATCH_PORT", "8000"))
    if reload is None:
        reload = os.getenv("SOVEREIGN_WATCH_RELOAD", "false").lower() == "true"

    uvicorn.run(
        "sovereign_watch.web.app:build_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level="info",
    )


if __name__ == "__main__":
    serve()
