"""
Entry point for ``ddlforge-server``.

    ddlforge-server            # serve on DDLFORGE_APPHOST:DDLFORGE_APPPORT
    ddlforge-server --reload   # development mode
"""
import argparse

import uvicorn

from ddlforge.core.config import settings


def main():
    parser = argparse.ArgumentParser(description="Run the ddlforge HTTP service.")
    parser.add_argument("--host", default=settings.appHost)
    parser.add_argument("--port", type=int, default=settings.appPort)
    parser.add_argument("--reload", action="store_true", help="Reload on code changes")
    args = parser.parse_args()

    uvicorn.run(
        "ddlforge.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level="debug" if settings.debug else "info",
    )


if __name__ == "__main__":
    main()
