"""HTTP server runner for HostStore.

Serves the FastAPI app (dashboard API and chat webhook) with uvicorn.
The admission cleanup sweep runs inside the app's lifespan.

Usage:
    python src/server.py                        # 0.0.0.0:8000
    python src/server.py --port 9000 --reload   # Development
    python src/server.py --log-level debug
"""

import argparse

import uvicorn


def main():
    parser = argparse.ArgumentParser(description="HostStore API server")
    parser.add_argument("--host", default="0.0.0.0", help="Interface to bind (default: 0.0.0.0)")
    parser.add_argument("--port", type=int, default=8000, help="Port to listen on (default: 8000)")
    parser.add_argument("--reload", action="store_true", help="Reload on code changes")
    parser.add_argument(
        "--log-level",
        choices=["critical", "error", "warning", "info", "debug"],
        default="info",
        help="uvicorn log level (default: info)",
    )
    args = parser.parse_args()

    uvicorn.run(
        "app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level,
    )


if __name__ == "__main__":
    main()
