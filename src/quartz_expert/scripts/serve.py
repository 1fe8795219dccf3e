"""Script to serve the Quartz Expert HTTP API."""

import argparse

import uvicorn

from quartz_expert.config import get_settings
from quartz_expert.logger import configure_logging


def main():
    """Run the API server."""
    parser = argparse.ArgumentParser(description="Serve the Quartz Expert API")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=3095)
    args = parser.parse_args()

    settings = get_settings()
    configure_logging(settings.log_level)

    print("Starting Quartz Expert API...")
    print(f"Open http://{args.host}:{args.port}/docs in your browser")
    print()

    uvicorn.run(
        "quartz_expert.api.main:app",
        host=args.host,
        port=args.port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
