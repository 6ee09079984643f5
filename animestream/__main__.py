"""CLI entry point for launching the AnimeStream API with Uvicorn."""
import logging
import os

import uvicorn

from .web.app import create_app


def main() -> None:
    """Start a server for the AnimeStream API."""
    logging.basicConfig(
        level=os.environ.get("ANIMESTREAM_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    host = os.environ.get("ANIMESTREAM_HOST", "0.0.0.0")
    port = int(os.environ.get("ANIMESTREAM_PORT", os.environ.get("PORT", "3000")))
    uvicorn.run(create_app(), host=host, port=port)


if __name__ == "__main__":
    main()
