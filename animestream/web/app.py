"""FastAPI app exposing episode and stream resolution to web clients."""

from __future__ import annotations

from datetime import datetime, timezone
import logging
from typing import Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel

from ..core.errors import ExtractionError, FetchError
from .runtime import AnimeStreamRuntime, build_runtime
from ..services.stream_service import content_type_for

logger = logging.getLogger(__name__)

PROXY_CHUNK_SIZE = 64 * 1024


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _error(status_code: int, error: str, message: str = "") -> JSONResponse:
    return JSONResponse(
        {"success": False, "error": error, "message": message},
        status_code=status_code,
    )


class StreamResponse(BaseModel):
    success: bool
    streamUrl: str
    type: str


class SourceModel(BaseModel):
    url: str
    quality: str
    type: str
    server: Optional[str] = None


class ServerSourcesResponse(BaseModel):
    success: bool
    sources: List[SourceModel]


def create_app(runtime: Optional[AnimeStreamRuntime] = None) -> FastAPI:
    runtime = runtime or build_runtime()
    app = FastAPI(title="AnimeStream API", version="1.0.0")

    @app.exception_handler(FetchError)
    async def fetch_error_handler(request: Request, exc: FetchError):
        logger.warning("Upstream failure for %s: %s", request.url.path, exc)
        return _error(502, "Upstream fetch failed", str(exc))

    @app.exception_handler(ExtractionError)
    async def extraction_error_handler(request: Request, exc: ExtractionError):
        return _error(400, "Invalid request", str(exc))

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error for %s", request.url.path)
        return _error(500, "Internal error", str(exc))

    @app.get("/health")
    def health() -> Dict:
        return {"ok": True, "time": _utc_now_iso()}

    @app.get("/api/anime/{anime_id}")
    def get_anime(anime_id: str) -> Dict:
        return {"success": True, "data": runtime.anime.scrape_anime(anime_id).to_dict()}

    @app.get("/api/series/{anime_id}")
    def get_series(anime_id: str) -> Dict:
        return get_anime(anime_id)

    @app.get("/api/movies/{movie_id}")
    def get_movie(movie_id: str) -> Dict:
        return {"success": True, "data": runtime.anime.scrape_movie(movie_id).to_dict()}

    @app.get("/api/episode/{episode_id}")
    def get_episode(episode_id: str) -> Dict:
        episode = runtime.episodes.scrape_episode(episode_id)
        return {"success": True, "data": episode.to_dict()}

    @app.get("/api/episode/{episode_id}/servers/{server_id}", response_model=ServerSourcesResponse)
    def get_episode_server(episode_id: str, server_id: str) -> Dict:
        sources = runtime.episodes.get_episode_server(episode_id, server_id)
        return {"success": True, "sources": [s.to_dict() for s in sources]}

    @app.get("/api/stream/{episode_id}", response_model=StreamResponse)
    def get_stream(episode_id: str) -> Dict:
        return runtime.streams.resolve_episode_stream(episode_id).to_dict()

    @app.get("/api/stream/{episode_id}/proxy")
    def proxy_stream(episode_id: str):
        resolved = runtime.streams.resolve_episode_stream(episode_id)
        if not resolved.success or not resolved.stream_url:
            return _error(404, "No stream URL found")

        upstream = runtime.streams.proxy_stream(resolved.stream_url)
        content_type = upstream.headers.get("content-type") or content_type_for(resolved.media_kind)

        def relay():
            try:
                for chunk in upstream.iter_content(chunk_size=PROXY_CHUNK_SIZE):
                    if chunk:
                        yield chunk
            finally:
                upstream.close()

        return StreamingResponse(
            relay(),
            media_type=content_type,
            headers={"Access-Control-Allow-Origin": "*"},
        )

    @app.get("/api/cache/stats")
    def cache_stats() -> Dict:
        return {"size": runtime.cache.size()}

    @app.post("/api/cache/clear")
    def cache_clear(expired_only: bool = False) -> Dict:
        if expired_only:
            removed = runtime.cache.clean_expired()
        else:
            removed = runtime.cache.size()
            runtime.cache.clear()
        return {"ok": True, "removed": removed}

    return app


app = create_app()
