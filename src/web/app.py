"""FastAPI application exposing the runtime side of contentkit."""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, HTTPException

from contentkit import __version__
from contentkit.config import ContentkitConfig
from contentkit.content.index import ContentIndex, get_content_index
from contentkit.errors import RegistryError
from contentkit.images.scanner import ImageRegistryScanner
from contentkit.web.redirects import RedirectMiddleware, RedirectResolver


def create_app(
    index: ContentIndex | None = None,
    config: ContentkitConfig | None = None,
) -> FastAPI:
    """Create the app with the redirect middleware and debug/content endpoints."""

    config = config or ContentkitConfig()
    index = index or get_content_index(config)
    if not index.is_scanned:
        index.scan()
    resolver = RedirectResolver(index, config)
    scanner = ImageRegistryScanner(config)

    app = FastAPI(title="contentkit", version=__version__)
    app.add_middleware(RedirectMiddleware, resolver=resolver)
    app.state.index = index
    app.state.resolver = resolver

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/api/debug/redirects")
    def list_redirects() -> dict[str, Any]:
        redirects = [
            {"from": source, "to": entry.to, "type": entry.type, "status": entry.status}
            for source, entry in resolver.redirect_map().items()
        ]
        return {"count": len(redirects), "redirects": redirects}

    @app.post("/api/debug/clear-redirect-cache")
    def clear_redirect_cache() -> dict[str, Any]:
        resolver.clear_redirect_cache()
        return {"success": True, "message": "Redirect cache cleared"}

    @app.post("/api/content/refresh")
    def refresh_content() -> dict[str, Any]:
        """Content-edit webhook: rescan and drop memoized redirects."""
        index.refresh()
        resolver.clear_redirect_cache()
        return {"success": True, **index.get_stats()}

    @app.get("/api/content/stats")
    def content_stats() -> dict[str, Any]:
        return index.get_stats()

    @app.get("/api/image-registry/scan")
    def scan_image_registry() -> dict[str, Any]:
        return scanner.scan().model_dump()

    @app.post("/api/image-registry/apply")
    def apply_image_registry() -> dict[str, Any]:
        try:
            result = scanner.apply(scanner.scan())
        except RegistryError as exc:
            raise HTTPException(status_code=500, detail=str(exc)) from exc
        index.refresh()
        return {"success": True, **result.model_dump()}

    return app
