"""Runtime redirect lookup and the Starlette middleware that serves it."""

from __future__ import annotations

import logging

from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import RedirectResponse, Response
from starlette.types import ASGIApp

from contentkit.config import ContentkitConfig
from contentkit.content.index import ContentIndex
from contentkit.content.models import RedirectEntry
from contentkit.redirects.validator import resolve_redirects
from contentkit.shared.locale import preferred_locale

logger = logging.getLogger(__name__)


def normalize_request_path(path: str) -> str:
    normalized = path.lower()
    if len(normalized) > 1 and normalized.endswith("/"):
        normalized = normalized[:-1]
    return normalized


def resolve_target(entry: RedirectEntry, accept_language: str | None) -> str:
    """Pick the redirect destination for a request.

    Locale maps are resolved against the primary Accept-Language tag,
    falling back to the first declared target.
    """
    if isinstance(entry.to, str):
        return entry.to
    locale = preferred_locale(accept_language)
    if locale in entry.to:
        return entry.to[locale]
    return next(iter(entry.to.values()))


class RedirectResolver:
    """Memoized ``source path → RedirectEntry`` map built from the index.

    Uses the same registration rules as ``validate-content``, so conflicting
    or content-shadowing redirects are never served.
    """

    def __init__(self, index: ContentIndex, config: ContentkitConfig) -> None:
        self.index = index
        self.config = config
        self._map: dict[str, RedirectEntry] | None = None

    def redirect_map(self) -> dict[str, RedirectEntry]:
        if self._map is None:
            resolved = resolve_redirects(self.index, self.config)
            for issue in resolved.errors:
                logger.warning("Not serving redirect: %s", issue.render())
            self._map = resolved.redirects
            logger.info("Loaded %d redirects", len(self._map))
        return self._map

    def match(self, path: str) -> RedirectEntry | None:
        return self.redirect_map().get(normalize_request_path(path))

    def clear_redirect_cache(self) -> None:
        self._map = None
        logger.info("Redirect cache cleared")


class RedirectMiddleware(BaseHTTPMiddleware):
    """Answer requests for redirected paths before any route runs."""

    def __init__(self, app: ASGIApp, resolver: RedirectResolver) -> None:
        super().__init__(app)
        self.resolver = resolver

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        # The first match after a cache reset parses content files.
        entry = await run_in_threadpool(self.resolver.match, request.url.path)
        if entry is None:
            return await call_next(request)
        target = resolve_target(entry, request.headers.get("accept-language"))
        logger.info("%d: %s -> %s", entry.status, request.url.path, target)
        return RedirectResponse(target, status_code=entry.status)
