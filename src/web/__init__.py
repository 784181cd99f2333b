"""HTTP surface — FastAPI app factory and redirect middleware."""

from contentkit.web.app import create_app
from contentkit.web.redirects import RedirectMiddleware, RedirectResolver, resolve_target

__all__ = ["RedirectMiddleware", "RedirectResolver", "create_app", "resolve_target"]
