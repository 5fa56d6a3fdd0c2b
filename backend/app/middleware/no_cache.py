"""
LoveAlbum Backend — Admin No-Cache Middleware
==============================================

What:  Marks every response under /admin and /api/admin as non-cacheable.
Who:   Applied to every request; only admin paths are touched.

Admin responses carry private data (all albums, session state), so
browsers and proxies must not keep them.
"""

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

ADMIN_PREFIXES = ("/admin", "/api/admin")

NO_CACHE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate, proxy-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


def is_admin_path(path: str) -> bool:
    return any(path == prefix or path.startswith(prefix + "/") for prefix in ADMIN_PREFIXES)


class NoCacheMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        response = await call_next(request)
        if is_admin_path(request.url.path):
            response.headers.update(NO_CACHE_HEADERS)
        return response
