"""
HTTP request counting for FastAPI/Starlette apps.

    app.add_middleware(MetricsMiddleware, counter=HTTP_REQUESTS, ignored_paths={"/metrics"})
"""

from prometheus_client import Counter
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request


def _path_label(request: Request) -> str:
    # Matched route template, so /stocks/{symbol} is one series
    route = request.scope.get("route")
    return getattr(route, "path", None) or request.url.path


class MetricsMiddleware(BaseHTTPMiddleware):
    """Increment ``counter`` once per response.

    ``counter`` must carry the labels ``method``, ``path`` and ``status``.
    Requests whose URL path is in ``ignored_paths`` are not counted.
    """

    def __init__(self, app, counter: Counter, ignored_paths: set[str] | None = None):
        super().__init__(app)
        self.counter = counter
        self.ignored_paths = frozenset(ignored_paths or ())

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        if request.url.path in self.ignored_paths:
            return response

        self.counter.labels(
            method=request.method,
            path=_path_label(request),
            status=response.status_code,
        ).inc()
        return response
