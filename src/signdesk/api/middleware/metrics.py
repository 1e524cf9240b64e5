"""Request metrics middleware."""

from time import perf_counter

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from signdesk.core.metrics import track_request_end, track_request_start


class MetricsMiddleware(BaseHTTPMiddleware):
    """Counts requests and records latency per route template.

    Health and metrics endpoints are not recorded.
    """

    EXCLUDED_PATHS = {"/metrics", "/health", "/health/ready"}

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        if request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        track_request_start()
        start_time = perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            track_request_end(
                endpoint=self._get_endpoint(request),
                method=request.method,
                status=status_code,
                duration=perf_counter() - start_time,
            )

    def _get_endpoint(self, request: Request) -> str:
        """Route template (``/documents/{document_id}``) when matched, else the raw path."""
        route = request.scope.get("route")
        if route is not None:
            return route.path
        return request.url.path
