# app/obs/metrics.py
import time

from prometheus_client import Counter, Histogram
from starlette.middleware.base import BaseHTTPMiddleware

http_requests_total = Counter("http_requests_total", "HTTP requests", ["method", "path", "code"])
http_request_duration = Histogram(
    "http_request_duration_seconds", "HTTP request duration seconds", ["method", "path"]
)

# mode=normal|degraded; degraded = result tagged details.is_error
shipping_fee_calculations_total = Counter(
    "shipping_fee_calculations_total", "Shipping fee calculations", ["mode"]
)
shipping_fee_lookup_errors_total = Counter(
    "shipping_fee_lookup_errors_total", "Product/vendor lookups absorbed as missing data", ["entity"]
)
shipping_fee_discrepancies_total = Counter(
    "shipping_fee_discrepancies_total", "Orders whose stored shipping fee drifted from the live calculation"
)
# result=fixed|skipped|conflict
shipping_fee_fixes_total = Counter("shipping_fee_fixes_total", "Order shipping fee repairs", ["result"])


class PrometheusMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - start
        route = request.scope.get("route")
        path = getattr(route, "path", request.url.path)
        http_requests_total.labels(request.method, path, str(response.status_code)).inc()
        http_request_duration.labels(request.method, path).observe(elapsed)
        return response
