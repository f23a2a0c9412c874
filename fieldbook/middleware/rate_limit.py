"""Per-farm request quota on Redis counters."""

from __future__ import annotations

from datetime import UTC, datetime

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from fieldbook.auth.dependencies import extract_identity_hint, extract_request_farm_id
from fieldbook.config import get_settings

_BYPASS_PREFIXES = ("/docs", "/redoc", "/openapi", "/health", "/api/v1/auth")


class RateLimitMiddleware(BaseHTTPMiddleware):
	"""Count farm-scoped requests per minute; skipped when Redis is not connected."""

	async def dispatch(self, request: Request, call_next):  # type: ignore[override]
		if request.url.path.startswith(_BYPASS_PREFIXES):
			return await call_next(request)

		farm_id = extract_request_farm_id(request)
		redis_client = getattr(request.app.state, "redis", None)
		if farm_id is None or redis_client is None:
			return await call_next(request)

		quota = get_settings().rate_limit_user_per_minute
		minute_bucket = datetime.now(UTC).strftime("%Y%m%d%H%M")
		key = f"ratelimit:farm:{farm_id}:{extract_identity_hint(request)}:{minute_bucket}"
		current = await redis_client.incr(key)
		if current == 1:
			await redis_client.expire(key, 65)

		if current > quota:
			return JSONResponse(
				status_code=429,
				content={
					"detail": {
						"error": "rate_limited",
						"message": "Farm quota exceeded",
						"farm_id": str(farm_id),
						"quota": quota,
					}
				},
			)
		return await call_next(request)
