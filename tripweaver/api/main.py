"""FastAPI application."""

from __future__ import annotations

import concurrent.futures
import logging
import os
import time

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from tripweaver import __version__
from tripweaver.api.schemas import ErrorResponse, HealthResponse
from tripweaver.application.contracts import PlanRequest
from tripweaver.application.plan_trip import plan_trip
from tripweaver.domain.exceptions import InvalidTripRequest, NoFeasibleItinerary
from tripweaver.domain.models import TripResult
from tripweaver.infrastructure.llm_factory import is_llm_available
from tripweaver.security.redact import redact_sensitive

_api_logger = logging.getLogger("tripweaver.api")

load_dotenv()

_PLAN_TIMEOUT = int(os.getenv("PLAN_TIMEOUT_SECONDS", "60"))

app = FastAPI(
    title="tripweaver",
    version=__version__,
    docs_url="/docs" if os.getenv("ENABLE_DOCS", "false").lower() == "true" else None,
    redoc_url=None,
)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Cache-Control"] = "no-store"
        return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Per-client POST limit over a sliding window, in-process only."""

    def __init__(self, app, max_requests: int = 60, window_seconds: int = 60):
        super().__init__(app)
        self._max = max_requests
        self._window = window_seconds
        self._counters: dict[str, list[float]] = {}

    def allow(self, client: str, now: float) -> bool:
        """Record one request from ``client``; False once it is over the limit."""
        cutoff = now - self._window
        # clients with nothing left in the window are forgotten
        for idle in [key for key, hits in self._counters.items() if hits[-1] <= cutoff]:
            del self._counters[idle]
        hits = [t for t in self._counters.get(client, []) if t > cutoff]
        allowed = len(hits) < self._max
        if allowed:
            hits.append(now)
        if hits:
            self._counters[client] = hits
        return allowed

    async def dispatch(self, request: Request, call_next):
        if request.method != "POST":
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        if not self.allow(client_ip, time.time()):
            return JSONResponse(
                status_code=429,
                content=ErrorResponse(status="rate_limited", detail="too many requests").model_dump(),
            )
        return await call_next(request)


app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    RateLimitMiddleware,
    max_requests=int(os.getenv("RATE_LIMIT_MAX", "60")),
    window_seconds=int(os.getenv("RATE_LIMIT_WINDOW", "60")),
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("CORS_ORIGINS", "*").split(","),
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


def _error(status_code: int, status: str, detail: str, trace_id=None) -> JSONResponse:
    body = ErrorResponse(status=status, detail=redact_sensitive(detail), trace_id=trace_id)
    return JSONResponse(status_code=status_code, content=body.model_dump())


@app.get("/health", response_model=HealthResponse)
def health():
    return HealthResponse(status="ok", version=__version__, oracle_configured=is_llm_available())


@app.post("/plan", response_model=TripResult)
def plan(req: PlanRequest):
    pool = concurrent.futures.ThreadPoolExecutor(max_workers=1)
    try:
        future = pool.submit(plan_trip, req)
        return future.result(timeout=_PLAN_TIMEOUT)
    except InvalidTripRequest as exc:
        return _error(422, "invalid_request", str(exc), req.trace_id)
    except NoFeasibleItinerary as exc:
        return _error(409, "no_feasible_itinerary", str(exc), req.trace_id)
    except concurrent.futures.TimeoutError:
        _api_logger.warning(f"plan timed out after {_PLAN_TIMEOUT}s")
        return _error(504, "error", f"planning timed out after {_PLAN_TIMEOUT}s", req.trace_id)
    except Exception as exc:
        _api_logger.error(f"plan endpoint error: {redact_sensitive(str(exc))}")
        return _error(500, "error", "planning failed, please retry", req.trace_id)
    finally:
        pool.shutdown(wait=False)
