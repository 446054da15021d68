"""
api_template.api.errors

Global error handling.

Responsibilities:
- Problem-details model and writer (`application/problem+json`).
- Map unhandled exceptions to status codes by exception category.
- Catch unhandled exceptions in a middleware and render problem details.
- Render minimal status-code pages for routing/auth `HTTPException`s.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any

from fastapi import Request
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, PlainTextResponse, Response
from starlette.status import HTTP_400_BAD_REQUEST, HTTP_500_INTERNAL_SERVER_ERROR

from api_template.observability.logging import get_logger
from api_template.observability.middleware import get_request_id

log = get_logger(__name__)

PROBLEM_JSON = "application/problem+json"

# Exception category -> status. Categories match subclasses; the most specific one wins.
DEFAULT_STATUS_CODES: tuple[tuple[type[BaseException], int], ...] = (
    (ValueError, HTTP_400_BAD_REQUEST),
)


@dataclass(slots=True)
class ProblemDetails:
    title: str | None = None
    detail: str | None = None
    type: str | None = None
    status: int | None = None
    instance: str | None = None
    extensions: dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            key: value
            for key, value in (
                ("type", self.type),
                ("title", self.title),
                ("status", self.status),
                ("detail", self.detail),
                ("instance", self.instance),
            )
            if value is not None
        }
        # RFC 7807: extension members sit next to the standard ones and never replace them.
        for key, value in self.extensions.items():
            payload.setdefault(key, value)
        return payload


ProblemDetailsCustomizer = Callable[[ProblemDetails, Request], None]


def enrich_problem_details(problem: ProblemDetails, request: Request) -> None:
    problem.instance = f"{request.method} {request.url.path}"
    problem.extensions.setdefault("requestId", get_request_id(request))


class ProblemDetailsService:
    """
    Writes problem details after applying the cross-cutting customization step.
    """

    def __init__(self, customize: ProblemDetailsCustomizer | None = enrich_problem_details) -> None:
        self._customize = customize

    def try_write(self, request: Request, problem: ProblemDetails, status_code: int) -> Response | None:
        problem.status = status_code
        # A failing customizer or an unserializable extension both mean "not written";
        # the caller falls back to the plain status page.
        try:
            if self._customize is not None:
                self._customize(problem, request)
            return JSONResponse(problem.as_dict(), status_code=status_code, media_type=PROBLEM_JSON)
        except Exception:
            log.exception("problem_details_write_failed", status_code=status_code)
            return None


class StatusCodeSelector:
    def __init__(
        self,
        mapping: Iterable[tuple[type[BaseException], int]] = DEFAULT_STATUS_CODES,
        *,
        default: int = HTTP_500_INTERNAL_SERVER_ERROR,
    ) -> None:
        self._mapping: dict[type[BaseException], int] = dict(mapping)
        self._default = default

    def add(self, category: type[BaseException], status_code: int) -> StatusCodeSelector:
        self._mapping[category] = status_code
        return self

    def select(self, exc: BaseException) -> int:
        for category in type(exc).__mro__:
            if category in self._mapping:
                return self._mapping[category]
        return self._default


class GlobalExceptionHandler:
    def __init__(self, problem_details: ProblemDetailsService) -> None:
        self._problem_details = problem_details

    def try_handle(self, request: Request, exc: Exception, status_code: int) -> Response | None:
        """
        Returns the problem-details response, or None when it could not be written.
        """
        problem = ProblemDetails(
            title="An error occurred",
            detail=str(exc),
            type=type(exc).__name__,
        )
        return self._problem_details.try_write(request, problem, status_code)


def status_code_page(status_code: int, headers: dict[str, str] | None = None) -> Response:
    try:
        phrase = HTTPStatus(status_code).phrase
    except ValueError:
        phrase = "Unknown"
    return PlainTextResponse(f"Status Code: {status_code}; {phrase}", status_code=status_code, headers=headers)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> Response:
    # Routing/auth short-circuits (404/405/401/403) render a status page, not problem details.
    return status_code_page(exc.status_code, exc.headers)


class ExceptionHandlerMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app,
        *,
        handler: GlobalExceptionHandler,
        selector: StatusCodeSelector,
    ) -> None:
        super().__init__(app)
        self._handler = handler
        self._selector = selector

    async def dispatch(self, request: Request, call_next) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            status_code = self._selector.select(exc)
            log.exception("unhandled_exception", status_code=status_code, exception_type=type(exc).__name__)
            response = self._handler.try_handle(request, exc, status_code)
            if response is None:
                return status_code_page(status_code)
            return response


# --- Module Notes -----------------------------------------------------------
# Extend `DEFAULT_STATUS_CODES` (or call `StatusCodeSelector.add`) with exception base
# classes rather than listing every concrete type.
