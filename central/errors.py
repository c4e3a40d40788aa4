"""Translate any error that escapes an endpoint into a single HTTP response."""

import json
import traceback
from collections.abc import Callable
from typing import Any

import structlog
from fastapi import FastAPI
from starlette.requests import Request
from starlette.responses import Response

from central.config import Settings, settings
from central.context import ResponseContext
from central.logging_config import get_errors_logger
from central.openrosa import XML_CONTENT_TYPE, openrosa_headers, openrosa_message
from central.problem import OpenRosaProblem, Problem
from central.serialize import serialize

DiagnosticHook = Callable[[Any], None]


def no_diagnostics(error: Any) -> None:
    """Default diagnostic hook: do nothing."""


def trip_debugger(error: Any) -> None:
    """Stop in the configured debugger (see PYTHONBREAKPOINT)."""
    breakpoint()


class ErrorTranslator:
    """Render propagated errors as OpenRosa XML or JSON.

    Exactly one branch applies to any error, checked in this order:

    1. OpenRosaProblem: XML envelope with the wrapped problem's status.
    2. Problem: JSON ``{message, code, details}`` with its status.
    3. json.JSONDecodeError: re-translated as an unparseable-body Problem.
    4. Anything else: 500 with a generic message, logged and handed to the
       diagnostic hook. Traceback lines are included only when enabled.
    """

    def __init__(
        self,
        *,
        log: structlog.stdlib.BoundLogger | None = None,
        diagnostic_hook: DiagnosticHook | None = None,
        expose_stack: bool = False,
    ) -> None:
        self.log = log or get_errors_logger()
        self.diagnostic_hook = diagnostic_hook or no_diagnostics
        self.expose_stack = expose_stack

    @classmethod
    def from_settings(cls, config: Settings) -> "ErrorTranslator":
        return cls(
            diagnostic_hook=trip_debugger if config.break_on_unhandled else None,
            expose_stack=config.expose_error_stack,
        )

    def __call__(
        self, error: Any, request: Request, response: ResponseContext | None = None
    ) -> Response:
        response = response or ResponseContext()

        if isinstance(error, OpenRosaProblem):
            problem = error.problem
            # TODO: carry problem_details into the envelope once clients read them.
            message = openrosa_message(problem.http_code, nature="error", message=problem.message)
            for name, value in openrosa_headers().items():
                if not response.has_header(name):
                    response.set_header(name, value)
            if not response.has_header("content-type"):
                response.type(XML_CONTENT_TYPE)
            return response.send(problem.http_code, message.body)

        if isinstance(error, Problem):
            body: dict[str, Any] = {"message": error.message, "code": error.problem_code}
            if error.problem_details is not None:
                body["details"] = error.problem_details
            return self._send_json(response, error.http_code, body)

        if isinstance(error, json.JSONDecodeError):
            # only JSON bodies are parsed upstream, so the reply is plain JSON too
            unparseable = Problem.user.unparseable(format="json", raw_length=len(error.doc))
            return self(unparseable, request, response)

        return self._send_unhandled(error, request, response)

    def _send_unhandled(self, error: Any, request: Request, response: ResponseContext) -> Response:
        details: dict[str, Any] = {}
        if self.expose_stack and isinstance(error, BaseException):
            lines = "".join(traceback.format_exception(error)).split("\n")
            details["stack"] = [line.strip() for line in lines if line.strip()]

        self.log.error(
            "unhandled_exception",
            path=request.url.path,
            error=repr(error),
            exc_info=error if isinstance(error, BaseException) else None,
        )
        self.diagnostic_hook(error)

        return self._send_json(
            response,
            500,
            {"message": f"Completely unhandled exception: {error}", "details": details},
        )

    @staticmethod
    def _send_json(response: ResponseContext, status_code: int, body: dict[str, Any]) -> Response:
        response.type("application/json")
        return response.send(status_code, serialize(body))


send_error = ErrorTranslator.from_settings(settings)


def install_error_handlers(app: FastAPI, translator: ErrorTranslator | None = None) -> None:
    """Route errors raised outside the endpoint adapters through the translator."""
    translator = translator or send_error

    async def handle(request: Request, exc: Exception) -> Response:
        return translator(exc, request)

    for error_type in (OpenRosaProblem, Problem, json.JSONDecodeError):
        app.add_exception_handler(error_type, handle)
