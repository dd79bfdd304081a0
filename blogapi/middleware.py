"""Request log line plus response-time and SQL-count headers."""
import logging
import time
from contextvars import ContextVar

from sqlalchemy import event
from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger(__name__)

RESPONSE_TIME_HEADER = b"x-response-time-ms"
QUERY_COUNT_HEADER = b"x-query-count"

# Statements executed so far in the current request.
statements_in_request: ContextVar[int] = ContextVar("statements_in_request", default=0)


def install_query_counter(engine) -> None:
    """Count every cursor execution on *engine* against the current request.

    Call once per engine; the app engine and the test engine each need it.
    """

    @event.listens_for(engine.sync_engine, "before_cursor_execute")
    def _bump(conn, cursor, statement, parameters, context, executemany):
        statements_in_request.set(statements_in_request.get() + 1)


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


class RequestMetricsMiddleware:
    # Plain ASGI: BaseHTTPMiddleware runs the endpoint in another task, so
    # the counter it sees would stay at zero.

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            return await self.app(scope, receive, send)

        statements_in_request.set(0)
        started = time.perf_counter()

        async def send_with_metrics(message: Message) -> None:
            if message["type"] == "http.response.start":
                elapsed = _elapsed_ms(started)
                statements = statements_in_request.get()
                message["headers"] = [
                    *message.get("headers", []),
                    (RESPONSE_TIME_HEADER, str(elapsed).encode()),
                    (QUERY_COUNT_HEADER, str(statements).encode()),
                ]
                logger.info(
                    "%s %s %s %.2fms sql=%d",
                    scope["method"], scope["path"], message["status"], elapsed, statements,
                )
            await send(message)

        await self.app(scope, receive, send_with_metrics)
