import time
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from claimledger.core.logging import bind_request_id, log_event

REQUEST_ID_HEADER = "x-request-id"


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Tag each API call with a request id (client-supplied or generated).

    The id is echoed in the response header and bound to every record logged
    while the call runs. Each call ends with an ``api.request`` event carrying
    the ledger's streak and whether it is still persisting.
    """

    async def dispatch(self, request: Request, call_next):
        rid = request.headers.get(REQUEST_ID_HEADER) or uuid4().hex
        request.state.request_id = rid
        started = time.perf_counter()

        with bind_request_id(rid):
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = rid
            log_event(
                "info",
                "api.request",
                event_type="api.request",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "status": response.status_code,
                    "duration_ms": round((time.perf_counter() - started) * 1000, 1),
                    **_ledger_context(request),
                },
            )
        return response


def _ledger_context(request: Request) -> dict:
    ledger = getattr(request.app.state, "ledger", None)
    if ledger is None:
        return {}
    return {"streak": ledger.current_streak, "persisted": ledger.persisted}
