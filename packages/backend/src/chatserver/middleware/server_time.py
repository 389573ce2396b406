"""Server time middleware.

Learn: Reports how long the server spent on a request, in microseconds,
in the X-Server-Time response header. Measured around the inner stack,
so it includes routing, auth and the handler but not the network.
"""

import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

SERVER_TIME_HEADER = "X-Server-Time"


class ServerTimeMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        start = time.perf_counter()
        response: Response = await call_next(request)
        elapsed_us = int((time.perf_counter() - start) * 1_000_000)
        response.headers[SERVER_TIME_HEADER] = f"{elapsed_us}us"
        return response
