"""
Client IP middleware.

Resolves the caller's address once per request and stores it on
request.state.client_ip. Behind a reverse proxy the socket peer is the
proxy itself, so the forwarded header is only honoured when the gateway
is started with TRUST_PROXY.
"""

import logging
from typing import Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


def resolve_client_ip(request: Request, trust_proxy: bool) -> Optional[str]:
    if trust_proxy:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            # "client, proxy1, proxy2": the left-most entry is the origin
            first = forwarded.split(",")[0].strip()
            if first:
                return first

    if request.client:
        return request.client.host
    return None


class ClientIPMiddleware(BaseHTTPMiddleware):
    """
    Args:
        app: ASGI application
        trust_proxy: Read X-Forwarded-For instead of the socket peer
    """

    def __init__(self, app, trust_proxy: bool = False):
        super().__init__(app)
        self.trust_proxy = trust_proxy

    async def dispatch(self, request: Request, call_next):
        client_ip = resolve_client_ip(request, self.trust_proxy)
        request.state.client_ip = client_ip
        logger.debug(
            f"Client IP: {client_ip}",
            extra={"path": request.url.path, "method": request.method},
        )
        return await call_next(request)
