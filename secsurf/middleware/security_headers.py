"""
middleware/security_headers.py

Wraps an ASGI app and sets security related response headers.

Read this carefully before enabling: some of these headers have long term
effects in the browsers that receive them.

Headers set:
    X-XSS-Protection: 1; mode=block
    X-Frame-Options: deny
    X-Content-Type-Options: nosniff
    Strict-Transport-Security: max-age=31536000; includeSubDomains

X-XSS-Protection
    Forces the XSS filter on in older browsers (IE, legacy Chrome/Safari).

X-Frame-Options
    Pages cannot be rendered inside frames.

X-Content-Type-Options
    The browser does not guess the content type.

Strict-Transport-Security
    Once a page has loaded over a valid certificate chain, the browser will
    REFUSE to load it again for a year without a valid https connection, for
    this host and every subdomain. With ``wrap`` it is only sent on responses
    to requests that arrived over TLS. ``wrap_always_sts`` sends it on plain
    http too, for apps that sit behind a TLS-terminating proxy or gateway.

Non-developer summary:
----------------------
Every response leaves the app with safe defaults for these headers. A route
can still send its own value for any of them (e.g. ``X-Frame-Options:
sameorigin``) and that value is the one the browser sees.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from starlette.datastructures import MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send


SECURITY_HEADERS: Mapping[str, str] = MappingProxyType({
    "X-XSS-Protection": "1; mode=block",
    "X-Frame-Options": "deny",
    "X-Content-Type-Options": "nosniff",
})

STS_HEADERS: Mapping[str, str] = MappingProxyType({
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
})

_SECURE_SCHEMES = frozenset({"https", "wss"})


def is_secure_transport(scope: Scope) -> bool:
    """
    True when the connection behind this request is TLS.

    Servers report it either through the scheme or by attaching the ASGI
    ``tls`` extension with the connection's certificate metadata.
    """
    if scope.get("scheme") in _SECURE_SCHEMES:
        return True
    extensions = scope.get("extensions") or {}
    return extensions.get("tls") is not None


class SecurityHeadersMiddleware:
    """
    Pure ASGI middleware. Only the ``http.response.start`` message is
    touched; body chunks and exceptions from the wrapped app pass through.

    - ``always_sts=False``: HSTS only on TLS requests.
    - ``always_sts=True``: HSTS on every response.

    Headers are defaults: whatever the wrapped app sends under the same name
    is kept, and a name is never emitted twice.
    """

    def __init__(self, app: ASGIApp, *, always_sts: bool = False) -> None:
        self.app = app
        self.always_sts = always_sts

    def headers_for(self, scope: Scope) -> dict[str, str]:
        """The header set this request gets, in emission order."""
        hdrs = dict(SECURITY_HEADERS)
        if self.always_sts or is_secure_transport(scope):
            hdrs.update(STS_HEADERS)
        return hdrs

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        defaults = self.headers_for(scope)

        async def send_with_headers(message: Message) -> None:
            if message["type"] == "http.response.start":
                # "headers" is optional in the ASGI start message
                message.setdefault("headers", [])
                headers = MutableHeaders(scope=message)
                for name, value in defaults.items():
                    # The app's own value wins over ours
                    if name not in headers:
                        headers.append(name, value)
            await send(message)

        await self.app(scope, receive, send_with_headers)


def wrap(app: ASGIApp) -> ASGIApp:
    """Wrap an ASGI app; HSTS is only sent over TLS."""
    return SecurityHeadersMiddleware(app)


def wrap_always_sts(app: ASGIApp) -> ASGIApp:
    """Wrap an ASGI app; HSTS is sent even on plain http."""
    return SecurityHeadersMiddleware(app, always_sts=True)
