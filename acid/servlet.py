"""Request handlers and a dispatcher that routes by exact path or glob."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from fnmatch import fnmatchcase
from typing import Any, Callable, Union

from .http import HttpContentType, HttpRequest, HttpResponse, HttpStatus

Handler = Callable[[HttpRequest, HttpResponse, Any], int]


class Servlet(ABC):
    """Something that handles a request by filling in a response."""

    def __init__(self, name: str) -> None:
        self.name = name

    @abstractmethod
    def handle(self, request: HttpRequest, response: HttpResponse, session: Any) -> int:
        """Process ``request`` into ``response``; return a status code."""


class FunctionServlet(Servlet):
    """A servlet backed by a plain callable."""

    def __init__(self, callback: Handler) -> None:
        super().__init__("FunctionServlet")
        self._callback = callback

    def handle(self, request: HttpRequest, response: HttpResponse, session: Any) -> int:
        return self._callback(request, response, session)


class NotFoundServlet(Servlet):
    """Answers every request with a 404 page naming the server."""

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.content = (
            "<html><head><title>404 Not Found</title></head><body>"
            "<center><h1>404 Not Found</h1></center><hr><center>"
            f"{name}</center></body></html>"
        )

    def handle(self, request: HttpRequest, response: HttpResponse, session: Any) -> int:
        response.status = HttpStatus.NOT_FOUND
        response.set_header("Server", self.name)
        response.content_type = HttpContentType.TEXT_HTML
        response.body = self.content
        return 0


ServletLike = Union[Servlet, Handler]


def _as_servlet(servlet: ServletLike) -> Servlet:
    if isinstance(servlet, Servlet):
        return servlet
    return FunctionServlet(servlet)


class ServletDispatch(Servlet):
    """Routes requests to servlets: exact paths first, then globs, then default."""

    def __init__(self) -> None:
        super().__init__("ServletDispatch")
        self._lock = threading.RLock()
        self._exact: dict[str, Servlet] = {}
        self._globs: dict[str, Servlet] = {}
        self.default: Servlet = NotFoundServlet("acid/1.0")

    def handle(self, request: HttpRequest, response: HttpResponse, session: Any) -> int:
        servlet = self.get_matched_servlet(request.path)
        if servlet is None:
            return 0
        return servlet.handle(request, response, session)

    def add_servlet(self, uri: str, servlet: ServletLike) -> None:
        with self._lock:
            self._exact[uri] = _as_servlet(servlet)

    def add_glob_servlet(self, uri: str, servlet: ServletLike) -> None:
        with self._lock:
            self._globs[uri] = _as_servlet(servlet)

    def del_servlet(self, uri: str) -> None:
        with self._lock:
            self._exact.pop(uri, None)

    def del_glob_servlet(self, uri: str) -> None:
        with self._lock:
            self._globs.pop(uri, None)

    def get_servlet(self, uri: str) -> Servlet | None:
        with self._lock:
            return self._exact.get(uri)

    def get_glob_servlet(self, uri: str) -> Servlet | None:
        with self._lock:
            return self._globs.get(uri)

    def get_matched_servlet(self, uri: str) -> Servlet | None:
        """The servlet for ``uri``: exact match, first matching glob, or default."""
        with self._lock:
            exact = self._exact.get(uri)
            if exact is not None:
                return exact
            for pattern in sorted(self._globs):
                if fnmatchcase(uri, pattern):
                    return self._globs[pattern]
            return self.default