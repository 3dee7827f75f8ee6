"""HTTP methods, status codes, content types and request/response messages."""

from __future__ import annotations

import json
from collections.abc import Iterator, Mapping, MutableMapping
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any

from .lexical_cast import lexical_cast


class HttpMethod(IntEnum):
    """Request methods; ``INVALID_METHOD`` marks an unknown one."""

    DELETE = 0
    GET = 1
    HEAD = 2
    POST = 3
    PUT = 4
    CONNECT = 5
    OPTIONS = 6
    TRACE = 7
    COPY = 8
    LOCK = 9
    MKCOL = 10
    MOVE = 11
    PROPFIND = 12
    PROPPATCH = 13
    SEARCH = 14
    UNLOCK = 15
    BIND = 16
    REBIND = 17
    UNBIND = 18
    ACL = 19
    REPORT = 20
    MKACTIVITY = 21
    CHECKOUT = 22
    MERGE = 23
    MSEARCH = 24
    NOTIFY = 25
    SUBSCRIBE = 26
    UNSUBSCRIBE = 27
    PATCH = 28
    PURGE = 29
    MKCALENDAR = 30
    LINK = 31
    UNLINK = 32
    SOURCE = 33
    INVALID_METHOD = 34

    @property
    def text(self) -> str:
        """The method as it appears on the wire."""
        if self is HttpMethod.MSEARCH:
            return "M-SEARCH"
        if self is HttpMethod.INVALID_METHOD:
            return "<unknown>"
        return self.name

    def __str__(self) -> str:
        return self.text


class HttpStatus(IntEnum):
    """Response status codes with their standard reason phrases."""

    reason: str

    def __new__(cls, code: int, reason: str) -> "HttpStatus":
        member = int.__new__(cls, code)
        member._value_ = code
        member.reason = reason
        return member

    CONTINUE = 100, "Continue"
    SWITCHING_PROTOCOLS = 101, "Switching Protocols"
    PROCESSING = 102, "Processing"
    OK = 200, "OK"
    CREATED = 201, "Created"
    ACCEPTED = 202, "Accepted"
    NON_AUTHORITATIVE_INFORMATION = 203, "Non-Authoritative Information"
    NO_CONTENT = 204, "No Content"
    RESET_CONTENT = 205, "Reset Content"
    PARTIAL_CONTENT = 206, "Partial Content"
    MULTI_STATUS = 207, "Multi-Status"
    ALREADY_REPORTED = 208, "Already Reported"
    IM_USED = 226, "IM Used"
    MULTIPLE_CHOICES = 300, "Multiple Choices"
    MOVED_PERMANENTLY = 301, "Moved Permanently"
    FOUND = 302, "Found"
    SEE_OTHER = 303, "See Other"
    NOT_MODIFIED = 304, "Not Modified"
    USE_PROXY = 305, "Use Proxy"
    TEMPORARY_REDIRECT = 307, "Temporary Redirect"
    PERMANENT_REDIRECT = 308, "Permanent Redirect"
    BAD_REQUEST = 400, "Bad Request"
    UNAUTHORIZED = 401, "Unauthorized"
    PAYMENT_REQUIRED = 402, "Payment Required"
    FORBIDDEN = 403, "Forbidden"
    NOT_FOUND = 404, "Not Found"
    METHOD_NOT_ALLOWED = 405, "Method Not Allowed"
    NOT_ACCEPTABLE = 406, "Not Acceptable"
    PROXY_AUTHENTICATION_REQUIRED = 407, "Proxy Authentication Required"
    REQUEST_TIMEOUT = 408, "Request Timeout"
    CONFLICT = 409, "Conflict"
    GONE = 410, "Gone"
    LENGTH_REQUIRED = 411, "Length Required"
    PRECONDITION_FAILED = 412, "Precondition Failed"
    PAYLOAD_TOO_LARGE = 413, "Payload Too Large"
    URI_TOO_LONG = 414, "URI Too Long"
    UNSUPPORTED_MEDIA_TYPE = 415, "Unsupported Media Type"
    RANGE_NOT_SATISFIABLE = 416, "Range Not Satisfiable"
    EXPECTATION_FAILED = 417, "Expectation Failed"
    MISDIRECTED_REQUEST = 421, "Misdirected Request"
    UNPROCESSABLE_ENTITY = 422, "Unprocessable Entity"
    LOCKED = 423, "Locked"
    FAILED_DEPENDENCY = 424, "Failed Dependency"
    UPGRADE_REQUIRED = 426, "Upgrade Required"
    PRECONDITION_REQUIRED = 428, "Precondition Required"
    TOO_MANY_REQUESTS = 429, "Too Many Requests"
    REQUEST_HEADER_FIELDS_TOO_LARGE = 431, "Request Header Fields Too Large"
    UNAVAILABLE_FOR_LEGAL_REASONS = 451, "Unavailable For Legal Reasons"
    INTERNAL_SERVER_ERROR = 500, "Internal Server Error"
    NOT_IMPLEMENTED = 501, "Not Implemented"
    BAD_GATEWAY = 502, "Bad Gateway"
    SERVICE_UNAVAILABLE = 503, "Service Unavailable"
    GATEWAY_TIMEOUT = 504, "Gateway Timeout"
    HTTP_VERSION_NOT_SUPPORTED = 505, "HTTP Version Not Supported"
    VARIANT_ALSO_NEGOTIATES = 506, "Variant Also Negotiates"
    INSUFFICIENT_STORAGE = 507, "Insufficient Storage"
    LOOP_DETECTED = 508, "Loop Detected"
    NOT_EXTENDED = 510, "Not Extended"
    NETWORK_AUTHENTICATION_REQUIRED = 511, "Network Authentication Required"


class HttpContentType(Enum):
    """Known Content-Type values; ``INVALID_TYPE`` marks an unknown one."""

    TEXT_HTML = "text/html"
    TEXT_PLAIN = "text/plain"
    TEXT_XML = "text/xml"
    IMAGE_GIF = "image/gif"
    IMAGE_JPEG = "image/jpeg"
    IMAGE_PNG = "image/png"
    APPLICATION_XHTML = "application/xhtml+xml"
    APPLICATION_ATOM = "application/atom+xml"
    APPLICATION_JSON = "application/json"
    APPLICATION_PDF = "application/pdf"
    APPLICATION_MSWORD = "application/msword"
    APPLICATION_STREAM = "application/octet-stream"
    APPLICATION_URLENCODED = "application/x-www-form-urlencoded"
    APPLICATION_FORM_DATA = "application/form-data"
    INVALID_TYPE = ""

    def __str__(self) -> str:
        return self.value


_METHODS_BY_TEXT = {method.text: method for method in HttpMethod
                    if method is not HttpMethod.INVALID_METHOD}


def method_from_string(text: str) -> HttpMethod:
    """Return the method named ``text`` or ``HttpMethod.INVALID_METHOD``."""
    return _METHODS_BY_TEXT.get(text, HttpMethod.INVALID_METHOD)


def content_type_from_string(text: str) -> HttpContentType:
    """Return the content type of a Content-Type value, ignoring parameters."""
    media = text.split(";", 1)[0].strip().lower()
    if not media:
        return HttpContentType.INVALID_TYPE
    try:
        return HttpContentType(media)
    except ValueError:
        return HttpContentType.INVALID_TYPE


def status_reason(status: int) -> str:
    """Reason phrase for a status code, or ``"<unknown>"``."""
    try:
        return HttpStatus(int(status)).reason
    except ValueError:
        return "<unknown>"


class CaseInsensitiveDict(MutableMapping):
    """String mapping whose keys compare without regard to case.

    Iteration is in case-insensitive key order; a key keeps the spelling it
    was first stored with.
    """

    def __init__(self, data: Mapping[str, str] | None = None, **kwargs: str) -> None:
        self._data: dict[str, tuple[str, str]] = {}
        if data is not None:
            self.update(data)
        self.update(kwargs)

    def __getitem__(self, key: str) -> str:
        return self._data[key.lower()][1]

    def __setitem__(self, key: str, value: str) -> None:
        folded = key.lower()
        original = self._data[folded][0] if folded in self._data else key
        self._data[folded] = (original, value)

    def __delitem__(self, key: str) -> None:
        folded = key.lower()
        if folded not in self._data:
            raise KeyError(key)
        self._data.pop(folded)

    def __iter__(self) -> Iterator[str]:
        for folded in sorted(self._data):
            yield self._data[folded][0]

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self._data

    def copy(self) -> "CaseInsensitiveDict":
        return CaseInsensitiveDict(self)

    def __repr__(self) -> str:
        return f"CaseInsensitiveDict({dict(self.items())!r})"


def _get_as(mapping: Mapping[str, str], key: str, target: type, default: Any) -> Any:
    if default is None:
        default = target()
    if key not in mapping:
        return default
    try:
        return lexical_cast(mapping[key], target)
    except (ValueError, TypeError):
        return default


def _version_text(version: int) -> str:
    return f"HTTP/{version >> 4}.{version & 0x0F}"


def _body_tail(body: str) -> str:
    if body:
        return f"content-length: {len(body.encode('utf-8'))}\r\n\r\n{body}"
    return "\r\n"


def _as_case_insensitive(value: Mapping[str, str]) -> CaseInsensitiveDict:
    if isinstance(value, CaseInsensitiveDict):
        return value
    return CaseInsensitiveDict(value)


@dataclass
class HttpRequest:
    """An HTTP request; ``version`` packs major and minor as ``0x11`` for 1.1."""

    version: int = 0x11
    close: bool = True
    method: HttpMethod = HttpMethod.GET
    websocket: bool = False
    path: str = "/"
    query: str = ""
    fragment: str = ""
    body: str = ""
    headers: CaseInsensitiveDict = field(default_factory=CaseInsensitiveDict)
    params: CaseInsensitiveDict = field(default_factory=CaseInsensitiveDict)
    cookies: CaseInsensitiveDict = field(default_factory=CaseInsensitiveDict)

    def __post_init__(self) -> None:
        self.headers = _as_case_insensitive(self.headers)
        self.params = _as_case_insensitive(self.params)
        self.cookies = _as_case_insensitive(self.cookies)

    @property
    def content_type(self) -> HttpContentType:
        return content_type_from_string(self.get_header("Content-Type"))

    @content_type.setter
    def content_type(self, value: HttpContentType | str) -> None:
        self.set_header("Content-Type", str(value))

    def get_header(self, key: str, default: str = "") -> str:
        return self.headers.get(key, default)

    def set_header(self, key: str, value: str) -> None:
        self.headers[key] = value

    def del_header(self, key: str) -> None:
        self.headers.pop(key, None)

    def has_header(self, key: str) -> bool:
        return key in self.headers

    def get_header_as(self, key: str, target: type, default: Any = None) -> Any:
        """Header converted to ``target``; ``default`` if absent or unparsable."""
        return _get_as(self.headers, key, target, default)

    def get_param(self, key: str, default: str = "") -> str:
        return self.params.get(key, default)

    def set_param(self, key: str, value: str) -> None:
        self.params[key] = value

    def del_param(self, key: str) -> None:
        self.params.pop(key, None)

    def has_param(self, key: str) -> bool:
        return key in self.params

    def get_param_as(self, key: str, target: type, default: Any = None) -> Any:
        return _get_as(self.params, key, target, default)

    def get_cookie(self, key: str, default: str = "") -> str:
        return self.cookies.get(key, default)

    def set_cookie(self, key: str, value: str) -> None:
        self.cookies[key] = value

    def del_cookie(self, key: str) -> None:
        self.cookies.pop(key, None)

    def has_cookie(self, key: str) -> bool:
        return key in self.cookies

    def get_cookie_as(self, key: str, target: type, default: Any = None) -> Any:
        return _get_as(self.cookies, key, target, default)

    def get_json(self) -> Any:
        """Decode the body as JSON; raises ``ValueError`` if it is not."""
        return json.loads(self.body)

    def set_json(self, value: Any) -> None:
        """Encode ``value`` as the JSON body and set the content type."""
        self.body = json.dumps(value)
        self.content_type = HttpContentType.APPLICATION_JSON

    def __str__(self) -> str:
        target = self.path
        if self.query:
            target += "?" + self.query
        if self.fragment:
            target += "#" + self.fragment
        lines = [f"{self.method.text} {target} {_version_text(self.version)}\r\n"]
        if not self.websocket:
            lines.append(f"connection: {'close' if self.close else 'keep-alive'}\r\n")
        for key, value in self.headers.items():
            if not self.websocket and key.lower() == "connection":
                continue
            lines.append(f"{key}: {value}\r\n")
        lines.append(_body_tail(self.body))
        return "".join(lines)


@dataclass
class HttpResponse:
    """An HTTP response; ``status`` may be an ``HttpStatus`` or a bare code."""

    version: int = 0x11
    close: bool = True
    status: HttpStatus | int = HttpStatus.OK
    websocket: bool = False
    body: str = ""
    reason: str = ""
    headers: CaseInsensitiveDict = field(default_factory=CaseInsensitiveDict)
    cookies: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.headers = _as_case_insensitive(self.headers)
        try:
            self.status = HttpStatus(int(self.status))
        except ValueError:
            self.status = int(self.status)

    @property
    def content_type(self) -> HttpContentType:
        return content_type_from_string(self.get_header("Content-Type"))

    @content_type.setter
    def content_type(self, value: HttpContentType | str) -> None:
        self.set_header("Content-Type", str(value))

    def get_header(self, key: str, default: str = "") -> str:
        return self.headers.get(key, default)

    def set_header(self, key: str, value: str) -> None:
        self.headers[key] = value

    def del_header(self, key: str) -> None:
        self.headers.pop(key, None)

    def has_header(self, key: str) -> bool:
        return key in self.headers

    def get_header_as(self, key: str, target: type, default: Any = None) -> Any:
        return _get_as(self.headers, key, target, default)

    def get_json(self) -> Any:
        """Decode the body as JSON; raises ``ValueError`` if it is not."""
        return json.loads(self.body)

    def set_json(self, value: Any) -> None:
        """Encode ``value`` as the JSON body and set the content type."""
        self.body = json.dumps(value)
        self.content_type = HttpContentType.APPLICATION_JSON

    def __str__(self) -> str:
        reason = self.reason or status_reason(self.status)
        lines = [f"{_version_text(self.version)} {int(self.status)} {reason}\r\n"]
        for key, value in self.headers.items():
            if not self.websocket and key.lower() == "connection":
                continue
            lines.append(f"{key}: {value}\r\n")
        for cookie in self.cookies:
            lines.append(f"Set-Cookie: {cookie}\r\n")
        if not self.websocket:
            lines.append(f"connection: {'close' if self.close else 'keep-alive'}\r\n")
        lines.append(_body_tail(self.body))
        return "".join(lines)