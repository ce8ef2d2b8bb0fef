"""
Body encoding for pending requests.

Turns accumulated params/files into a query string, a form or JSON body,
or a streamed multipart body.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional, Union
from urllib.parse import urlencode

from urllib3.filepost import choose_boundary

from .exceptions import EncodingError
from .multipart import MultipartStream
from .request_builder import ContentType, PendingRequest

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
JSON_CONTENT_TYPE = "application/json"


def encode_form(params: Mapping[str, Any]) -> str:
    """
    URL-encode string-valued params; other values are skipped.

    Example:
        >>> encode_form({"q": "red shoes", "page": 2})
        'q=red+shoes'
    """
    return urlencode([(k, v) for k, v in params.items() if isinstance(v, str)])


def encode_json(params: Mapping[str, Any]) -> str:
    """
    Serialize all params as a compact JSON object.

    Raises:
        EncodingError: If a value is not JSON serializable
    """
    try:
        return json.dumps(dict(params), separators=(",", ":"))
    except (TypeError, ValueError) as e:
        raise EncodingError(f"Cannot encode params as JSON: {e}")


def build_query_url(relative_url: str, query: str) -> str:
    """
    Append a query string to a relative URL.

    Example:
        >>> build_query_url("/items?sort=asc", "q=shoes")
        '/items?sort=asc&q=shoes'
    """
    if not query:
        return relative_url
    separator = "&" if "?" in relative_url else "?"
    return f"{relative_url}{separator}{query}"


@dataclass
class EncodedRequest:
    """
    Result of body encoding.

    Attributes:
        relative_url: Relative URL including any query string built from params
        headers: Headers the encoding requires (Content-Type)
        body: Fixed body, if any
        stream_factory: Builds a fresh multipart stream for each attempt
    """

    relative_url: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[Union[str, bytes]] = None
    stream_factory: Optional[Callable[[], MultipartStream]] = None

    @property
    def is_streamed(self) -> bool:
        return self.stream_factory is not None

    def open_body(self) -> Optional[Union[str, bytes, MultipartStream]]:
        """Body for one send attempt. Streams are single-use, so each call builds a new one."""
        if self.stream_factory is not None:
            return self.stream_factory()
        return self.body


def encode_body(pending: PendingRequest, strict_uploads: bool = False) -> EncodedRequest:
    """
    Encode the pending request's params and files.

    - GET: string params go to the query string.
    - POST/PUT/PATCH/DELETE without an explicit body: files produce a
      streamed multipart body; otherwise params become a form or JSON body.
    - An explicit body is sent as-is.

    Args:
        pending: Accumulated request state
        strict_uploads: Abort multipart streams on the first file error

    Returns:
        EncodedRequest

    Raises:
        EncodingError: If JSON serialization fails
    """
    encoded = EncodedRequest(relative_url=pending.relative_url, body=pending.body)

    if pending.method == "GET":
        encoded.relative_url = build_query_url(pending.relative_url, encode_form(pending.params))
        return encoded

    if not pending.has_body_method or pending.body is not None:
        return encoded

    if pending.files:
        files = dict(pending.files)
        fields = pending.string_params
        boundary = choose_boundary()

        def stream_factory() -> MultipartStream:
            return MultipartStream(files, fields, boundary=boundary, strict=strict_uploads)

        encoded.stream_factory = stream_factory
        encoded.headers["Content-Type"] = f"multipart/form-data; boundary={boundary}"
        return encoded

    if pending.params:
        if pending.content_type == ContentType.JSON:
            encoded.body = encode_json(pending.params)
            encoded.headers["Content-Type"] = JSON_CONTENT_TYPE
        else:
            form = encode_form(pending.params)
            if form:
                encoded.body = form
                encoded.headers["Content-Type"] = FORM_CONTENT_TYPE

    return encoded
