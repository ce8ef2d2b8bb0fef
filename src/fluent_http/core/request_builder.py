"""Pending request state accumulated by the fluent API."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union

from requests.structures import CaseInsensitiveDict

logger = logging.getLogger(__name__)

# Методы, для которых собирается тело запроса
BODY_METHODS = frozenset({'POST', 'PUT', 'PATCH', 'DELETE'})


class ContentType(str, Enum):
    """How scalar params are encoded into a request body."""
    FORM = "form"
    JSON = "json"


@dataclass
class PendingRequest:
    """
    Request state owned by one HTTPClient.

    Nothing here performs I/O; the state is read at dispatch time.

    Attributes:
        base_url: Base URL, fixed at construction
        relative_url: Path (and optional query) appended to base_url
        method: HTTP method
        headers: Case-insensitive headers, last write wins
        content_type: Body encoding for params
        params: Request params, last write wins
        files: Form field name -> source file path, in insertion order
        auth: Basic auth (username, password)
        host: Host header override
        body: Explicit body; disables param/file body encoding
    """

    base_url: str
    relative_url: str = ""
    method: str = "GET"
    headers: CaseInsensitiveDict = field(default_factory=CaseInsensitiveDict)
    content_type: ContentType = ContentType.FORM
    params: Dict[str, Any] = field(default_factory=dict)
    files: Dict[str, str] = field(default_factory=dict)
    auth: Optional[Tuple[str, str]] = None
    host: Optional[str] = None
    body: Optional[Union[str, bytes]] = None

    def set_param(self, key: str, value: Any) -> None:
        """Set a param; overwriting an existing key logs a warning."""
        if key in self.params:
            logger.warning(f"Param '{key}' already set, overwriting")
        self.params[key] = value

    def set_file(self, field_name: str, path: str) -> None:
        if field_name in self.files:
            logger.warning(f"File field '{field_name}' already set, overwriting")
        self.files[field_name] = path

    def set_header(self, key: str, value: str) -> None:
        self.headers[key] = value

    @property
    def has_body_method(self) -> bool:
        return self.method in BODY_METHODS

    @property
    def string_params(self) -> Dict[str, str]:
        """Params with string values; only these take part in form/multipart encoding."""
        return {k: v for k, v in self.params.items() if isinstance(v, str)}
