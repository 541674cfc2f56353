"""
api/client.py

HTTP transport shared by every resource module.

``ApiClient`` wraps a ``requests.Session`` and plays the role of the
request/response interceptors:

- the bearer token is read from the session store on every outgoing call;
- non-2xx responses are mapped onto the typed errors in ``api.errors``;
- a 401 on an authenticated call invalidates the session before the
  ``AuthError`` is raised.

No retries, no caching.  One call in, one response (or one error) out.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Callable, Optional, Type, TypeVar
from urllib.parse import unquote

import requests
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from api.config import ClientSettings
from api.errors import AuthError, NetworkError, ResolutionError, error_for_status
from api.models import DownloadedFile

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

TokenProvider = Callable[[], Optional[str]]
UnauthorizedHook = Callable[[str], None]

_DISPOSITION_RE = re.compile(r"filename\*?=((['\"]).*?\2|[^;\n]*)", re.IGNORECASE)


def filename_from_disposition(header: str | None) -> str | None:
    """
    Extract the filename from a ``Content-Disposition`` header.

    Handles quoted, bare and RFC 5987 (``filename*=UTF-8''...``) forms.
    """
    if not header:
        return None
    match = _DISPOSITION_RE.search(header)
    if not match:
        return None
    value = match.group(1).strip().strip("'\"")
    if "''" in value:
        value = unquote(value.split("''", 1)[1])
    return value or None


def _error_message(response: requests.Response) -> tuple[str, Any]:
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict) and payload.get("message"):
        return str(payload["message"]), payload
    text = (response.text or "").strip()
    if text and payload is None:
        return text[:200], None
    return response.reason or f"HTTP {response.status_code}", payload


class ApiClient:
    def __init__(
        self,
        settings: ClientSettings,
        http: requests.Session | None = None,
        token_provider: TokenProvider | None = None,
        on_unauthorized: UnauthorizedHook | None = None,
    ):
        self.settings = settings
        self.http = http if http is not None else requests.Session()
        self._token_provider = token_provider or (lambda: None)
        self._on_unauthorized = on_unauthorized

        if settings.demo_mode and http is None:
            from api.demo import DemoAdapter

            self.http.mount(settings.base_url, DemoAdapter(settings.base_url))

    def url(self, path: str) -> str:
        return f"{self.settings.base_url}{path}"

    def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        data: dict[str, Any] | None = None,
        files: dict[str, Any] | None = None,
        authenticated: bool = True,
    ) -> requests.Response:
        """
        Issue one HTTP call and return the response, or raise a typed error.

        Raises:
            NetworkError: No response was received.
            AuthError:    HTTP 401.  When *authenticated*, the session is
                          invalidated first.
            NotFoundError, ValidationError, ServerError, ApiError:
                          Other non-2xx statuses.
        """
        headers = {"Accept": "application/json"}
        token = self._token_provider() if authenticated else None
        if token:
            headers["Authorization"] = f"Bearer {token}"

        logger.debug("%s %s", method, path)
        try:
            response = self.http.request(
                method,
                self.url(path),
                params=params,
                json=json,
                data=data,
                files=files,
                headers=headers,
                timeout=self.settings.timeout,
            )
        except requests.RequestException as exc:
            logger.warning("%s %s: no response (%s)", method, path, exc)
            raise NetworkError(f"No response from server for {method} {path}") from exc

        if response.status_code < 400:
            return response

        message, payload = _error_message(response)
        error = error_for_status(response.status_code, message, payload)
        logger.warning("%s %s -> %d: %s", method, path, response.status_code, message)

        if isinstance(error, AuthError) and authenticated and self._on_unauthorized is not None:
            self._on_unauthorized(message)
        raise error

    # -------------------------
    # JSON helpers
    # -------------------------
    def get_json(self, path: str, **kwargs: Any) -> Any:
        return self.read_json(self.request("GET", path, **kwargs), path)

    def post_json(self, path: str, body: Any = None, **kwargs: Any) -> Any:
        return self.read_json(self.request("POST", path, json=body, **kwargs), path)

    def put_json(self, path: str, body: Any = None, **kwargs: Any) -> Any:
        return self.read_json(self.request("PUT", path, json=body, **kwargs), path)

    def delete(self, path: str) -> None:
        self.request("DELETE", path)

    @staticmethod
    def read_json(response: requests.Response, path: str) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise ResolutionError(
                f"Response from {path} is not valid JSON", response.status_code
            ) from exc

    # -------------------------
    # Binary downloads
    # -------------------------
    def download(self, path: str, fallback_name: str) -> DownloadedFile:
        response = self.request("GET", path)
        filename = filename_from_disposition(response.headers.get("Content-Disposition"))
        return DownloadedFile(
            content=response.content,
            filename=filename or fallback_name,
            content_type=response.headers.get("Content-Type"),
        )


# ---------------------------------------------------------------------------
# Payload parsing
# ---------------------------------------------------------------------------


def parse_model(model: Type[ModelT], payload: Any, source: str) -> ModelT:
    """Validate *payload* as *model*; ``ResolutionError`` when it does not fit."""
    try:
        return model.model_validate(payload)
    except PydanticValidationError as exc:
        logger.error("Unexpected %s payload from %s: %s", model.__name__, source, exc)
        raise ResolutionError(f"Unexpected {model.__name__} payload from {source}") from exc


def parse_models(model: Type[ModelT], payload: Any, source: str) -> list[ModelT]:
    """Validate a JSON array of *model* items."""
    if payload is None:
        return []
    if not isinstance(payload, list):
        logger.error("Expected a list from %s, got %s", source, type(payload).__name__)
        raise ResolutionError(f"Expected a list of {model.__name__} from {source}")
    return [parse_model(model, item, source) for item in payload]
