"""
HTTP client for the resources service.

Every call is one fresh round trip: no retries, no caching. Non-2xx statuses
are returned to the caller as data. Transport failures (``httpx.RequestError``
and its subclasses) are logged and re-raised unchanged.
"""
import os
import uuid
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Union

import httpx
import simplejson
from loguru import logger
from dotenv import load_dotenv

load_dotenv()

DEFAULT_BASE_URL = os.getenv("RESOURCES_SERVICE_URL", "http://localhost:8001")
DEFAULT_TIMEOUT = float(os.getenv("RESOURCES_CLIENT_TIMEOUT", 5.0))

JSON_HEADERS = {"Content-Type": "application/json"}

# Already serialized JSON is sent as-is
Body = Union[str, Mapping[str, Any]]


@dataclass(frozen=True)
class ClientResult:
    status_code: int
    body: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def json(self) -> Any:
        """Decode the body, keeping decimal numbers as ``Decimal``."""
        return simplejson.loads(self.body, use_decimal=True)


def encode_body(body: Body) -> str:
    if isinstance(body, str):
        return body
    return simplejson.dumps(dict(body), use_decimal=True)


class ResourceClient:
    """
    Issues CRUD requests against ``base_url``.

    An existing ``httpx.Client`` (a FastAPI ``TestClient`` for instance) can be
    passed as ``http``; it is then left open by :meth:`close`.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        http: Optional[httpx.Client] = None,
        timeout: float = DEFAULT_TIMEOUT,
        trace_id: Optional[str] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.trace_id = trace_id or str(uuid.uuid4())
        self._owns_http = http is None
        self._http = http if http is not None else httpx.Client(timeout=timeout)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def close(self):
        if self._owns_http:
            self._http.close()

    def send(
        self,
        method: str,
        path: str,
        headers: Optional[Mapping[str, str]] = None,
        body: Optional[str] = None,
        params: Optional[Mapping[str, str]] = None,
    ) -> ClientResult:
        url = f"{self.base_url}{path}"
        request_headers: Dict[str, str] = {"X-Trace-ID": self.trace_id}
        if headers:
            request_headers.update(headers)

        log = logger.bind(trace_id=self.trace_id)
        log.bind(params=dict(params or {})).debug(f"{method} {url}")
        try:
            response = self._http.request(
                method,
                url,
                headers=request_headers,
                content=body.encode("utf-8") if body is not None else None,
                params=dict(params) if params else None,
            )
        except httpx.RequestError as e:
            log.error(f"Error calling resources service: {str(e)}")
            raise

        log.bind(status=response.status_code).info(f"{method} {path} -> {response.status_code}")
        return ClientResult(status_code=response.status_code, body=response.text)

    def create(self, resource: Body, headers: Optional[Mapping[str, str]] = None) -> ClientResult:
        return self.send("POST", "/resources/create", headers={**JSON_HEADERS, **(headers or {})},
                         body=encode_body(resource))

    def get(self, resource_id: int) -> ClientResult:
        return self.send("GET", f"/resources/{resource_id}")

    def list(self, params: Optional[Mapping[str, str]] = None) -> ClientResult:
        return self.send("GET", "/resources", params=params)

    def update(self, resource_id: int, resource: Body,
               headers: Optional[Mapping[str, str]] = None) -> ClientResult:
        return self.send("PUT", f"/resources/{resource_id}", headers={**JSON_HEADERS, **(headers or {})},
                         body=encode_body(resource))

    def delete(self, resource_id: int) -> ClientResult:
        return self.send("DELETE", f"/resources/{resource_id}")
