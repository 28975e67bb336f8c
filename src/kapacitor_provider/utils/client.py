# ABOUTME: Kapacitor task API client with structured error handling
# ABOUTME: Provides async create/read/update/delete access to Kapacitor tasks

"""
Kapacitor task API client.

=============================================================================
WHAT IS THIS FILE?
=============================================================================

This module provides the HTTP client for Kapacitor's REST API. It handles:

1. HTTP COMMUNICATION: Making requests to the task endpoints
2. AUTHENTICATION: HTTP basic auth or Bearer tokens
3. ERROR HANDLING: Converting unexpected responses to KapacitorError
4. DATA MAPPING: Turning task JSON into Task objects and back

=============================================================================
KAPACITOR TASK API OVERVIEW
=============================================================================

    GET    /kapacitor/v1/ping          - Health check (204, version header)
    POST   /kapacitor/v1/tasks         - Create task (200)
    GET    /kapacitor/v1/tasks/{id}    - Get task (200, 404 if missing)
    PATCH  /kapacitor/v1/tasks/{id}    - Update task (200)
    DELETE /kapacitor/v1/tasks/{id}    - Delete task (204)

A task looks like:

    {
        "link": {"rel": "self", "href": "/kapacitor/v1/tasks/cpu_alert"},
        "id": "cpu_alert",
        "type": "stream",
        "dbrps": [{"db": "telegraf", "rp": "autogen"}],
        "script": "stream\\n    |from()...",
        "status": "enabled",
        "executing": true,
        "error": ""
    }

Errors are JSON of the form {"error": "description"}.

=============================================================================
EXPECTED STATUS CODES
=============================================================================

Each call declares the ONE status code it expects. Anything else raises
KapacitorError, including unexpected 2xx codes, which produce the message
"invalid response: code N". Callers that know a particular code is benign
(update returning 204 No Content) catch and check KapacitorError.code.

There is NO retry logic. A failed call surfaces to the caller immediately.
"""

from __future__ import annotations

import time
from dataclasses import asdict, dataclass, field
from enum import Enum
from http import HTTPStatus
from typing import TYPE_CHECKING, Any

import httpx
import structlog

from kapacitor_provider.config import AuthenticationMethod
from kapacitor_provider.utils.identifiers import QualifiedIdentifier

if TYPE_CHECKING:
    from kapacitor_provider.config import Credentials

logger = structlog.get_logger(__name__)

API_PREFIX = "/kapacitor/v1"
VERSION_HEADER = "X-Kapacitor-Version"


# =============================================================================
# KAPACITOR ERROR CLASS
# =============================================================================


class KapacitorError(Exception):
    """
    Structured Kapacitor API error.

    Preserves the HTTP status code so callers can make decisions on it:

        try:
            await client.update_task(link, options)
        except KapacitorError as e:
            if e.code != HTTPStatus.NO_CONTENT:
                raise
    """

    def __init__(self, code: int, message: str, details: str | None = None) -> None:
        """
        Initialize Kapacitor error.

        Args:
            code: HTTP status code received
            message: Primary error message
            details: Additional error details (optional)
        """
        self.code = code
        self.message = message
        self.details = details
        super().__init__(str(self))

    def __str__(self) -> str:
        base = f"Kapacitor API error ({self.code}): {self.message}"
        if self.details:
            base += f" - {self.details}"
        return base


# =============================================================================
# TASK TYPES
# =============================================================================


class TaskType(str, Enum):
    """How a task receives data: continuously (stream) or by query (batch)."""

    STREAM = "stream"
    BATCH = "batch"

    @classmethod
    def parse(cls, text: str) -> TaskType:
        """
        Parse a task type, case-insensitively.

        Raises:
            ValueError: If text is not a known task type
        """
        try:
            return cls(text.lower())
        except ValueError:
            raise ValueError(f"unknown TaskType {text}") from None


class TaskStatus(str, Enum):
    """Whether a task is running."""

    ENABLED = "enabled"
    DISABLED = "disabled"

    @classmethod
    def parse(cls, text: str) -> TaskStatus:
        """
        Parse a task status, case-insensitively.

        Raises:
            ValueError: If text is not a known task status
        """
        try:
            return cls(text.lower())
        except ValueError:
            raise ValueError(f"unknown TaskStatus {text}") from None


@dataclass
class CreateTaskOptions:
    """Request body for POST /tasks."""

    type: TaskType
    script: str
    status: TaskStatus
    dbrps: list[QualifiedIdentifier] = field(default_factory=list)
    id: str | None = None

    def to_request(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "type": self.type.value,
            "dbrps": [dbrp.to_wire() for dbrp in self.dbrps],
            "script": self.script,
            "status": self.status.value,
        }
        if self.id:
            body["id"] = self.id
        return body


@dataclass
class UpdateTaskOptions:
    """
    Request body for PATCH /tasks/{id}.

    None fields are left out of the request so Kapacitor keeps their
    current values. dbrps is only sent when explicitly provided.
    """

    id: str | None = None
    type: TaskType | None = None
    script: str | None = None
    status: TaskStatus | None = None
    dbrps: list[QualifiedIdentifier] | None = None

    def to_request(self) -> dict[str, Any]:
        body: dict[str, Any] = {}
        for key, value in asdict(self).items():
            if value is None:
                continue
            if key == "dbrps":
                body[key] = [dbrp.to_wire() for dbrp in (self.dbrps or [])]
            elif isinstance(value, Enum):
                body[key] = value.value
            else:
                body[key] = value
        return body


# =============================================================================
# TASK DATA CLASS
# =============================================================================


@dataclass
class Task:
    """
    Kapacitor task representation.

    FIELDS EXPLAINED:
    -----------------
    - id: Task identifier (also the last segment of its link)
    - type: TaskType.STREAM or TaskType.BATCH
    - status: TaskStatus.ENABLED or TaskStatus.DISABLED
    - script: TICKscript source
    - dbrps: Databases/retention policies the task reads from
    - executing: Whether the task is currently running
    - error: Last execution error reported by Kapacitor
    - created / modified: Timestamps as returned by the API
    """

    id: str
    type: TaskType
    status: TaskStatus
    script: str
    dbrps: list[QualifiedIdentifier] = field(default_factory=list)
    executing: bool = False
    error: str = ""
    created: str | None = None
    modified: str | None = None

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> Task:
        """
        Create Task from Kapacitor API response.

        Args:
            data: Raw JSON response from the task endpoint

        Returns:
            Task instance

        Raises:
            ValueError: If the response carries an unknown type or status
        """
        return cls(
            id=data.get("id", ""),
            type=TaskType.parse(data.get("type", TaskType.STREAM.value)),
            status=TaskStatus.parse(data.get("status", TaskStatus.DISABLED.value)),
            script=data.get("script", ""),
            dbrps=[QualifiedIdentifier.from_wire(dbrp) for dbrp in data.get("dbrps") or []],
            executing=bool(data.get("executing", False)),
            error=data.get("error", ""),
            created=data.get("created"),
            modified=data.get("modified"),
        )


# =============================================================================
# KAPACITOR CLIENT
# =============================================================================


class KapacitorClient:
    """
    Async Kapacitor task API client.

    LIFECYCLE:
    ----------
    ALWAYS use the context manager pattern:

        async with KapacitorClient(url, credentials=creds) as client:
            task = await client.get_task(client.task_link("cpu_alert"))

    The httpx connection pool is created in __aenter__ and closed in
    __aexit__.
    """

    def __init__(
        self,
        url: str,
        credentials: Credentials | None = None,
        timeout: float = 15.0,
        insecure_skip_verify: bool = False,
    ) -> None:
        """
        Initialize Kapacitor client.

        Args:
            url: Server base URL without trailing slash
            credentials: Validated credentials, or None for anonymous access
            timeout: HTTP request timeout in seconds
            insecure_skip_verify: Skip TLS certificate verification
        """
        self._url = url
        self._credentials = credentials
        self._timeout = timeout
        self._insecure_skip_verify = insecure_skip_verify
        self._client: httpx.AsyncClient | None = None

    @property
    def url(self) -> str:
        return self._url

    async def __aenter__(self) -> KapacitorClient:
        headers = {"Content-Type": "application/json"}
        auth: httpx.Auth | None = None

        if self._credentials is not None:
            if self._credentials.method is AuthenticationMethod.BEARER:
                token = self._credentials.token.get_secret_value()
                headers["Authorization"] = f"Bearer {token}"
            else:
                auth = httpx.BasicAuth(
                    self._credentials.username,
                    self._credentials.password.get_secret_value(),
                )

        self._client = httpx.AsyncClient(
            base_url=self._url,
            headers=headers,
            auth=auth,
            timeout=self._timeout,
            verify=not self._insecure_skip_verify,
        )
        return self

    async def __aexit__(self, *args: object) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        method: str,
        path: str,
        expected: int = HTTPStatus.OK,
        json_data: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """
        Make HTTP request to the Kapacitor API.

        Args:
            method: HTTP method ("GET", "POST", "PATCH", "DELETE")
            path: API path including the /kapacitor/v1 prefix
            expected: The only status code treated as success
            json_data: JSON request body (optional)

        Returns:
            The raw httpx response

        Raises:
            KapacitorError: On any status other than expected
            httpx.HTTPError: On transport failures (timeouts, refused connections)
            RuntimeError: If client not initialized (forgot async with)
        """
        if not self._client:
            raise RuntimeError("Client not initialized. Use 'async with' context manager.")

        log = logger.bind(method=method, path=path)
        log.debug("Making Kapacitor API request")

        response = await self._client.request(method, path, json=json_data)

        if response.status_code == expected:
            return response

        body = response.text
        log.warning("Kapacitor API error", status=response.status_code, body=body[:200])

        if response.status_code < HTTPStatus.BAD_REQUEST:
            raise KapacitorError(
                code=response.status_code,
                message=f"invalid response: code {response.status_code}",
            )

        message = f"HTTP {response.status_code}"
        details = None
        try:
            message = response.json().get("error") or message
        except ValueError:
            details = body[:200] if body else None

        raise KapacitorError(code=response.status_code, message=message, details=details)

    # =========================================================================
    # SERVER OPERATIONS
    # =========================================================================

    async def ping(self) -> tuple[float, str]:
        """
        Check that the server is reachable.

        Kapacitor API: GET /kapacitor/v1/ping (204)

        Returns:
            (elapsed seconds, server version from the X-Kapacitor-Version header)
        """
        start = time.monotonic()
        response = await self._request("GET", f"{API_PREFIX}/ping", expected=HTTPStatus.NO_CONTENT)
        return time.monotonic() - start, response.headers.get(VERSION_HEADER, "")

    # =========================================================================
    # TASK OPERATIONS
    # =========================================================================

    @staticmethod
    def task_link(task_id: str) -> str:
        """Path of the task resource with the given id."""
        return f"{API_PREFIX}/tasks/{task_id}"

    async def create_task(self, options: CreateTaskOptions) -> Task:
        """
        Create a task.

        Kapacitor API: POST /kapacitor/v1/tasks

        When options.id is None, Kapacitor generates an id.
        """
        response = await self._request(
            "POST", f"{API_PREFIX}/tasks", json_data=options.to_request()
        )
        return Task.from_api_response(response.json())

    async def get_task(self, link: str) -> Task | None:
        """
        Get a task.

        Kapacitor API: GET /kapacitor/v1/tasks/{id}

        Returns:
            The task, or None if it no longer exists (404)
        """
        try:
            response = await self._request("GET", link)
        except KapacitorError as e:
            if e.code == HTTPStatus.NOT_FOUND:
                logger.debug("Task not found", link=link)
                return None
            raise
        return Task.from_api_response(response.json())

    async def update_task(self, link: str, options: UpdateTaskOptions) -> Task:
        """
        Update a task.

        Kapacitor API: PATCH /kapacitor/v1/tasks/{id}

        Some Kapacitor versions answer 204 No Content instead of 200; that
        surfaces as KapacitorError(code=204) for the caller to decide on.
        """
        response = await self._request("PATCH", link, json_data=options.to_request())
        return Task.from_api_response(response.json())

    async def delete_task(self, link: str) -> None:
        """
        Delete a task.

        Kapacitor API: DELETE /kapacitor/v1/tasks/{id} (204)
        """
        await self._request("DELETE", link, expected=HTTPStatus.NO_CONTENT)
