"""Synchronous client for the Sideko REST API.

:class:`SidekoClient` wraps :class:`httpx.Client` with API-key injection and
maps error responses and transport failures onto the
:class:`~sideko_cli.exceptions.RemoteError` hierarchy. Requests are never
retried: SDK generation is expensive server-side and the user decides
whether to run the command again.

Example::

    with SidekoClient(base_url, api_key) as client:
        patch = client.update_sdk(request)
"""

from __future__ import annotations

import re
from typing import Any, Optional

import httpx

from sideko_cli.config import ConfigStore, get_api_key, get_base_url
from sideko_cli.exceptions import (
    AuthError,
    ConnectionError_,
    NotFoundError,
    ServerError,
)
from sideko_cli.models import (
    Api,
    Deployment,
    DeploymentTarget,
    DocProject,
    GeneratedSdk,
    GenerateRequest,
    Organization,
    UpdateRequest,
)
from sideko_cli.output import debug

API_KEY_HEADER = "x-sideko-key"
# Generation runs server-side while the request is open.
DEFAULT_TIMEOUT = 600.0

_FILENAME_RE = re.compile(r"""filename\*?=(?:UTF-8'')?"?([^";]+)"?""", re.IGNORECASE)


class SidekoClient:
    """HTTP client for the Sideko API.

    Must be used as a context manager so the underlying transport is opened
    and closed.

    Args:
        base_url: API root, e.g. ``https://api.sideko.dev/v1``.
        api_key: Value sent in the ``x-sideko-key`` header.
        timeout: Read timeout in seconds.
        transport: Optional httpx transport (tests pass
            :class:`httpx.MockTransport`).
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    def __enter__(self) -> SidekoClient:
        self._client = httpx.Client(
            base_url=self._base_url,
            headers={API_KEY_HEADER: self._api_key},
            timeout=httpx.Timeout(self._timeout, connect=10.0),
            follow_redirects=True,
            transport=self._transport,
        )
        return self

    def __exit__(self, *args: object) -> None:
        if self._client:
            self._client.close()
            self._client = None

    # ------------------------------------------------------------------ #
    # Endpoints
    # ------------------------------------------------------------------ #

    def generate_sdk(self, request: GenerateRequest) -> GeneratedSdk:
        """Generate a new SDK and return the gzipped tarball."""
        response = self._request(
            "POST",
            "/sdk/generate",
            data={
                "language": request.language.value,
                "sdk_version": request.sdk_version,
                "api_version": request.api_version,
                "github_actions": str(request.github_actions).lower(),
            },
            files={"config": (request.config.filename, request.config.content)},
        )
        return GeneratedSdk(
            content=response.content,
            filename=extract_filename(response),
        )

    def update_sdk(self, request: UpdateRequest) -> bytes:
        """Request a patch bringing an existing SDK up to date.

        Returns:
            The patch in ``git apply`` format, or ``b""`` when there is
            nothing to change.
        """
        response = self._request(
            "POST",
            "/sdk/update",
            data={
                "prev_sdk_id": request.prev_sdk_id,
                "sdk_version": request.sdk_version,
                "api_version": request.api_version,
            },
            files={
                "config": (request.config.filename, request.config.content),
                "prev_sdk_git": (
                    request.prev_sdk_git.filename,
                    request.prev_sdk_git.content,
                    "application/gzip",
                ),
            },
        )
        return response.content

    def list_apis(self) -> list[Api]:
        """List the API projects in the caller's organization."""
        response = self._request("GET", "/api", headers={"Accept": "application/json"})
        return [Api.model_validate(item) for item in response.json()]

    def get_organization(self) -> Organization:
        """Return the organization the API key belongs to."""
        response = self._request("GET", "/organization", headers={"Accept": "application/json"})
        return Organization.model_validate(response.json())

    def list_doc_projects(self) -> list[DocProject]:
        """List the documentation websites in the caller's organization."""
        response = self._request("GET", "/doc_project", headers={"Accept": "application/json"})
        return [DocProject.model_validate(item) for item in response.json()]

    def trigger_deployment(self, project: str, target: DeploymentTarget) -> Deployment:
        """Start deploying documentation project *project* (name or id) to *target*."""
        response = self._request(
            "POST",
            f"/doc_project/{project}/deployment",
            json={"target": target.value},
        )
        return Deployment.model_validate(response.json())

    def get_deployment(self, project: str, deployment_id: str) -> Deployment:
        response = self._request("GET", f"/doc_project/{project}/deployment/{deployment_id}")
        return Deployment.model_validate(response.json())

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        assert self._client is not None, "Client not initialised -- use as context manager"
        debug(f"{method} {self._base_url}{path}")
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.TransportError as exc:
            raise ConnectionError_(
                f"Failed to reach the Sideko API at {self._base_url}", debug=repr(exc)
            ) from exc
        debug(f"HTTP {response.status_code} {response.reason_phrase}")
        _map_response_error(response)
        return response


def _map_response_error(response: httpx.Response) -> None:
    """Raise a typed exception for error HTTP status codes."""
    status = response.status_code
    if status < 400:
        return

    try:
        detail = response.json()
        if isinstance(detail, dict):
            msg = detail.get("message") or detail.get("error") or detail.get("detail") or ""
        else:
            msg = str(detail)
    except ValueError:
        msg = response.text[:200] if response.text else ""

    prefix = f"HTTP {status}"
    full_msg = f"{prefix}: {msg}" if msg else prefix

    if status in (401, 403):
        raise AuthError(full_msg, debug=response.text)
    if status == 404:
        raise NotFoundError(full_msg, debug=response.text)
    raise ServerError(full_msg, debug=response.text)


def extract_filename(response: httpx.Response) -> Optional[str]:
    """Return the filename from a ``Content-Disposition`` header, if any."""
    disposition = response.headers.get("content-disposition")
    if not disposition:
        return None
    match = _FILENAME_RE.search(disposition)
    return match.group(1).strip() if match else None


def client_from_config(store: Optional[ConfigStore] = None) -> SidekoClient:
    """Build a :class:`SidekoClient` from the configured API key and base url.

    Raises:
        AuthError: If no API key is configured.
    """
    store = store or ConfigStore()
    api_key = get_api_key(store)
    if not api_key:
        raise AuthError(
            "No Sideko API key found. Run `sideko config set api-key <KEY>` "
            "or export SIDEKO_API_KEY"
        )
    return SidekoClient(get_base_url(store), api_key)
