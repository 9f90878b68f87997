"""Pydantic models shared across sideko-cli modules.

**Repository metadata** -- :class:`SdkMetadata`, persisted by the service as
``.sdk.json`` at the root of every generated SDK repository.

**Request models** -- :class:`UploadFile`, :class:`GenerateRequest` and
:class:`UpdateRequest`, built fresh per invocation and handed to
:class:`~sideko_cli.client.SidekoClient`.

**Response models** -- :class:`GeneratedSdk`, :class:`Api`,
:class:`Organization`, :class:`DocProject` and :class:`Deployment`.
"""

from __future__ import annotations

import enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

SDK_METADATA_FILENAME = ".sdk.json"


class SdkLanguage(str, enum.Enum):
    """Programming languages the service can generate SDKs for."""

    PYTHON = "python"
    TYPESCRIPT = "typescript"
    RUST = "rust"
    GO = "go"
    JAVA = "java"

    @property
    def emoji(self) -> str:
        return _LANGUAGE_EMOJI[self]


_LANGUAGE_EMOJI = {
    SdkLanguage.PYTHON: "🐍",
    SdkLanguage.TYPESCRIPT: "🟦",
    SdkLanguage.RUST: "🦀",
    SdkLanguage.GO: "🐹",
    SdkLanguage.JAVA: "☕️",
}


class SdkMetadata(BaseModel):
    """Identity record stored in ``.sdk.json`` at the root of an SDK repo.

    The ``id`` is assigned by the service at generation time and is sent back
    on every update so the service can locate the SDK's generation history.
    Any other keys in the file are ignored.
    """

    model_config = ConfigDict(extra="ignore")

    id: str = Field(description="Server-assigned SDK identifier")


class UploadFile(BaseModel):
    """A file to be sent as one part of a multipart request."""

    filename: str
    content: bytes

    @classmethod
    def from_path(cls, path: Path) -> UploadFile:
        """Read *path* into memory.

        Raises:
            OSError: If the file cannot be read.
        """
        return cls(filename=path.name, content=path.read_bytes())


class GenerateRequest(BaseModel):
    """Parameters for generating a brand-new SDK."""

    config: UploadFile
    language: SdkLanguage
    sdk_version: str = "0.1.0"
    api_version: str = "latest"
    github_actions: bool = False


class UpdateRequest(BaseModel):
    """Parameters for updating an existing SDK repository.

    Attributes:
        config: The SDK config file.
        prev_sdk_git: Gzipped tarball of the repository's ``.git`` directory.
        prev_sdk_id: Identifier read from ``.sdk.json``.
        sdk_version: An explicit semantic version or a bump keyword
            (``patch``, ``minor``, ``major``, ``rc``). Passed through
            verbatim; the service validates it.
        api_version: API version from the config to generate against.
    """

    config: UploadFile
    prev_sdk_git: UploadFile
    prev_sdk_id: str
    sdk_version: str
    api_version: str = "latest"


class GeneratedSdk(BaseModel):
    """A generated SDK archive as returned by the service."""

    content: bytes
    filename: Optional[str] = None


class Api(BaseModel):
    """An API project registered with the service."""

    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    version_count: int = 0
    created_at: str = ""


class Organization(BaseModel):
    """The caller's organization. ``subdomain`` prefixes hosted API urls."""

    model_config = ConfigDict(extra="ignore")

    id: str = ""
    name: str = ""
    subdomain: str


class DocDomains(BaseModel):
    model_config = ConfigDict(extra="ignore")

    preview: Optional[str] = None
    production: Optional[str] = None


class DocProject(BaseModel):
    """A hosted documentation website."""

    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    title: str = ""
    domains: DocDomains = Field(default_factory=DocDomains)
    created_at: str = ""


class DeploymentTarget(str, enum.Enum):
    PREVIEW = "Preview"
    PRODUCTION = "Production"


class Deployment(BaseModel):
    """A documentation deployment and its current status.

    ``status`` is kept as the raw string reported by the service; see
    :data:`DEPLOYMENT_SUCCEEDED` and :data:`DEPLOYMENT_FAILED` for the
    terminal values.
    """

    model_config = ConfigDict(extra="ignore")

    id: str
    status: str
    target: DeploymentTarget = DeploymentTarget.PREVIEW
    created_at: str = ""

    @property
    def finished(self) -> bool:
        return self.status in DEPLOYMENT_SUCCEEDED or self.status in DEPLOYMENT_FAILED


DEPLOYMENT_SUCCEEDED = frozenset({"Complete"})
DEPLOYMENT_FAILED = frozenset({"Error", "Cancelled"})
