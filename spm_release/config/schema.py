# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Type-safe configuration for a release run.

ReleaseConfig is built once, at startup, from either a YAML file or the
GitHub Actions inputs, and then handed to the orchestrator. Nothing downstream
reads configuration from the environment on its own.

The model uses pydantic v2's ConfigDict with:
  - frozen=True: immutability after construction
  - extra="forbid": unknown fields cause immediate failure
  - validate_default=True: even defaults get type-checked
"""

from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator

from spm_release.exceptions import ConfigurationError
from spm_release.manifests.manifest import ManifestSchema
from spm_release.models import ArchiveKind, OperatingSystem
from spm_release.publishing.github import DEFAULT_API_URL, DEFAULT_TIMEOUT_S, DEFAULT_UPLOADS_URL
from spm_release.release.naming import DEFAULT_SPLIT_TEMPLATE, DEFAULT_TEMPLATE, validate_template

_VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ReleaseConfig(BaseModel):
    """Everything a run needs besides the environment-derived tag and repository."""

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    project_name: str = Field(min_length=1, description="Project name, used as $PROJECT")
    github_token: SecretStr = Field(description="Bearer token for the GitHub API")
    platforms: Union[str, dict[str, Any]] = Field(
        description="Platform mapping, as YAML text or an inline mapping"
    )
    asset_name_template: Optional[str] = Field(
        default=None,
        description="Archive name template without extension; defaults depend on the schema",
    )
    skip_manifest: bool = Field(default=False, description="Do not publish spm.json")
    manifest_schema: ManifestSchema = Field(default=ManifestSchema.FLAT)
    description: str = Field(default="", description="Description carried into the manifest")
    extension_name: Optional[str] = Field(
        default=None,
        description="Key for the extensions manifest schema; defaults to project_name",
    )
    archive_kinds: dict[OperatingSystem, ArchiveKind] = Field(
        default_factory=dict,
        description="Per-OS archive format overrides on top of the default table",
    )
    api_url: str = Field(default=DEFAULT_API_URL)
    uploads_url: str = Field(default=DEFAULT_UPLOADS_URL)
    request_timeout: float = Field(default=DEFAULT_TIMEOUT_S, gt=0)
    log_level: str = Field(default="INFO", description="One of DEBUG, INFO, WARNING, ERROR, CRITICAL")

    @field_validator("project_name")
    @classmethod
    def _project_name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("project_name must not be blank")
        return value.strip()

    @field_validator("github_token")
    @classmethod
    def _token_not_blank(cls, value: SecretStr) -> SecretStr:
        if not value.get_secret_value().strip():
            raise ValueError("github_token must not be blank")
        return value

    @field_validator("asset_name_template")
    @classmethod
    def _template_is_valid(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        try:
            return validate_template(value)
        except ConfigurationError as err:
            raise ValueError(str(err)) from err

    @field_validator("log_level")
    @classmethod
    def _log_level_is_known(cls, value: str) -> str:
        upper = value.upper()
        if upper not in _VALID_LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(_VALID_LOG_LEVELS)}")
        return upper

    @property
    def effective_template(self) -> str:
        if self.asset_name_template is not None:
            return self.asset_name_template
        if self.manifest_schema is ManifestSchema.SPLIT:
            return DEFAULT_SPLIT_TEMPLATE
        return DEFAULT_TEMPLATE

    @property
    def effective_extension_name(self) -> str:
        return self.extension_name or self.project_name
