# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Error taxonomy for spm-release.

Every failure in a run is fatal and surfaces as exactly one of these. The CLI
maps them onto exit codes, so callers only ever need to catch ReleaseError or
one of its direct subclasses.
"""


class ReleaseError(Exception):
    """Base for every error raised by spm-release."""


class ConfigurationError(ReleaseError):
    """Missing required input, malformed platform mapping, bad template, etc."""


class ConfigLoadError(ConfigurationError):
    """Raised when a config file cannot be read from disk or parsed as YAML."""


class ConfigValidationError(ConfigurationError):
    """
    Raised when configuration parses fine but fails schema validation.
    This covers missing required fields, type mismatches and unknown keys.
    """


class InvalidPlatformKind(ConfigurationError):
    """A platform key is not of the form `<os>-<cpu>` with recognized tokens."""


class ResolutionError(ReleaseError):
    """The release for the current tag could not be found."""


class FileResolutionError(ReleaseError):
    """A platform's files could not be resolved or read."""


class NoMatchingFiles(FileResolutionError):
    """A glob pattern expanded to zero files."""


class ArchiveError(ReleaseError):
    """Building a tar.gz or zip archive failed."""


class AssetUploadError(ReleaseError):
    """Uploading an asset failed (network, auth, or duplicate name)."""
