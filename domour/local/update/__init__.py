"""
The self-update package.

Resolves the latest published version from a checksums manifest, downloads the
platform's release archive, extracts the binary and writes it into place for
either the application itself or the vlink helper.
"""

from .archive import extract
from .fetcher import DownloadedArchive, ReleaseFetcher, archive_file_name
from .platforms import ArchiveFormat, HostPlatform, InstallMethod, current_platform
from .service import UpdateService
from .versioning import VersionString, extract_versions, is_valid_semver, resolve_latest

__all__ = [
    "ArchiveFormat",
    "DownloadedArchive",
    "HostPlatform",
    "InstallMethod",
    "ReleaseFetcher",
    "UpdateService",
    "VersionString",
    "archive_file_name",
    "current_platform",
    "extract",
    "extract_versions",
    "is_valid_semver",
    "resolve_latest",
]
