"""
Error kinds raised by the control plane.

Every failure is returned to the immediate caller; nothing here is retried.
`ConfigRequired` and `ElevationRequired` are actionable: the caller should turn
them into a prompt instead of reporting a plain failure.
"""

from pathlib import Path
from typing import Optional


class CopilotError(Exception):
    """Base class for all control plane errors."""

    actionable = False


#* --- Network ---
class NetworkFailure(CopilotError):
    """A manifest or archive download could not be completed."""


class HTTPStatusFailure(CopilotError):
    """The server answered with a non-success status code."""

    def __init__(self, url: str, status_code: int, reason: str = "") -> None:
        self.url = url
        self.status_code = status_code
        self.reason = reason
        super().__init__(f"GET {url} failed: {status_code} {reason}".rstrip())


#* --- Archives & Versions ---
class CorruptArchive(CopilotError):
    """The archive container could not be opened or read."""


class EntryNotFound(CopilotError):
    """The expected binary is not present in an otherwise valid archive."""

    def __init__(self, entry_name: str) -> None:
        self.entry_name = entry_name
        super().__init__(f"binary {entry_name} not found in archive")


class NoVersionsFound(CopilotError):
    """The manifest contains no usable version for the requested product."""

    def __init__(self, prefix: str) -> None:
        self.prefix = prefix
        super().__init__(f"no versions found for {prefix} in checksums")


class UnsupportedPlatform(CopilotError):
    """No archive name can be built for the OS/architecture pair."""


#* --- Helper Process ---
class ConfigRequired(CopilotError):
    """The helper has no configuration yet; a default file was created."""

    actionable = True

    def __init__(self, path: Path, content: Optional[str] = None) -> None:
        self.path = Path(path)
        self.content = content
        super().__init__(f"vlink config required: edit {self.path}")


class ElevationRequired(CopilotError):
    """An elevated install step was requested without a credential."""

    actionable = True


class SpawnFailure(CopilotError):
    """The helper process could not be launched."""


#* --- Apply ---
class ApplyFailure(CopilotError):
    """A downloaded binary could not be written into place."""


class RollbackFailure(ApplyFailure):
    """
    Applying failed and the previous binary could not be restored.

    The install may now be broken; this is the most severe failure kind.
    """


#* --- Collaborators ---
class RelayError(CopilotError):
    """The external chat tool failed, timed out or returned nothing."""
