"""
Version resolution from a release checksums manifest.

Manifest lines look like ``<sha256>  vlink_v1.4.0_linux_amd64.tar.gz``. Only the
file name matters: it embeds the version between ``<prefix>_`` and the next
underscore. Lines that do not match, or whose version is malformed, are skipped.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from domour.local.errors import NoVersionsFound

log = logging.getLogger(__name__)

VERSION_DELIMITER = "_"


def is_valid_semver(text: str) -> bool:
    """
    Checks for the `v<major>.<minor>[.<patch>]` form.

    :param text: Candidate version, e.g. 'v1.2.3'.
    :return: True if there is a leading 'v' and 2-3 non-empty, all-digit components.
    """
    if not text.startswith("v"):
        return False
    segments = text[1:].split(".")
    if not 2 <= len(segments) <= 3:
        return False
    # str.isdigit() accepts non-ASCII digits, so check the range explicitly.
    return all(seg and all("0" <= ch <= "9" for ch in seg) for seg in segments)


@dataclass(frozen=True, order=True)
class VersionString:
    """
    An immutable, validated release version.

    Ordering and equality use the numeric components only, with a missing
    patch treated as 0. `text` keeps the original spelling ('v1.2' stays 'v1.2')
    so it can be put back into archive file names.
    """
    components: Tuple[int, int, int] = field(init=False)
    text: str = field(compare=False)

    def __post_init__(self) -> None:
        if not is_valid_semver(self.text):
            raise ValueError(f"Invalid version string: {self.text!r}")
        parts = [int(seg) for seg in self.text[1:].split(".")]
        parts += [0] * (3 - len(parts))
        object.__setattr__(self, "components", tuple(parts))

    @classmethod
    def parse(cls, text: str) -> "VersionString":
        """:raises ValueError: If `text` is not a valid version."""
        return cls(text)

    def __str__(self) -> str:
        return self.text


def _version_from_line(line: str, marker: str) -> Optional[VersionString]:
    idx = line.find(marker)
    if idx == -1:
        return None
    # Keep the 'v' that ends the marker.
    token = line[idx + len(marker) - 1:].split(VERSION_DELIMITER, 1)[0]
    if not is_valid_semver(token):
        log.debug(f"Skipping malformed version token '{token}' in manifest line.")
        return None
    return VersionString(token)


def extract_versions(manifest_text: str, product_prefix: str) -> List[VersionString]:
    """
    Collects every valid version of `product_prefix` listed in a manifest.

    :param manifest_text: The full checksums.txt body.
    :param product_prefix: Product name as used in archive file names, e.g. 'vlink'.
    :return: Versions in manifest order; may be empty.
    """
    marker = f"{product_prefix}{VERSION_DELIMITER}v"
    versions = (_version_from_line(line, marker) for line in manifest_text.splitlines())
    return [v for v in versions if v is not None]


def resolve_latest(manifest_text: str, product_prefix: str) -> VersionString:
    """
    Picks the highest version of `product_prefix` in the manifest.

    :raises NoVersionsFound: If no line yields a valid version.
    """
    versions = extract_versions(manifest_text, product_prefix)
    if not versions:
        raise NoVersionsFound(product_prefix)
    latest = max(versions)
    log.debug(f"Resolved {len(versions)} version(s) of '{product_prefix}', latest is {latest}.")
    return latest
