import logging
import requests
from dataclasses import dataclass
from typing import Optional

from domour.local.config import effective_settings as config
from domour.local.errors import HTTPStatusFailure, NetworkFailure, UnsupportedPlatform
from domour.local.update.platforms import ArchiveFormat, HostPlatform, WINDOWS, current_platform
from domour.local.update.versioning import VersionString, resolve_latest

log = logging.getLogger(__name__)

LATEST = "latest"


def archive_file_name(product: str, version: str, os_name: str, arch: str) -> str:
    """
    Builds the release archive name, e.g. 'vlink_v1.2.0_linux_amd64.tar.gz'.

    Any OS/architecture pair is accepted; only the extension depends on the OS.

    :raises UnsupportedPlatform: If the OS or the architecture is unknown (empty).
    """
    if not os_name or not arch:
        raise UnsupportedPlatform(f"unsupported platform for update: os={os_name!r} arch={arch!r}")
    fmt = ArchiveFormat.ZIP if os_name == WINDOWS else ArchiveFormat.TAR_GZ
    return f"{product}_{version}_{os_name}_{arch}.{fmt.extension}"


@dataclass(frozen=True)
class DownloadedArchive:
    """A release archive held in memory, ready for extraction."""
    product: str
    version: str
    file_name: str
    archive_format: ArchiveFormat
    data: bytes


class ReleaseFetcher:
    """Resolves and downloads release archives of one product from a download directory."""

    def __init__(
        self,
        base_url: str,
        product: str,
        platform: Optional[HostPlatform] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        """
        :param base_url: Directory URL holding checksums.txt and the archives.
        :param product: Product name used in archive file names, e.g. 'vlink'.
        :param platform: Target platform; defaults to the running one.
        :param session: HTTP session, injectable for tests.
        """
        self.base_url = base_url.rstrip("/") + "/"
        self.product = product
        self.platform = platform or current_platform()
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": config.HTTP_USER_AGENT})

    def _get(self, url: str, timeout: float) -> bytes:
        """GETs `url` and returns the body, mapping failures to control plane errors."""
        log.debug(f"GET {url} (timeout {timeout}s)")
        try:
            response = self.session.get(url, timeout=timeout)
        except requests.RequestException as e:
            raise NetworkFailure(f"failed to download {url}: {e}") from e

        if response.status_code != 200:
            raise HTTPStatusFailure(url, response.status_code, response.reason or "")
        return response.content

    def latest_version(self) -> VersionString:
        """
        Reads the checksums manifest and returns the newest version of the product.

        :raises NetworkFailure: On connection errors or timeouts.
        :raises HTTPStatusFailure: If the manifest is not served with status 200.
        :raises NoVersionsFound: If the manifest lists no valid version.
        """
        url = self.base_url + config.MANIFEST_FILE_NAME
        body = self._get(url, config.MANIFEST_TIMEOUT)
        latest = resolve_latest(body.decode("utf-8", errors="replace"), self.product)
        log.info(f"Latest published version of {self.product} is {latest}.")
        return latest

    def fetch(self, version: str = LATEST) -> DownloadedArchive:
        """
        Downloads the archive of `version` for the target platform.

        :param version: An explicit version such as 'v1.2.0', or '' / 'latest'.
        :return: The downloaded archive; the body is not inspected.
        """
        version = (version or "").strip()
        if not version or version == LATEST:
            version = str(self.latest_version())

        file_name = archive_file_name(self.product, version, self.platform.os, self.platform.arch)
        url = self.base_url + file_name
        log.info(f"Downloading {file_name} from {self.base_url}...")
        data = self._get(url, config.DOWNLOAD_TIMEOUT)
        log.info(f"Downloaded {file_name} ({len(data)} bytes).")
        return DownloadedArchive(
            product=self.product,
            version=version,
            file_name=file_name,
            archive_format=self.platform.archive_format,
            data=data,
        )
