import io
import tarfile
import zipfile
from typing import Dict, List, Optional, Tuple

from domour.local.update.platforms import HostPlatform

LINUX = HostPlatform(os="linux", arch="amd64")
WINDOWS = HostPlatform(os="windows", arch="amd64")


def make_tar_gz(entries: Dict[str, bytes], directories: Optional[List[str]] = None,
                symlinks: Optional[Dict[str, str]] = None) -> bytes:
    """Builds a .tar.gz in memory from {member name: content}."""
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as tar:
        for name in directories or []:
            info = tarfile.TarInfo(name)
            info.type = tarfile.DIRTYPE
            tar.addfile(info)
        for name, target in (symlinks or {}).items():
            info = tarfile.TarInfo(name)
            info.type = tarfile.SYMTYPE
            info.linkname = target
            tar.addfile(info)
        for name, data in entries.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            tar.addfile(info, io.BytesIO(data))
    return buf.getvalue()


def make_zip(entries: Dict[str, bytes], directories: Optional[List[str]] = None) -> bytes:
    """Builds a .zip in memory from {member name: content}."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for name in directories or []:
            archive.writestr(name.rstrip("/") + "/", b"")
        for name, data in entries.items():
            archive.writestr(name, data)
    return buf.getvalue()


class FakeResponse:
    def __init__(self, status_code: int = 200, content: bytes = b"", reason: str = "OK") -> None:
        self.status_code = status_code
        self.content = content
        self.reason = reason


class FakeSession:
    """Serves canned responses by URL and records every request."""

    def __init__(self, routes: Optional[Dict[str, object]] = None) -> None:
        self.routes = routes or {}
        self.headers: Dict[str, str] = {}
        self.requests: List[Tuple[str, float]] = []

    def get(self, url: str, timeout: float = None):
        self.requests.append((url, timeout))
        response = self.routes.get(url)
        if isinstance(response, Exception):
            raise response
        if response is None:
            return FakeResponse(404, reason="Not Found")
        return response
