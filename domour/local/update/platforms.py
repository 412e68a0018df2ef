import sys
import enum
import platform
from dataclasses import dataclass

WINDOWS = "windows"

# platform.machine() values mapped to release architecture names.
_ARCH_ALIASES = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "x64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "i386": "386",
    "i686": "386",
    "x86": "386",
    "armv6l": "arm",
    "armv7l": "arm",
}


class ArchiveFormat(enum.Enum):
    """Container format of a release archive."""
    TAR_GZ = "tar.gz"
    ZIP = "zip"

    @property
    def extension(self) -> str:
        return self.value


class InstallMethod(enum.Enum):
    """How a helper binary is moved into its install location."""
    ELEVATED_COPY = "elevated-copy"   # sudo install into a system path
    USER_RENAME = "user-rename"       # same-volume rename into the user's home


@dataclass(frozen=True)
class HostPlatform:
    """
    An OS/architecture pair in release naming (e.g. 'linux'/'amd64').

    The archive format and the install method are resolved here once, as two
    independent choices, instead of being re-derived at each call site.
    """
    os: str
    arch: str

    @property
    def is_windows(self) -> bool:
        return self.os == WINDOWS

    @property
    def archive_format(self) -> ArchiveFormat:
        return ArchiveFormat.ZIP if self.is_windows else ArchiveFormat.TAR_GZ

    @property
    def install_method(self) -> InstallMethod:
        return InstallMethod.USER_RENAME if self.is_windows else InstallMethod.ELEVATED_COPY

    def binary_name(self, product: str) -> str:
        """Returns the file name of `product`'s executable on this platform."""
        return f"{product}.exe" if self.is_windows else product

    def __str__(self) -> str:
        return f"{self.os}/{self.arch}"


def normalize_os(name: str) -> str:
    """Maps a `sys.platform` value to its release name ('win32' -> 'windows')."""
    name = name.lower()
    if name.startswith("win") or name == "cygwin":
        return WINDOWS
    if name.startswith("linux"):
        return "linux"
    return name.rstrip("0123456789")


def normalize_arch(machine: str) -> str:
    """Maps a `platform.machine()` value to its release name ('x86_64' -> 'amd64')."""
    machine = machine.lower()
    return _ARCH_ALIASES.get(machine, machine)


def current_platform() -> HostPlatform:
    """Describes the platform this interpreter is running on."""
    return HostPlatform(os=normalize_os(sys.platform), arch=normalize_arch(platform.machine()))
