import pytest

from domour.local.update.platforms import (
    ArchiveFormat,
    HostPlatform,
    InstallMethod,
    normalize_arch,
    normalize_os,
)


@pytest.mark.parametrize("raw, expected", [("win32", "windows"), ("linux", "linux"), ("darwin", "darwin"), ("freebsd13", "freebsd")])
def test_normalize_os(raw: str, expected: str) -> None:
    assert normalize_os(raw) == expected


@pytest.mark.parametrize("raw, expected", [("x86_64", "amd64"), ("AMD64", "amd64"), ("aarch64", "arm64"), ("riscv64", "riscv64")])
def test_normalize_arch(raw: str, expected: str) -> None:
    assert normalize_arch(raw) == expected


def test_windows_uses_zip_and_user_rename() -> None:
    host = HostPlatform(os="windows", arch="amd64")

    assert host.archive_format is ArchiveFormat.ZIP
    assert host.install_method is InstallMethod.USER_RENAME
    assert host.binary_name("vlink") == "vlink.exe"


@pytest.mark.parametrize("os_name", ["linux", "darwin"])
def test_unix_uses_tar_gz_and_elevated_copy(os_name: str) -> None:
    host = HostPlatform(os=os_name, arch="arm64")

    assert host.archive_format is ArchiveFormat.TAR_GZ
    assert host.install_method is InstallMethod.ELEVATED_COPY
    assert host.binary_name("vlink") == "vlink"
