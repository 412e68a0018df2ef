import gzip
import io
import os
import struct
import tarfile
from typing import Optional

import pytest

from domour.local.errors import CorruptArchive, EntryNotFound
from domour.local.update.archive import extract
from domour.local.update.platforms import ArchiveFormat
from tests.helpers import make_tar_gz, make_zip


def test_extract_finds_nested_binary_in_tar_gz() -> None:
    data = make_tar_gz(
        {"vlink_v1.0.0/README.md": b"docs", "vlink_v1.0.0/bin/vlink": b"\x7fELF-binary"},
        directories=["vlink_v1.0.0/", "vlink_v1.0.0/bin/"],
    )

    assert extract(data, "vlink", ArchiveFormat.TAR_GZ) == b"\x7fELF-binary"


def test_extract_finds_nested_binary_in_zip() -> None:
    data = make_zip(
        {"dist/windows/vlink.exe": b"MZ-binary", "dist/LICENSE": b"text"},
        directories=["dist/", "dist/windows/"],
    )

    assert extract(data, "vlink.exe", ArchiveFormat.ZIP) == b"MZ-binary"


def test_extract_skips_directories_and_links_with_the_same_name() -> None:
    data = make_tar_gz(
        {"real/vlink": b"payload"},
        directories=["vlink/"],
        symlinks={"links/vlink": "../real/vlink"},
    )

    assert extract(data, "vlink", ArchiveFormat.TAR_GZ) == b"payload"


def test_extract_zip_directory_named_like_binary_is_ignored() -> None:
    data = make_zip({"other.txt": b"x"}, directories=["vlink.exe"])

    with pytest.raises(EntryNotFound):
        extract(data, "vlink.exe", ArchiveFormat.ZIP)


def test_extract_is_case_sensitive() -> None:
    data = make_tar_gz({"VLINK": b"upper"})

    with pytest.raises(EntryNotFound) as excinfo:
        extract(data, "vlink", ArchiveFormat.TAR_GZ)

    assert str(excinfo.value) == "binary vlink not found in archive"


@pytest.mark.parametrize("archive_format", [ArchiveFormat.TAR_GZ, ArchiveFormat.ZIP])
def test_extract_rejects_garbage(archive_format: ArchiveFormat) -> None:
    with pytest.raises(CorruptArchive):
        extract(b"this is not an archive", "vlink", archive_format)


def test_extract_reports_zip_given_as_tar_gz_as_corrupt() -> None:
    data = make_zip({"vlink": b"payload"})

    with pytest.raises(CorruptArchive):
        extract(data, "vlink", ArchiveFormat.TAR_GZ)


def test_extract_reports_truncated_tar_gz_as_corrupt() -> None:
    data = make_tar_gz({"vlink": os.urandom(8192)})

    with pytest.raises(CorruptArchive):
        extract(data[: len(data) // 2], "vlink", ArchiveFormat.TAR_GZ)


def _patch_zip_member(data: bytes, flag_bits: int = 0, compress_type: Optional[int] = None) -> bytes:
    """Rewrites the flags / compression method of the only member in both zip headers."""
    patched = bytearray(data)
    for signature, flag_offset, method_offset in ((b"PK\x03\x04", 6, 8), (b"PK\x01\x02", 8, 10)):
        start = patched.index(signature)
        flags = struct.unpack_from("<H", patched, start + flag_offset)[0]
        struct.pack_into("<H", patched, start + flag_offset, flags | flag_bits)
        if compress_type is not None:
            struct.pack_into("<H", patched, start + method_offset, compress_type)
    return bytes(patched)


def test_extract_reports_encrypted_zip_entry_as_corrupt() -> None:
    data = _patch_zip_member(make_zip({"vlink.exe": b"MZ-binary"}), flag_bits=0x1)

    with pytest.raises(CorruptArchive, match="vlink.exe"):
        extract(data, "vlink.exe", ArchiveFormat.ZIP)


def test_extract_reports_unknown_zip_compression_as_corrupt() -> None:
    data = _patch_zip_member(make_zip({"vlink.exe": b"MZ-binary"}), compress_type=99)

    with pytest.raises(CorruptArchive):
        extract(data, "vlink.exe", ArchiveFormat.ZIP)


def test_extract_reports_bad_header_after_first_member_as_corrupt() -> None:
    raw = io.BytesIO()
    with tarfile.open(fileobj=raw, mode="w", format=tarfile.USTAR_FORMAT) as tar:
        for name, content in (("README", b"docs"), ("vlink", b"payload")):
            info = tarfile.TarInfo(name)
            info.size = len(content)
            tar.addfile(info, io.BytesIO(content))
    broken = bytearray(raw.getvalue())
    # Second header starts after the first header block and one data block.
    broken[2 * tarfile.BLOCKSIZE:3 * tarfile.BLOCKSIZE] = b"\xff" * tarfile.BLOCKSIZE

    with pytest.raises(CorruptArchive, match="invalid header"):
        extract(gzip.compress(bytes(broken)), "vlink", ArchiveFormat.TAR_GZ)


def test_extract_well_formed_tar_without_binary_is_not_corrupt() -> None:
    data = make_tar_gz({"README": b"docs", "LICENSE": b"MIT"})

    with pytest.raises(EntryNotFound):
        extract(data, "vlink", ArchiveFormat.TAR_GZ)
