"""Extraction of a single binary from a release archive held in memory."""

import io
import zlib
import logging
import tarfile
import zipfile
from pathlib import PurePosixPath

from domour.local.errors import CorruptArchive, EntryNotFound
from domour.local.update.platforms import ArchiveFormat

log = logging.getLogger(__name__)


def _base_name(entry_name: str) -> str:
    """Returns the last path component of an archive member name."""
    return PurePosixPath(entry_name.replace("\\", "/")).name


def _extract_from_zip(data: bytes, expected: str) -> bytes:
    try:
        archive = zipfile.ZipFile(io.BytesIO(data))
    except (zipfile.BadZipFile, zipfile.LargeZipFile, OSError) as e:
        raise CorruptArchive(f"failed to open zip: {e}") from e

    with archive:
        for member in archive.infolist():
            if member.is_dir() or _base_name(member.filename) != expected:
                continue
            log.debug(f"Found '{expected}' in zip as '{member.filename}' ({member.file_size} bytes).")
            try:
                return archive.read(member)
            # RuntimeError: encrypted entry; NotImplementedError: unknown compression method.
            except (zipfile.BadZipFile, zlib.error, OSError, EOFError, RuntimeError, NotImplementedError) as e:
                raise CorruptArchive(f"failed to read zip entry '{member.filename}': {e}") from e
    raise EntryNotFound(expected)


def _check_tar_end(archive: tarfile.TarFile) -> None:
    """
    Raises if member iteration stopped on something other than the end-of-archive marker.

    tarfile ends iteration quietly at an invalid header past the first member,
    so the block it stopped at must be zeros or the end of the stream.
    """
    archive.fileobj.seek(archive.offset)
    block = archive.fileobj.read(tarfile.BLOCKSIZE)
    if block.strip(b"\0"):
        raise CorruptArchive(f"failed to read tar: invalid header at offset {archive.offset}")


def _extract_from_tar_gz(data: bytes, expected: str) -> bytes:
    try:
        archive = tarfile.open(fileobj=io.BytesIO(data), mode="r:gz")
    except (tarfile.TarError, zlib.error, OSError, EOFError) as e:
        raise CorruptArchive(f"failed to open gzip: {e}") from e

    with archive:
        try:
            for member in archive:
                if not member.isreg() or _base_name(member.name) != expected:
                    continue
                log.debug(f"Found '{expected}' in tarball as '{member.name}' ({member.size} bytes).")
                source = archive.extractfile(member)
                if source is None:
                    continue
                with source:
                    return source.read()
            _check_tar_end(archive)
        except (tarfile.TarError, zlib.error, OSError, EOFError) as e:
            raise CorruptArchive(f"failed to read tar: {e}") from e
    raise EntryNotFound(expected)


_EXTRACTORS = {
    ArchiveFormat.ZIP: _extract_from_zip,
    ArchiveFormat.TAR_GZ: _extract_from_tar_gz,
}


def extract(archive_bytes: bytes, expected_entry_name: str, archive_format: ArchiveFormat) -> bytes:
    """
    Returns the content of the first regular file named `expected_entry_name`.

    Members are matched on their base file name, so binaries nested under a
    version or platform directory are found as well. Matching is case-sensitive.

    :param archive_bytes: The raw archive as downloaded.
    :param expected_entry_name: File name of the binary, e.g. 'vlink' or 'vlink.exe'.
    :param archive_format: The container format of `archive_bytes`.
    :raises CorruptArchive: If the container cannot be opened or read.
    :raises EntryNotFound: If the archive has no such file.
    """
    log.info(f"Extracting '{expected_entry_name}' from {len(archive_bytes)} byte {archive_format.extension} archive...")
    payload = _EXTRACTORS[archive_format](archive_bytes, expected_entry_name)
    log.info(f"Extracted '{expected_entry_name}' ({len(payload)} bytes).")
    return payload
