import subprocess
from pathlib import Path

import pytest

from domour.local.config import effective_settings as config
from domour.local.errors import ElevationRequired, EntryNotFound, HTTPStatusFailure
from domour.local.update import applier
from domour.local.update.service import EVENT_INSTALL_STATUS, UpdateService
from tests.helpers import LINUX, WINDOWS, FakeResponse, FakeSession, make_tar_gz, make_zip

APP_BASE = "https://downloads.example.test/domour/"
HELPER_BASE = "https://downloads.example.test/vlink/"


@pytest.fixture(autouse=True)
def base_urls(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, "UPDATE_BASE_URL", APP_BASE)
    monkeypatch.setattr(config, "HELPER_BASE_URL", HELPER_BASE)


def test_install_helper_without_password_does_no_network_io(tmp_path: Path) -> None:
    session = FakeSession()
    events = []
    service = UpdateService(platform=LINUX, session=session, notify=lambda e, p: events.append(p),
                            helper_binary=tmp_path / "vlink")

    with pytest.raises(ElevationRequired):
        service.install_helper("latest", sudo_password="")

    assert session.requests == []
    assert events == []
    assert not (tmp_path / "vlink").exists()


def test_install_helper_on_windows_downloads_extracts_and_renames(tmp_path: Path) -> None:
    session = FakeSession({
        HELPER_BASE + "checksums.txt": FakeResponse(content=b"ab  vlink_v0.9.0_windows_amd64.zip\n"
                                                           b"cd  vlink_v0.10.1_windows_amd64.zip\n"),
        HELPER_BASE + "vlink_v0.10.1_windows_amd64.zip": FakeResponse(
            content=make_zip({"vlink_v0.10.1/vlink.exe": b"MZ-new"})
        ),
    })
    events = []
    target = tmp_path / ".vlink" / "vlink.exe"
    service = UpdateService(platform=WINDOWS, session=session,
                            notify=lambda e, p: events.append((e, p)), helper_binary=target)

    assert service.install_helper() == "vlink installed"

    assert target.read_bytes() == b"MZ-new"
    assert [p for _, p in events] == [
        "Starting vlink installation",
        "vlink download complete",
        f"Writing {target}",
        "vlink installation complete",
    ]
    assert {e for e, _ in events} == {EVENT_INSTALL_STATUS}


def test_install_helper_elevated_passes_password_to_sudo(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    session = FakeSession({
        HELPER_BASE + "vlink_v1.0.0_linux_amd64.tar.gz": FakeResponse(content=make_tar_gz({"vlink": b"ELF"})),
    })
    calls = []
    monkeypatch.setattr(applier.subprocess, "run",
                        lambda cmd, **kw: calls.append((cmd, kw["input"])) or subprocess.CompletedProcess(cmd, 0, b""))
    service = UpdateService(platform=LINUX, session=session, helper_binary=tmp_path / "vlink")

    assert service.install_helper("v1.0.0", "hunter2") == "vlink installed"

    assert len(calls) == 1
    assert calls[0][1] == b"hunter2\n"


def test_install_helper_reports_download_failure(tmp_path: Path) -> None:
    session = FakeSession()
    events = []
    service = UpdateService(platform=WINDOWS, session=session, notify=lambda e, p: events.append(p),
                            helper_binary=tmp_path / "vlink.exe")

    with pytest.raises(HTTPStatusFailure):
        service.install_helper("v1.0.0")

    assert events == ["Starting vlink installation", "vlink download failed"]


def test_self_update_replaces_app_binary(tmp_path: Path) -> None:
    app_binary = tmp_path / "domour-copilot"
    app_binary.write_bytes(b"old build")
    session = FakeSession({
        APP_BASE + "checksums.txt": FakeResponse(content=b"ff  domour-copilot_v2.1.0_linux_amd64.tar.gz\n"),
        APP_BASE + "domour-copilot_v2.1.0_linux_amd64.tar.gz": FakeResponse(
            content=make_tar_gz({"domour-copilot": b"new build"})
        ),
    })
    service = UpdateService(platform=LINUX, session=session, app_binary=app_binary)

    assert service.self_update() == "update applied, please restart the app"
    assert app_binary.read_bytes() == b"new build"


def test_self_update_keeps_binary_when_archive_lacks_it(tmp_path: Path) -> None:
    app_binary = tmp_path / "domour-copilot"
    app_binary.write_bytes(b"old build")
    session = FakeSession({
        APP_BASE + "domour-copilot_v2.1.0_linux_amd64.tar.gz": FakeResponse(content=make_tar_gz({"README": b"hi"})),
    })
    service = UpdateService(platform=LINUX, session=session, app_binary=app_binary)

    with pytest.raises(EntryNotFound):
        service.self_update("v2.1.0")
    assert app_binary.read_bytes() == b"old build"


def test_latest_version_reads_application_manifest() -> None:
    session = FakeSession({
        APP_BASE + "checksums.txt": FakeResponse(content=b"01  domour-copilot_v1.2_linux_amd64.tar.gz\n"
                                                        b"02  domour-copilot_v1.2.1_linux_amd64.tar.gz\n"),
    })

    assert UpdateService(platform=LINUX, session=session).latest_version() == "v1.2.1"
