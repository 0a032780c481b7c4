import io
import json
import os
import tarfile
import zipfile
from pathlib import Path

import pytest
import responses

from releasetrack.client import GitHubClient, Release
from releasetrack.config import Config, GlobalConfig, Repo, get_config
from releasetrack.manager import Manager, ManagerError, new_manager

API = "https://api.github.com"
REPO = "owner/tool"
LINUX_ASSET = "tool-v1.0.0-linux-amd64.tar.gz"
WINDOWS_ASSET = "tool-windows-amd64.zip"
DOWNLOAD = "https://downloads.example.com/"


def _targz(files):
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as tar:
        for name, data in files.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            info.mode = 0o755
            tar.addfile(info, io.BytesIO(data))
    return buf.getvalue()


def _zip(files):
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as archive:
        for name, data in files.items():
            info = zipfile.ZipInfo(name)
            info.external_attr = 0o755 << 16
            archive.writestr(info, data)
    return buf.getvalue()


def _release_json(tag, asset_names):
    return {
        "tag_name": tag,
        "name": tag,
        "prerelease": False,
        "assets": [
            {"name": n, "browser_download_url": DOWNLOAD + n, "size": 1} for n in asset_names
        ],
    }


@pytest.fixture
def mocked():
    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        yield rsps


@pytest.fixture
def manager(tmp_path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    cfg = Config(global_config=GlobalConfig(data_dir=str(tmp_path / "data")))
    return Manager(
        cfg,
        client=GitHubClient(),
        config_file=tmp_path / "config.json",
        os_name="linux",
        arch="amd64",
    )


def test_add_repo_saves_and_rejects_duplicates(manager, tmp_path):
    manager.add_repo(REPO)
    saved = json.loads((tmp_path / "config.json").read_text())
    assert REPO in saved["repos"]
    assert manager.cfg.repos[REPO].path == REPO
    with pytest.raises(ManagerError, match="already being tracked"):
        manager.add_repo(REPO)


def test_update_untracked_repo_fails(manager):
    with pytest.raises(ManagerError, match="not tracked"):
        manager.update_repo("nobody/nothing")


def test_install_version_requires_tracked_repo(manager):
    with pytest.raises(ManagerError, match="not tracked"):
        manager.install_version("nobody/nothing", Release(tag_name="v1"))


def test_update_installs_and_links(manager, tmp_path, mocked):
    manager.cfg.repos[REPO] = Repo(path=REPO)
    mocked.add(
        responses.GET,
        f"{API}/repos/{REPO}/releases/latest",
        json=_release_json("v1.0.0", ["checksums.txt", LINUX_ASSET]),
    )
    mocked.add(
        responses.GET,
        DOWNLOAD + LINUX_ASSET,
        body=_targz({"tool": b"#!/bin/sh\necho hi\n"}),
    )

    manager.update_repo(REPO)

    assert manager.cfg.repos[REPO].current_version == "v1.0.0"
    saved = json.loads((tmp_path / "config.json").read_text())
    assert saved["repos"][REPO]["current_version"] == "v1.0.0"

    exe = tmp_path / "data" / "tool" / "general" / "v1.0.0" / "tool"
    link = tmp_path / "data" / "latest" / "tool"
    assert link.is_symlink()
    assert link.resolve() == exe.resolve()
    user_link = tmp_path / "home" / ".local" / "bin" / "tool"
    assert user_link.resolve() == exe.resolve()
    assert user_link.read_bytes() == b"#!/bin/sh\necho hi\n"


def test_update_skips_when_up_to_date(manager, tmp_path, capsys, mocked):
    manager.cfg.repos[REPO] = Repo(path=REPO, current_version="v1.0.0")
    latest = tmp_path / "data" / "latest"
    latest.mkdir(parents=True)
    (latest / "tool").write_text("x")
    mocked.add(
        responses.GET,
        f"{API}/repos/{REPO}/releases/latest",
        json=_release_json("v1.0.0", [LINUX_ASSET]),
    )

    manager.update_repo(REPO)

    assert len(mocked.calls) == 1
    assert "'owner/tool' is already up-to-date (version v1.0.0)." in capsys.readouterr().out


def test_forced_update_reinstalls(manager, tmp_path, capsys, mocked):
    manager.cfg.repos[REPO] = Repo(path=REPO, current_version="v1.0.0")
    latest = tmp_path / "data" / "latest"
    latest.mkdir(parents=True)
    (latest / "tool").write_text("x")
    mocked.add(
        responses.GET,
        f"{API}/repos/{REPO}/releases/latest",
        json=_release_json("v1.0.0", [LINUX_ASSET]),
    )
    mocked.add(responses.GET, DOWNLOAD + LINUX_ASSET, body=_targz({"tool": b"new"}))

    manager.update_repo(REPO, force=True)

    assert "Reinstalling current version for owner/tool: v1.0.0" in capsys.readouterr().out
    assert (latest / "tool").read_bytes() == b"new"


def test_missing_stable_release(manager, mocked):
    manager.cfg.repos[REPO] = Repo(path=REPO)
    mocked.add(
        responses.GET,
        f"{API}/repos/{REPO}/releases/latest",
        json={"message": "Not Found"},
        status=404,
    )
    with pytest.raises(ManagerError, match="no stable releases found"):
        manager.update_repo(REPO)


def test_prerelease_uses_release_list(manager, mocked):
    manager.cfg.repos[REPO] = Repo(path=REPO, include_prerelease=True)
    mocked.add(responses.GET, f"{API}/repos/{REPO}/releases", json=[])
    with pytest.raises(ManagerError, match="no releases found for owner/tool"):
        manager.update_repo(REPO)


def test_no_compatible_asset(manager):
    manager.cfg.repos[REPO] = Repo(path=REPO)
    release = Release(tag_name="v2")
    with pytest.raises(ManagerError, match="could not find compatible asset"):
        manager.install_version(REPO, release)
    assert manager.cfg.repos[REPO].current_version == ""


def test_download_failure(manager, mocked):
    manager.cfg.repos[REPO] = Repo(path=REPO)
    mocked.add(
        responses.GET,
        f"{API}/repos/{REPO}/releases/latest",
        json=_release_json("v1.0.0", [LINUX_ASSET]),
    )
    mocked.add(responses.GET, DOWNLOAD + LINUX_ASSET, status=404)
    with pytest.raises(ManagerError, match="failed to download asset"):
        manager.update_repo(REPO)


def test_windows_install_writes_shim(tmp_path, monkeypatch, mocked):
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    cfg = Config(global_config=GlobalConfig(data_dir=str(tmp_path / "data")))
    cfg.repos[REPO] = Repo(path=REPO)
    mgr = Manager(
        cfg,
        client=GitHubClient(),
        config_file=tmp_path / "config.json",
        os_name="windows",
        arch="amd64",
    )
    mocked.add(
        responses.GET,
        f"{API}/repos/{REPO}/releases/latest",
        json=_release_json("v3", ["tool-windows-arm64.zip", WINDOWS_ASSET]),
    )
    mocked.add(responses.GET, DOWNLOAD + WINDOWS_ASSET, body=_zip({"tool.exe": b"MZ"}))

    mgr.update_repo(REPO)

    exe = os.path.join(str(tmp_path / "data"), "tool", "general", "v3", "tool.exe")
    shim = tmp_path / "data" / "latest" / "tool.cmd"
    assert shim.read_bytes() == f'@echo off\r\n"{exe}" %*\r\n'.encode()
    assert cfg.repos[REPO].current_version == "v3"
    assert not (tmp_path / "home" / ".local" / "bin" / "tool").exists()


def test_new_manager_exports_token(tmp_path, monkeypatch):
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.setenv("LOCALAPPDATA", str(tmp_path / "local"))
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    get_config.cache_clear()
    try:
        mgr = new_manager("token")
        assert os.environ["GITHUB_TOKEN"] == "token"
        assert mgr.cfg.repos == {}
        assert Path(mgr.cfg.global_config.data_dir).is_dir()
    finally:
        get_config.cache_clear()