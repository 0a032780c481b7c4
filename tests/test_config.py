import json

import pytest

from releasetrack.config import (
    Config,
    ConfigError,
    GlobalConfig,
    Repo,
    config_path,
    data_path,
    default_config,
    get_config,
    load_config,
    parse_config,
)


@pytest.fixture
def isolated_home(tmp_path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.setenv("USERPROFILE", str(tmp_path / "home"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("LOCALAPPDATA", str(tmp_path / "local"))
    get_config.cache_clear()
    yield tmp_path
    get_config.cache_clear()


def test_default_config_values(isolated_home):
    cfg = default_config()
    assert cfg.global_config.backup_count == 3
    assert cfg.global_config.excluded_patterns == [
        "\\.deb$",
        "\\.rpm$",
        "checksums",
        "\\.sig$",
        "\\.asc$",
    ]
    assert cfg.repos == {}
    assert cfg.global_config.data_dir == str(data_path())


def test_to_dict_omits_empty_optional_fields():
    cfg = Config(GlobalConfig(data_dir="/data"), {"a/b": Repo(path="a/b")})
    out = cfg.to_dict()
    assert set(out["global"]) == {"data_dir", "backup_count", "excluded_patterns"}
    assert set(out["repos"]["a/b"]) == {
        "include_prerelease",
        "current_version",
        "version_history",
    }


def test_to_dict_includes_set_optional_fields():
    repo = Repo(path="a/b", install_name="tool", asset_priority=["x86_64"], matcher_mode="relaxed")
    out = Config(GlobalConfig(debug=True), {"a/b": repo}).to_dict()
    assert out["global"]["debug"] is True
    assert out["repos"]["a/b"]["install_name"] == "tool"
    assert out["repos"]["a/b"]["asset_priority"] == ["x86_64"]
    assert out["repos"]["a/b"]["matcher_mode"] == "relaxed"
    assert "path" not in out["repos"]["a/b"]


def test_repos_are_written_in_sorted_order():
    cfg = Config(GlobalConfig(), {"z/z": Repo(path="z/z"), "a/a": Repo(path="a/a")})
    assert list(cfg.to_dict()["repos"]) == ["a/a", "z/z"]


def test_save_and_load_round_trip(tmp_path):
    cfg = Config(
        GlobalConfig(data_dir="/d", backup_count=5, excluded_patterns=["x"], matcher_mode="strict"),
        {
            "owner/tool": Repo(
                path="owner/tool",
                asset_filter=".*musl.*",
                include_prerelease=True,
                current_version="v1.2.3",
                version_history=["v1.2.3", "v1.2.2"],
                fallback_os=["linux"],
            )
        },
    )
    target = tmp_path / "config.json"
    cfg.save(target)
    assert load_config(target) == cfg


def test_save_writes_two_space_indented_json(tmp_path):
    target = tmp_path / "config.json"
    Config(GlobalConfig(), {}).save(target)
    text = target.read_text(encoding="utf-8")
    assert text.startswith('{\n  "global": {\n    "data_dir"')
    assert json.loads(text) == Config(GlobalConfig(), {}).to_dict()


def test_load_missing_file_creates_default(isolated_home):
    target = isolated_home / "fresh.json"
    cfg = load_config(target)
    assert target.exists()
    assert parse_config(target.read_text(encoding="utf-8")) == cfg
    assert cfg.global_config.backup_count == 3


def test_parse_invalid_json_raises():
    with pytest.raises(ConfigError, match="failed to parse config file"):
        parse_config("{not json")


def test_parse_wrong_field_type_raises():
    with pytest.raises(ConfigError, match="backup_count"):
        parse_config('{"global": {"backup_count": "three"}}')


def test_parse_sets_repo_path_from_key():
    cfg = parse_config('{"global": {}, "repos": {"owner/tool": {"current_version": "v1"}}}')
    assert cfg.repos["owner/tool"].path == "owner/tool"
    assert cfg.repos["owner/tool"].current_version == "v1"


def test_parse_null_repos_gives_empty_mapping():
    cfg = parse_config('{"global": null, "repos": null}')
    assert cfg.repos == {}
    assert cfg.global_config == GlobalConfig()


def test_config_path_inside_isolated_directories(isolated_home):
    path = config_path()
    assert path.name == "config.json"
    assert path.parent.name == "track"
    assert path.parent.is_dir()
    assert path.is_relative_to(isolated_home)


def test_get_config_is_cached_and_persisted(isolated_home):
    cfg = get_config()
    assert get_config() is cfg
    assert config_path().exists()
    assert cfg.global_config.backup_count == 3