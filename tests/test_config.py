import yaml

from kanban_desktop import config as config_module
from kanban_desktop.config import DEFAULT_BOARD_URL, Config, is_absolute_url, read_board_url_override


def test_override_first_non_comment_line_wins(tmp_path):
    path = tmp_path / "kanban.conf"
    path.write_text(
        "# my board\n\n   \n  https://cryptpad.example/kanban/b/7  \nhttps://second.example/\n",
        encoding="utf-8",
    )
    assert read_board_url_override(path) == "https://cryptpad.example/kanban/b/7"


def test_override_handles_crlf_lines(tmp_path):
    path = tmp_path / "kanban.conf"
    path.write_bytes(b"# comment\r\nhttps://cryptpad.example/kanban/\r\n")
    assert read_board_url_override(path) == "https://cryptpad.example/kanban/"


def test_override_missing_file_is_silent(tmp_path, caplog):
    assert read_board_url_override(tmp_path / "absent.conf") is None
    assert caplog.records == []


def test_override_other_read_errors_are_logged(tmp_path, caplog):
    directory = tmp_path / "kanban.conf"
    directory.mkdir()

    assert read_board_url_override(directory) is None
    assert "Failed to read" in caplog.text


def test_override_only_comments(tmp_path):
    path = tmp_path / "kanban.conf"
    path.write_text("# nothing here\n\n", encoding="utf-8")
    assert read_board_url_override(path) is None


def test_override_malformed_url_is_ignored(tmp_path):
    path = tmp_path / "kanban.conf"
    path.write_text("cryptpad.example/kanban\nhttps://later.example/\n", encoding="utf-8")
    assert read_board_url_override(path) is None


def test_is_absolute_url():
    assert is_absolute_url("https://cryptpad.example/kanban/")
    assert not is_absolute_url("cryptpad.example/kanban")
    assert not is_absolute_url("https://[broken")


def test_config_created_with_defaults(tmp_path):
    config = Config(tmp_path / "cfg")

    assert config.config_file.exists()
    assert config.get("board.default_url") == DEFAULT_BOARD_URL
    assert config.get("timing.url_debounce_ms") == 200
    assert config.get("timing.workspace_retry_ms") == 150
    assert config.get("timing.bounds_debounce_ms") == 250
    assert config.session_file == tmp_path / "cfg" / "session.yaml"


def test_user_values_merge_over_defaults(tmp_path):
    directory = tmp_path / "cfg"
    directory.mkdir()
    (directory / "config.yaml").write_text(
        yaml.safe_dump({"board": {"origin": "https://pad.example"}, "logging": {"debug": True}}),
        encoding="utf-8",
    )

    config = Config(directory)

    assert config.get("board.origin") == "https://pad.example"
    assert config.get("board.path_prefix") == "/kanban/"
    assert config.debug_logging is True


def test_invalid_config_uses_defaults(tmp_path, caplog):
    directory = tmp_path / "cfg"
    directory.mkdir()
    (directory / "config.yaml").write_text("board: [oops\n", encoding="utf-8")

    config = Config(directory)

    assert config.get("window.width") == 1200
    assert "Error loading config" in caplog.text


def test_defaults_are_not_shared_between_loads(tmp_path):
    config = Config(tmp_path / "cfg")
    config.config["board"]["origin"] = "https://changed.example"
    assert config.defaults["board"]["origin"] == "https://cryptpad.arch-linux.cz"


def test_set_uses_dot_notation_and_saves(tmp_path):
    config = Config(tmp_path / "cfg")
    config.set("timing.tool_timeout_s", 0.5)

    assert Config(tmp_path / "cfg").get("timing.tool_timeout_s") == 0.5


def test_get_missing_key_returns_default(tmp_path):
    config = Config(tmp_path / "cfg")
    assert config.get("board.nope", "fallback") == "fallback"
    assert config.get("board.origin.deeper") is None


def test_config_dir_from_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("KANBAN_DESKTOP_CONFIG_DIR", str(tmp_path / "env"))
    assert config_module.default_config_dir() == tmp_path / "env"
