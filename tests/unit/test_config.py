"""
Unit tests for configuration loading.
"""

import json
import logging
import os

import pytest

from serveris.config import DEFAULT_PORT, ServerConfig, parse_bool, parse_listener


class TestDefaults:
    """Tests for default values."""

    def test_defaults(self):
        config = ServerConfig()
        assert config.host == "127.0.0.1"
        assert config.port == DEFAULT_PORT
        assert config.connection_queue == 10
        assert config.connection_limit == 10
        assert config.transmission_timeout == 1000
        assert config.io_timeout == 1.0
        assert config.document_root == os.getcwd()
        assert config.default_page == "index.html"
        assert config.redirect_to_index is False

    def test_zero_timeout_disables(self):
        assert ServerConfig(transmission_timeout=0).io_timeout is None


class TestSources:
    """Tests for file and keyword sources."""

    def test_file_then_kwargs(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({
            "port": 9000,
            "connection_limit": 3,
            "redirect_to_index": True,
        }))

        config = ServerConfig(str(path), connection_limit=5)
        assert config.port == 9000
        assert config.connection_limit == 5
        assert config.redirect_to_index is True

    def test_missing_file_keeps_defaults(self, tmp_path, caplog):
        with caplog.at_level(logging.WARNING):
            config = ServerConfig(str(tmp_path / "nope.json"))
        assert config.port == DEFAULT_PORT
        assert "not found" in caplog.text

    def test_invalid_json(self, tmp_path, caplog):
        path = tmp_path / "config.json"
        path.write_text("{not json")
        config = ServerConfig(str(path))
        assert config.connection_limit == 10
        assert "Error loading configuration" in caplog.text

    def test_json_must_be_object(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("[1, 2]")
        assert ServerConfig().load_from_file(str(path)) is False

    def test_string_values_are_parsed(self):
        config = ServerConfig(port="8081", connection_queue="4", redirect_to_index="true")
        assert config.port == 8081
        assert config.connection_queue == 4
        assert config.redirect_to_index is True

    def test_invalid_values_keep_previous(self, caplog):
        config = ServerConfig(connection_limit="many", port=70000, host="localhost")
        assert config.connection_limit == 10
        assert config.port == DEFAULT_PORT
        assert config.host == "127.0.0.1"
        assert "connection_limit" in caplog.text

    @pytest.mark.parametrize("key", ["connection_limit", "connection_queue", "receive_buffer_size"])
    def test_non_positive_rejected(self, key):
        config = ServerConfig(**{key: 0})
        assert config.get(key) > 0

    def test_unknown_key_ignored(self, caplog):
        config = ServerConfig(colour="blue")
        assert config.get("colour") is None
        assert "colour" in caplog.text

    def test_relative_document_root(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        config = ServerConfig(document_root="htdocs")
        assert config.document_root == str(tmp_path / "htdocs")

    def test_absolute_document_root(self, tmp_path):
        assert ServerConfig(document_root=str(tmp_path)).document_root == str(tmp_path)

    def test_get_all_is_a_copy(self):
        config = ServerConfig(port=1234)
        values = config.get_all()
        values["port"] = 1
        assert config.port == 1234
        assert config.get_all()["port"] == 1234


class TestListener:
    """Tests for the ip[:port] listener form."""

    def test_listener_sets_host_and_port(self):
        config = ServerConfig(listener="0.0.0.0:8081")
        assert config.listen_address == ("0.0.0.0", 8081)

    def test_explicit_port_wins(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"port": 9000}))
        config = ServerConfig(str(path), listener="10.0.0.1:8081")
        assert config.listen_address == ("10.0.0.1", 9000)

    def test_listener_without_port(self):
        config = ServerConfig(listener="10.0.0.1")
        assert config.listen_address == ("10.0.0.1", DEFAULT_PORT)

    @pytest.mark.parametrize("value,expected", [
        ("1.2.3.4", ("1.2.3.4", None)),
        ("1.2.3.4:80", ("1.2.3.4", 80)),
        ("1.2.3.4:0", ("1.2.3.4", None)),
        ("1.2.3.4:http", ("1.2.3.4", None)),
    ])
    def test_parse_listener(self, value, expected):
        assert parse_listener(value) == expected

    def test_bad_listener_address(self):
        with pytest.raises(ValueError):
            parse_listener("example.com:80")


@pytest.mark.parametrize("value,expected", [
    (True, True), ("yes", True), ("1", True), ("On", True),
    (False, False), ("no", False), ("0", False), ("false", False),
])
def test_parse_bool(value, expected):
    assert parse_bool(value) is expected


def test_parse_bool_rejects_garbage():
    with pytest.raises(ValueError):
        parse_bool("maybe")
