import os

from imail.fsutil import (
    current_username,
    is_dir,
    is_exist,
    is_file,
    is_malicious_path,
    is_same_site_url_path,
)


def test_file_and_dir_checks(tmp_path):
    file_path = tmp_path / "a.txt"
    file_path.write_text("x")
    assert is_file(file_path) is True
    assert is_file(tmp_path) is False
    assert is_dir(tmp_path) is True
    assert is_dir(file_path) is False


def test_missing_path(tmp_path):
    missing = tmp_path / "missing"
    assert is_exist(missing) is False
    assert is_file(missing) is False
    assert is_dir(missing) is False
    assert is_exist(tmp_path) is True


def test_current_username_prefers_user(monkeypatch):
    monkeypatch.setenv("USER", "alice")
    monkeypatch.setenv("USERNAME", "bob")
    assert current_username() == "alice"


def test_current_username_falls_back_to_username(monkeypatch):
    monkeypatch.delenv("USER", raising=False)
    monkeypatch.setenv("USERNAME", "bob")
    assert current_username() == "bob"


def test_same_site_url_path():
    assert is_same_site_url_path("/url") is True
    assert is_same_site_url_path("//url") is False
    assert is_same_site_url_path("http://url") is False
    assert is_same_site_url_path("/\\url") is False
    assert is_same_site_url_path("/") is False


def test_malicious_path():
    assert is_malicious_path(os.path.abspath("x")) is True
    assert is_malicious_path("a/../b") is True
    assert is_malicious_path("a/b") is False