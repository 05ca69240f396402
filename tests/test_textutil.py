import string
import threading
from datetime import datetime, timedelta, timezone
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest

from imail.textutil import (
    base64_decode,
    base64_encode,
    check_standard_mail,
    check_string_is_exist,
    convert_to_string,
    file_size,
    filter_address_body,
    get_eol,
    get_http_data,
    get_real_mail,
    is_numeric,
    md5,
    md5_bytes,
    path_exists,
    rand_string,
    read_file,
    remove_duplicates_and_empty,
    size_format,
    time_since_pro,
    to_slice,
    to_snake_case,
    write_file,
)

NOW = datetime(2020, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def test_get_eol():
    assert get_eol() == "\r\n"


def test_md5():
    assert md5("") == "d41d8cd98f00b204e9800998ecf8427e"
    assert md5("hello") == md5_bytes(b"hello")
    assert len(md5("anything")) == 32


def test_to_slice():
    assert to_slice("1,2,3") == [1, 2, 3]
    with pytest.raises(ValueError):
        to_slice("1,x")


def test_check_string_is_exist():
    assert check_string_is_exist("ABC", ["x", "abc"]) is True
    assert check_string_is_exist("ABC", ["x", "y"]) is False


def test_time_since_pro():
    assert time_since_pro(NOW - timedelta(seconds=1), NOW) == "1 second"
    assert time_since_pro(NOW - timedelta(minutes=1), NOW) == "1 minute"
    assert time_since_pro(NOW - timedelta(hours=1, minutes=1), NOW) == "1 hour, 1 minute"
    assert time_since_pro(NOW + timedelta(seconds=1), NOW) == "future"
    assert time_since_pro(NOW - timedelta(seconds=30), NOW).endswith(" seconds")


def test_file_size():
    assert file_size(5) == "5 B"
    assert file_size(1024).endswith(" KB")
    assert file_size(1024 * 1024 * 3).endswith(" MB")


def test_size_format():
    assert size_format(512).endswith(" Byte")
    assert size_format(2048).endswith(" KB")
    with pytest.raises(ValueError):
        size_format(1024.0**6)


def test_rand_string():
    value = rand_string(20)
    assert len(value) == 20
    assert set(value) <= set(string.ascii_uppercase)


def test_remove_duplicates_and_empty():
    assert remove_duplicates_and_empty(["a", "a", "", "b", "a"]) == ["a", "b", "a"]
    assert remove_duplicates_and_empty([]) == []


def test_path_exists(tmp_path):
    assert path_exists(tmp_path) is True
    assert path_exists(tmp_path / "missing") is False


def test_write_read_round_trip(tmp_path):
    target = tmp_path / "f.txt"
    write_file(target, "line one\r\nline two")
    assert read_file(target) == "line one\r\nline two"


def test_read_missing_file(tmp_path):
    with pytest.raises(OSError):
        read_file(tmp_path / "missing")


@pytest.mark.parametrize("text", ["", "abc", "测试", "hello world\r\n"])
def test_base64_round_trip(text):
    assert base64_decode(base64_encode(text)) == text


def test_base64_decode_invalid():
    with pytest.raises(ValueError):
        base64_decode("!!!")


def test_convert_to_string_gbk():
    raw = "测试".encode("gbk")
    assert convert_to_string(raw, "gbk", "utf-8") == "测试"


def test_filter_address_body():
    assert filter_address_body("<a@example.com> SIZE=100") == "<a@example.com>"
    assert filter_address_body("<a@example.com> BODY=8BITMIME") == "<a@example.com>"


@pytest.mark.parametrize(
    "value, expected",
    [
        ("123", True),
        ("-1.5e3", True),
        ("0x1F", True),
        (1.5, True),
        ("abc", False),
        ("", False),
        ("1e", False),
        ("+", False),
        ("1.", False),
        ("0xZZ", False),
    ],
)
def test_is_numeric(value, expected):
    assert is_numeric(value) is expected


def test_check_standard_mail():
    assert check_standard_mail("<user@example.com>") is True
    assert check_standard_mail("user@example.com") is False
    assert check_standard_mail("<bad>") is False
    assert check_standard_mail("<user@example.com") is False


def test_get_real_mail():
    assert get_real_mail("<user@example.com>") == "user@example.com"


@pytest.mark.parametrize(
    "source, expected",
    [
        ("FirstName", "first_name"),
        ("HTTPServer", "http_server"),
        ("NoHTTPS", "no_https"),
        ("GO_PATH", "go_path"),
        ("GO PATH", "go_path"),
        ("GO-PATH", "go_path"),
        ("", ""),
    ],
)
def test_to_snake_case(source, expected):
    assert to_snake_case(source) == expected


@pytest.fixture
def http_url():
    class Handler(BaseHTTPRequestHandler):
        def do_GET(self):
            body = b"hello"
            self.send_response(200)
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)

        def log_message(self, *args):
            pass

    server = ThreadingHTTPServer(("127.0.0.1", 0), Handler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{server.server_address[1]}/"
    server.shutdown()
    server.server_close()


def test_get_http_data(http_url):
    assert get_http_data(http_url) == "hello"


def test_get_http_data_failure():
    with pytest.raises(ConnectionError):
        get_http_data("http://127.0.0.1:1/")