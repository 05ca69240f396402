import pytest

from imail.patterns import is_code, is_email, is_ipv4, is_url


@pytest.mark.parametrize(
    "text, expected",
    [
        ("someone@example.com", True),
        ("first.last+tag@mail.example.com", True),
        ("not an email", False),
        ("missing@domain", False),
    ],
)
def test_is_email(text, expected):
    assert is_email(text) is expected


@pytest.mark.parametrize(
    "text, expected",
    [
        ("http://example.com/path", True),
        ("see ftp://example.com", True),
        ("example.com", False),
    ],
)
def test_is_url(text, expected):
    assert is_url(text) is expected


@pytest.mark.parametrize(
    "text, expected",
    [
        ("192.168.0.1", True),
        ("host 10.0.0.255 up", True),
        ("1.2.3", False),
        ("abc", False),
    ],
)
def test_is_ipv4(text, expected):
    assert is_ipv4(text) is expected


@pytest.mark.parametrize(
    "text, expected",
    [("125", True), ("x905y", True), ("123", False), ("015", False)],
)
def test_is_code(text, expected):
    assert is_code(text) is expected