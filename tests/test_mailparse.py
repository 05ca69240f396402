import base64
import re

import pytest

from imail.mailparse import (
    HookError,
    get_mail_from,
    get_mail_return_to_sender,
    get_mail_send,
    get_mail_subject,
    run_hook,
)


@pytest.mark.parametrize(
    "content, expected",
    [
        ("From: =?UTF-8?B?6Zi/6YeM5LqR?= <service@example.com>", "阿里云"),
        ("From: The Sourcegraph Team <team@example.com>", "The Sourcegraph Team"),
        ('From: "=?utf-8?B?NjI3MjkzMDcy?="<number@example.com>', "627293072"),
        ("From: <postmaster@example.com>", "postmaster"),
    ],
)
def test_get_mail_from(content, expected):
    assert get_mail_from(content) == expected


@pytest.mark.parametrize(
    "content, expected",
    [
        (
            "Subject: [GitHub] A third-party OAuth application has been added to your",
            "[GitHub] A third-party OAuth application has been added to your",
        ),
        ("Subject: =?utf-8?B?5rWL6K+V?=", "测试"),
        ("Subject: =?GBK?B?suLK1A==?=", "测试"),
    ],
)
def test_get_mail_subject(content, expected):
    assert get_mail_subject(content) == expected


def test_subject_found_among_other_headers():
    content = "From: a@example.com\r\nSubject: hello\r\nTo: b@example.com\r\n"
    assert get_mail_subject(content) == "hello"


def test_missing_subject_raises():
    with pytest.raises(ValueError):
        get_mail_subject("From: a@example.com")


def test_missing_from_raises():
    with pytest.raises(ValueError):
        get_mail_from("Subject: hi")


def _write_templates(tmp_path):
    tpl = tmp_path / "conf" / "tpl"
    tpl.mkdir(parents=True)
    body = (
        "FROM={MAIL_FROM}\nTO={RCPT_TO}\nSUBJECT={SUBJECT}\nVERSION={VERSION}\n"
        "BOUNDARY={BOUNDARY_LINE}\nCONTENT={CONTENT}\nTIME={TIME}\n"
    )
    (tpl / "send.tpl").write_text(body, encoding="utf-8")
    (tpl / "return_to_sender.tpl").write_text(body, encoding="utf-8")
    (tpl / "return_to_sender_html.tpl").write_text(
        "{TILTE}|{ERR_MSG}|{SEND_SUBJECT}|{ERR_TO_MAIL}", encoding="utf-8"
    )


def _fields(message):
    return dict(line.split("=", 1) for line in message.splitlines())


TIME_SHAPE = re.compile(
    r"[A-Z][a-z]{2}, \d{2} [A-Z][a-z]{2} \d{4} \d{2}:\d{2}:\d{2} [+-]\d{4} \(.*\)"
)


def test_get_mail_send_fills_template(tmp_path):
    _write_templates(tmp_path)
    message = get_mail_send(
        tmp_path, "1.0", "alice@example.com", "bob@example.com", "Hi", "body text"
    )
    fields = _fields(message)
    assert fields["FROM"] == "alice@example.com"
    assert fields["TO"] == "bob@example.com"
    assert fields["SUBJECT"] == "Hi"
    assert fields["VERSION"] == "imail/1.0"
    assert base64.b64decode(fields["CONTENT"]).decode("utf-8") == "body text"
    assert re.fullmatch(r"[A-Z]{20}", fields["BOUNDARY"])
    assert TIME_SHAPE.fullmatch(fields["TIME"])


def test_get_mail_send_missing_template(tmp_path):
    with pytest.raises(FileNotFoundError):
        get_mail_send(tmp_path, "1.0", "a@example.com", "b@example.com", "s", "m")


def test_get_mail_return_to_sender(tmp_path):
    _write_templates(tmp_path)
    message = get_mail_return_to_sender(
        tmp_path,
        "2.0",
        "example.com",
        "alice@example.com",
        "bob@example.com",
        "Subject: =?utf-8?B?5rWL6K+V?=",
        "boom",
    )
    fields = _fields(message)
    assert fields["FROM"] == "postmaster@example.com"
    assert fields["TO"] == "alice@example.com"
    assert fields["SUBJECT"] == "系统退信"
    assert fields["VERSION"] == "imail/2.0"
    html = base64.b64decode(fields["CONTENT"]).decode("utf-8")
    assert html == "sc|boom|测试|bob@example.com"
    assert re.fullmatch(r"[A-Z]{20}", fields["BOUNDARY"])


def _hook_dir(tmp_path):
    hook = tmp_path / "conf" / "hook"
    hook.mkdir(parents=True)
    return hook


def test_run_hook_disabled(tmp_path):
    with pytest.raises(HookError):
        run_hook(tmp_path, "hook.py", 1, False)


def test_run_hook_missing_script(tmp_path):
    _hook_dir(tmp_path)
    with pytest.raises(HookError):
        run_hook(tmp_path, "absent.py", 1, True)


def test_run_hook_passes_id(tmp_path):
    (_hook_dir(tmp_path) / "hook.py").write_text(
        "import sys\nprint('mail', sys.argv[1])\n", encoding="utf-8"
    )
    assert run_hook(tmp_path, "hook.py", 42, True).strip() == "mail 42"


def test_run_hook_failure_keeps_output(tmp_path):
    (_hook_dir(tmp_path) / "bad.py").write_text(
        "import sys\nprint('bad')\nsys.exit(3)\n", encoding="utf-8"
    )
    with pytest.raises(HookError) as info:
        run_hook(tmp_path, "bad.py", 7, True)
    assert info.value.output.strip() == "bad"