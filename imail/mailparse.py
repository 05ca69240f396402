"""Reading mail headers, building outgoing mail from templates, running hooks."""

from __future__ import annotations

import re
import subprocess
import sys
from datetime import datetime
from pathlib import Path

from imail.textutil import base64_decode, base64_encode, convert_to_string, rand_string

_SUBJECT = re.compile(r"Subject: (.*)")
_FROM = re.compile(r"From: (.*)")
_DAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
_MONTHS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)
_BOUNDARY_LENGTH = 20
_RETURN_SUBJECT = "系统退信"


class HookError(RuntimeError):
    """A hook script could not be run or failed; output holds what it printed."""

    def __init__(self, message: str, output: str = "") -> None:
        super().__init__(message)
        self.output = output


def _header_value(content: str, pattern: re.Pattern, name: str) -> str:
    match = pattern.search(content)
    if match is None:
        raise ValueError(f"no {name} header in content")
    return match.group(1).strip()


def _has_encoded_word(value: str, charset: str) -> bool:
    return any(
        f"=?{variant}?B?" in value for variant in (charset.lower(), charset.upper())
    )


def _strip_encoded_word(value: str, charset: str) -> str:
    for variant in (charset.lower(), charset.upper()):
        value = value.replace(f"=?{variant}?B?", "")
    return value.replace("?=", "").strip()


def get_mail_subject(content: str) -> str:
    """Return the Subject header of content, decoding UTF-8 or GBK base64 words."""
    value = _header_value(content, _SUBJECT, "Subject")

    if _has_encoded_word(value, "utf-8"):
        value = _strip_encoded_word(value, "utf-8")
        try:
            return base64_decode(value)
        except ValueError:
            pass

    if _has_encoded_word(value, "gbk"):
        value = _strip_encoded_word(value, "gbk")
        try:
            decoded = base64_decode(value)
        except ValueError:
            pass
        else:
            return convert_to_string(decoded, "gbk", "utf-8")
    return value


def get_mail_from(content: str) -> str:
    """Return the sender's display name, or the local part when there is none."""
    value = _header_value(content, _FROM, "From")
    name, separator, rest = value.partition("<")
    name = name.strip().strip('"')

    if not name:
        if not separator:
            raise ValueError("no sender in From header")
        return rest.strip(">").partition("@")[0]

    if _has_encoded_word(name, "utf-8"):
        name = _strip_encoded_word(name, "utf-8")
        try:
            return base64_decode(name)
        except ValueError:
            pass
    return name


def _send_time() -> str:
    moment = datetime.now().astimezone()
    return (
        f"{_DAYS[moment.weekday()]}, {moment.day:02d} {_MONTHS[moment.month - 1]} "
        f"{moment.year} {moment:%H:%M:%S} {moment:%z} ({moment.tzname()})"
    )


def _template(work_dir, name: str) -> str:
    return (Path(work_dir) / "conf" / "tpl" / name).read_text(encoding="utf-8")


def _fill(template: str, values: dict[str, str]) -> str:
    for key, value in values.items():
        template = template.replace("{" + key + "}", value)
    return template


def get_mail_send(work_dir, version: str, from_addr: str, to: str, subject: str, msg: str) -> str:
    """Build an outgoing message from conf/tpl/send.tpl under work_dir."""
    template = _template(work_dir, "send.tpl")
    return _fill(
        template,
        {
            "MAIL_FROM": from_addr,
            "RCPT_TO": to,
            "SUBJECT": subject,
            "TIME": _send_time(),
            "VERSION": f"imail/{version}",
            "CONTENT": base64_encode(msg),
            "BOUNDARY_LINE": rand_string(_BOUNDARY_LENGTH),
        },
    )


def get_mail_return_to_sender(
    work_dir, version: str, domain: str, to: str, err_to_mail: str, err_content: str, msg: str
) -> str:
    """Build a bounce message telling to that delivery of err_content failed."""
    send_subject = get_mail_subject(err_content)
    postmaster = f"postmaster@{domain}"
    send_time = _send_time()
    boundary = rand_string(_BOUNDARY_LENGTH)

    template = _template(work_dir, "return_to_sender.tpl")
    html_template = _template(work_dir, "return_to_sender_html.tpl")

    html = _fill(
        html_template,
        {
            "TILTE": "sc",
            "ERR_MSG": msg,
            "SEND_SUBJECT": send_subject,
            "ERR_TO_MAIL": err_to_mail,
        },
    )
    return _fill(
        template,
        {
            "MAIL_FROM": postmaster,
            "RCPT_TO": to,
            "SUBJECT": _RETURN_SUBJECT,
            "TIME": send_time,
            "VERSION": f"imail/{version}",
            "CONTENT": base64_encode(html),
            "BOUNDARY_LINE": boundary,
        },
    )


def run_hook(work_dir, script_name: str, mail_id: int, enabled: bool) -> str:
    """Run conf/hook/<script_name> with the mail id and return its combined output."""
    if not enabled:
        raise HookError("hooks are disabled")
    script = Path(work_dir) / "conf" / "hook" / script_name
    if not script.exists():
        raise HookError(f"hook script does not exist: {script}")
    try:
        completed = subprocess.run(
            [sys.executable, str(script), str(mail_id)],
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            check=False,
        )
    except OSError as exc:
        raise HookError(f"cannot run hook script: {script}") from exc
    output = completed.stdout.decode("utf-8", "replace")
    if completed.returncode != 0:
        raise HookError(f"hook exited with status {completed.returncode}", output)
    return output