# imail

Building blocks for a mail server written in Python: a cron scheduler that works to the second, the modified UTF-7 encoding used for IMAP mailbox names, DKIM key generation, parsing of mail headers, and a set of small helpers.

## Modules

- `imail.cron.parser`: `parse`, `parse_standard`, `Parser`, `ParseOption`, `parse_descriptor` and `parse_duration`.
  - `parse` accepts six-field specs, with seconds first and the day of week optional.
  - `parse_standard` accepts the five-field crontab form.
  - Both also accept the descriptors `@yearly`, `@annually`, `@monthly`, `@weekly`, `@daily`, `@midnight`, `@hourly` and `@every <duration>`, for example `@every 1h30m`.
  - An invalid spec raises `CronParseError`, a subclass of `ValueError`.
- `imail.cron.spec`: the schedules themselves.
  - `SpecSchedule` stores one bit set per field.
  - `ConstantDelaySchedule` is a fixed interval, and `every(duration)` builds one.
  - `Schedule.next(t)` returns the next activation after `t`. For a spec that cannot be met within five years it returns `None`.
- `imail.cron.runner`: `Cron` and `Entry`.
  - `Cron.start()` runs the scheduler on a background thread. `Cron.run()` runs it in the calling thread.
  - Each job runs in its own thread. A job is either a callable or an object with a `run()` method.
  - `Cron.entries()` returns copies of the entries with their `next`, `prev` and `exec_times`.
  - `Cron.stop()` stops the scheduler. Jobs that are already running are left to finish.
- `imail.utf7`: `encode` and `decode` for modified UTF-7 (RFC 3501). Invalid input raises `Utf7Error`.
- `imail.mailparse`:
  - `get_mail_subject` and `get_mail_from` read the `Subject:` and `From:` headers. They decode base64 encoded words in UTF-8, and in GBK for the subject.
  - `get_mail_send` and `get_mail_return_to_sender` fill in the templates `conf/tpl/send.tpl`, `conf/tpl/return_to_sender.tpl` and `conf/tpl/return_to_sender_html.tpl` under a working directory that you pass in.
  - `run_hook` runs `conf/hook/<script>` with the current Python interpreter and returns the script's output. It raises `HookError` if hooks are disabled, if the script is missing, or if the script fails.
- `imail.dkim`:
  - `make_dkim_conf_file(path, domain)` creates a 1024-bit RSA key under `path/dkim/<domain>/`. It writes the files `default.private`, `default.txt` and `default.val`, and returns the DNS TXT record text. Keys that already exist are kept.
  - `get_domain_dkim_val` returns the `v=DKIM1;k=rsa;p=...` value.
  - `check_domain_a` checks that a domain resolves to this host's public IP. It raises `DkimError` otherwise.
- `imail.paginater`: `Paginater` and `Page` do page-number calculations for list views. A page number of `-1` stands for a gap.
- `imail.wrap`: `wrap` folds a header paragraph. Once a line is past 76 bytes, the next space becomes CRLF followed by a tab.
- `imail.convert`: `StrTo` converts strings to numbers. The module also has `to_str`, `pow_int`, `hex_str_to_int` and `int_to_hex_str`.
- `imail.textutil`: text, file, base64, MD5 and formatting helpers. Among them are `time_since_pro`, `file_size`, `size_format`, `is_numeric`, `to_snake_case`, `check_standard_mail` and `filter_address_body`.
- `imail.fsutil`: path checks, namely `is_file`, `is_dir`, `is_exist`, `is_malicious_path` and `is_same_site_url_path`. It also has `current_username`.
- `imail.patterns`: loose regular-expression checks, namely `is_email`, `is_url`, `is_ipv4` and `is_code`.
- `imail.netutil`: `get_public_ip` asks an external echo service for this host's public address.

## Installation

```
pip install .
```

## Examples

Schedule a job:

```python
from imail.cron.runner import Cron

cron = Cron()
cron.add_func("heartbeat", "*/10 * * * * *", lambda: print("tick"))
cron.start()
# ...
cron.stop()
```

Encode and decode IMAP mailbox names:

```python
from imail import utf7

utf7.encode("~peter/mail/台北/日本語")   # '~peter/mail/&U,BTFw-/&ZeVnLIqe-'
utf7.decode("&Jjo-!")                  # '☺!'
```

Read mail headers:

```python
from imail.mailparse import get_mail_subject, get_mail_from

get_mail_subject("Subject: =?utf-8?B?5rWL6K+V?=")      # '测试'
get_mail_from("From: <someone@example.com>")           # 'someone'
```

Paginate a list:

```python
from imail.paginater import Paginater

p = Paginater(100, 10, 9, 7)
[page.num for page in p.pages()]   # [-1, 4, 5, 6, 7, 8, 9, 10]
```

## What this package does not do

This package contains helpers only. It does not have:

- an SMTP, POP3 or IMAP server, and no command to start one;
- mail storage, a database, or a configuration loader. Values such as the working directory, the version and the domain are passed to the functions as arguments;
- spam checking.

## Tests

```
pip install .[test]
pytest
```