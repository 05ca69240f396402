"""DKIM key files for mail domains."""

from __future__ import annotations

import base64
import os
import socket
from pathlib import Path

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from imail.netutil import get_public_ip
from imail.textutil import read_file, write_file

_KEY_BITS = 1024
_PRIVATE_NAME = "default.private"
_TEXT_NAME = "default.txt"
_VALUE_NAME = "default.val"


class DkimError(Exception):
    """A domain is not set up as DKIM needs it."""


def _make_rsa() -> tuple[bytes, bytes]:
    """Return a new private key as PKCS#1 PEM and its public key as PKIX DER."""
    key = rsa.generate_private_key(public_exponent=65537, key_size=_KEY_BITS)
    private_pem = key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.TraditionalOpenSSL,
        serialization.NoEncryption(),
    )
    public_der = key.public_key().public_bytes(
        serialization.Encoding.DER,
        serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return private_pem, public_der


def _domain_dir(path, domain: str) -> Path:
    return Path(path) / "dkim" / domain


def check_domain_a(domain: str) -> str:
    """Check that domain resolves to this host's public IP and return that IP.

    Raises DkimError when the lookup fails or no address matches.
    """
    try:
        infos = socket.getaddrinfo(domain, None)
    except OSError as exc:
        raise DkimError(f"cannot resolve {domain}") from exc
    public_ip = get_public_ip()
    wanted = public_ip.casefold()
    if any(str(info[4][0]).casefold() == wanted for info in infos):
        return public_ip
    raise DkimError("IP not configured by domain name!")


def make_dkim_file(path, domain: str) -> str:
    """Create the key files for domain unless present; return the DNS record text.

    The domain's directory under path/dkim must already exist.
    """
    directory = _domain_dir(path, domain)
    private_file = directory / _PRIVATE_NAME
    text_file = directory / _TEXT_NAME
    value_file = directory / _VALUE_NAME

    if private_file.exists():
        try:
            return read_file(text_file)
        except OSError:
            return ""

    private_pem, public_der = _make_rsa()
    private_file.write_bytes(private_pem)

    public = base64.b64encode(public_der).decode("ascii")
    record = (
        f"default._domainkey\tIN\tTXT\t(\r\nv=DKIM1;k=rsa;p={public}\r\n)\r\n"
        f"----- DKIM key default for {domain}"
    )
    write_file(text_file, record)
    write_file(value_file, f"v=DKIM1;k=rsa;p={public}")
    return record


def make_dkim_conf_file(path, domain: str) -> str:
    """Create path/dkim/<domain> if needed, then the key files; return the record text."""
    os.makedirs(_domain_dir(path, domain), exist_ok=True)
    return make_dkim_file(path, domain)


def get_domain_dkim_val(path, domain: str) -> str:
    """Return the DKIM TXT value for domain, creating keys first when missing."""
    try:
        make_dkim_conf_file(path, domain)
    except OSError:
        pass
    return read_file(_domain_dir(path, domain) / _VALUE_NAME)