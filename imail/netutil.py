"""Network lookups."""

from __future__ import annotations

import urllib.error
import urllib.request

PUBLIC_IP_URL = "http://myexternalip.com/raw"
_TIMEOUT = 10.0


def get_public_ip() -> str:
    """Return this host's public IP address as reported by an echo service.

    Raises ConnectionError if the service cannot be reached.
    """
    try:
        with urllib.request.urlopen(PUBLIC_IP_URL, timeout=_TIMEOUT) as response:
            body = response.read()
    except urllib.error.HTTPError as exc:
        body = exc.read()
    except (OSError, ValueError) as exc:
        raise ConnectionError(f"cannot reach {PUBLIC_IP_URL}") from exc
    return body.decode("utf-8", "replace")