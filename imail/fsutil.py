"""File-system and path checks."""

from __future__ import annotations

import os


def is_file(path) -> bool:
    """Return True if path exists and is not a directory."""
    try:
        return not os.path.isdir(path) and os.path.exists(path)
    except OSError:
        return False


def is_dir(path) -> bool:
    """Return True if path is an existing directory."""
    return os.path.isdir(path)


def is_exist(path) -> bool:
    """Return True if a file or directory exists at path."""
    return os.path.exists(path)


def current_username() -> str:
    """Return the name of the current user, or an empty string."""
    for variable in ("USER", "USERNAME"):
        name = os.environ.get(variable, "")
        if name:
            return name
    try:
        import pwd

        return pwd.getpwuid(os.getuid()).pw_name
    except (ImportError, KeyError, OSError, AttributeError):
        return ""


def is_same_site_url_path(url: str) -> bool:
    """Return True for paths like "/url" but not "//url" or "/\\url"."""
    return len(url) >= 2 and url[0] == "/" and url[1] not in "/\\"


def is_malicious_path(path: str) -> bool:
    """Return True if path is absolute or could climb to a parent directory."""
    return os.path.isabs(path) or ".." in path