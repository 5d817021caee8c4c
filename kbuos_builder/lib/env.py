from __future__ import annotations

import os


class PrivilegeError(RuntimeError):
    pass


def is_root() -> bool:
    return os.geteuid() == 0


def require_root(prog: str = "kbuos-build") -> None:
    """Fail before any work is done when not running as root."""

    if not is_root():
        raise PrivilegeError(f"This tool must be run as root. Use: sudo {prog}")
