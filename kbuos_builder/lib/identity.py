from __future__ import annotations

import re

_HOSTNAME_LABEL = re.compile(r"^(?!-)[A-Za-z0-9-]{1,63}(?<!-)$")


def is_valid_hostname(hostname: str) -> bool:
    if not hostname or len(hostname) > 253:
        return False
    return all(_HOSTNAME_LABEL.match(label) for label in hostname.split("."))


def render_hostname(hostname: str) -> str:
    return hostname + "\n"


def render_hosts(hostname: str) -> str:
    return "\n".join(
        [
            "127.0.0.1   localhost",
            f"127.0.1.1   {hostname}",
            "",
            "::1         localhost ip6-localhost ip6-loopback",
            "ff02::1     ip6-allnodes",
            "ff02::2     ip6-allrouters",
            "",
        ]
    )


def locale_charset(locale: str) -> str:
    """en_US.UTF-8 -> UTF-8; a bare locale defaults to ISO-8859-1 like locale-gen."""

    if "." in locale:
        return locale.split(".", 1)[1].split("@", 1)[0]
    return "ISO-8859-1"


def render_locale_gen(locale: str) -> str:
    return f"{locale} {locale_charset(locale)}\n"
