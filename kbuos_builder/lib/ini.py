from __future__ import annotations

import configparser
import io
from typing import Mapping, Sequence, Tuple

Section = Tuple[str, Mapping[str, object]]


def _fmt_value(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def render_ini(sections: Sequence[Section]) -> str:
    """Serialize [section] key=value files (lightdm, desktop entries, plank).

    Keys keep their case and no spaces are put around '='.
    """

    parser = configparser.ConfigParser(interpolation=None)
    parser.optionxform = str  # type: ignore[assignment]
    for name, values in sections:
        if parser.has_section(name):
            raise ValueError(f"duplicate section: {name}")
        parser.add_section(name)
        for key, value in values.items():
            parser.set(name, key, _fmt_value(value))

    buf = io.StringIO()
    parser.write(buf, space_around_delimiters=False)
    return buf.getvalue().rstrip("\n") + "\n"


def parse_ini(text: str) -> configparser.ConfigParser:
    parser = configparser.ConfigParser(interpolation=None)
    parser.optionxform = str  # type: ignore[assignment]
    parser.read_string(text)
    return parser
