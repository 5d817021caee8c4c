"""Typed desktop-session configuration and its on-disk formats.

Covers the login manager (LightDM + GTK greeter), the Openbox autostart
script and root menu, freedesktop desktop entries, Plank dock launchers and
the tty1 startx fallback session.
"""

from __future__ import annotations

import shlex
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import List, Sequence, Union

from .ini import render_ini

OPENBOX_MENU_NS = "http://openbox.org/3.4/menu"
APPLICATIONS_DIR = "/usr/share/applications"


@dataclass(frozen=True)
class DesktopEntry:
    entry_id: str
    name: str
    exec: str
    icon: str
    comment: str = ""
    terminal: bool = False
    categories: Sequence[str] = ()
    type: str = "Application"

    @property
    def path(self) -> str:
        return f"{APPLICATIONS_DIR}/{self.entry_id}.desktop"

    def render(self) -> str:
        values = {"Name": self.name}
        if self.comment:
            values["Comment"] = self.comment
        values["Exec"] = self.exec
        values["Icon"] = self.icon
        values["Terminal"] = "true" if self.terminal else "false"
        values["Type"] = self.type
        if self.categories:
            values["Categories"] = ";".join(self.categories) + ";"
        return render_ini([("Desktop Entry", values)])


@dataclass(frozen=True)
class DockItem:
    launcher_id: str

    @property
    def filename(self) -> str:
        return f"{self.launcher_id}.dockitem"

    def render(self) -> str:
        return render_ini(
            [
                (
                    "PlankDockItemPreferences",
                    {"Launcher": f"file://{APPLICATIONS_DIR}/{self.launcher_id}.desktop"},
                )
            ]
        )


def plank_launchers_dir(home: str) -> str:
    return f"{home.rstrip('/')}/.config/plank/dock1/launchers"


@dataclass(frozen=True)
class LightDMConfig:
    autologin_user: str
    autologin_timeout: int = 0
    user_session: str = "openbox"
    greeter_session: str = "lightdm-gtk-greeter"

    def render(self) -> str:
        return render_ini(
            [
                (
                    "Seat:*",
                    {
                        "autologin-user": self.autologin_user,
                        "autologin-user-timeout": self.autologin_timeout,
                        "user-session": self.user_session,
                        "greeter-session": self.greeter_session,
                    },
                )
            ]
        )


@dataclass(frozen=True)
class GreeterConfig:
    background: str
    theme_name: str = "Adwaita"
    icon_theme_name: str = "Adwaita"
    font_name: str = "DejaVu Sans 11"
    xft_antialias: bool = True
    xft_dpi: int = 96
    xft_hintstyle: str = "slight"
    xft_rgba: str = "rgb"

    def render(self) -> str:
        return render_ini(
            [
                (
                    "greeter",
                    {
                        "background": self.background,
                        "theme-name": self.theme_name,
                        "icon-theme-name": self.icon_theme_name,
                        "font-name": self.font_name,
                        "xft-antialias": self.xft_antialias,
                        "xft-dpi": self.xft_dpi,
                        "xft-hintstyle": self.xft_hintstyle,
                        "xft-rgba": self.xft_rgba,
                    },
                )
            ]
        )


@dataclass(frozen=True)
class AutostartCommand:
    comment: str
    argv: Sequence[str]

    def render(self) -> str:
        return f"# {self.comment}\n{shlex.join(self.argv)} &\n"


def default_autostart(wallpaper: str) -> List[AutostartCommand]:
    return [
        AutostartCommand("Start compositor for transparency and effects", ["picom", "-b"]),
        AutostartCommand("Set wallpaper", ["feh", "--bg-fill", wallpaper]),
        AutostartCommand("Start Plank dock at the bottom", ["plank"]),
        AutostartCommand("Start network manager applet (if available)", ["nm-applet"]),
    ]


def render_autostart(commands: Sequence[AutostartCommand]) -> str:
    return "\n".join(c.render() for c in commands)


@dataclass(frozen=True)
class MenuItem:
    label: str
    execute: str


@dataclass(frozen=True)
class MenuSeparator:
    pass


@dataclass(frozen=True)
class MenuExit:
    label: str = "Log Out"


@dataclass(frozen=True)
class Menu:
    menu_id: str
    label: str
    children: Sequence["MenuNode"] = field(default_factory=list)


MenuNode = Union[MenuItem, MenuSeparator, MenuExit, Menu]


def _menu_element(parent: ET.Element, node: MenuNode) -> None:
    if isinstance(node, MenuItem):
        item = ET.SubElement(parent, "item", {"label": node.label})
        action = ET.SubElement(item, "action", {"name": "Execute"})
        ET.SubElement(action, "execute").text = node.execute
    elif isinstance(node, MenuSeparator):
        ET.SubElement(parent, "separator")
    elif isinstance(node, MenuExit):
        item = ET.SubElement(parent, "item", {"label": node.label})
        ET.SubElement(item, "action", {"name": "Exit"})
    elif isinstance(node, Menu):
        sub = ET.SubElement(parent, "menu", {"id": node.menu_id, "label": node.label})
        for child in node.children:
            _menu_element(sub, child)
    else:
        raise TypeError(f"unsupported menu node: {node!r}")


def render_openbox_menu(root_menu: Menu) -> str:
    doc = ET.Element("openbox_menu", {"xmlns": OPENBOX_MENU_NS})
    _menu_element(doc, root_menu)
    ET.indent(doc, space="  ")
    body = ET.tostring(doc, encoding="unicode")
    return '<?xml version="1.0" encoding="UTF-8"?>\n' + body + "\n"


def render_about_script(*, title: str, text: str, icon: str) -> str:
    argv = [
        "yad",
        f"--title={title}",
        f"--window-icon={icon}",
        f"--image={icon}",
        # yad expands \n itself
        "--text=" + text.replace("\n", "\\n"),
        "--button=OK:0",
        "--center",
        "--width=400",
    ]
    return "#!/bin/bash\n" + " \\\n    ".join(shlex.quote(a) for a in argv) + "\n"


def render_getty_autologin(username: str) -> str:
    # The empty ExecStart= resets the unit's command before overriding it.
    return (
        "[Service]\n"
        "ExecStart=\n"
        f"ExecStart=-/sbin/agetty --autologin {username} --noclear %I $TERM\n"
    )


def render_xinitrc(session_command: str = "openbox-session") -> str:
    return f"#!/bin/sh\nexec {session_command}\n"


def render_startx_profile(tty: str = "/dev/tty1") -> str:
    return (
        f"# Start X automatically on {tty.rsplit('/', 1)[-1]}\n"
        f'if [ -z "$DISPLAY" ] && [ "$(tty)" = "{tty}" ]; then\n'
        "    startx\n"
        "fi\n"
    )
