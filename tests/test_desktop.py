"""Tests for generated desktop-session configuration files."""

import unittest
import xml.etree.ElementTree as ET

from kbuos_builder.lib.desktop import (
    OPENBOX_MENU_NS,
    DesktopEntry,
    DockItem,
    GreeterConfig,
    LightDMConfig,
    Menu,
    MenuExit,
    MenuItem,
    MenuSeparator,
    default_autostart,
    plank_launchers_dir,
    render_about_script,
    render_autostart,
    render_getty_autologin,
    render_openbox_menu,
    render_xinitrc,
)
from kbuos_builder.lib.identity import render_hosts, render_locale_gen
from kbuos_builder.lib.ini import parse_ini, render_ini


class IniTest(unittest.TestCase):
    def test_keys_keep_case_without_spaces(self) -> None:
        text = render_ini([("Desktop Entry", {"Name": "X", "Terminal": False})])

        self.assertEqual("[Desktop Entry]\nName=X\nTerminal=false\n", text)

    def test_duplicate_sections_rejected(self) -> None:
        with self.assertRaises(ValueError):
            render_ini([("a", {}), ("a", {})])


class DesktopFilesTest(unittest.TestCase):
    def test_desktop_entry(self) -> None:
        entry = DesktopEntry(
            entry_id="obs-kbu",
            name="KBU OBS",
            comment="Student portal",
            exec="firefox-esr https://obs.karabuk.edu.tr",
            icon="applications-internet",
            categories=["Network", "Education"],
        )

        parsed = parse_ini(entry.render())["Desktop Entry"]

        self.assertEqual("/usr/share/applications/obs-kbu.desktop", entry.path)
        self.assertEqual("KBU OBS", parsed["Name"])
        self.assertEqual("firefox-esr https://obs.karabuk.edu.tr", parsed["Exec"])
        self.assertEqual("Network;Education;", parsed["Categories"])
        self.assertEqual("false", parsed["Terminal"])
        self.assertEqual("Application", parsed["Type"])

    def test_dock_item(self) -> None:
        item = DockItem("xterm")

        self.assertEqual("xterm.dockitem", item.filename)
        self.assertEqual(
            "[PlankDockItemPreferences]\nLauncher=file:///usr/share/applications/xterm.desktop\n",
            item.render(),
        )
        self.assertEqual("/home/user/.config/plank/dock1/launchers", plank_launchers_dir("/home/user/"))

    def test_lightdm_autologin(self) -> None:
        parsed = parse_ini(LightDMConfig(autologin_user="user").render())["Seat:*"]

        self.assertEqual("user", parsed["autologin-user"])
        self.assertEqual("0", parsed["autologin-user-timeout"])
        self.assertEqual("openbox", parsed["user-session"])
        self.assertEqual("lightdm-gtk-greeter", parsed["greeter-session"])

    def test_greeter_background(self) -> None:
        text = GreeterConfig(background="/usr/share/backgrounds/kbuos/wallpaper.jpeg").render()
        parsed = parse_ini(text)["greeter"]

        self.assertEqual("/usr/share/backgrounds/kbuos/wallpaper.jpeg", parsed["background"])
        self.assertEqual("true", parsed["xft-antialias"])
        self.assertEqual("96", parsed["xft-dpi"])

    def test_autostart_backgrounds_every_command(self) -> None:
        text = render_autostart(default_autostart("/usr/share/backgrounds/kbuos/wallpaper.jpeg"))

        commands = [line for line in text.splitlines() if line and not line.startswith("#")]
        self.assertEqual(
            [
                "picom -b &",
                "feh --bg-fill /usr/share/backgrounds/kbuos/wallpaper.jpeg &",
                "plank &",
                "nm-applet &",
            ],
            commands,
        )

    def test_openbox_menu(self) -> None:
        menu = Menu(
            "root-menu",
            "KbuOS",
            [
                MenuItem("Terminal", "xterm"),
                MenuSeparator(),
                Menu("system-menu", "System", [MenuItem("About KbuOS", "/usr/local/bin/about-kbuos")]),
                MenuExit(),
            ],
        )

        text = render_openbox_menu(menu)
        self.assertTrue(text.startswith('<?xml version="1.0" encoding="UTF-8"?>\n'))

        ns = {"ob": OPENBOX_MENU_NS}
        doc = ET.fromstring(text.split("\n", 1)[1])
        root = doc.find("ob:menu", ns)
        self.assertEqual("root-menu", root.get("id"))
        self.assertEqual("KbuOS", root.get("label"))
        self.assertEqual("xterm", root.find("ob:item/ob:action/ob:execute", ns).text)
        self.assertIsNotNone(root.find("ob:separator", ns))
        system = root.find("ob:menu", ns)
        self.assertEqual("System", system.get("label"))
        items = root.findall("ob:item", ns)
        self.assertEqual("Log Out", items[-1].get("label"))
        self.assertEqual("Exit", items[-1].find("ob:action", ns).get("name"))

    def test_about_script(self) -> None:
        text = render_about_script(title="About KbuOS", text="<b>KbuOS</b>\n\nVersion: 1.0", icon="/i.png")

        self.assertTrue(text.startswith("#!/bin/bash\nyad "))
        self.assertIn("'--title=About KbuOS'", text)
        self.assertIn("--image=/i.png", text)
        self.assertIn("Version: 1.0", text)
        self.assertNotIn("\n\nVersion", text)

    def test_startx_session_files(self) -> None:
        self.assertIn("--autologin user --noclear", render_getty_autologin("user"))
        self.assertTrue(render_getty_autologin("user").startswith("[Service]\nExecStart=\n"))
        self.assertEqual("#!/bin/sh\nexec openbox-session\n", render_xinitrc())


class IdentityFilesTest(unittest.TestCase):
    def test_hosts(self) -> None:
        text = render_hosts("KbuOS")

        self.assertIn("127.0.1.1   KbuOS\n", text)
        self.assertIn("::1         localhost ip6-localhost ip6-loopback\n", text)

    def test_locale_gen(self) -> None:
        self.assertEqual("en_US.UTF-8 UTF-8\n", render_locale_gen("en_US.UTF-8"))
        self.assertEqual("tr_TR ISO-8859-1\n", render_locale_gen("tr_TR"))


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
