"""Tests for the GRUB boot menu."""

import tempfile
import unittest
from pathlib import Path

from kbuos_builder.lib.bootloader import (
    LIVE_INITRD,
    LIVE_KERNEL,
    GrubMenuEntry,
    live_boot_config,
    write_grub_config,
)


class LiveBootConfigTest(unittest.TestCase):
    def test_three_entries_share_kernel_and_initrd(self) -> None:
        cfg = live_boot_config(distro_name="KbuOS")

        self.assertEqual(3, len(cfg.entries))
        self.assertEqual({LIVE_KERNEL}, {e.kernel for e in cfg.entries})
        self.assertEqual({LIVE_INITRD}, {e.initrd for e in cfg.entries})

    def test_entries_differ_only_in_command_line(self) -> None:
        cfg = live_boot_config(distro_name="KbuOS")

        self.assertEqual(
            [
                ["boot=live", "quiet", "splash"],
                ["boot=live", "nomodeset"],
                ["boot=live", "systemd.unit=multi-user.target"],
            ],
            [list(e.args) for e in cfg.entries],
        )
        self.assertEqual(
            ["KbuOS - Live (Openbox)", "KbuOS - Live (Safe Mode)", "KbuOS - Live (Text Mode)"],
            [e.title for e in cfg.entries],
        )

    def test_custom_kernel_args_apply_to_every_entry(self) -> None:
        cfg = live_boot_config(distro_name="X", kernel_args=["boot=live", "toram"])

        for e in cfg.entries:
            self.assertEqual(["boot=live", "toram"], list(e.args[:2]))

    def test_render_matches_grub_syntax(self) -> None:
        text = live_boot_config(distro_name="KbuOS", timeout=10).render()

        self.assertTrue(text.startswith("set timeout=10\nset default=0\n\ninsmod all_video\ninsmod gfxterm\n"))
        self.assertIn("terminal_output gfxterm\n", text)
        self.assertIn("set menu_color_highlight=black/light-gray\n", text)
        self.assertIn(
            'menuentry "KbuOS - Live (Safe Mode)" {\n'
            "    linux /live/vmlinuz boot=live nomodeset\n"
            "    initrd /live/initrd\n"
            "}\n",
            text,
        )
        self.assertEqual(3, text.count("menuentry "))

    def test_entry_render(self) -> None:
        entry = GrubMenuEntry(title="T", kernel="/k", initrd="/i", args=["a", "b"])

        self.assertEqual('menuentry "T" {\n    linux /k a b\n    initrd /i\n}\n', entry.render())

    def test_write_grub_config(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            p = write_grub_config(tmp, live_boot_config(distro_name="KbuOS"))

            self.assertEqual(Path(tmp) / "boot/grub/grub.cfg", p)
            self.assertIn("KbuOS - Live (Text Mode)", p.read_text(encoding="utf-8"))


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
