from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Sequence

from .files import write_file

logger = logging.getLogger(__name__)

LIVE_KERNEL = "/live/vmlinuz"
LIVE_INITRD = "/live/initrd"


@dataclass(frozen=True)
class GrubMenuEntry:
    title: str
    kernel: str
    initrd: str
    args: Sequence[str] = ()

    def render(self) -> str:
        cmdline = " ".join([self.kernel, *self.args])
        return (
            f'menuentry "{self.title}" {{\n'
            f"    linux {cmdline}\n"
            f"    initrd {self.initrd}\n"
            "}\n"
        )


@dataclass(frozen=True)
class GrubConfig:
    entries: Sequence[GrubMenuEntry]
    timeout: int = 10
    default: int = 0
    modules: Sequence[str] = ("all_video", "gfxterm")
    gfxmode: str = "auto"
    menu_color_normal: str = "white/black"
    menu_color_highlight: str = "black/light-gray"

    def render(self) -> str:
        head: List[str] = [
            f"set timeout={self.timeout}",
            f"set default={self.default}",
            "",
        ]
        head += [f"insmod {m}" for m in self.modules]
        head += [
            f"set gfxmode={self.gfxmode}",
            "terminal_output gfxterm",
            "",
            f"set menu_color_normal={self.menu_color_normal}",
            f"set menu_color_highlight={self.menu_color_highlight}",
            "",
        ]
        return "\n".join(head) + "\n" + "\n".join(e.render() for e in self.entries)


@dataclass(frozen=True)
class BootVariant:
    label: str
    args: Sequence[str] = field(default_factory=list)


LIVE_VARIANTS: Sequence[BootVariant] = (
    BootVariant("Live (Openbox)", ["quiet", "splash"]),
    BootVariant("Live (Safe Mode)", ["nomodeset"]),
    BootVariant("Live (Text Mode)", ["systemd.unit=multi-user.target"]),
)


def live_boot_config(
    *,
    distro_name: str,
    kernel_args: Sequence[str] = ("boot=live",),
    timeout: int = 10,
    kernel: str = LIVE_KERNEL,
    initrd: str = LIVE_INITRD,
) -> GrubConfig:
    """Normal, safe-mode and text-mode entries over one kernel/initrd pair."""

    entries = [
        GrubMenuEntry(
            title=f"{distro_name} - {v.label}",
            kernel=kernel,
            initrd=initrd,
            args=[*kernel_args, *v.args],
        )
        for v in LIVE_VARIANTS
    ]
    return GrubConfig(entries=entries, timeout=timeout)


def write_grub_config(iso_dir: str | Path, cfg: GrubConfig, *, dry_run: bool = False) -> Path:
    p = write_file(iso_dir, "/boot/grub/grub.cfg", cfg.render(), dry_run=dry_run)
    logger.info("Wrote GRUB config: %s (%d entries)", str(p), len(cfg.entries))
    return p
