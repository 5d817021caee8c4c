from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .build_config import BuildConfig


@dataclass(frozen=True)
class BuildCtx:
    cfg: BuildConfig
    dry_run: bool = False

    @property
    def rootfs_dir(self) -> Path:
        return self.cfg.rootfs_dir

    @property
    def iso_dir(self) -> Path:
        return self.cfg.iso_dir

    @property
    def live_dir(self) -> Path:
        return self.iso_dir / "live"

    @property
    def grub_dir(self) -> Path:
        return self.iso_dir / "boot/grub"

    @property
    def kernel_path(self) -> Path:
        return self.live_dir / "vmlinuz"

    @property
    def initrd_path(self) -> Path:
        return self.live_dir / "initrd"

    @property
    def squashfs_path(self) -> Path:
        return self.live_dir / "filesystem.squashfs"

    @property
    def grub_cfg_path(self) -> Path:
        return self.grub_dir / "grub.cfg"

    @property
    def output_iso(self) -> Path:
        return self.cfg.output_iso

    @property
    def checksum_path(self) -> Path:
        return self.output_iso.with_name(self.output_iso.name + ".sha256")
