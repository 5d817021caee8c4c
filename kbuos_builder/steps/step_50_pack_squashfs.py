from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Sequence

from ..context import BuildCtx
from ..lib.chroot import ensure_unmounted
from ..lib.command import run_cmd

logger = logging.getLogger(__name__)


def mksquashfs_argv(rootfs: Path, image: Path, *, compression: str) -> List[str]:
    # /boot is already extracted into the ISO tree
    return [
        "mksquashfs",
        str(rootfs),
        str(image),
        "-comp",
        compression,
        "-e",
        "boot",
        "-noappend",
    ]


class PackSquashfsStep:
    step_id = "50_pack_squashfs"
    description = "Compress the rootfs into filesystem.squashfs"

    def requires(self, ctx: BuildCtx) -> Sequence[Path]:
        return [ctx.rootfs_dir, ctx.live_dir]

    def produces(self, ctx: BuildCtx) -> Sequence[Path]:
        return [ctx.squashfs_path]

    def run(self, ctx: BuildCtx, state: Dict[str, Any]) -> None:
        logger.info("Creating squashfs image (this may take a while)...")

        ensure_unmounted(ctx.rootfs_dir, dry_run=ctx.dry_run)

        run_cmd(
            mksquashfs_argv(ctx.rootfs_dir, ctx.squashfs_path, compression=ctx.cfg.squashfs_compression),
            capture=False,
            dry_run=ctx.dry_run,
        )
        logger.info("Squashfs image created: %s", ctx.squashfs_path)
