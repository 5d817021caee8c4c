from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Any, Dict, Sequence

from ..context import BuildCtx
from ..lib.files import recreate_dir
from ..lib.kernel import find_boot_files

logger = logging.getLogger(__name__)


class BuildIsoLayoutStep:
    step_id = "40_build_iso_layout"
    description = "Create the ISO tree and copy the kernel and initrd"

    def requires(self, ctx: BuildCtx) -> Sequence[Path]:
        return [ctx.rootfs_dir / "boot"]

    def produces(self, ctx: BuildCtx) -> Sequence[Path]:
        return [ctx.grub_dir, ctx.kernel_path, ctx.initrd_path]

    def run(self, ctx: BuildCtx, state: Dict[str, Any]) -> None:
        logger.info("Creating ISO directory structure...")
        recreate_dir(ctx.iso_dir, dry_run=ctx.dry_run)

        if ctx.dry_run:
            logger.info("Would create %s and %s", ctx.grub_dir, ctx.live_dir)
            logger.info("Would copy kernel/initrd from %s", ctx.rootfs_dir / "boot")
            return

        ctx.grub_dir.mkdir(parents=True, exist_ok=True)
        ctx.live_dir.mkdir(parents=True, exist_ok=True)

        boot = find_boot_files(ctx.rootfs_dir / "boot", version=ctx.cfg.kernel_version)
        shutil.copy2(boot.kernel, ctx.kernel_path)
        shutil.copy2(boot.initrd, ctx.initrd_path)

        state.setdefault("summary", {})["kernel_version"] = boot.version
        logger.info("ISO structure created (kernel %s)", boot.version)
