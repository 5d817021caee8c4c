from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Sequence

from ..context import BuildCtx
from ..lib.chroot import ensure_unmounted, mounted_pseudo_filesystems
from ..lib.files import recreate_dir
from ..lib.pkg import apt_clean, apt_install, apt_update, debootstrap_rootfs

logger = logging.getLogger(__name__)


class BootstrapRootfsStep:
    step_id = "20_bootstrap_rootfs"
    description = "Create the base rootfs and install packages inside it"

    def requires(self, ctx: BuildCtx) -> Sequence[Path]:
        return []

    def produces(self, ctx: BuildCtx) -> Sequence[Path]:
        return [ctx.rootfs_dir / "etc", ctx.rootfs_dir / "usr"]

    def run(self, ctx: BuildCtx, state: Dict[str, Any]) -> None:
        cfg = ctx.cfg
        rootfs = ctx.rootfs_dir

        # Never clear a tree that still has the host's /dev bound into it.
        ensure_unmounted(rootfs, dry_run=ctx.dry_run)
        recreate_dir(rootfs, dry_run=ctx.dry_run)

        logger.info("Creating minimal rootfs with debootstrap (%s/%s)", cfg.debian_suite, cfg.debian_arch)
        debootstrap_rootfs(
            target_root=rootfs,
            suite=cfg.debian_suite,
            mirror=cfg.debian_mirror,
            arch=cfg.debian_arch,
            variant=cfg.debian_variant,
            include=cfg.base_packages,
            dry_run=ctx.dry_run,
        )

        logger.info("Base rootfs created. Installing additional packages...")
        with mounted_pseudo_filesystems(rootfs, dry_run=ctx.dry_run):
            apt_update(rootfs, dry_run=ctx.dry_run)
            apt_install(rootfs, cfg.extra_packages, dry_run=ctx.dry_run)
            apt_clean(rootfs, dry_run=ctx.dry_run)

        state.setdefault("summary", {})["rootfs_dir"] = str(rootfs)
        logger.info("Rootfs created at %s", rootfs)
