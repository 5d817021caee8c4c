from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Sequence

from ..context import BuildCtx
from ..lib.bootloader import live_boot_config, write_grub_config

logger = logging.getLogger(__name__)


class ConfigureBootloaderStep:
    step_id = "60_configure_bootloader"
    description = "Write the GRUB boot menu"

    def requires(self, ctx: BuildCtx) -> Sequence[Path]:
        return [ctx.grub_dir]

    def produces(self, ctx: BuildCtx) -> Sequence[Path]:
        return [ctx.grub_cfg_path]

    def run(self, ctx: BuildCtx, state: Dict[str, Any]) -> None:
        logger.info("Configuring GRUB bootloader...")
        cfg = live_boot_config(
            distro_name=ctx.cfg.distro_name,
            kernel_args=ctx.cfg.kernel_args,
            timeout=ctx.cfg.boot_timeout,
        )
        write_grub_config(ctx.iso_dir, cfg, dry_run=ctx.dry_run)
