from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Sequence

from ..context import BuildCtx
from ..lib.command import run_cmd
from ..lib.files import human_size

logger = logging.getLogger(__name__)


def grub_mkrescue_argv(output: Path, iso_dir: Path, *, volume_id: str) -> List[str]:
    # Arguments after "--" go to xorriso.
    return ["grub-mkrescue", "-o", str(output), str(iso_dir), "--", "-volid", volume_id]


class GenerateIsoStep:
    step_id = "70_generate_iso"
    description = "Generate the bootable ISO with grub-mkrescue"

    def requires(self, ctx: BuildCtx) -> Sequence[Path]:
        return [ctx.kernel_path, ctx.initrd_path, ctx.squashfs_path, ctx.grub_cfg_path]

    def produces(self, ctx: BuildCtx) -> Sequence[Path]:
        return [ctx.output_iso]

    def run(self, ctx: BuildCtx, state: Dict[str, Any]) -> None:
        logger.info("Generating bootable ISO...")
        if not ctx.dry_run:
            ctx.output_iso.parent.mkdir(parents=True, exist_ok=True)

        run_cmd(
            grub_mkrescue_argv(ctx.output_iso, ctx.iso_dir, volume_id=ctx.cfg.volume_id),
            capture=False,
            dry_run=ctx.dry_run,
        )

        summary = state.setdefault("summary", {})
        summary["output_iso"] = str(ctx.output_iso)
        logger.info("ISO generated: %s", ctx.output_iso)
        if not ctx.dry_run and ctx.output_iso.exists():
            size = ctx.output_iso.stat().st_size
            summary["output_size"] = size
            logger.info("Size: %s", human_size(size))
