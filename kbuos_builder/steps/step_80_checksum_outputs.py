from __future__ import annotations

import hashlib
import logging
from pathlib import Path
from typing import Any, Dict, Sequence

from ..context import BuildCtx

logger = logging.getLogger(__name__)


def sha256_file(path: Path, *, chunk_size: int = 1 << 20) -> str:
    h = hashlib.sha256()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(chunk_size), b""):
            h.update(chunk)
    return h.hexdigest()


class ChecksumOutputsStep:
    step_id = "80_checksum_outputs"
    description = "Write a SHA-256 checksum next to the ISO"

    def requires(self, ctx: BuildCtx) -> Sequence[Path]:
        return [ctx.output_iso]

    def produces(self, ctx: BuildCtx) -> Sequence[Path]:
        return [ctx.checksum_path] if ctx.cfg.write_checksum else []

    def run(self, ctx: BuildCtx, state: Dict[str, Any]) -> None:
        if not ctx.cfg.write_checksum:
            logger.info("Checksum disabled (outputs.checksum=false)")
            return
        if ctx.dry_run:
            logger.info("Would write %s", ctx.checksum_path)
            return

        digest = sha256_file(ctx.output_iso)
        ctx.checksum_path.write_text(f"{digest}  {ctx.output_iso.name}\n", encoding="utf-8")
        state.setdefault("summary", {})["sha256"] = digest
        logger.info("SHA256 %s  %s", digest, ctx.output_iso.name)
