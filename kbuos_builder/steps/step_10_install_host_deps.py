from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Sequence

from ..context import BuildCtx
from ..lib.pkg import host_install

logger = logging.getLogger(__name__)


class InstallHostDependenciesStep:
    step_id = "10_install_host_deps"
    description = "Install host build tools"

    def requires(self, ctx: BuildCtx) -> Sequence[Path]:
        return []

    def produces(self, ctx: BuildCtx) -> Sequence[Path]:
        return []

    def run(self, ctx: BuildCtx, state: Dict[str, Any]) -> None:
        packages = ctx.cfg.host_packages
        logger.info("Checking and installing dependencies: %s", " ".join(packages))
        host_install(packages, dry_run=ctx.dry_run)
