from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path

from .command import run_cmd

logger = logging.getLogger(__name__)


def in_root(root: str | Path, rel: str) -> Path:
    """Map an absolute in-image path onto the build tree."""

    return Path(root) / rel.lstrip("/")


def write_file(
    root: str | Path,
    rel: str,
    contents: str,
    *,
    mode: int | None = None,
    dry_run: bool = False,
) -> Path:
    p = in_root(root, rel)
    if dry_run:
        logger.info("Would write %s", str(p))
        return p
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(contents, encoding="utf-8")
    if mode is not None:
        os.chmod(p, mode)
    logger.debug("Wrote %s", str(p))
    return p


def copy_asset(src: str | Path, root: str | Path, rel: str, *, dry_run: bool = False) -> bool:
    """Copy an optional local asset into the tree.

    Returns False (after logging a warning) when the source is missing.
    """

    s = Path(src)
    if not s.is_file():
        logger.warning("Asset not found at %s; continuing without it", str(s))
        return False

    dst = in_root(root, rel)
    if dry_run:
        logger.info("Would copy %s -> %s", str(s), str(dst))
        return True

    dst.parent.mkdir(parents=True, exist_ok=True)
    shutil.copy2(s, dst)
    logger.info("Copied %s -> %s", str(s), str(dst))
    return True


def recreate_dir(path: str | Path, *, dry_run: bool = False) -> Path:
    """Remove path (if present) and create it empty.

    --one-file-system keeps rm from descending into anything still mounted.
    """

    p = Path(path)
    if p.exists():
        run_cmd(["rm", "-rf", "--one-file-system", str(p)], dry_run=dry_run)
    if not dry_run:
        p.mkdir(parents=True, exist_ok=True)
    return p


def human_size(num_bytes: int) -> str:
    size = float(num_bytes)
    for unit in ("B", "K", "M", "G", "T"):
        if size < 1024 or unit == "T":
            if unit == "B":
                return f"{int(size)}{unit}"
            return f"{size:.1f}{unit}"
        size /= 1024
    return f"{num_bytes}B"
