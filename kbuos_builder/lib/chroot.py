from __future__ import annotations

import contextlib
import logging
import os
from pathlib import Path
from typing import Iterator, List, Mapping, Sequence, Tuple

from .command import CmdResult, run_cmd

logger = logging.getLogger(__name__)

CHROOT_ENV = {"DEBIAN_FRONTEND": "noninteractive"}

# (mount argv prefix, path below the rootfs), in mount order.
PSEUDO_FILESYSTEMS: List[Tuple[List[str], str]] = [
    (["mount", "--bind", "/dev"], "dev"),
    (["mount", "--bind", "/dev/pts"], "dev/pts"),
    (["mount", "-t", "proc", "proc"], "proc"),
    (["mount", "-t", "sysfs", "sysfs"], "sys"),
    (["mount", "-t", "tmpfs", "tmpfs"], "run"),
]

# Unmount order used by the unconditional cleanup.
CLEANUP_ORDER = ["dev/pts", "dev", "proc", "sys", "run"]

PROC_MOUNTS = "/proc/self/mounts"


class MountError(RuntimeError):
    pass


def chroot_cmd(
    target_root: str | Path,
    argv: Sequence[str],
    *,
    check: bool = True,
    env: Mapping[str, str] | None = None,
    input_text: str | None = None,
    capture: bool = True,
    dry_run: bool = False,
) -> CmdResult:
    """Run a command inside target root."""

    return run_cmd(
        ["chroot", str(target_root), *argv],
        check=check,
        env=dict(CHROOT_ENV, **(env or {})),
        input_text=input_text,
        capture=capture,
        dry_run=dry_run,
    )


def _unescape_mount_field(field: str) -> str:
    # /proc/mounts escapes space, tab, newline and backslash as octal.
    for code, ch in (("\\040", " "), ("\\011", "\t"), ("\\012", "\n"), ("\\134", "\\")):
        field = field.replace(code, ch)
    return field


def mounts_under(root: str | Path, *, mounts_file: str = PROC_MOUNTS) -> List[str]:
    """Return mount points at or below root, deepest first."""

    base = os.path.realpath(str(root))
    p = Path(mounts_file)
    if not p.exists():
        return []

    found: List[str] = []
    for line in p.read_text(encoding="utf-8").splitlines():
        parts = line.split()
        if len(parts) < 2:
            continue
        mnt = _unescape_mount_field(parts[1])
        if mnt == base or mnt.startswith(base.rstrip("/") + "/"):
            found.append(mnt)
    return sorted(found, key=len, reverse=True)


def umount_pseudo_filesystems(target_root: str | Path, *, dry_run: bool = False) -> None:
    """Best-effort unmount of every pseudo-filesystem; failures are ignored."""

    logger.info("Cleaning up mounts under %s", target_root)
    for rel in CLEANUP_ORDER:
        run_cmd(["umount", "-lf", str(Path(target_root) / rel)], check=False, dry_run=dry_run)


def release_stale_mounts(
    target_root: str | Path,
    *,
    dry_run: bool = False,
    mounts_file: str = PROC_MOUNTS,
) -> None:
    if dry_run:
        return
    if mounts_under(target_root, mounts_file=mounts_file):
        umount_pseudo_filesystems(target_root)


def ensure_unmounted(
    target_root: str | Path,
    *,
    dry_run: bool = False,
    mounts_file: str = PROC_MOUNTS,
) -> None:
    """Release stale mounts and fail if anything is still mounted below target_root."""

    release_stale_mounts(target_root, dry_run=dry_run, mounts_file=mounts_file)
    if dry_run:
        return
    remaining = mounts_under(target_root, mounts_file=mounts_file)
    if remaining:
        raise MountError(f"Still mounted under {target_root}: {', '.join(remaining)}")


@contextlib.contextmanager
def mounted_pseudo_filesystems(target_root: str | Path, *, dry_run: bool = False) -> Iterator[None]:
    """Bind kernel pseudo-filesystems into target_root for the duration of the block.

    Only the mounts that succeeded are undone, in reverse order, whatever way
    the block exits.
    """

    root = Path(target_root)
    mounted: List[Path] = []
    try:
        for prefix, rel in PSEUDO_FILESYSTEMS:
            dst = root / rel
            if not dry_run:
                dst.mkdir(parents=True, exist_ok=True)
            run_cmd([*prefix, str(dst)], dry_run=dry_run)
            mounted.append(dst)
        yield
    finally:
        for dst in reversed(mounted):
            run_cmd(["umount", "-lf", str(dst)], check=False, dry_run=dry_run)
