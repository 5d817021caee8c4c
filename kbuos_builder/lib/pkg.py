from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

from .chroot import chroot_cmd
from .command import run_cmd

logger = logging.getLogger(__name__)


def host_install(packages: Sequence[str], *, dry_run: bool = False) -> None:
    """Refresh the host package index and install packages on the host."""

    if not packages:
        return
    env = {"DEBIAN_FRONTEND": "noninteractive"}
    run_cmd(["apt-get", "update"], env=env, capture=False, dry_run=dry_run)
    run_cmd(["apt-get", "install", "-y", *packages], env=env, capture=False, dry_run=dry_run)


def debootstrap_argv(
    *,
    target_root: str | Path,
    suite: str,
    mirror: str,
    arch: str | None = None,
    variant: str | None = None,
    include: Sequence[str] = (),
) -> list[str]:
    argv = ["debootstrap"]
    if arch:
        argv.append(f"--arch={arch}")
    if variant:
        argv.append(f"--variant={variant}")
    if include:
        argv.append(f"--include={','.join(include)}")
    argv += [suite, str(target_root), mirror]
    return argv


def debootstrap_rootfs(
    *,
    target_root: str | Path,
    suite: str = "bookworm",
    mirror: str = "http://deb.debian.org/debian",
    arch: str | None = None,
    variant: str | None = None,
    include: Sequence[str] = (),
    dry_run: bool = False,
) -> None:
    argv = debootstrap_argv(
        target_root=target_root,
        suite=suite,
        mirror=mirror,
        arch=arch,
        variant=variant,
        include=include,
    )
    run_cmd(argv, capture=False, dry_run=dry_run)


def apt_update(target_root: str | Path, *, dry_run: bool = False) -> None:
    chroot_cmd(target_root, ["apt-get", "update"], capture=False, dry_run=dry_run)


def apt_install(
    target_root: str | Path,
    packages: Sequence[str],
    *,
    with_recommends: bool = True,
    dry_run: bool = False,
) -> None:
    if not packages:
        return
    argv = [
        "apt-get",
        "install",
        "-y",
    ]
    if not with_recommends:
        argv.append("--no-install-recommends")
    chroot_cmd(
        target_root,
        [*argv, *packages],
        capture=False,
        dry_run=dry_run,
    )


def apt_clean(target_root: str | Path, *, purge_lists: bool = False, dry_run: bool = False) -> None:
    chroot_cmd(target_root, ["apt-get", "clean"], dry_run=dry_run)
    if purge_lists:
        # Glob expansion needs a shell inside the target.
        chroot_cmd(target_root, ["/bin/sh", "-c", "rm -rf /var/lib/apt/lists/*"], dry_run=dry_run)
