from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger(__name__)

KERNEL_PREFIX = "vmlinuz-"
INITRD_PREFIX = "initrd.img-"


class KernelDiscoveryError(RuntimeError):
    pass


@dataclass(frozen=True)
class BootFiles:
    version: str
    kernel: Path
    initrd: Path


def _by_version(boot_dir: Path, prefix: str) -> Dict[str, Path]:
    found: Dict[str, Path] = {}
    for p in sorted(boot_dir.glob(prefix + "*")):
        if p.is_file():
            found[p.name[len(prefix):]] = p
    return found


def find_boot_files(boot_dir: str | Path, *, version: Optional[str] = None) -> BootFiles:
    """Locate the single kernel/initrd pair in a rootfs /boot directory.

    Zero or several candidates are an error unless version picks one.
    """

    d = Path(boot_dir)
    kernels = _by_version(d, KERNEL_PREFIX)
    initrds = _by_version(d, INITRD_PREFIX)

    if version is not None:
        if version not in kernels or version not in initrds:
            raise KernelDiscoveryError(
                f"Kernel version {version} not found in {d} "
                f"(kernels: {sorted(kernels) or 'none'}, initrds: {sorted(initrds) or 'none'})"
            )
        return BootFiles(version=version, kernel=kernels[version], initrd=initrds[version])

    if len(kernels) != 1:
        raise KernelDiscoveryError(
            f"Expected exactly one {KERNEL_PREFIX}* in {d}, found {len(kernels)}: {sorted(kernels)}"
        )
    if len(initrds) != 1:
        raise KernelDiscoveryError(
            f"Expected exactly one {INITRD_PREFIX}* in {d}, found {len(initrds)}: {sorted(initrds)}"
        )

    (kver,) = kernels
    (iver,) = initrds
    if kver != iver:
        raise KernelDiscoveryError(f"Kernel {kver} and initrd {iver} versions differ")

    logger.info("Found kernel %s", kver)
    return BootFiles(version=kver, kernel=kernels[kver], initrd=initrds[iver])
