from .step_10_install_host_deps import InstallHostDependenciesStep
from .step_20_bootstrap_rootfs import BootstrapRootfsStep
from .step_30_configure_rootfs import ConfigureRootfsStep
from .step_40_build_iso_layout import BuildIsoLayoutStep
from .step_50_pack_squashfs import PackSquashfsStep
from .step_60_configure_bootloader import ConfigureBootloaderStep
from .step_70_generate_iso import GenerateIsoStep
from .step_80_checksum_outputs import ChecksumOutputsStep

__all__ = [
    "InstallHostDependenciesStep",
    "BootstrapRootfsStep",
    "ConfigureRootfsStep",
    "BuildIsoLayoutStep",
    "PackSquashfsStep",
    "ConfigureBootloaderStep",
    "GenerateIsoStep",
    "ChecksumOutputsStep",
]
