from __future__ import annotations

import re
import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from .lib.identity import is_valid_hostname

DEFAULT_HOST_PACKAGES = [
    "debootstrap",
    "squashfs-tools",
    "grub-pc-bin",
    "grub-efi-amd64-bin",
    "grub-common",
    "xorriso",
    "mtools",
    "dosfstools",
]

# debootstrap --include (kept small, no complex dependencies)
DEFAULT_BASE_PACKAGES = [
    "systemd-sysv",
    "dbus",
    "locales",
    "sudo",
]

# Installed inside the chroot so apt resolves dependencies natively.
DEFAULT_EXTRA_PACKAGES = [
    "linux-image-amd64",
    "live-boot",
    "openbox",
    "xorg",
    "xinit",
    "xterm",
    "network-manager",
    "lightdm",
    "lightdm-gtk-greeter",
    "yad",
    "feh",
    "fonts-dejavu",
    "firefox-esr",
    "plank",
    "picom",
    "pcmanfm",
    "adwaita-icon-theme",
]

# Dropped from the default extras in startx mode; lightdm would claim display-manager.service.
LIGHTDM_PACKAGES = {"lightdm", "lightdm-gtk-greeter"}

DEFAULT_MENU_ITEMS = [
    {"label": "Firefox", "execute": "firefox-esr"},
    {"label": "File Manager", "execute": "pcmanfm"},
    {"label": "Terminal", "execute": "xterm"},
]

DEFAULT_WEB_SHORTCUTS = [
    {
        "id": "obs-kbu",
        "name": "KBU OBS",
        "comment": "Karabük University Student Information System",
        "url": "https://obs.karabuk.edu.tr",
        "icon": "applications-internet",
        "categories": ["Network", "Education"],
    }
]

DEFAULT_ABOUT_TAGLINE = "A hobby project."
DEFAULT_ABOUT_FOOTER = "Karabük University\nComputer Engineering Department\n\n© Abdulaziz Shamsiev 2025-2026"

SESSION_MODES = {"lightdm", "startx"}
SQUASHFS_COMPRESSORS = {"gzip", "lzo", "lz4", "xz", "zstd", "lzma"}

_USERNAME = re.compile(r"^[a-z_][a-z0-9_-]{0,31}$")
_ENTRY_ID = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


def _as_list(value: Any) -> List[str]:
    """Package, group and service lists: comma and/or whitespace separated."""
    if value is None:
        return []
    if isinstance(value, str):
        return [v for v in value.replace(",", " ").split() if v]
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value]
    raise ValueError(f"Expected a list or a string, got {value!r}")


def _entries(where: str, items: Any, required: Sequence[str]) -> List[Dict[str, Any]]:
    if not isinstance(items, list):
        raise ValueError(f"{where} must be a list")
    for n, item in enumerate(items):
        if not isinstance(item, dict):
            raise ValueError(f"{where}[{n}] must be a mapping")
        missing = [k for k in required if not item.get(k)]
        if missing:
            raise ValueError(f"{where}[{n}] is missing {', '.join(missing)}")
    return items


@dataclass(frozen=True)
class BuildConfig:
    raw: Dict[str, Any]
    base_dir: Path = field(default_factory=Path.cwd)

    def _section(self, name: str) -> Dict[str, Any]:
        v = self.raw.get(name)
        if v is None:
            return {}
        if not isinstance(v, dict):
            raise ValueError(f"{name} must be a mapping, got {type(v).__name__}")
        return v

    def _path(self, value: Optional[str], default: str) -> Path:
        p = Path(value or default)
        return p if p.is_absolute() else self.base_dir / p

    # distro identity

    @property
    def distro_name(self) -> str:
        return str(self._section("distro").get("name") or "KbuOS")

    @property
    def distro_id(self) -> str:
        """Lower-case token used for in-image asset directories and file names."""
        return str(self._section("distro").get("id") or self.distro_name.lower())

    @property
    def distro_version(self) -> str:
        return str(self._section("distro").get("version") or "1.0")

    @property
    def hostname(self) -> str:
        return str(self._section("distro").get("hostname") or self.distro_name)

    @property
    def volume_id(self) -> str:
        return str(self._section("distro").get("volume_id") or self.distro_name.upper())

    # paths

    @property
    def work_dir(self) -> Path:
        return self._path(self._section("paths").get("work_dir"), "build")

    @property
    def rootfs_dir(self) -> Path:
        return self._path(self._section("paths").get("rootfs_dir"), str(self.work_dir / "rootfs"))

    @property
    def iso_dir(self) -> Path:
        return self._path(self._section("paths").get("iso_dir"), str(self.work_dir / "iso"))

    @property
    def output_iso(self) -> Path:
        return self._path(self._section("paths").get("output_iso"), f"{self.distro_name}.iso")

    # debian

    @property
    def debian_mirror(self) -> str:
        return str(self._section("debian").get("mirror") or "http://deb.debian.org/debian")

    @property
    def debian_suite(self) -> str:
        return str(self._section("debian").get("suite") or "bookworm")

    @property
    def debian_arch(self) -> str:
        return str(self._section("debian").get("arch") or "amd64")

    @property
    def debian_variant(self) -> str:
        return str(self._section("debian").get("variant") or "minbase")

    # packages

    @property
    def host_packages(self) -> List[str]:
        v = self._section("packages").get("host")
        return _as_list(v) if v is not None else list(DEFAULT_HOST_PACKAGES)

    @property
    def base_packages(self) -> List[str]:
        v = self._section("packages").get("base")
        return _as_list(v) if v is not None else list(DEFAULT_BASE_PACKAGES)

    @property
    def extra_packages(self) -> List[str]:
        v = self._section("packages").get("extra")
        if v is not None:
            return _as_list(v)
        if self.session_mode == "startx":
            return [p for p in DEFAULT_EXTRA_PACKAGES if p not in LIGHTDM_PACKAGES]
        return list(DEFAULT_EXTRA_PACKAGES)

    # system and accounts

    @property
    def locale(self) -> str:
        return str(self.raw.get("locale") or "en_US.UTF-8")

    @property
    def root_password(self) -> str:
        return str(self.raw.get("root_password") or "kbuos")

    @property
    def user_name(self) -> str:
        return str(self._section("user").get("name") or "user")

    @property
    def user_password(self) -> str:
        return str(self._section("user").get("password") or "user")

    @property
    def user_shell(self) -> str:
        return str(self._section("user").get("shell") or "/bin/bash")

    @property
    def user_groups(self) -> List[str]:
        v = self._section("user").get("groups")
        return _as_list(v) if v is not None else ["sudo", "audio", "video", "netdev"]

    @property
    def user_home(self) -> str:
        return f"/home/{self.user_name}"

    @property
    def session_mode(self) -> str:
        return str(self._section("session").get("mode") or "lightdm")

    @property
    def services(self) -> List[str]:
        v = self.raw.get("services")
        if v is not None:
            return _as_list(v)
        if self.session_mode == "lightdm":
            return ["lightdm", "NetworkManager"]
        return ["NetworkManager"]

    # assets

    @property
    def wallpaper_src(self) -> Path:
        return self._path(self._section("assets").get("wallpaper"), "images/kbu.jpeg")

    @property
    def logo_src(self) -> Path:
        return self._path(self._section("assets").get("logo"), "images/kbuLogo.png")

    @property
    def wallpaper_path(self) -> str:
        return f"/usr/share/backgrounds/{self.distro_id}/wallpaper.jpeg"

    @property
    def logo_name(self) -> str:
        return str(self._section("assets").get("logo_name") or "kbulogo.png")

    @property
    def logo_paths(self) -> List[str]:
        # icons dir for our own entries, pixmaps for broader compatibility
        return [f"/usr/share/icons/{self.distro_id}/{self.logo_name}", f"/usr/share/pixmaps/{self.logo_name}"]

    @property
    def logo_path(self) -> str:
        return self.logo_paths[0]

    # desktop content

    @property
    def browser(self) -> str:
        return str(self._section("desktop").get("browser") or "firefox-esr")

    @property
    def about_id(self) -> str:
        return f"about-{self.distro_id}"

    @property
    def about_text(self) -> str:
        about = self._section("about")
        text = about.get("text")
        if text:
            return str(text)
        footer = about.get("footer")
        if footer is None:
            footer = DEFAULT_ABOUT_FOOTER
        tagline = about.get("tagline")
        if tagline is None:
            tagline = DEFAULT_ABOUT_TAGLINE
        body = (
            f"<b>{self.distro_name}</b>\n\n"
            f"Version: {self.distro_version}\n\n"
            + (f"{tagline}\n\n" if tagline else "")
            + "Built with:\n"
            "• Openbox Window Manager\n"
            f"• Linux Kernel ({self.debian_arch})\n"
            f"• Debian {self.debian_suite.capitalize()} base"
        )
        return body + (f"\n\n{footer}" if footer else "")

    @property
    def menu_items(self) -> List[Dict[str, str]]:
        v = self._section("desktop").get("menu")
        items = _entries("desktop.menu", v, ("label", "execute")) if v is not None else DEFAULT_MENU_ITEMS
        return [{"label": str(i["label"]), "execute": str(i["execute"])} for i in items]

    @property
    def web_shortcuts(self) -> List[Dict[str, Any]]:
        v = self._section("desktop").get("web_shortcuts")
        items = _entries("desktop.web_shortcuts", v, ("id", "name", "url")) if v is not None else DEFAULT_WEB_SHORTCUTS
        out: List[Dict[str, Any]] = []
        for i in items:
            out.append(
                {
                    "id": str(i["id"]),
                    "name": str(i["name"]),
                    "comment": str(i.get("comment") or ""),
                    "url": str(i["url"]),
                    "icon": str(i.get("icon") or "applications-internet"),
                    "categories": _as_list(i.get("categories") or ["Network"]),
                }
            )
        return out

    @property
    def dock_launchers(self) -> List[str]:
        v = self._section("desktop").get("dock")
        if v is not None:
            return _as_list(v)
        return [self.browser, "pcmanfm", "xterm", self.about_id, *[s["id"] for s in self.web_shortcuts]]

    # packaging and boot

    @property
    def squashfs_compression(self) -> str:
        return str(self._section("squashfs").get("compression") or "xz")

    @property
    def boot_timeout(self) -> int:
        v = self._section("boot").get("timeout")
        return int(v) if v is not None else 10

    @property
    def kernel_args(self) -> List[str]:
        v = self._section("boot").get("kernel_args")
        if v is None:
            return ["boot=live"]
        # Whitespace only: commas are part of arguments such as console=ttyS0,115200.
        if isinstance(v, str):
            return shlex.split(v)
        return _as_list(v)

    @property
    def kernel_version(self) -> Optional[str]:
        v = self._section("boot").get("kernel_version")
        return str(v) if v else None

    @property
    def write_checksum(self) -> bool:
        v = self._section("outputs").get("checksum")
        return True if v is None else bool(v)

    def validate(self) -> "BuildConfig":
        # Read every section and list up front so a malformed shape is reported here.
        for name in (
            "distro", "paths", "debian", "packages", "user", "session",
            "assets", "desktop", "about", "squashfs", "boot", "outputs",
        ):
            self._section(name)
        for prop in ("host_packages", "user_groups", "services", "menu_items", "kernel_args", "about_text"):
            getattr(self, prop)
        if self.session_mode not in SESSION_MODES:
            raise ValueError(f"session.mode must be one of {sorted(SESSION_MODES)}, got {self.session_mode!r}")
        if self.squashfs_compression not in SQUASHFS_COMPRESSORS:
            raise ValueError(
                f"squashfs.compression must be one of {sorted(SQUASHFS_COMPRESSORS)}, "
                f"got {self.squashfs_compression!r}"
            )
        if not _USERNAME.match(self.user_name) or self.user_name == "root":
            raise ValueError(f"Invalid user.name: {self.user_name!r}")
        if not is_valid_hostname(self.hostname):
            raise ValueError(f"Invalid hostname: {self.hostname!r}")
        if not self.base_packages:
            raise ValueError("packages.base must not be empty")
        if not self.extra_packages:
            raise ValueError("packages.extra must not be empty")
        if self.boot_timeout <= 0:
            raise ValueError("boot.timeout must be positive")
        for entry_id in [self.about_id, *[s["id"] for s in self.web_shortcuts], *self.dock_launchers]:
            if not _ENTRY_ID.match(entry_id):
                raise ValueError(f"Invalid desktop entry id: {entry_id!r}")
        return self


def load_build_config(path: str, *, base_dir: Optional[Path] = None) -> BuildConfig:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(path)

    if p.suffix.lower() not in {".yaml", ".yml"}:
        raise ValueError("build config must be YAML")

    try:
        import yaml  # type: ignore
    except Exception as e:
        raise RuntimeError("PyYAML is required to read the build config") from e

    raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    if not isinstance(raw, dict):
        raise ValueError("build config must contain a mapping/object")

    return BuildConfig(raw=raw, base_dir=base_dir or Path.cwd())
