from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Sequence

from ..build_config import BuildConfig
from ..context import BuildCtx
from ..lib.chroot import chroot_cmd, mounted_pseudo_filesystems
from ..lib.desktop import (
    DesktopEntry,
    DockItem,
    GreeterConfig,
    LightDMConfig,
    Menu,
    MenuExit,
    MenuItem,
    MenuSeparator,
    default_autostart,
    plank_launchers_dir,
    render_about_script,
    render_autostart,
    render_getty_autologin,
    render_openbox_menu,
    render_startx_profile,
    render_xinitrc,
)
from ..lib.files import copy_asset, write_file
from ..lib.identity import render_hostname, render_hosts, render_locale_gen
from ..lib.pkg import apt_clean

logger = logging.getLogger(__name__)


def about_script_path(cfg: BuildConfig) -> str:
    return f"/usr/local/bin/{cfg.about_id}"


def desktop_entries(cfg: BuildConfig) -> List[DesktopEntry]:
    entries = [
        DesktopEntry(
            entry_id=cfg.about_id,
            name=f"About {cfg.distro_name}",
            comment=f"Information about {cfg.distro_name}",
            exec=about_script_path(cfg),
            icon=cfg.logo_path,
            categories=["System"],
        )
    ]
    for s in cfg.web_shortcuts:
        entries.append(
            DesktopEntry(
                entry_id=s["id"],
                name=s["name"],
                comment=s["comment"],
                # Exec field codes start with %, so a literal one is doubled.
                exec=f"{cfg.browser} {s['url'].replace('%', '%%')}",
                icon=s["icon"],
                categories=s["categories"],
            )
        )
    return entries


def root_menu(cfg: BuildConfig) -> Menu:
    items = [MenuItem(i["label"], i["execute"]) for i in cfg.menu_items]
    return Menu(
        menu_id="root-menu",
        label=cfg.distro_name,
        children=[
            *items,
            MenuSeparator(),
            Menu(
                menu_id="system-menu",
                label="System",
                children=[MenuItem(f"About {cfg.distro_name}", about_script_path(cfg))],
            ),
            MenuSeparator(),
            MenuExit(),
        ],
    )


def _user_exists(rootfs: Path, username: str, *, dry_run: bool) -> bool:
    if dry_run:
        return False
    r = chroot_cmd(rootfs, ["id", "-u", username], check=False)
    return r.returncode == 0


class ConfigureRootfsStep:
    step_id = "30_configure_rootfs"
    description = "Write system identity, desktop configuration and the default user"

    def requires(self, ctx: BuildCtx) -> Sequence[Path]:
        return [ctx.rootfs_dir / "etc", ctx.rootfs_dir / "usr"]

    def produces(self, ctx: BuildCtx) -> Sequence[Path]:
        out = [
            ctx.rootfs_dir / "etc/hostname",
            ctx.rootfs_dir / "etc/hosts",
            ctx.rootfs_dir / "etc/xdg/openbox/autostart",
            ctx.rootfs_dir / "etc/xdg/openbox/menu.xml",
        ]
        if ctx.cfg.session_mode == "lightdm":
            out.append(ctx.rootfs_dir / "etc/lightdm/lightdm.conf")
        return out

    def run(self, ctx: BuildCtx, state: Dict[str, Any]) -> None:
        cfg = ctx.cfg
        rootfs = ctx.rootfs_dir
        dry_run = ctx.dry_run

        logger.info("Configuring rootfs...")
        self._write_identity(cfg, rootfs, dry_run=dry_run)
        assets = self._copy_assets(cfg, rootfs, dry_run=dry_run)
        self._write_desktop(cfg, rootfs, dry_run=dry_run)

        with mounted_pseudo_filesystems(rootfs, dry_run=dry_run):
            self._configure_accounts(cfg, rootfs, dry_run=dry_run)
            owned = self._write_user_files(cfg, rootfs, dry_run=dry_run)
            for rel in owned:
                chroot_cmd(
                    rootfs,
                    ["chown", "-R", f"{cfg.user_name}:{cfg.user_name}", rel],
                    dry_run=dry_run,
                )
            apt_clean(rootfs, purge_lists=True, dry_run=dry_run)

        decisions = state.setdefault("summary", {}).setdefault("decisions", {})
        decisions["hostname"] = cfg.hostname
        decisions["user"] = cfg.user_name
        decisions["session_mode"] = cfg.session_mode
        decisions["services"] = cfg.services
        decisions["assets"] = assets
        logger.info("Rootfs configuration complete (hostname=%s user=%s)", cfg.hostname, cfg.user_name)

    def _write_identity(self, cfg: BuildConfig, rootfs: Path, *, dry_run: bool) -> None:
        write_file(rootfs, "/etc/hostname", render_hostname(cfg.hostname), dry_run=dry_run)
        write_file(rootfs, "/etc/hosts", render_hosts(cfg.hostname), dry_run=dry_run)
        write_file(rootfs, "/etc/locale.gen", render_locale_gen(cfg.locale), dry_run=dry_run)

    def _copy_assets(self, cfg: BuildConfig, rootfs: Path, *, dry_run: bool) -> Dict[str, bool]:
        wallpaper = copy_asset(cfg.wallpaper_src, rootfs, cfg.wallpaper_path, dry_run=dry_run)
        logo = False
        for dst in cfg.logo_paths:
            logo = copy_asset(cfg.logo_src, rootfs, dst, dry_run=dry_run)
            if not logo:
                break
        return {"wallpaper": wallpaper, "logo": logo}

    def _write_desktop(self, cfg: BuildConfig, rootfs: Path, *, dry_run: bool) -> None:
        write_file(
            rootfs,
            about_script_path(cfg),
            render_about_script(title=f"About {cfg.distro_name}", text=cfg.about_text, icon=cfg.logo_path),
            mode=0o755,
            dry_run=dry_run,
        )
        for entry in desktop_entries(cfg):
            write_file(rootfs, entry.path, entry.render(), dry_run=dry_run)

        if cfg.session_mode == "lightdm":
            write_file(
                rootfs,
                "/etc/lightdm/lightdm.conf",
                LightDMConfig(autologin_user=cfg.user_name).render(),
                dry_run=dry_run,
            )
            # References the in-image path even when the wallpaper asset was missing.
            write_file(
                rootfs,
                "/etc/lightdm/lightdm-gtk-greeter.conf",
                GreeterConfig(background=cfg.wallpaper_path).render(),
                dry_run=dry_run,
            )
        else:
            write_file(
                rootfs,
                "/etc/systemd/system/getty@tty1.service.d/autologin.conf",
                render_getty_autologin(cfg.user_name),
                dry_run=dry_run,
            )

        write_file(
            rootfs,
            "/etc/xdg/openbox/autostart",
            render_autostart(default_autostart(cfg.wallpaper_path)),
            dry_run=dry_run,
        )
        write_file(rootfs, "/etc/xdg/openbox/menu.xml", render_openbox_menu(root_menu(cfg)), dry_run=dry_run)

    def _configure_accounts(self, cfg: BuildConfig, rootfs: Path, *, dry_run: bool) -> None:
        chroot_cmd(rootfs, ["locale-gen", cfg.locale], dry_run=dry_run)
        chroot_cmd(rootfs, ["update-locale", f"LANG={cfg.locale}"], dry_run=dry_run)

        chroot_cmd(rootfs, ["chpasswd"], input_text=f"root:{cfg.root_password}\n", dry_run=dry_run)

        groups = ",".join(cfg.user_groups)
        if _user_exists(rootfs, cfg.user_name, dry_run=dry_run):
            logger.info("User %s already exists; updating groups", cfg.user_name)
            if groups:
                chroot_cmd(rootfs, ["usermod", "-a", "-G", groups, cfg.user_name], dry_run=dry_run)
        else:
            argv = ["useradd", "-m", "-s", cfg.user_shell]
            if groups:
                argv += ["-G", groups]
            chroot_cmd(rootfs, [*argv, cfg.user_name], dry_run=dry_run)
        chroot_cmd(
            rootfs,
            ["chpasswd"],
            input_text=f"{cfg.user_name}:{cfg.user_password}\n",
            dry_run=dry_run,
        )

        for service in cfg.services:
            chroot_cmd(rootfs, ["systemctl", "enable", service], dry_run=dry_run)

    def _write_user_files(self, cfg: BuildConfig, rootfs: Path, *, dry_run: bool) -> List[str]:
        """Write per-user files after the home exists; returns in-image paths to chown."""

        home = cfg.user_home
        launchers = plank_launchers_dir(home)
        for launcher_id in cfg.dock_launchers:
            item = DockItem(launcher_id)
            write_file(rootfs, f"{launchers}/{item.filename}", item.render(), dry_run=dry_run)
        owned = [f"{home}/.config"]

        if cfg.session_mode == "startx":
            write_file(rootfs, f"{home}/.xinitrc", render_xinitrc(), mode=0o755, dry_run=dry_run)
            # .bash_profile shadows .profile, so pull it in first.
            profile = '[ -f "$HOME/.profile" ] && . "$HOME/.profile"\n\n' + render_startx_profile()
            write_file(rootfs, f"{home}/.bash_profile", profile, dry_run=dry_run)
            owned += [f"{home}/.xinitrc", f"{home}/.bash_profile"]
        return owned
