from __future__ import annotations

import argparse
import logging
import signal
from typing import Any, Dict, List, Optional

from .build_config import BuildConfig, load_build_config
from .build_state import (
    clear_completed,
    ensure_build_defaults,
    load_build_state,
    record_error,
    save_build_state,
)
from .context import BuildCtx
from .lib.chroot import release_stale_mounts
from .lib.command import CommandError
from .lib.env import PrivilegeError, require_root
from .logging_utils import DEFAULT_LOG_PATH, configure_logging
from .pipeline import Step, run_pipeline
from .steps import (
    BootstrapRootfsStep,
    BuildIsoLayoutStep,
    ChecksumOutputsStep,
    ConfigureBootloaderStep,
    ConfigureRootfsStep,
    GenerateIsoStep,
    InstallHostDependenciesStep,
    PackSquashfsStep,
)

logger = logging.getLogger(__name__)


DEFAULT_BUILD_STATE = "build/build_state.json"


def build_steps(*, skip_host_deps: bool = False) -> List[Step]:
    steps: List[Step] = [
        InstallHostDependenciesStep(),
        BootstrapRootfsStep(),
        ConfigureRootfsStep(),
        BuildIsoLayoutStep(),
        PackSquashfsStep(),
        ConfigureBootloaderStep(),
        GenerateIsoStep(),
        ChecksumOutputsStep(),
    ]
    if skip_host_deps:
        steps = [s for s in steps if s.step_id != InstallHostDependenciesStep.step_id]
    return steps


def _exit_on_signal(signum: int, frame: Any) -> None:
    # SystemExit unwinds the mount scopes and the cleanup in run_build().
    raise SystemExit(128 + signum)


def install_signal_handlers() -> None:
    for sig in (signal.SIGTERM, signal.SIGHUP):
        signal.signal(sig, _exit_on_signal)


def _log_banner(cfg: BuildConfig) -> None:
    logger.info("==========================================")
    logger.info("  Building %s Linux Distribution", cfg.distro_name)
    logger.info("==========================================")


def _log_completion(ctx: BuildCtx) -> None:
    cfg = ctx.cfg
    logger.info("==========================================")
    logger.info("  Build Complete!")
    logger.info("==========================================")
    logger.info("Output: %s", ctx.output_iso)
    logger.info("Test with QEMU:")
    logger.info("  qemu-system-x86_64 -cdrom %s -m 1024 -enable-kvm", ctx.output_iso)
    logger.info("Default credentials:")
    logger.info("  User: %s / Password: %s", cfg.user_name, cfg.user_password)
    logger.info("  Root: root / Password: %s", cfg.root_password)


def run_build(
    *,
    cfg: BuildConfig,
    state_path: str = DEFAULT_BUILD_STATE,
    log_path: str = DEFAULT_LOG_PATH,
    start_at: Optional[str] = None,
    stop_after: Optional[str] = None,
    resume: bool = False,
    skip_host_deps: bool = False,
    dry_run: bool = False,
) -> Dict[str, Any]:
    """Run the build pipeline, persisting state after every step."""

    actual_log_path = configure_logging(log_path=log_path)

    ctx = BuildCtx(cfg=cfg, dry_run=dry_run)
    state = ensure_build_defaults(load_build_state(state_path))
    if not resume and start_at is None and not dry_run:
        clear_completed(state)
    state["summary"]["log_path"] = actual_log_path
    state["summary"]["dry_run"] = dry_run

    steps = build_steps(skip_host_deps=skip_host_deps)
    _log_banner(cfg)

    try:
        result = run_pipeline(
            ctx=ctx,
            state=state,
            steps=steps,
            start_at=start_at,
            stop_after=stop_after,
            resume=resume,
            checkpoint=lambda s: save_build_state(state_path, s),
        )
        state = result.state
        state["summary"]["ran_steps"] = result.ran_steps
        state["summary"]["skipped_steps"] = result.skipped_steps
        if GenerateIsoStep.step_id in result.ran_steps:
            _log_completion(ctx)
        return state
    except Exception as e:
        logger.exception("Build failed")
        record_error(state, step=(state.get("execution") or {}).get("current_step"), error=str(e))
        raise
    finally:
        # Same guarantee as an exit trap: nothing stays bound into the rootfs.
        release_stale_mounts(ctx.rootfs_dir, dry_run=dry_run)
        save_build_state(state_path, state)


def main(argv: Optional[list[str]] = None) -> int:
    p = argparse.ArgumentParser(prog="kbuos-build", description="Build a bootable Debian live ISO")
    p.add_argument("--config", default=None, help="YAML build config (defaults reproduce the stock KbuOS build)")
    p.add_argument("--state", default=DEFAULT_BUILD_STATE, help="Path to build state (json)")
    p.add_argument("--log", default=DEFAULT_LOG_PATH, help="Path to build log")
    p.add_argument("--start-at", default=None, help="Start at step_id (e.g. 40_build_iso_layout)")
    p.add_argument("--stop-after", default=None, help="Stop after step_id")
    p.add_argument("--resume", action="store_true", help="Skip steps recorded as completed")
    p.add_argument("--skip-host-deps", action="store_true", help="Do not apt-get install host tools")
    p.add_argument("--dry-run", action="store_true", help="Log commands and writes without executing")
    p.add_argument("--list-steps", action="store_true", help="List step ids and exit")

    args = p.parse_args(argv)

    steps = build_steps(skip_host_deps=args.skip_host_deps)
    if args.list_steps:
        for s in steps:
            print(f"{s.step_id}\t{s.description}")
        return 0

    known = {s.step_id for s in steps}
    for flag, value in (("--start-at", args.start_at), ("--stop-after", args.stop_after)):
        if value is not None and value not in known:
            p.error(f"{flag}: unknown step id {value!r}")

    if not args.dry_run:
        try:
            require_root()
        except PrivilegeError as e:
            configure_logging(log_path=None)
            logger.error("%s", e)
            return 1

    try:
        cfg = (load_build_config(args.config) if args.config else BuildConfig(raw={})).validate()
    except (OSError, ValueError, TypeError, RuntimeError) as e:
        configure_logging(log_path=None)
        logger.error("Invalid build config: %s", e)
        return 2

    install_signal_handlers()

    try:
        run_build(
            cfg=cfg,
            state_path=args.state,
            log_path=args.log,
            start_at=args.start_at,
            stop_after=args.stop_after,
            resume=bool(args.resume),
            skip_host_deps=bool(args.skip_host_deps),
            dry_run=bool(args.dry_run),
        )
    except CommandError as e:
        return e.returncode if e.returncode > 0 else 1
    except RuntimeError:
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
