from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence

from .build_state import is_completed, mark_completed
from .context import BuildCtx

logger = logging.getLogger(__name__)


class PreconditionError(RuntimeError):
    pass


class PostconditionError(RuntimeError):
    pass


class Step(Protocol):
    """A single idempotent step with declared inputs and outputs."""

    step_id: str
    description: str

    def requires(self, ctx: BuildCtx) -> Sequence[Path]:
        ...

    def produces(self, ctx: BuildCtx) -> Sequence[Path]:
        ...

    def run(self, ctx: BuildCtx, state: Dict[str, Any]) -> None:
        ...


@dataclass(frozen=True)
class PipelineResult:
    state: Dict[str, Any]
    ran_steps: List[str]
    skipped_steps: List[str]


def check_requires(step: Step, ctx: BuildCtx) -> None:
    missing = [str(p) for p in step.requires(ctx) if not p.exists()]
    if missing:
        raise PreconditionError(f"{step.step_id}: missing inputs: {', '.join(missing)}")


def check_produces(step: Step, ctx: BuildCtx) -> None:
    bad: List[str] = []
    for p in step.produces(ctx):
        if not p.exists() or (p.is_file() and p.stat().st_size == 0):
            bad.append(str(p))
    if bad:
        raise PostconditionError(f"{step.step_id}: missing or empty outputs: {', '.join(bad)}")


def _validate_ids(steps: Sequence[Step], *ids: Optional[str]) -> None:
    known = {s.step_id for s in steps}
    for step_id in ids:
        if step_id is not None and step_id not in known:
            raise ValueError(f"Unknown step id {step_id!r}; known: {', '.join(s.step_id for s in steps)}")


def run_pipeline(
    *,
    ctx: BuildCtx,
    state: Dict[str, Any],
    steps: Sequence[Step],
    start_at: Optional[str] = None,
    stop_after: Optional[str] = None,
    resume: bool = False,
    checkpoint: Optional[Callable[[Dict[str, Any]], None]] = None,
) -> PipelineResult:
    """Run steps in order, stopping at the first failure.

    With resume, steps already recorded as completed are skipped.
    Dry runs neither check pre/postconditions nor record completion.
    """

    _validate_ids(steps, start_at, stop_after)

    ran: List[str] = []
    skipped: List[str] = []

    started = start_at is None

    for step in steps:
        if not started:
            if step.step_id == start_at:
                started = True
            else:
                continue

        state.setdefault("execution", {})["current_step"] = step.step_id

        if resume and is_completed(state, step.step_id):
            logger.info("Skipping step %s (already completed)", step.step_id)
            skipped.append(step.step_id)
        else:
            logger.info("Running step %s: %s", step.step_id, step.description)
            if not ctx.dry_run:
                check_requires(step, ctx)
            step.run(ctx, state)
            if not ctx.dry_run:
                check_produces(step, ctx)
            if not ctx.dry_run:
                mark_completed(state, step.step_id)
            ran.append(step.step_id)
            if checkpoint is not None:
                checkpoint(state)

        if stop_after is not None and step.step_id == stop_after:
            logger.info("Stopping after %s", stop_after)
            break

    state.setdefault("execution", {})["current_step"] = None
    return PipelineResult(state=state, ran_steps=ran, skipped_steps=skipped)
