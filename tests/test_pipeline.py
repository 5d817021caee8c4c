"""Tests for ordered step execution with pre/postconditions."""

import tempfile
import unittest
from pathlib import Path
from typing import Any, Dict, List, Sequence

from kbuos_builder.build_config import BuildConfig
from kbuos_builder.build_state import ensure_build_defaults, mark_completed
from kbuos_builder.context import BuildCtx
from kbuos_builder.pipeline import PostconditionError, PreconditionError, run_pipeline


class FakeStep:
    def __init__(self, step_id: str, log: List[str], *, requires=(), produces=(), writes=(), fail=None):
        self.step_id = step_id
        self.description = f"fake {step_id}"
        self._log = log
        self._requires = list(requires)
        self._produces = list(produces)
        self._writes = list(writes)
        self._fail = fail

    def requires(self, ctx: BuildCtx) -> Sequence[Path]:
        return self._requires

    def produces(self, ctx: BuildCtx) -> Sequence[Path]:
        return self._produces

    def run(self, ctx: BuildCtx, state: Dict[str, Any]) -> None:
        self._log.append(self.step_id)
        for p, data in self._writes:
            p.write_bytes(data)
        if self._fail is not None:
            raise self._fail


class RunPipelineTest(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.tmp = Path(self._tmp.name)
        self.ctx = BuildCtx(cfg=BuildConfig(raw={}, base_dir=self.tmp))
        self.state = ensure_build_defaults({})
        self.log: List[str] = []

    def _steps(self, *ids: str):
        return [FakeStep(i, self.log) for i in ids]

    def test_runs_in_order_and_records_completion(self) -> None:
        result = run_pipeline(ctx=self.ctx, state=self.state, steps=self._steps("10_a", "20_b", "30_c"))

        self.assertEqual(["10_a", "20_b", "30_c"], self.log)
        self.assertEqual(["10_a", "20_b", "30_c"], result.ran_steps)
        self.assertEqual(["10_a", "20_b", "30_c"], self.state["execution"]["completed_steps"])
        self.assertIsNone(self.state["execution"]["current_step"])

    def test_start_at_and_stop_after(self) -> None:
        run_pipeline(
            ctx=self.ctx,
            state=self.state,
            steps=self._steps("10_a", "20_b", "30_c", "40_d"),
            start_at="20_b",
            stop_after="30_c",
        )

        self.assertEqual(["20_b", "30_c"], self.log)

    def test_unknown_step_id(self) -> None:
        with self.assertRaises(ValueError):
            run_pipeline(ctx=self.ctx, state=self.state, steps=self._steps("10_a"), start_at="99_x")

    def test_resume_skips_completed_steps(self) -> None:
        mark_completed(self.state, "10_a")

        result = run_pipeline(ctx=self.ctx, state=self.state, steps=self._steps("10_a", "20_b"), resume=True)

        self.assertEqual(["20_b"], self.log)
        self.assertEqual(["10_a"], result.skipped_steps)

    def test_without_resume_completed_steps_run_again(self) -> None:
        mark_completed(self.state, "10_a")

        run_pipeline(ctx=self.ctx, state=self.state, steps=self._steps("10_a", "20_b"))

        self.assertEqual(["10_a", "20_b"], self.log)

    def test_missing_input_stops_before_step(self) -> None:
        steps = [
            FakeStep("10_a", self.log),
            FakeStep("20_b", self.log, requires=[self.tmp / "rootfs"]),
            FakeStep("30_c", self.log),
        ]

        with self.assertRaises(PreconditionError):
            run_pipeline(ctx=self.ctx, state=self.state, steps=steps)

        self.assertEqual(["10_a"], self.log)
        self.assertEqual("20_b", self.state["execution"]["current_step"])

    def test_empty_output_fails_postcondition(self) -> None:
        out = self.tmp / "KbuOS.iso"
        steps = [
            FakeStep("70_iso", self.log, produces=[out], writes=[(out, b"")]),
            FakeStep("80_sum", self.log),
        ]

        with self.assertRaises(PostconditionError):
            run_pipeline(ctx=self.ctx, state=self.state, steps=steps)

        self.assertEqual(["70_iso"], self.log)
        self.assertNotIn("70_iso", self.state["execution"]["completed_steps"])

    def test_failure_stops_later_steps(self) -> None:
        steps = [
            FakeStep("10_a", self.log, fail=RuntimeError("boom")),
            FakeStep("20_b", self.log),
        ]

        with self.assertRaises(RuntimeError):
            run_pipeline(ctx=self.ctx, state=self.state, steps=steps)

        self.assertEqual(["10_a"], self.log)

    def test_dry_run_skips_condition_checks(self) -> None:
        ctx = BuildCtx(cfg=self.ctx.cfg, dry_run=True)
        steps = [FakeStep("20_b", self.log, requires=[self.tmp / "absent"], produces=[self.tmp / "absent"])]

        run_pipeline(ctx=ctx, state=self.state, steps=steps)

        self.assertEqual(["20_b"], self.log)
        self.assertEqual([], self.state["execution"]["completed_steps"])

    def test_checkpoint_after_each_step(self) -> None:
        seen: List[List[str]] = []

        run_pipeline(
            ctx=self.ctx,
            state=self.state,
            steps=self._steps("10_a", "20_b"),
            checkpoint=lambda s: seen.append(list(s["execution"]["completed_steps"])),
        )

        self.assertEqual([["10_a"], ["10_a", "20_b"]], seen)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
