"""Tests for the external command runner."""

import subprocess
import unittest
from unittest import mock

from kbuos_builder.lib.command import CommandError, fmt_argv, run_cmd


class RunCmdTest(unittest.TestCase):
    def test_dry_run_does_not_execute(self) -> None:
        with mock.patch("subprocess.run") as run_mock:
            result = run_cmd(["mksquashfs", "a", "b"], dry_run=True)

        run_mock.assert_not_called()
        self.assertEqual(0, result.returncode)
        self.assertEqual(["mksquashfs", "a", "b"], result.argv)

    def test_failure_raises_with_returncode(self) -> None:
        completed = subprocess.CompletedProcess(["false"], 100, stdout="", stderr="E: boom\n")
        with mock.patch("subprocess.run", return_value=completed):
            with self.assertRaises(CommandError) as cm:
                run_cmd(["apt-get", "install", "-y", "nope"])

        self.assertEqual(100, cm.exception.returncode)
        self.assertEqual(["apt-get", "install", "-y", "nope"], cm.exception.argv)
        self.assertIn("E: boom", str(cm.exception))

    def test_unchecked_failure_returns_result(self) -> None:
        completed = subprocess.CompletedProcess(["umount"], 32, stdout="", stderr="not mounted")
        with mock.patch("subprocess.run", return_value=completed):
            result = run_cmd(["umount", "-lf", "/x"], check=False)

        self.assertEqual(32, result.returncode)

    def test_uncaptured_output_is_not_piped(self) -> None:
        completed = subprocess.CompletedProcess(["mksquashfs"], 0, stdout=None, stderr=None)
        with mock.patch("subprocess.run", return_value=completed) as run_mock:
            result = run_cmd(["mksquashfs"], capture=False)

        self.assertIsNone(run_mock.call_args.kwargs["stdout"])
        self.assertEqual("", result.stdout)

    def test_input_text_is_not_logged(self) -> None:
        completed = subprocess.CompletedProcess(["chpasswd"], 0, stdout="", stderr="")
        with mock.patch("subprocess.run", return_value=completed) as run_mock:
            with self.assertLogs("kbuos_builder.lib.command", level="DEBUG") as logs:
                run_cmd(["chroot", "/r", "chpasswd"], input_text="root:secret\n")

        self.assertEqual("root:secret\n", run_mock.call_args.kwargs["input"])
        self.assertFalse(any("secret" in line for line in logs.output))

    def test_env_overlays_process_environment(self) -> None:
        completed = subprocess.CompletedProcess(["x"], 0, stdout="", stderr="")
        with mock.patch.dict("os.environ", {"PATH": "/usr/bin"}), mock.patch(
            "subprocess.run", return_value=completed
        ) as run_mock:
            run_cmd(["x"], env={"DEBIAN_FRONTEND": "noninteractive"})

        env = run_mock.call_args.kwargs["env"]
        self.assertEqual("/usr/bin", env["PATH"])
        self.assertEqual("noninteractive", env["DEBIAN_FRONTEND"])

    def test_fmt_argv_quotes(self) -> None:
        self.assertEqual("echo 'a b'", fmt_argv(["echo", "a b"]))


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
