"""Editor command resolution and launch tests."""

from __future__ import annotations

import subprocess
import unittest
from pathlib import Path
from unittest import mock

from tryspace.editor import format_editor_instruction, launch_editor, resolve_editor_command


class ResolveEditorCommandTests(unittest.TestCase):
    def test_missing_command(self) -> None:
        cmd, error = resolve_editor_command(None)
        self.assertIsNone(cmd)
        self.assertIn("no editor configured", error)
        self.assertIsNone(resolve_editor_command("   ")[0])

    def test_unbalanced_quotes(self) -> None:
        cmd, error = resolve_editor_command("vim '")
        self.assertIsNone(cmd)
        self.assertIn("invalid editor command", error)

    def test_program_must_be_on_path(self) -> None:
        with mock.patch("tryspace.editor.shutil.which", return_value=None):
            cmd, error = resolve_editor_command("code --wait")
        self.assertIsNone(cmd)
        self.assertEqual(error, "'code' not found on PATH")

    def test_arguments_are_split(self) -> None:
        with mock.patch("tryspace.editor.shutil.which", return_value="/usr/bin/code"):
            cmd, error = resolve_editor_command("code --wait --new-window")
        self.assertEqual(cmd, ["code", "--wait", "--new-window"])
        self.assertIsNone(error)


class LaunchEditorTests(unittest.TestCase):
    def test_terminal_hooks_wrap_the_child_process(self) -> None:
        events: list[str] = []

        def fake_run(argv, check):
            events.append("run")
            return subprocess.CompletedProcess(argv, 0)

        with mock.patch("tryspace.editor.subprocess.run", side_effect=fake_run) as run:
            error = launch_editor(
                Path("/tries/ws"),
                ["vim"],
                lambda: events.append("disable"),
                lambda: events.append("enable"),
            )

        self.assertIsNone(error)
        self.assertEqual(events, ["disable", "run", "enable"])
        self.assertEqual(run.call_args.args[0], ["vim", "/tries/ws"])

    def test_spawn_failure_still_restores_terminal(self) -> None:
        enable = mock.Mock()
        with mock.patch("tryspace.editor.subprocess.run", side_effect=OSError("boom")):
            error = launch_editor(Path("/tries/ws"), ["vim"], mock.Mock(), enable)

        enable.assert_called_once()
        self.assertIn("failed to launch editor", error)


class InstructionTests(unittest.TestCase):
    def test_editor_instruction_is_shell_quoted(self) -> None:
        self.assertEqual(
            format_editor_instruction(["code", "--wait"], Path("/tries/my ws")),
            "code --wait '/tries/my ws'",
        )


if __name__ == "__main__":
    unittest.main()
