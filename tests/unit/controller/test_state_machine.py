"""Interaction state machine tests.

Drives ``InteractionController`` with key tokens against a real temporary
workspace root and checks modes, selection, outcomes, and filesystem effects.
"""

from __future__ import annotations

import os
import shlex
import subprocess
import tempfile
import unittest
from datetime import date
from pathlib import Path

from tryspace.actions import ActionExecutor
from tryspace.controller import InteractionController, SessionOutcome
from tryspace.input import UNKNOWN_KEY, KeyReader
from tryspace.screen import Mode
from tryspace.workspace_index import WorkspaceIndex

TODAY = date(2025, 1, 2)


class ControllerTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def make_workspaces(self, *names: str) -> None:
        """Create workspaces so that ``names`` is the newest-first scan order."""
        for offset, name in enumerate(names):
            path = self.root / name
            path.mkdir()
            stamp = 2_000_000 - offset * 1000
            os.utime(path, (stamp, stamp))

    def make_controller(self, **kwargs) -> InteractionController:
        executor = kwargs.pop("executor", None) or ActionExecutor(today=lambda: TODAY)
        controller = InteractionController(WorkspaceIndex(self.root), executor, **kwargs)
        controller.start()
        return controller

    def press(self, controller: InteractionController, *keys: str) -> None:
        for key in keys:
            controller.handle_key(key)

    def type_text(self, controller: InteractionController, text: str) -> None:
        self.press(controller, *text)


class BrowsingTests(ControllerTestCase):
    def test_start_lists_entries_with_first_selected(self) -> None:
        self.make_workspaces("alpha", "beta", "gamma")
        controller = self.make_controller()

        model = controller.screen_model()

        self.assertIs(model.mode, Mode.BROWSING)
        self.assertEqual([row.entry.name for row in model.rows], ["alpha", "beta", "gamma"])
        self.assertEqual(model.selected, 0)
        self.assertEqual(model.total_count, 3)

    def test_typing_filters_and_backspace_restores(self) -> None:
        self.make_workspaces("rust-test", "python-play", "go-api")
        controller = self.make_controller()

        self.type_text(controller, "rust")
        self.assertEqual([m.entry.name for m in controller.state.ranked_matches], ["rust-test"])
        self.assertEqual(controller.state.focus, "query")

        self.press(controller, "BACKSPACE", "BACKSPACE", "BACKSPACE", "BACKSPACE")
        self.assertEqual(controller.state.query, "")
        self.assertEqual(len(controller.state.ranked_matches), 3)

    def test_ctrl_u_clears_query(self) -> None:
        self.make_workspaces("rust-test", "go-api")
        controller = self.make_controller()
        self.type_text(controller, "go")

        self.press(controller, "CTRL_U")

        self.assertEqual(controller.state.query, "")
        self.assertEqual(len(controller.state.ranked_matches), 2)

    def test_selection_moves_and_clamps(self) -> None:
        self.make_workspaces("a1", "b1", "c1")
        controller = self.make_controller()

        self.press(controller, "UP")
        self.assertEqual(controller.state.selected_index, 0)
        self.press(controller, "DOWN", "DOWN", "DOWN", "DOWN")
        self.assertEqual(controller.state.selected_index, 2)
        self.assertEqual(controller.state.focus, "list")

    def test_navigation_on_empty_list_is_noop(self) -> None:
        controller = self.make_controller()

        self.press(controller, "DOWN", "UP")

        self.assertEqual(controller.state.selected_index, 0)
        self.assertIsNone(controller.state.selected_entry)

    def test_selected_entry_stays_selected_while_still_matching(self) -> None:
        self.make_workspaces("alpha-one", "beta-one", "gamma-one")
        controller = self.make_controller()
        self.press(controller, "DOWN")
        self.assertEqual(controller.state.selected_entry.name, "beta-one")

        self.type_text(controller, "e")

        self.assertEqual(controller.state.selected_entry.name, "beta-one")

    def test_selection_resets_when_selected_entry_filtered_out(self) -> None:
        self.make_workspaces("alpha", "beta", "gamma")
        controller = self.make_controller()
        self.press(controller, "DOWN")

        self.type_text(controller, "gam")

        self.assertEqual(controller.state.selected_index, 0)
        self.assertEqual(controller.state.selected_entry.name, "gamma")

    def test_unbound_control_token_is_ignored(self) -> None:
        self.make_workspaces("alpha")
        controller = self.make_controller()

        handled = controller.handle_key("PAGE_DOWN")

        self.assertFalse(handled)
        self.assertEqual(controller.state.query, "")

    def test_function_and_modified_keys_do_not_end_session(self) -> None:
        self.make_workspaces("alpha")
        controller = self.make_controller()
        read_fd, write_fd = os.pipe()
        self.addCleanup(os.close, read_fd)
        self.addCleanup(os.close, write_fd)
        reader = KeyReader(read_fd)
        os.write(write_fd, b"\x1b[Z\x1b[1;5A\x1b[15~\x1bOP\x1bx")

        keys = [reader.read(timeout_ms=20) for _ in range(5)]
        for key in keys:
            controller.handle_key(key)

        self.assertEqual(keys, [UNKNOWN_KEY] * 5)
        self.assertFalse(controller.state.finished)
        self.assertEqual(controller.state.query, "")
        self.assertIs(controller.state.mode, Mode.BROWSING)


class EnterTests(ControllerTestCase):
    def test_text_matching_nothing_creates_dated_workspace(self) -> None:
        self.make_workspaces("alpha")
        controller = self.make_controller()

        self.type_text(controller, "New Idea")
        self.press(controller, "ENTER")

        expected = self.root / "2025-01-02-new-idea"
        self.assertTrue(expected.is_dir())
        self.assertEqual(controller.state.outcome, SessionOutcome(path=expected))
        self.assertEqual(controller.state.outcome.instruction(), f"cd {shlex.quote(str(expected))}")
        self.assertIsNotNone(controller.index.find("2025-01-02-new-idea"))

    def test_exact_name_navigates_case_insensitively(self) -> None:
        self.make_workspaces("alpha", "Beta-One")
        controller = self.make_controller()

        self.type_text(controller, "beta-one")
        self.press(controller, "ENTER")

        self.assertEqual(controller.state.outcome.path, self.root / "Beta-One")
        self.assertEqual(sorted(p.name for p in self.root.iterdir()), ["Beta-One", "alpha"])

    def test_enter_after_moving_selection_navigates_instead_of_creating(self) -> None:
        self.make_workspaces("alpha-x", "alpha-y")
        controller = self.make_controller()

        self.type_text(controller, "alpha")
        self.press(controller, "DOWN", "ENTER")

        self.assertEqual(controller.state.outcome.path, self.root / "alpha-y")
        self.assertEqual(len(list(self.root.iterdir())), 2)

    def test_empty_query_navigates_to_selection(self) -> None:
        self.make_workspaces("alpha", "beta")
        controller = self.make_controller()

        self.press(controller, "ENTER")

        self.assertEqual(controller.state.outcome.path, self.root / "alpha")

    def test_enter_creates_when_list_focus_loses_its_last_match(self) -> None:
        self.make_workspaces("demo-one", "other")
        controller = self.make_controller()

        self.type_text(controller, "demo")
        self.press(controller, "DOWN")
        self.assertEqual(controller.state.focus, "list")
        self.press(controller, "CTRL_D", "y")
        self.assertEqual(controller.state.ranked_matches, [])
        self.assertEqual(controller.state.focus, "query")

        self.press(controller, "ENTER")

        self.assertEqual(controller.state.outcome.path, self.root / "2025-01-02-demo")
        self.assertTrue((self.root / "2025-01-02-demo").is_dir())

    def test_empty_query_without_entries_sets_hint(self) -> None:
        controller = self.make_controller()

        self.press(controller, "ENTER")

        self.assertIsNone(controller.state.outcome)
        self.assertTrue(controller.state.status_message)
        self.assertFalse(controller.state.status_is_error)

    def test_existing_dated_target_reports_error_and_stays(self) -> None:
        self.make_workspaces("2025-01-02-foo")
        controller = self.make_controller()

        self.type_text(controller, "foo")
        self.press(controller, "ENTER")

        self.assertIsNone(controller.state.outcome)
        self.assertIs(controller.state.mode, Mode.BROWSING)
        self.assertTrue(controller.state.status_is_error)
        self.assertEqual(controller.state.status_message, "Already exists: 2025-01-02-foo")

    def test_status_clears_on_next_key(self) -> None:
        self.make_workspaces("2025-01-02-foo")
        controller = self.make_controller()
        self.type_text(controller, "foo")
        self.press(controller, "ENTER")

        self.press(controller, "BACKSPACE")

        self.assertEqual(controller.state.status_message, "")
        self.assertFalse(controller.state.status_is_error)

    def test_git_url_clones_and_navigates(self) -> None:
        busy: list[str] = []

        def run_process(cmd, **kwargs):
            Path(cmd[-1]).mkdir(parents=True)
            return subprocess.CompletedProcess(cmd, 0, stdout=None, stderr="")

        executor = ActionExecutor(today=lambda: TODAY, run_process=run_process)
        controller = self.make_controller(executor=executor, on_busy=busy.append)

        self.type_text(controller, "https://github.com/user/tool.git")
        self.press(controller, "ENTER")

        self.assertEqual(controller.state.outcome.path, self.root / "2025-01-02-tool")
        self.assertEqual(busy, ["Cloning https://github.com/user/tool.git ..."])

    def test_failed_clone_sets_error_and_creates_nothing(self) -> None:
        self.make_workspaces("alpha")

        def run_process(cmd, **kwargs):
            Path(cmd[-1]).mkdir(parents=True)
            return subprocess.CompletedProcess(cmd, 128, stdout=None, stderr="fatal: not found\n")

        executor = ActionExecutor(today=lambda: TODAY, run_process=run_process)
        controller = self.make_controller(executor=executor)

        self.type_text(controller, "git@example.com:user/nope.git")
        self.press(controller, "ENTER")

        self.assertIsNone(controller.state.outcome)
        self.assertIs(controller.state.mode, Mode.BROWSING)
        self.assertEqual(controller.state.status_message, "Clone failed: fatal: not found")
        self.assertEqual([p.name for p in self.root.iterdir()], ["alpha"])

    def test_vanished_selection_reports_not_found_and_refreshes(self) -> None:
        self.make_workspaces("alpha", "beta")
        controller = self.make_controller()
        (self.root / "alpha").rmdir()

        self.press(controller, "ENTER")

        self.assertIsNone(controller.state.outcome)
        self.assertTrue(controller.state.status_is_error)
        self.assertEqual(controller.state.status_message, "No longer exists: alpha")
        self.assertEqual([m.entry.name for m in controller.state.ranked_matches], ["beta"])


class DeleteFlowTests(ControllerTestCase):
    def test_ctrl_d_then_escape_keeps_everything(self) -> None:
        self.make_workspaces("alpha", "beta", "gamma")
        controller = self.make_controller()

        self.press(controller, "CTRL_D")
        self.assertIs(controller.state.mode, Mode.CONFIRMING_DELETE)
        self.assertEqual(controller.screen_model().confirm_prompt, "Delete 'alpha'?")
        self.press(controller, "ESC")

        self.assertIs(controller.state.mode, Mode.BROWSING)
        self.assertIsNone(controller.state.pending_entry)
        self.assertIsNone(controller.state.outcome)
        self.assertEqual(sorted(p.name for p in self.root.iterdir()), ["alpha", "beta", "gamma"])

    def test_ctrl_d_then_n_cancels(self) -> None:
        self.make_workspaces("alpha")
        controller = self.make_controller()

        self.press(controller, "CTRL_D", "N")

        self.assertIs(controller.state.mode, Mode.BROWSING)
        self.assertTrue((self.root / "alpha").is_dir())

    def test_ctrl_d_then_y_removes_only_selected(self) -> None:
        self.make_workspaces("alpha", "beta", "gamma")
        controller = self.make_controller()

        self.press(controller, "DOWN", "CTRL_D", "y")

        self.assertIs(controller.state.mode, Mode.BROWSING)
        self.assertEqual(sorted(p.name for p in self.root.iterdir()), ["alpha", "gamma"])
        self.assertEqual([m.entry.name for m in controller.state.ranked_matches], ["alpha", "gamma"])
        self.assertEqual(controller.state.status_message, "Deleted: beta")
        self.assertFalse(controller.state.status_is_error)

    def test_other_keys_are_ignored_while_confirming(self) -> None:
        self.make_workspaces("alpha")
        controller = self.make_controller()

        self.press(controller, "CTRL_D", "x", "DOWN", "ENTER")

        self.assertIs(controller.state.mode, Mode.CONFIRMING_DELETE)
        self.assertEqual(controller.state.query, "")

    def test_ctrl_c_while_confirming_quits_without_deleting(self) -> None:
        self.make_workspaces("alpha")
        controller = self.make_controller()

        self.press(controller, "CTRL_D", "CTRL_C")

        self.assertEqual(controller.state.outcome, SessionOutcome())
        self.assertIsNone(controller.state.outcome.instruction())
        self.assertIsNone(controller.state.pending_entry)
        self.assertTrue((self.root / "alpha").is_dir())

    def test_ctrl_d_without_selection_does_nothing(self) -> None:
        controller = self.make_controller()

        self.press(controller, "CTRL_D")

        self.assertIs(controller.state.mode, Mode.BROWSING)


class PreviewTests(ControllerTestCase):
    def test_tab_opens_preview_and_tab_closes_it(self) -> None:
        self.make_workspaces("alpha")
        (self.root / "alpha" / "src").mkdir()
        (self.root / "alpha" / "main.py").write_text("print()\n", encoding="utf-8")
        controller = self.make_controller()

        self.press(controller, "TAB")

        model = controller.screen_model()
        self.assertIs(model.mode, Mode.SHOWING_PREVIEW)
        self.assertEqual(model.preview.lines[:2], ("src/", "main.py"))

        self.press(controller, "DOWN")
        self.assertEqual(controller.state.preview_start, 1)
        self.press(controller, "DOWN", "DOWN", "DOWN")
        self.assertEqual(controller.state.preview_start, 1)

        self.press(controller, "TAB")
        self.assertIs(controller.state.mode, Mode.BROWSING)
        self.assertIsNone(controller.screen_model().preview)

    def test_escape_leaves_preview_without_quitting(self) -> None:
        self.make_workspaces("alpha")
        controller = self.make_controller()

        self.press(controller, "TAB", "ESC")

        self.assertIs(controller.state.mode, Mode.BROWSING)
        self.assertIsNone(controller.state.outcome)

    def test_unknown_key_keeps_preview_open(self) -> None:
        self.make_workspaces("alpha")
        controller = self.make_controller()

        self.press(controller, "TAB", UNKNOWN_KEY)

        self.assertIs(controller.state.mode, Mode.SHOWING_PREVIEW)
        self.assertEqual(controller.state.query, "")


class QuitAndEditorTests(ControllerTestCase):
    def test_escape_in_browsing_quits_without_destination(self) -> None:
        self.make_workspaces("alpha")
        controller = self.make_controller()

        self.press(controller, "ESC")

        self.assertTrue(controller.state.finished)
        self.assertIsNone(controller.state.outcome.instruction())
        self.assertFalse(controller.handle_key("a"))

    def test_editor_failure_is_reported_in_status(self) -> None:
        self.make_workspaces("alpha")
        controller = self.make_controller(editor_command="no-such-editor-binary-xyz")

        self.press(controller, "CTRL_E")

        self.assertIs(controller.state.mode, Mode.BROWSING)
        self.assertTrue(controller.state.status_is_error)
        self.assertTrue(controller.state.status_message.startswith("Cannot open editor:"))

    def test_shell_editor_mode_ends_session_with_editor_instruction(self) -> None:
        self.make_workspaces("alpha")
        controller = self.make_controller(editor_command="sh", editor_mode="shell")

        self.press(controller, "CTRL_E")

        target = self.root / "alpha"
        self.assertEqual(controller.state.outcome.path, target)
        self.assertEqual(controller.state.outcome.instruction(), shlex.join(["sh", str(target)]))

    def test_hints_follow_the_active_mode(self) -> None:
        self.make_workspaces("alpha")
        controller = self.make_controller()
        browsing_hints = controller.screen_model().hints

        self.press(controller, "CTRL_D")

        self.assertIn(("Ctrl-D", "Delete"), browsing_hints)
        self.assertIn(("y", "Delete"), controller.screen_model().hints)


if __name__ == "__main__":
    unittest.main()
