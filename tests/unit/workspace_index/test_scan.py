"""Workspace root scanning tests.

Checks which directories become entries, their ordering, metadata flags,
and how unreadable or missing roots are reported.
"""

from __future__ import annotations

import os
import tempfile
import unittest
from pathlib import Path

from tryspace.errors import ErrorKind
from tryspace.workspace_index import WorkspaceIndex, detect_markers, scan


def _touch_dir(path: Path, mtime: float) -> None:
    path.mkdir(parents=True, exist_ok=True)
    os.utime(path, (mtime, mtime))


class ScanTests(unittest.TestCase):
    def test_lists_visible_subdirectories_newest_first(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            _touch_dir(root / "older", 1_000_000)
            _touch_dir(root / "newest", 3_000_000)
            _touch_dir(root / "middle", 2_000_000)
            _touch_dir(root / ".hidden", 4_000_000)
            (root / "notes.txt").write_text("x", encoding="utf-8")

            result = scan(root)

            self.assertIsNone(result.error)
            self.assertEqual([entry.name for entry in result.entries], ["newest", "middle", "older"])
            self.assertTrue(all(entry.path.is_absolute() for entry in result.entries))

    def test_equal_mtimes_order_by_name(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            for name in ("charlie", "alpha", "bravo"):
                _touch_dir(root / name, 1_500_000)

            names = [entry.name for entry in scan(root).entries]

            self.assertEqual(names, ["alpha", "bravo", "charlie"])

    def test_detects_git_repository_and_project_markers(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            repo = root / "repo"
            (repo / ".git").mkdir(parents=True)
            (repo / "Cargo.toml").write_text("[package]\n", encoding="utf-8")
            (repo / "requirements.txt").write_text("", encoding="utf-8")
            (root / "plain").mkdir()

            entries = {entry.name: entry for entry in scan(root).entries}

            self.assertTrue(entries["repo"].is_git_repo)
            self.assertEqual(entries["repo"].markers, ("rust", "python"))
            self.assertFalse(entries["plain"].is_git_repo)
            self.assertEqual(entries["plain"].markers, ())

    def test_missing_root_is_created(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp) / "deep" / "tries"

            result = scan(root)

            self.assertIsNone(result.error)
            self.assertEqual(result.entries, [])
            self.assertTrue(root.is_dir())

    def test_root_that_is_a_file_reports_io_error(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp) / "tries"
            root.write_text("not a directory", encoding="utf-8")

            result = scan(root)

            self.assertEqual(result.entries, [])
            self.assertIsNotNone(result.error)
            self.assertIs(result.error.kind, ErrorKind.IO_ERROR)


class WorkspaceIndexTests(unittest.TestCase):
    def test_refresh_replaces_entries_wholesale(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            (root / "first").mkdir()
            index = WorkspaceIndex(root)
            self.assertIsNone(index.refresh())
            self.assertEqual([entry.name for entry in index.entries], ["first"])

            (root / "first").rmdir()
            (root / "second").mkdir()
            index.refresh()

            self.assertEqual([entry.name for entry in index.entries], ["second"])
            self.assertEqual(len(index), 1)

    def test_find_is_case_insensitive_and_exact(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            (root / "2025-01-02-Rust-Test").mkdir()
            index = WorkspaceIndex(root)
            index.refresh()

            found = index.find("2025-01-02-rust-test")

            self.assertIsNotNone(found)
            self.assertEqual(found.name, "2025-01-02-Rust-Test")
            self.assertIsNone(index.find("rust-test"))


class DetectMarkersTests(unittest.TestCase):
    def test_each_marker_file_maps_to_its_tag(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            directory = Path(tmp)
            for filename in ("go.mod", "pom.xml", "pubspec.yaml", "mise.toml"):
                (directory / filename).write_text("", encoding="utf-8")

            self.assertEqual(detect_markers(directory), ("go", "maven", "flutter", "mise"))


if __name__ == "__main__":
    unittest.main()
