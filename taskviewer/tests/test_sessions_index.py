import tempfile
import unittest
from datetime import datetime, timezone
from pathlib import Path

from taskviewer.errors import IndexNotFoundError, MalformedIndexError, NotFoundError
from taskviewer.parsers.sessions_index import load_sessions_index, read_project_sessions
from taskviewer.tests.claude_fixtures import session_record, write_sessions_index


class SessionsIndexReaderTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tmpdir = tempfile.TemporaryDirectory()
        self.projects_dir = Path(self.tmpdir.name) / "projects"
        self.projects_dir.mkdir()

    def tearDown(self) -> None:
        self.tmpdir.cleanup()

    def test_entries_load_most_recent_first(self) -> None:
        write_sessions_index(
            self.projects_dir,
            "-proj",
            [
                session_record("a", "2026-01-01T10:00:00.000Z"),
                session_record("b", "2026-01-02T10:00:00.000Z"),
            ],
        )

        entries = read_project_sessions(self.projects_dir, "-proj")

        self.assertEqual([entry.sessionId for entry in entries], ["b", "a"])

    def test_missing_index_is_not_found(self) -> None:
        (self.projects_dir / "-empty").mkdir()

        with self.assertRaises(IndexNotFoundError):
            read_project_sessions(self.projects_dir, "-empty")
        with self.assertRaises(NotFoundError):
            read_project_sessions(self.projects_dir, "-does-not-exist")

    def test_path_like_directory_names_are_rejected(self) -> None:
        for dir_name in ("..", "../etc", "", "a/b"):
            with self.assertRaises(IndexNotFoundError):
                read_project_sessions(self.projects_dir, dir_name)

    def test_invalid_json_is_malformed(self) -> None:
        project_dir = self.projects_dir / "-broken"
        project_dir.mkdir()
        (project_dir / "sessions-index.json").write_text("{not json", encoding="utf-8")

        with self.assertRaises(MalformedIndexError):
            read_project_sessions(self.projects_dir, "-broken")

    def test_unexpected_structure_is_malformed(self) -> None:
        project_dir = self.projects_dir / "-shape"
        project_dir.mkdir()
        path = project_dir / "sessions-index.json"

        path.write_text("[]", encoding="utf-8")
        with self.assertRaises(MalformedIndexError):
            load_sessions_index(path)

        path.write_text('{"version": 1, "entries": "nope"}', encoding="utf-8")
        with self.assertRaises(MalformedIndexError):
            load_sessions_index(path)

        path.write_text('{"version": 1, "entries": [{"summary": "no id"}]}', encoding="utf-8")
        with self.assertRaises(MalformedIndexError):
            load_sessions_index(path)

    def test_empty_index_loads_as_no_entries(self) -> None:
        path = write_sessions_index(self.projects_dir, "-none", [])

        self.assertEqual(load_sessions_index(path), [])

    def test_timestamps_are_normalized_to_utc_and_nulls_to_defaults(self) -> None:
        path = write_sessions_index(
            self.projects_dir,
            "-tz",
            [
                session_record("naive", "2026-01-01T10:00:00", summary=None, gitBranch=None, isSidechain=None),
                session_record("offset", "2026-01-01T12:00:00+01:00"),
                {"sessionId": "bare"},
            ],
            version=None,
        )

        entries = {entry.sessionId: entry for entry in load_sessions_index(path)}

        self.assertEqual(entries["naive"].modified, datetime(2026, 1, 1, 10, tzinfo=timezone.utc))
        self.assertEqual(entries["offset"].modified, datetime(2026, 1, 1, 11, tzinfo=timezone.utc))
        self.assertEqual(entries["naive"].summary, "")
        self.assertEqual(entries["naive"].gitBranch, "")
        self.assertFalse(entries["naive"].isSidechain)
        self.assertEqual(entries["bare"].modified, datetime(1970, 1, 1, tzinfo=timezone.utc))

    def test_equal_timestamps_keep_file_order(self) -> None:
        path = write_sessions_index(
            self.projects_dir,
            "-ties",
            [
                session_record("first", "2026-01-01T10:00:00Z"),
                session_record("second", "2026-01-01T10:00:00Z"),
                session_record("newest", "2026-01-03T10:00:00Z"),
            ],
        )

        self.assertEqual(
            [entry.sessionId for entry in load_sessions_index(path)],
            ["newest", "first", "second"],
        )


if __name__ == "__main__":
    unittest.main()
