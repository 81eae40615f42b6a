import tempfile
import unittest
from pathlib import Path

from taskviewer.errors import EnumerationError, IndexNotFoundError, MalformedIndexError, NotFoundError
from taskviewer.project_catalog import ProjectCatalog
from taskviewer.tests.claude_fixtures import session_record, write_sessions_index, write_tasks

REPO_DIR = "-src-github-com-acme-repo"
WORKTREE_DIR = "-src-github-com-acme-repo-wt"
SCRATCH_DIR = "-tmp-scratch"


class ProjectCatalogTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tmpdir = tempfile.TemporaryDirectory()
        self.claude_dir = Path(self.tmpdir.name)
        self.projects_dir = self.claude_dir / "projects"
        self.tasks_dir = self.claude_dir / "tasks"
        self.projects_dir.mkdir()
        self.tasks_dir.mkdir()
        self._create_fixture()
        self.catalog = ProjectCatalog(self.claude_dir)

    def tearDown(self) -> None:
        self.tmpdir.cleanup()

    def _create_fixture(self) -> None:
        write_sessions_index(
            self.projects_dir,
            REPO_DIR,
            [
                session_record("s1", "2026-01-01T10:00:00Z", "/src/github.com/acme/repo", gitBranch="old"),
                session_record("s2", "2026-01-03T10:00:00Z", "/src/github.com/acme/repo", gitBranch="feature"),
            ],
        )
        write_sessions_index(
            self.projects_dir,
            WORKTREE_DIR,
            [session_record("s3", "2026-01-05T10:00:00Z", "/src/github.com/acme/repo-wt")],
        )
        write_sessions_index(
            self.projects_dir,
            SCRATCH_DIR,
            [session_record("s4", "2026-01-02T10:00:00Z", "")],
        )
        write_sessions_index(self.projects_dir, "-empty", [])

        (self.projects_dir / "-broken").mkdir()
        (self.projects_dir / "-broken" / "sessions-index.json").write_text("{", encoding="utf-8")
        (self.projects_dir / "-noindex").mkdir()
        (self.projects_dir / "stray.txt").write_text("not a project", encoding="utf-8")

        list_dir = write_tasks(self.tasks_dir, "s2", [{"id": "1"}, {"id": "2"}])
        (list_dir / ".lock").write_text("", encoding="utf-8")
        (self.tasks_dir / "s9").mkdir()
        (self.tasks_dir / "s9" / ".lock").write_text("", encoding="utf-8")

    def test_list_projects_skips_unusable_directories(self) -> None:
        projects = self.catalog.list_projects()

        self.assertEqual([project.dirName for project in projects], [WORKTREE_DIR, REPO_DIR, SCRATCH_DIR])
        for project in projects:
            self.assertGreater(project.sessionCount, 0)
            self.assertEqual(project.lastModified, project.sessions[0].modified)

    def test_null_version_and_sidechain_keep_the_project_listed(self) -> None:
        write_sessions_index(
            self.projects_dir,
            "-src-nulls",
            [session_record("n1", "2026-01-09T10:00:00Z", "/src/nulls", isSidechain=None)],
            version=None,
        )

        projects = self.catalog.list_projects()

        self.assertEqual(projects[0].dirName, "-src-nulls")
        self.assertFalse(projects[0].sessions[0].isSidechain)

    def test_project_identity_comes_from_latest_session(self) -> None:
        project = self.catalog.get_project(REPO_DIR)

        self.assertEqual(project.name, "repo")
        self.assertEqual(project.org, "acme")
        self.assertEqual(project.path, "/src/github.com/acme/repo")
        self.assertEqual([session.sessionId for session in project.sessions], ["s2", "s1"])

    def test_project_without_path_falls_back_to_directory_name(self) -> None:
        project = self.catalog.get_project(SCRATCH_DIR)

        self.assertEqual(project.name, SCRATCH_DIR)
        self.assertEqual(project.org, "")

    def test_get_project_errors(self) -> None:
        with self.assertRaises(MalformedIndexError):
            self.catalog.get_project("-broken")
        with self.assertRaises(IndexNotFoundError):
            self.catalog.get_project("-noindex")
        with self.assertRaises(NotFoundError):
            self.catalog.get_project("-empty")
        with self.assertRaises(NotFoundError):
            self.catalog.get_project("-missing")

    def test_get_project_by_path(self) -> None:
        self.assertEqual(self.catalog.get_project_by_path("/src/github.com/acme/repo-wt").dirName, WORKTREE_DIR)
        with self.assertRaises(NotFoundError):
            self.catalog.get_project_by_path("/nowhere")

    def test_missing_projects_directory_is_an_enumeration_error(self) -> None:
        catalog = ProjectCatalog(self.claude_dir / "absent")

        with self.assertRaises(EnumerationError):
            catalog.list_projects()

    def test_task_counts_only_include_task_files(self) -> None:
        self.assertEqual(self.catalog.get_task_count("s2"), 2)
        self.assertEqual(self.catalog.get_task_count("s9"), 0)
        self.assertEqual(self.catalog.get_task_count("never-had-tasks"), 0)
        self.assertEqual(self.catalog.get_task_count("../projects"), 0)
        self.assertTrue(self.catalog.has_tasks("s2"))
        self.assertFalse(self.catalog.has_tasks("s1"))

    def test_summaries_carry_base_repo_and_latest_session_details(self) -> None:
        summaries = {summary.dirName: summary for summary in self.catalog.list_project_summaries()}

        self.assertEqual(summaries[WORKTREE_DIR].baseRepo, "repo")
        self.assertEqual(summaries[REPO_DIR].baseRepo, "repo")
        self.assertEqual(summaries[REPO_DIR].lastBranch, "feature")
        self.assertEqual(summaries[REPO_DIR].lastSummary, "summary for s2")
        self.assertEqual(summaries[SCRATCH_DIR].baseRepo, SCRATCH_DIR)

    def test_project_groups(self) -> None:
        groups = self.catalog.list_project_groups()

        self.assertEqual([(group.org, group.baseRepo) for group in groups], [("acme", "repo"), ("", SCRATCH_DIR)])
        self.assertEqual([project.name for project in groups[0].projects], ["repo-wt", "repo"])
        self.assertEqual(groups[0].totalSessions, 3)

        self.assertEqual(self.catalog.get_project_group("repo", org="acme").baseRepo, "repo")
        with self.assertRaises(NotFoundError):
            self.catalog.get_project_group("repo", org="globex")
        with self.assertRaises(NotFoundError):
            self.catalog.get_project_group("repo-wt")

    def test_project_view_annotates_sessions_with_tasks(self) -> None:
        view = self.catalog.project_view(REPO_DIR)

        self.assertEqual(view.sessionsWithTasks, 1)
        by_id = {session.sessionId: session for session in view.sessions}
        self.assertEqual(by_id["s2"].taskCount, 2)
        self.assertTrue(by_id["s2"].hasTasks)
        self.assertFalse(by_id["s1"].hasTasks)

    def test_session_page(self) -> None:
        first = self.catalog.session_page(REPO_DIR, offset=0, limit=1)

        self.assertEqual([item.sessionId for item in first.items], ["s2"])
        self.assertEqual(first.total, 2)
        self.assertTrue(first.hasMore)
        self.assertEqual(first.nextOffset, 1)
        self.assertEqual(first.projectId, REPO_DIR)

        second = self.catalog.session_page(REPO_DIR, offset=first.nextOffset, limit=1)
        self.assertEqual([item.sessionId for item in second.items], ["s1"])
        self.assertFalse(second.hasMore)

        past_end = self.catalog.session_page(REPO_DIR, offset=10, limit=5)
        self.assertEqual(past_end.items, [])
        self.assertEqual(past_end.offset, 2)
        self.assertFalse(past_end.hasMore)


if __name__ == "__main__":
    unittest.main()
