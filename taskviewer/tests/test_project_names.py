import unittest

from taskviewer.project_names import derive_from_dir_name, derive_from_path, sanitize_path


class DeriveFromPathTests(unittest.TestCase):
    def test_github_path_yields_name_and_org(self) -> None:
        self.assertEqual(
            derive_from_path("/home/u/src/github.com/org1/repoX"),
            ("repoX", "repoX", "org1"),
        )

    def test_empty_and_root_paths_yield_nothing(self) -> None:
        self.assertEqual(derive_from_path(""), ("", "", ""))
        self.assertEqual(derive_from_path("/"), ("", "", ""))
        self.assertEqual(derive_from_path("."), ("", "", ""))

    def test_non_github_path_has_no_org(self) -> None:
        self.assertEqual(derive_from_path("/Users/alice/projects/scratch"), ("scratch", "scratch", ""))

    def test_trailing_slash_is_ignored(self) -> None:
        self.assertEqual(derive_from_path("/src/github.com/acme/api/"), ("api", "api", "acme"))

    def test_github_as_last_component_has_no_org(self) -> None:
        self.assertEqual(derive_from_path("/src/github.com"), ("github.com", "github.com", ""))


class DeriveFromDirNameTests(unittest.TestCase):
    def test_last_segment_of_sanitized_path(self) -> None:
        self.assertEqual(derive_from_dir_name("-Users-roasbeef-gocode-src-github-com-roasbeef-lnd"), "lnd")

    def test_trailing_separators_are_skipped(self) -> None:
        self.assertEqual(derive_from_dir_name("-Users-alice-tool--"), "tool")

    def test_all_empty_segments_return_input(self) -> None:
        self.assertEqual(derive_from_dir_name("---"), "---")
        self.assertEqual(derive_from_dir_name(""), "")

    def test_hyphenated_project_names_are_ambiguous(self) -> None:
        # "/Users/alice/my-repo" and "/Users/alice/my/repo" sanitize to the same name.
        self.assertEqual(derive_from_dir_name(sanitize_path("/Users/alice/my-repo")), "repo")

    def test_sanitize_path_replaces_separators(self) -> None:
        self.assertEqual(sanitize_path("/Users/foo/bar"), "-Users-foo-bar")


if __name__ == "__main__":
    unittest.main()
