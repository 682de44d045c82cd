"""Tests for canonicalizing file references against a project's known paths."""

import pytest

from repo_assistant.graph.paths import normalize_path, normalize_project_path

KNOWN = ["src/a.rs", "src/b.rs", "src/models/mod.rs", "src/models/user.rs"]


class TestNormalizePath:
    def test_exact_match_wins(self):
        assert normalize_path("src/a.rs", KNOWN, [], "src") == "src/a.rs"

    def test_leading_slash_is_stripped(self):
        assert normalize_path("/src/models/mod.rs", KNOWN, [], "src") == "src/models/mod.rs"

    def test_prefixed_with_source_root(self):
        assert normalize_path("models/user.rs", KNOWN, [], "src") == "src/models/user.rs"

    def test_rerooted_after_first_src_segment(self):
        raw = "crates/app/src/models/user.rs"
        assert normalize_path(raw, KNOWN, [], "src") == "src/models/user.rs"

    def test_src_must_be_a_whole_segment(self):
        assert normalize_path("lib/mysrc/models/user.rs", KNOWN, [], "src") is None
        assert normalize_path("lib/src/models/user.rs", KNOWN, [], "src") == "src/models/user.rs"

    def test_suffix_match_on_segment_boundary(self):
        assert normalize_path("mod.rs", KNOWN, [], "") == "src/models/mod.rs"
        # "od.rs" is a string suffix of "mod.rs" but not a path-segment suffix
        assert normalize_path("od.rs", KNOWN, [], "") is None

    def test_summary_paths_are_known_too(self):
        assert normalize_path("docs/readme.md", [], ["docs/readme.md"], "src") == "docs/readme.md"

    def test_backslashes_are_converted(self):
        assert normalize_path("src\\models\\mod.rs", KNOWN, [], "src") == "src/models/mod.rs"

    @pytest.mark.parametrize("raw", ["", "   ", "nope.rs", "src/missing/file.rs"])
    def test_unmatched_returns_none(self, raw):
        assert normalize_path(raw, KNOWN, [], "src") is None

    def test_suffix_scan_is_deterministic(self):
        known = ["src/z/util.rs", "src/a/util.rs"]
        assert normalize_path("util.rs", known, [], "") == "src/a/util.rs"
        assert normalize_path("util.rs", list(reversed(known)), [], "") == "src/a/util.rs"

    @pytest.mark.parametrize(
        "raw",
        [
            "src/a.rs",
            "/src/b.rs",
            "models/mod.rs",
            "x/y/src/models/user.rs",
            "user.rs",
            "src\\a.rs",
        ],
    )
    def test_canonical_paths_are_fixed_points(self, raw):
        first = normalize_path(raw, KNOWN, [], "src")
        assert first is not None
        assert normalize_path(first, KNOWN, [], "src") == first


class TestProjectPaths:
    def test_normalize_against_project(self, project):
        assert normalize_project_path("/src/models/mod.rs", project) == "src/models/mod.rs"
        assert normalize_project_path("b.rs", project) == "src/b.rs"
        assert normalize_project_path("unknown.rs", project) is None

    def test_description_only_files_are_known(self, project):
        project.file_descriptions["README.md"] = "Readme"
        assert normalize_project_path("/README.md", project) == "README.md"
