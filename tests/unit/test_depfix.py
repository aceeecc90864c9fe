"""Tests for ohmyfix.core.depfix -- package.json version conflicts."""

import json

import pytest

from ohmyfix.core.depfix import DependencyConflict, DepfixError, find_conflicts


def _write(tmp_path, data):
    (tmp_path / "package.json").write_text(json.dumps(data))


class TestFindConflicts:
    def test_reports_mismatched_versions(self, tmp_path):
        _write(tmp_path, {
            "dependencies": {"react": "^18.0.0", "lodash": "4.17.21"},
            "devDependencies": {"react": "^17.0.2", "lodash": "4.17.21", "jest": "^29"},
        })
        report = find_conflicts(tmp_path)
        assert report.conflicts == [DependencyConflict("react", "^18.0.0", "^17.0.2")]
        assert report.has_dependencies is True

    def test_no_conflicts(self, tmp_path):
        _write(tmp_path, {"dependencies": {"a": "1"}, "devDependencies": {"b": "2"}})
        assert find_conflicts(tmp_path).conflicts == []

    def test_no_dependency_tables(self, tmp_path):
        _write(tmp_path, {"name": "demo"})
        report = find_conflicts(str(tmp_path))
        assert report.has_dependencies is False
        assert report.conflicts == []

    def test_conflict_message(self):
        conflict = DependencyConflict("react", "^18", "^17")
        assert str(conflict) == 'Conflict: "react" - dependencies: "^18", devDependencies: "^17"'


class TestErrors:
    def test_missing_manifest(self, tmp_path):
        with pytest.raises(DepfixError, match="No package.json"):
            find_conflicts(tmp_path)

    def test_invalid_json(self, tmp_path):
        (tmp_path / "package.json").write_text("{not json")
        with pytest.raises(DepfixError, match="Could not process"):
            find_conflicts(tmp_path)

    def test_non_object(self, tmp_path):
        (tmp_path / "package.json").write_text("[]")
        with pytest.raises(DepfixError):
            find_conflicts(tmp_path)

    def test_non_object_table(self, tmp_path):
        _write(tmp_path, {"dependencies": ["react"]})
        with pytest.raises(DepfixError):
            find_conflicts(tmp_path)
