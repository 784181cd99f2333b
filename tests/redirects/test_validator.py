"""Tests for content and redirect validation."""

from __future__ import annotations

from typing import Any

import pytest
from contentkit.config import ContentkitConfig
from contentkit.content.index import ContentIndex
from contentkit.content.models import RedirectEntry
from contentkit.redirects.models import Severity, ValidationResult
from contentkit.redirects.validator import (
    find_redirect_loops,
    load_content_files,
    resolve_redirects,
    validate_content,
)


def _program(slug: str = "python-bootcamp", **meta: Any) -> dict[str, Any]:
    return {
        "slug": slug,
        "title": "Python Bootcamp",
        "meta": {"page_title": "Python", "description": "Learn Python", **meta},
    }


def _codes(issues) -> list[str]:
    return [i.code for i in issues]


@pytest.fixture
def run(index: ContentIndex, config: ContentkitConfig):
    def _run() -> ValidationResult:
        index.refresh()
        return validate_content(index, config)

    return _run


class TestCleanContent:
    def test_fixture_passes(self, run):
        result = run()
        assert result.passed
        assert result.errors == []
        assert result.warnings == []

    def test_redirect_map_targets_canonical_url(self, run):
        result = run()
        assert result.redirects_as_json() == {
            "/old-python-course": "/en/career-programs/python-bootcamp"
        }

    def test_loads_programs_and_landings_only(self, index: ContentIndex):
        files = load_content_files(index)
        assert sorted(f.file_path for f in files) == [
            "marketing-content/landings/summer-promo/_common.yml",
            "marketing-content/landings/summer-promo/en.yml",
            "marketing-content/programs/python-bootcamp/en.yml",
            "marketing-content/programs/python-bootcamp/es.yml",
        ]

    def test_unparseable_file_is_skipped(self, run, write_yaml):
        write_yaml("programs/broken/en.yml", "meta: [oops")
        result = run()
        assert result.passed
        assert all("broken" not in f.file_path for f in result.content_files)


class TestSelfRedirect:
    def test_reports_exactly_one_error(self, run, write_yaml):
        write_yaml(
            "programs/python-bootcamp/en.yml",
            _program(redirects=["/en/career-programs/python-bootcamp"]),
        )
        result = run()
        assert _codes(result.errors) == ["SELF_REDIRECT"]
        assert "/en/career-programs/python-bootcamp" not in result.redirect_map

    def test_normalizes_before_comparing(self, run, write_yaml):
        write_yaml("landings/summer-promo/en.yml", _program("summer-promo", redirects=["Landing/Summer-Promo/"]))
        result = run()
        assert _codes(result.errors) == ["SELF_REDIRECT"]


class TestConflicts:
    def test_conflict_names_both_files_and_first_wins(self, run, write_yaml):
        write_yaml("landings/summer-promo/en.yml", _program("summer-promo", redirects=["/old-python-course"]))
        result = run()

        assert _codes(result.errors) == ["REDIRECT_CONFLICT"]
        message = result.errors[0].message
        assert "marketing-content/landings/summer-promo/en.yml" in message
        assert "marketing-content/programs/python-bootcamp/en.yml" in message
        survivor = result.redirect_map["/old-python-course"]
        assert survivor.source == "marketing-content/programs/python-bootcamp/en.yml"

    def test_common_and_locale_overlap_is_a_warning(self, run, write_yaml):
        write_yaml("programs/python-bootcamp/_common.yml", {"meta": {"redirects": ["/old-python-course"]}})
        result = run()

        assert "REDIRECT_CONFLICT" not in _codes(result.errors)
        assert "REDIRECT_OVERLAP" in _codes(result.warnings)
        survivor = result.redirect_map["/old-python-course"]
        assert survivor.type == "program-common"
        assert isinstance(survivor.to, dict)

    def test_redirect_shadowing_content(self, run, write_yaml):
        write_yaml(
            "landings/summer-promo/en.yml",
            _program("summer-promo", redirects=["/en/career-programs/python-bootcamp", "/dashboard"]),
        )
        result = run()
        assert _codes(result.errors) == ["REDIRECT_OVERWRITES_CONTENT", "REDIRECT_OVERWRITES_CONTENT"]
        assert "/dashboard" not in result.redirect_map


class TestCustomRedirects:
    def test_valid_custom_redirect(self, run, write_yaml):
        write_yaml("custom-redirects.yml", {"redirects": [{"from": "/blog", "to": "https://blog.example.com"}]})
        result = run()
        assert result.passed
        assert result.redirect_map["/blog"].to == "https://blog.example.com"

    def test_missing_destination(self, run, write_yaml):
        write_yaml("custom-redirects.yml", {"redirects": [{"from": "/nowhere", "to": ""}]})
        result = run()
        assert _codes(result.errors) == ["CUSTOM_REDIRECT_MISSING_DEST"]

    def test_conflicts_with_content_redirect(self, run, write_yaml):
        write_yaml("custom-redirects.yml", {"redirects": [{"from": "/old-python-course", "to": "/x"}]})
        result = run()
        assert _codes(result.errors) == ["REDIRECT_CONFLICT"]
        assert result.errors[0].file == "marketing-content/custom-redirects.yml"


class TestLoops:
    def test_three_step_cycle_reported_once(self, run, write_yaml):
        write_yaml(
            "custom-redirects.yml",
            {
                "redirects": [
                    {"from": "/a", "to": "/b"},
                    {"from": "/b", "to": "/c"},
                    {"from": "/c", "to": "/a"},
                ]
            },
        )
        result = run()
        assert not result.passed
        assert _codes(result.errors) == ["REDIRECT_LOOP"]
        assert "/a -> /b -> /c -> /a" in result.errors[0].message

    def test_terminating_chain_is_not_a_loop(self, run, write_yaml):
        write_yaml(
            "custom-redirects.yml",
            {
                "redirects": [
                    {"from": "/x", "to": "/y/"},
                    {"from": "/y", "to": "/en/career-programs/python-bootcamp"},
                ]
            },
        )
        result = run()
        assert result.passed

    def test_tail_into_cycle_terminates(self):
        def entry(to: str) -> RedirectEntry:
            return RedirectEntry(from_path="/ignored", to=to, type="custom", source="c.yml")

        redirect_map = {"/s": entry("/a"), "/a": entry("/b"), "/b": entry("/a")}
        assert find_redirect_loops(redirect_map) == [["/a", "/b", "/a"]]

    def test_locale_map_targets_end_the_chain(self):
        redirect_map = {
            "/a": RedirectEntry(from_path="/a", to={"en": "/a"}, type="program-common", source="c.yml"),
        }
        assert find_redirect_loops(redirect_map) == []

    def test_served_map_drops_cycle_sources(self, index: ContentIndex, config: ContentkitConfig, write_yaml):
        write_yaml(
            "custom-redirects.yml",
            {
                "redirects": [
                    {"from": "/a", "to": "/b"},
                    {"from": "/b", "to": "/a"},
                    {"from": "/c", "to": "/en/career-programs/python-bootcamp"},
                ]
            },
        )
        index.refresh()
        result = resolve_redirects(index, config)
        assert _codes(result.errors) == ["REDIRECT_LOOP"]
        assert "/a" not in result.redirects
        assert "/b" not in result.redirects
        assert "/c" in result.redirects
        assert "/old-python-course" in result.redirects


class TestMeta:
    @pytest.mark.parametrize("priority", [1.5, -0.1, "high", True])
    def test_invalid_priority(self, run, write_yaml, priority):
        write_yaml("programs/python-bootcamp/en.yml", _program(priority=priority))
        result = run()
        assert _codes(result.errors) == ["INVALID_PRIORITY"]

    @pytest.mark.parametrize("priority", [0, 0.5, 1])
    def test_valid_priority(self, run, write_yaml, priority):
        write_yaml("programs/python-bootcamp/en.yml", _program(priority=priority))
        assert run().passed

    def test_invalid_change_frequency(self, run, write_yaml):
        write_yaml("programs/python-bootcamp/en.yml", _program(change_frequency="sometimes"))
        result = run()
        assert _codes(result.errors) == ["INVALID_CHANGE_FREQUENCY"]
        assert "weekly" in result.errors[0].message

    def test_missing_seo_fields_are_warnings(self, run, write_yaml):
        write_yaml("programs/python-bootcamp/es.yml", {"slug": "bootcamp-python"})
        result = run()
        assert result.passed
        assert _codes(result.warnings) == ["MISSING_PAGE_TITLE", "MISSING_DESCRIPTION"]
        assert all(w.type == Severity.WARNING for w in result.warnings)

    def test_unknown_robots_directive(self, run, write_yaml):
        write_yaml("programs/python-bootcamp/en.yml", _program(robots="noindex, sometimes"))
        result = run()
        assert result.passed
        assert _codes(result.warnings) == ["INVALID_ROBOTS"]


class TestSchemaReferences:
    def test_unknown_include_lists_available_keys(self, run, write_yaml):
        data = _program()
        data["schema"] = {"include": ["organization", "courses:python", "courses:ruby"]}
        write_yaml("programs/python-bootcamp/en.yml", data)
        result = run()

        assert _codes(result.errors) == ["INVALID_SCHEMA_REFERENCE"]
        message = result.errors[0].message
        assert '"courses:ruby"' in message
        assert "item_lists:career-programs" in message
        assert "website" in message

    def test_unknown_override_key(self, run, write_yaml):
        data = _program()
        data["schema"] = {"overrides": {"website": {}, "bogus": {"name": "x"}}}
        write_yaml("programs/python-bootcamp/en.yml", data)
        result = run()
        assert _codes(result.errors) == ["INVALID_SCHEMA_OVERRIDE"]
        assert '"bogus"' in result.errors[0].message

    def test_missing_registry_rejects_references(self, run, write_yaml, project_root):
        (project_root / "marketing-content" / "schema-org.yml").unlink()
        data = _program()
        data["schema"] = {"include": ["organization"]}
        write_yaml("programs/python-bootcamp/en.yml", data)
        assert _codes(run().errors) == ["INVALID_SCHEMA_REFERENCE"]

    def test_non_string_include_is_rejected(self, run, write_yaml):
        data = _program()
        data["schema"] = {"include": [{"organization": {}}, ["website"], "organization"]}
        write_yaml("programs/python-bootcamp/en.yml", data)
        result = run()
        assert _codes(result.errors) == ["INVALID_SCHEMA_REFERENCE", "INVALID_SCHEMA_REFERENCE"]


def test_end_to_end_python_bootcamp(index: ContentIndex, config: ContentkitConfig):
    assert len(index.find_by_slug("python-bootcamp")) == 1
    result = validate_content(index, config)
    assert result.redirect_map["/old-python-course"].to == "/en/career-programs/python-bootcamp"
