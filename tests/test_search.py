"""Tests for filtering, ranking and paging parsed sessions."""

from __future__ import annotations

from typing import Any

import pytest
from pydantic import ValidationError

from sessionlens.config import Config
from sessionlens.data.search import (
    filter_sessions,
    find_struggling_sessions,
    match_context,
    score_keyword,
    search_sessions,
    summarize_session,
)
from sessionlens.models.search import SearchOptions
from sessionlens.models.sessions import ParsedSession, SessionMetadata, Speaker, ToolOperation


class TestSearchSessions:
    def test_project_filter_without_keyword(self) -> None:
        sessions = [ParsedSession(project_name="Foo", duration_seconds=100)]
        results = search_sessions(sessions, {"project": "foo"})
        assert len(results) == 1
        assert results[0].relevance_score == 1.0

    def test_empty_collection(self) -> None:
        assert search_sessions([], {"keyword": "x"}) == []
        assert search_sessions(None, {"keyword": "x"}) == []

    def test_inverted_duration_bounds_rejected(self, make_session) -> None:  # type: ignore[no-untyped-def]
        with pytest.raises(ValidationError, match="minDuration cannot be greater"):
            search_sessions([make_session()], {"minDuration": 100, "maxDuration": 50})

    def test_validation_happens_before_empty_check(self) -> None:
        with pytest.raises(ValidationError):
            search_sessions([], {"limit": 0})

    def test_camel_and_snake_keys(self, make_session) -> None:  # type: ignore[no-untyped-def]
        sessions = [make_session(duration_seconds=30), make_session(duration_seconds=300)]
        assert len(search_sessions(sessions, {"minDuration": 60})) == 1
        assert len(search_sessions(sessions, {"min_duration": 60})) == 1
        assert len(search_sessions(sessions, SearchOptions(max_duration=60))) == 1

    def test_keyword_ranking(self, make_session) -> None:  # type: ignore[no-untyped-def]
        assistant_hit = make_session(
            session_id="a", messages=[(Speaker.ASSISTANT, "the cache is warm")]
        )
        user_hit = make_session(session_id="u", messages=[(Speaker.USER, "clear the cache")])
        miss = make_session(session_id="m", messages=[(Speaker.USER, "unrelated")])
        results = search_sessions([assistant_hit, miss, user_hit], {"keyword": "CACHE"})
        assert [(r.session_id, r.relevance_score) for r in results] == [("u", 2.0), ("a", 1.0)]
        assert results[0].match_context == "clear the cache"

    def test_equal_scores_keep_input_order(self, make_session) -> None:  # type: ignore[no-untyped-def]
        sessions = [
            make_session(session_id=name, messages=[(Speaker.ASSISTANT, "deploy")])
            for name in ("first", "second", "third")
        ]
        results = search_sessions(sessions, {"keyword": "deploy"})
        assert [r.session_id for r in results] == ["first", "second", "third"]

    def test_paging(self, make_session) -> None:  # type: ignore[no-untyped-def]
        sessions = [make_session(session_id=str(n)) for n in range(15)]
        assert len(search_sessions(sessions)) == 10
        page = search_sessions(sessions, {"limit": 3, "offset": 12})
        assert [r.session_id for r in page] == ["12", "13", "14"]
        assert search_sessions(sessions, {"offset": 40}) == []

    def test_default_limit_from_config(self, make_session) -> None:  # type: ignore[no-untyped-def]
        sessions = [make_session(session_id=str(n)) for n in range(5)]
        assert len(search_sessions(sessions, config=Config(default_limit=2))) == 2

    def test_struggle_filters(self, make_session) -> None:  # type: ignore[no-untyped-def]
        calm = make_session(session_id="calm")
        rough = make_session(session_id="rough", struggle_indicators=["long_session"])
        sessions = [calm, rough]
        assert [r.session_id for r in search_sessions(sessions, {"hasStruggle": True})] == [
            "rough"
        ]
        assert [r.session_id for r in search_sessions(sessions, {"has_struggle": False})] == [
            "calm"
        ]
        by_pattern = search_sessions(sessions, {"strugglePattern": "long_session"})
        assert [r.session_id for r in by_pattern] == ["rough"]
        assert search_sessions(sessions, {"strugglePattern": "long"}) == []

    def test_wide_context_config_is_capped(self, make_session) -> None:  # type: ignore[no-untyped-def]
        session = make_session(messages=[(Speaker.USER, "a" * 300 + " needle " + "b" * 300)])
        results = search_sessions([session], {"keyword": "needle"}, Config(max_context_length=200))
        assert len(results) == 1
        assert len(results[0].match_context) == 150
        assert results[0].match_context.endswith("...")

    def test_any_iterable_of_sessions(self, make_session) -> None:  # type: ignore[no-untyped-def]
        by_id = {name: make_session(session_id=name) for name in ("x", "y")}
        assert [r.session_id for r in search_sessions(by_id.values())] == ["x", "y"]
        generated = (make_session(session_id=str(n)) for n in range(3))
        assert [r.session_id for r in search_sessions(generated)] == ["0", "1", "2"]

    def test_non_collection_input_is_empty(self, make_session) -> None:  # type: ignore[no-untyped-def]
        assert search_sessions("sessions") == []  # type: ignore[arg-type]
        assert search_sessions({"a": make_session()}) == []  # type: ignore[arg-type]
        assert search_sessions(42) == []  # type: ignore[arg-type]

    def test_input_is_not_mutated(self, make_session) -> None:  # type: ignore[no-untyped-def]
        sessions = [make_session(session_id="b"), make_session(session_id="a")]
        snapshot = [s.model_copy(deep=True) for s in sessions]
        search_sessions(sessions, {"keyword": "a"})
        assert sessions == snapshot


class TestScoring:
    def test_project_and_indicator_bonuses(self, make_session) -> None:  # type: ignore[no-untyped-def]
        session = make_session(
            project_name="loop-lab",
            struggle_indicators=["repetitive_tools"],
        )
        match = score_keyword(session, "loop")
        assert match.score == 3
        assert match.context == "Project: loop-lab"

        indicator_only = score_keyword(session, "repetitive")
        assert indicator_only.score == 2
        assert indicator_only.context == "Struggle pattern: repetitive_tools"

    def test_counts_every_occurrence_literally(self, make_session) -> None:  # type: ignore[no-untyped-def]
        session = make_session(messages=[(Speaker.USER, "a.b a.b axb")])
        assert score_keyword(session, "a.b").score == 4

    def test_empty_keyword_scores_zero(self, make_session) -> None:  # type: ignore[no-untyped-def]
        assert score_keyword(make_session(), "").score == 0

    def test_match_context_leads_by_fifty(self) -> None:
        content = "x" * 80 + "needle" + "y" * 20
        excerpt = match_context(content, 80)
        assert excerpt.startswith("x" * 50 + "needle")
        assert excerpt.endswith("y" * 20)

    def test_match_context_truncates(self) -> None:
        content = "z" * 400
        excerpt = match_context(content, 200)
        assert len(excerpt) == 150
        assert excerpt.endswith("...")

    def test_filter_project_case_insensitive(self, make_session) -> None:  # type: ignore[no-untyped-def]
        sessions = [make_session(project_name="Web/API"), make_session(project_name="cli")]
        filtered = filter_sessions(sessions, SearchOptions(project="api"))
        assert [s.project_name for s in filtered] == ["Web/API"]


def test_summary_leaves_out_empty_fields(make_session) -> None:  # type: ignore[no-untyped-def]
    session = make_session(project_name="", duration_seconds=90)
    assert summarize_session(session) == "2min session"


def test_summary_lists_all_fields(make_session) -> None:  # type: ignore[no-untyped-def]
    session = make_session(
        project_name="demo",
        duration_seconds=600,
        messages=[(Speaker.USER, "hi"), (Speaker.ASSISTANT, "hello")],
        tool_names=["Bash"],
        struggle_indicators=["long_session"],
    )
    assert summarize_session(session) == (
        "10min session • Project: demo • 1 tools • 2 messages • Had struggles"
    )


class TestFindStruggling:
    @staticmethod
    def _session(session_id: str, duration: float, **kwargs: Any) -> ParsedSession:
        return ParsedSession(session_id=session_id, duration_seconds=duration, **kwargs)

    def test_longest_first_and_limited(self) -> None:
        sessions = [
            self._session("short", 10),
            self._session("mid", 2000.4),
            self._session("long", 4000),
            self._session("busy", 5, metadata=SessionMetadata(tool_count=40)),
        ]
        found = find_struggling_sessions(sessions, limit=2)
        assert [s.session_id for s in found] == ["long", "mid"]
        assert found[1].duration == 2000
        assert found[0].struggle_score == 3

    def test_errors_make_a_session_struggling(self) -> None:
        session = self._session(
            "err", 10, tool_operations=[ToolOperation(name="Bash", status="error")]
        )
        [found] = find_struggling_sessions([session])
        assert found.error_count == 1
        assert found.project_name == "Unknown Project"

    def test_blank_project_reported_as_unknown(self) -> None:
        session = self._session("p", 4000, project_name="")
        [found] = find_struggling_sessions([session])
        assert found.project_name == "Unknown"

    def test_pattern_filters_projects_and_indicators(self) -> None:
        sessions = [
            self._session("a", 4000, project_name="payments"),
            self._session("b", 3000, struggle_indicators=["high_error_rate"]),
            self._session("c", 2000, project_name="docs"),
        ]
        found = find_struggling_sessions(sessions, pattern="PAY|error")
        assert [s.session_id for s in found] == ["a", "b"]

    def test_pattern_matches_failed_operations(self) -> None:
        failing = self._session(
            "f",
            10,
            tool_operations=[
                ToolOperation(name="Bash", status="error", output="permission denied"),
                ToolOperation(name="Read", output="timeout"),
            ],
        )
        assert [s.session_id for s in find_struggling_sessions([failing], pattern="denied")] == [
            "f"
        ]
        assert find_struggling_sessions([failing], pattern="timeout") == []

    def test_invalid_pattern_is_ignored(self, caplog) -> None:  # type: ignore[no-untyped-def]
        sessions = [self._session("a", 4000), self._session("b", 3000)]
        found = find_struggling_sessions(sessions, pattern="(unclosed")
        assert len(found) == 2
        assert "Invalid struggle pattern" in caplog.text

    def test_no_struggles(self) -> None:
        assert find_struggling_sessions([self._session("calm", 5)]) == []


def test_find_struggling_accepts_generators() -> None:
    sessions = (ParsedSession(session_id=str(n), duration_seconds=4000 + n) for n in range(2))
    assert [s.session_id for s in find_struggling_sessions(sessions)] == ["1", "0"]
