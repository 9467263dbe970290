"""Unit tests for standings aggregation and form extraction."""
from __future__ import annotations

from typing import Any

from builder.standings import aggregate_standings, extract_form, first_table_rows, primary_standing_rows
from shared.models.enums import FormResult
from shared.models.feed import RawStandingMatchResult

W, D, L, NP = FormResult.WIN, FormResult.DRAW, FormResult.LOSS, FormResult.NOT_PLAYED


def _result(start: str, home_id: str, away_id: str, home: Any, away: Any, result: int = 0) -> dict[str, Any]:
    return {
        "IdMatch": f"{start}-{home_id}",
        "StartTime": start,
        "Result": result,
        "HomeTeamScore": home,
        "AwayTeamScore": away,
        "HomeTeamId": home_id,
        "AwayTeamId": away_id,
    }


def _entry(team_id: str, name: str, position: int, **extra: Any) -> dict[str, Any]:
    entry = {
        "IdTeam": team_id,
        "Team": {"IdTeam": team_id, "Name": [{"Locale": "en-GB", "Description": name}], "Abbreviation": name[:3].upper()},
        "Position": position,
        "Played": 3,
        "Won": 2,
        "Drawn": 0,
        "Lost": 1,
        "For": 5,
        "Against": 2,
        "Points": 6,
    }
    entry.update(extra)
    return entry


# ── Form ────────────────────────────────────────────────────────────────

def test_form_is_newest_first_and_padded() -> None:
    results = [
        RawStandingMatchResult.model_validate(r)
        for r in [
            _result("2026-06-10T18:00:00Z", "T", "X", 2, 0),
            _result("2026-06-14T18:00:00Z", "Y", "T", 1, 1),
            _result("2026-06-18T18:00:00Z", "Z", "T", 3, 1),
            _result("2026-06-22T18:00:00Z", "T", "Q", None, None, result=3),
        ]
    ]
    assert extract_form(results, "T") == (L, D, W, NP, NP)


def test_form_ignores_rows_with_no_scores_even_if_result_set() -> None:
    results = [RawStandingMatchResult.model_validate(_result("2026-06-10T18:00:00Z", "T", "X", None, None))]
    assert extract_form(results, "T") == (NP,) * 5


def test_form_treats_missing_single_score_as_zero() -> None:
    results = [RawStandingMatchResult.model_validate(_result("2026-06-10T18:00:00Z", "X", "T", None, 1))]
    assert extract_form(results, "T") == (W, NP, NP, NP, NP)


def test_form_takes_five_most_recent() -> None:
    results = [
        RawStandingMatchResult.model_validate(_result(f"2026-06-{day:02d}T18:00:00Z", "T", "X", 1, 0))
        for day in range(1, 8)
    ]
    results[-1] = RawStandingMatchResult.model_validate(_result("2026-06-07T18:00:00Z", "T", "X", 0, 2))
    assert extract_form(results, "T") == (L, W, W, W, W)


# ── Tables ──────────────────────────────────────────────────────────────

def test_grouped_payload_gives_one_table_per_group() -> None:
    payload = {
        "Groups": [
            {"IdGroup": "g1", "GroupName": [{"Locale": "en-GB", "Description": "Group A"}],
             "Entries": [_entry("2", "Mexico", 2), _entry("1", "Canada", 1)]},
            {"IdGroup": "g2", "GroupName": [{"Locale": "en-GB", "Description": "Group B"}],
             "Entries": [_entry("3", "Japan", 1)]},
        ]
    }
    tables = aggregate_standings(payload)
    assert [t.group_name for t in tables] == ["Group A", "Group B"]
    assert [r.team_name for r in tables[0].rows] == ["Canada", "Mexico"]
    assert tables[0].rows[0].team_logo_url == "https://api.fifa.com/api/v3/picture/teams-sq-1/1"


def test_flat_results_partitioned_by_entry_group() -> None:
    payload = {
        "Results": [
            _entry("1", "Canada", 1, Group=[{"Locale": "en-GB", "Description": "Group A"}]),
            _entry("3", "Japan", 1, Group=[{"Locale": "en-GB", "Description": "Group B"}]),
            _entry("2", "Mexico", 2, Group=[{"Locale": "en-GB", "Description": "Group A"}]),
        ]
    }
    tables = aggregate_standings(payload)
    assert [(t.group_name, [r.team_id for r in t.rows]) for t in tables] == [
        ("Group A", ["1", "2"]),
        ("Group B", ["3"]),
    ]


def test_flat_results_without_groups_is_single_table() -> None:
    rows = primary_standing_rows({"Results": [_entry("1", "Leeds", 2), _entry("2", "Hull", 1)]})
    assert [r.position for r in rows] == [1, 2]


def test_first_table_rows_of_multi_group_payload() -> None:
    payload = {
        "Results": [
            _entry("1", "A1", 1, Group=[{"Locale": "en-GB", "Description": "Group A"}]),
            _entry("2", "B1", 1, Group=[{"Locale": "en-GB", "Description": "Group B"}]),
        ]
    }
    assert [r.team_id for r in first_table_rows(aggregate_standings(payload))] == ["1"]
    assert first_table_rows([]) == ()


def test_goal_difference_fallback_chain() -> None:
    payload = {
        "Results": [
            _entry("1", "A", 1, GoalsDifference=7),
            _entry("2", "B", 2, GoalsDiference=4),
            _entry("3", "C", 3, GoalsDifference=None, GoalsDiference=-1),
            _entry("4", "D", 4, GoalsDifference="??"),
        ]
    }
    assert [r.goal_difference for r in primary_standing_rows(payload)] == [7, 4, -1, 3]


def test_team_name_and_abbreviation_fallbacks() -> None:
    payload = {
        "Results": [
            {"IdTeam": "1", "Position": 1, "Team": {"IdTeam": "1", "TeamName": [{"Locale": "en-GB", "Description": "Portugal"}]}},
            {"IdTeam": "2", "Position": 2, "Team": {"IdTeam": "2", "ShortClubName": "Benfica"}},
            {"IdTeam": "3", "Position": 3, "Team": {"IdTeam": "3", "Abbreviation": "POR"}},
            {"IdTeam": "4", "Position": 4},
        ]
    }
    rows = primary_standing_rows(payload)
    assert [(r.team_name, r.team_abbreviation) for r in rows] == [
        ("Portugal", "POR"),
        ("Benfica", "BEN"),
        ("POR", "POR"),
        ("Unknown", "UNK"),
    ]


def test_chronological_form_reverses_form() -> None:
    entry = _entry("T", "Team", 1, MatchResults=[
        _result("2026-06-10T18:00:00Z", "T", "X", 2, 0),
        _result("2026-06-14T18:00:00Z", "T", "Y", 0, 1),
    ])
    (row,) = primary_standing_rows({"Results": [entry]})
    assert row.form == (L, W, NP, NP, NP)
    assert row.chronological_form == (NP, NP, NP, W, L)


def test_absent_or_invalid_payload_is_empty() -> None:
    assert aggregate_standings(None) == []
    assert aggregate_standings({"Groups": "nope"}) == []
