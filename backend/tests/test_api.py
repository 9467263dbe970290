"""API route tests. The feed provider and settings are overridden, so no network is needed."""
from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from api.app import create_app
from api.dependencies import get_app_settings, get_feed


@pytest.fixture
def client(feed, settings) -> TestClient:
    """Test client with lifespan disabled and a fake feed injected."""
    app = create_app(use_lifespan=False)
    app.dependency_overrides[get_feed] = lambda: feed
    app.dependency_overrides[get_app_settings] = lambda: settings
    with TestClient(app) as c:
        yield c


def test_health_returns_ok(client: TestClient) -> None:
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok", "service": "match-centre"}
    assert r.headers.get("content-type", "").startswith("application/json")
    assert r.headers.get("X-Request-ID")


# ── Day view ────────────────────────────────────────────────────────────

def test_day_view_requires_date(client: TestClient) -> None:
    r = client.get("/v1/matches")
    assert r.status_code == 400


def test_day_view_rejects_bad_date(client: TestClient) -> None:
    r = client.get("/v1/matches", params={"date": "15/06/2026"})
    assert r.status_code == 400


def test_day_view_rejects_out_of_range_offset(client: TestClient) -> None:
    r = client.get("/v1/matches", params={"date": "2026-06-15", "utc_offset_minutes": 2000})
    assert r.status_code == 400


def test_day_view_groups_matches(client: TestClient, feed, raw_match) -> None:
    feed.matches.return_value = [
        raw_match("a", date="2026-06-15T19:00:00Z"),
        raw_match("b", date="2026-06-15T13:00:00Z"),
    ]
    r = client.get("/v1/matches", params={"date": "2026-06-15"})
    assert r.status_code == 200
    body = r.json()
    assert body["reference_date"] == "2026-06-15"
    assert body["fetched"] is True
    (group,) = body["groups"]
    assert group["competition_name"] == "FIFA World Cup"
    assert [m["id"] for m in group["matches"]] == ["b", "a"]
    assert body["competitionMetadata"]["17"]["season_id"] == "255711"


def test_day_view_uses_viewer_offset(client: TestClient, feed, raw_match) -> None:
    # 23:30 UTC on the 14th is already the 15th at UTC+2
    feed.matches.return_value = [raw_match("late", date="2026-06-14T23:30:00Z")]
    r = client.get("/v1/matches", params={"date": "2026-06-15", "utc_offset_minutes": 120})
    assert r.status_code == 200
    (group,) = r.json()["groups"]
    assert group["date"] == "2026-06-15"
    assert group["matches"][0]["display_time"] == "01:30"


def test_day_view_feed_failure_is_502(client: TestClient, feed) -> None:
    feed.matches.side_effect = RuntimeError("down")
    r = client.get("/v1/matches", params={"date": "2026-06-15"})
    assert r.status_code == 502


# ── Match detail ────────────────────────────────────────────────────────

def test_match_detail_not_found(client: TestClient) -> None:
    r = client.get("/v1/matches/17/255711/255951/missing")
    assert r.status_code == 404


def test_match_detail_returns_timeline(client: TestClient, feed, raw_match) -> None:
    detail = raw_match("m1", status=3, home_score=1, away_score=0, shape="live")
    detail["HomeTeam"]["Goals"] = [{"IdPlayer": "p9", "Minute": "12'", "Period": 3, "Type": 1}]
    feed.detail.return_value = detail
    r = client.get("/v1/matches/17/255711/255951/m1")
    assert r.status_code == 200
    body = r.json()
    assert body["match"]["id"] == "m1"
    assert body["timeline"][0]["goal_type"] == "penalty"
    assert body["head_to_head"] is None


# ── Standings ───────────────────────────────────────────────────────────

def test_standings_require_all_ids(client: TestClient) -> None:
    r = client.get("/v1/standings", params={"competitionId": "17"})
    assert r.status_code == 400


def test_standings_tables(client: TestClient, feed) -> None:
    feed.standings.return_value = {
        "Results": [
            {"IdTeam": "2", "Position": 2, "Team": {"IdTeam": "2", "ShortClubName": "Beta"}, "Points": 3},
            {"IdTeam": "1", "Position": 1, "Team": {"IdTeam": "1", "ShortClubName": "Alpha"}, "Points": 6},
        ]
    }
    r = client.get("/v1/standings", params={"competitionId": "17", "seasonId": "s", "stageId": "st"})
    assert r.status_code == 200
    body = r.json()
    assert body["competitionId"] == "17"
    assert [row["team_name"] for row in body["standings"]] == ["Alpha", "Beta"]
    assert len(body["tables"]) == 1


def test_standings_feed_failure_is_502(client: TestClient, feed) -> None:
    feed.standings.side_effect = RuntimeError("down")
    r = client.get("/v1/standings", params={"competitionId": "17", "seasonId": "s", "stageId": "st"})
    assert r.status_code == 502


def test_standings_rows_come_from_first_group(client: TestClient, feed) -> None:
    feed.standings.return_value = {
        "Results": [
            {"IdTeam": "1", "Position": 1, "Team": {"IdTeam": "1", "ShortClubName": "Alpha"},
             "Group": [{"Locale": "en-GB", "Description": "Group A"}]},
            {"IdTeam": "2", "Position": 1, "Team": {"IdTeam": "2", "ShortClubName": "Beta"},
             "Group": [{"Locale": "en-GB", "Description": "Group B"}]},
        ]
    }
    r = client.get("/v1/standings", params={"competitionId": "17", "seasonId": "s", "stageId": "st"})
    body = r.json()
    assert [t["group_name"] for t in body["tables"]] == ["Group A", "Group B"]
    assert [row["team_name"] for row in body["standings"]] == ["Alpha"]
