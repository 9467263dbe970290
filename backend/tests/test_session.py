"""
Tests for the Match Centre session: day loading, standings fan-out,
poll reconciliation, stale-response discarding and match detail loading.
"""
from __future__ import annotations

import asyncio
from datetime import date, datetime, timezone
from typing import Optional

import pytest

from scheduler.service import MatchCentreSession

DAY = date(2026, 6, 15)


@pytest.fixture
def session(feed, settings) -> MatchCentreSession:
    return MatchCentreSession(feed, settings, tz=timezone.utc)


def _score(session: MatchCentreSession, match_id: str) -> Optional[int]:
    match = session.find_match(match_id)
    assert match is not None
    return match.home_score


# ── Day loading ─────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_load_day_groups_and_fetches_standings(session, feed, raw_match) -> None:
    feed.matches.return_value = [
        raw_match("a", competition_id="17", season_id="s17", stage_id="st17"),
        raw_match("b", competition_id="20", season_id="s20", stage_id="st20", competition="Another Cup"),
        raw_match("c", competition_id="FRIENDLY-X"),
        raw_match("d", date="2026-06-17T12:00:00Z"),
    ]
    feed.standings.return_value = {
        "Results": [{"IdTeam": "1", "Position": 1, "Team": {"IdTeam": "1", "Abbreviation": "AAA"}}]
    }

    view = await session.load_day(DAY)

    assert view is not None and view.fetched
    assert [m.id for g in view.groups for m in g.matches] == ["b", "a"]
    start, end, language, count = feed.matches.await_args.args
    assert start == datetime(2026, 6, 14, tzinfo=timezone.utc)
    assert end == datetime(2026, 6, 16, 23, 59, 59, tzinfo=timezone.utc)
    assert (language, count) == ("en", 500)

    called = sorted(call.args[:3] for call in feed.standings.await_args_list)
    assert called == [("17", "s17", "st17"), ("20", "s20", "st20")]
    assert set(view.standings) == {"17", "20"}
    assert session.context.standings_for("17")[0].rows[0].team_abbreviation == "AAA"


@pytest.mark.asyncio
async def test_failed_standings_fetch_is_left_out(session, feed, raw_match) -> None:
    feed.matches.return_value = [raw_match("a")]
    feed.standings.side_effect = RuntimeError("boom")
    view = await session.load_day(DAY)
    assert view.fetched
    assert view.standings == {}


@pytest.mark.asyncio
async def test_failed_day_fetch_gives_empty_unfetched_view(session, feed) -> None:
    feed.matches.side_effect = RuntimeError("network down")
    view = await session.load_day(DAY)
    assert view is not None
    assert not view.fetched
    assert view.groups == ()
    feed.standings.assert_not_awaited()


@pytest.mark.asyncio
async def test_superseded_load_is_discarded(session, feed, raw_match) -> None:
    gate = asyncio.Event()

    async def slow_then_fast(start, end, language, count):
        if start.date() == date(2026, 6, 14):
            await gate.wait()
            return [raw_match("old-day")]
        return [raw_match("new-day", date="2026-06-20T12:00:00Z")]

    feed.matches.side_effect = slow_then_fast
    first = asyncio.create_task(session.load_day(DAY))
    await asyncio.sleep(0)
    await session.load_day(date(2026, 6, 20))
    gate.set()

    assert await first is None
    assert session.view.reference_date == date(2026, 6, 20)
    assert session.find_match("new-day") is not None
    assert session.find_match("old-day") is None


# ── Polling ─────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_poll_tick_reconciles_scores(session, feed, raw_match) -> None:
    feed.matches.return_value = [raw_match("a", status=3, home_score=0, away_score=0)]
    await session.load_day(DAY)
    groups_before = session.view.groups

    feed.matches.return_value = [
        raw_match("a", status=3, home_score=1, away_score=0, match_time="33'"),
        raw_match("new", date="2026-06-15T20:00:00Z"),
    ]
    await session._poll_tick(1)

    assert _score(session, "a") == 1
    assert session.find_match("a").display_time == "33'"
    assert session.find_match("new") is None
    assert [g.key for g in session.view.groups] == [g.key for g in groups_before]


@pytest.mark.asyncio
async def test_failed_poll_keeps_previous_view(session, feed, raw_match) -> None:
    feed.matches.return_value = [raw_match("a", status=3, home_score=2, away_score=0)]
    await session.load_day(DAY)
    view = session.view

    feed.matches.side_effect = RuntimeError("timeout")
    await session._poll_tick(1)
    assert session.view is view


@pytest.mark.asyncio
async def test_older_tick_never_overwrites_newer(session, feed, raw_match) -> None:
    feed.matches.return_value = [raw_match("a", status=3, home_score=0, away_score=0)]
    await session.load_day(DAY)

    feed.matches.return_value = [raw_match("a", status=3, home_score=2, away_score=0)]
    await session._poll_tick(2)
    feed.matches.return_value = [raw_match("a", status=3, home_score=1, away_score=0)]
    await session._poll_tick(1)

    assert _score(session, "a") == 2


@pytest.mark.asyncio
async def test_tick_for_previous_date_is_discarded(session, feed, raw_match) -> None:
    gate = asyncio.Event()
    feed.matches.return_value = [raw_match("a", status=3, home_score=0, away_score=0)]
    await session.load_day(DAY)

    async def slow_tick_fetch(start, end, language, count):
        await gate.wait()
        return [raw_match("a", status=3, home_score=5, away_score=0)]

    feed.matches.side_effect = slow_tick_fetch
    tick = asyncio.create_task(session._poll_tick(1))
    await asyncio.sleep(0)

    feed.matches.side_effect = None
    feed.matches.return_value = [raw_match("a", status=3, home_score=0, away_score=0)]
    await session.load_day(DAY)
    gate.set()
    await tick

    assert _score(session, "a") == 0


@pytest.mark.asyncio
async def test_poll_recovers_unfetched_view(session, feed, raw_match) -> None:
    feed.matches.side_effect = RuntimeError("down")
    await session.load_day(DAY)
    assert not session.view.fetched

    feed.matches.side_effect = None
    feed.matches.return_value = [raw_match("a")]
    await session._poll_tick(1)
    assert session.view.fetched
    assert session.find_match("a") is not None


@pytest.mark.asyncio
async def test_open_day_starts_polling_and_close_stops_it(session, feed, raw_match) -> None:
    feed.matches.return_value = [raw_match("a")]
    await session.open_day(DAY)
    assert session.polling
    await session.close()
    assert not session.polling


# ── Match detail ────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_load_match_details_fans_out_and_merges(session, feed, raw_match) -> None:
    feed.matches.return_value = [raw_match("a", status=3, home_score=0, away_score=0)]
    await session.load_day(DAY)

    detail = raw_match("a", status=3, home_score=1, away_score=0, match_time="50'", shape="live")
    detail["HomeTeam"]["Goals"] = [{"IdPlayer": "p1", "Minute": "48'", "Period": 5}]
    feed.detail.return_value = detail
    feed.head_to_head.return_value = {
        "TeamA": {"IdTeam": "43960", "Wins": 3},
        "TeamB": {"IdTeam": "43922", "Wins": 1},
    }

    view = await session.load_match_details(session.find_match("a"))

    assert view.match.home_score == 1
    assert view.match.clock == "50'"
    assert [e.minute for e in view.timeline] == ["48'"]
    assert view.head_to_head.home.team_id == "43922"
    assert view.head_to_head.home.wins == 1
    feed.detail.assert_awaited_once_with("17", "255711", "255951", "a", "en")
    h2h_args = feed.head_to_head.await_args.args
    assert h2h_args[:2] == ("43922", "43960")
    assert h2h_args[4] == datetime(2026, 6, 15, 19, 0, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_match_details_survive_failed_parts(session, feed, raw_match) -> None:
    feed.matches.return_value = [raw_match("a")]
    await session.load_day(DAY)
    feed.detail.side_effect = RuntimeError("detail down")
    feed.head_to_head.side_effect = RuntimeError("h2h down")

    match = session.find_match("a")
    view = await session.load_match_details(match)
    assert view.match is match
    assert view.timeline == ()
    assert view.head_to_head is None


@pytest.mark.asyncio
async def test_load_match_details_by_id_for_unknown_match(session, feed, raw_match) -> None:
    feed.detail.return_value = raw_match("zz", shape="live")
    view = await session.load_match_details_by_id("17", "255711", "255951", "zz")
    assert view is not None
    assert view.match.id == "zz"
