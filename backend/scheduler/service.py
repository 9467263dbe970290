"""
Match Centre session service.

One session shows one reference date at a time:
1. Fetches the UTC window around the date and builds the grouped day view
2. Fans out standings fetches for every visible competition concurrently
3. Polls the feed on a fixed interval and reconciles live fields in place
4. Loads match detail (timeline, head-to-head, standings) on demand

All work happens on one event loop. Every suspension point is a feed fetch,
and results that arrive after the date changed (or after a newer poll
applied) are discarded rather than applied.
"""
from __future__ import annotations

import asyncio
import signal
from datetime import date, datetime, tzinfo
from typing import Optional

from shared.config import Settings, get_settings
from shared.models.domain import (
    CompetitionGroup,
    CompetitionMetadata,
    DayView,
    HeadToHeadStats,
    Match,
    MatchDetailView,
    StandingsTable,
)
from shared.utils.logging import bind_context, get_logger, setup_logging
from shared.utils.metrics import POLL_TICKS, VIEW_BUILD, VISIBLE_GROUPS, start_metrics_server, track_latency

from builder.bucketing import fetch_window
from builder.context import CompetitionContext
from builder.grouping import build_day_groups
from builder.head_to_head import aggregate_head_to_head
from builder.standings import StandingsAggregator
from builder.timeline.extractor import extract_timeline
from ingest.normalization.normalizer import MalformedRecordError, MatchNormalizer
from ingest.providers.base import FeedProvider
from ingest.providers.fifa import FIFAFeedProvider
from scheduler.engine.polling import PeriodicTask
from scheduler.reconciler import reconcile, refresh_match

logger = get_logger(__name__)


class MatchCentreSession:
    def __init__(
        self,
        feed: FeedProvider,
        settings: Settings | None = None,
        tz: tzinfo | None = None,
        language: str | None = None,
        preferred_locale: str | None = None,
    ) -> None:
        self._feed = feed
        self._settings = settings or get_settings()
        self._tz = tz
        self._language = language or self._settings.feed_language
        self._normalizer = MatchNormalizer(self._settings, preferred_locale, tz)
        self._standings = StandingsAggregator(self._settings, self._normalizer.preferred_locale)
        self._generation = 0
        self._applied_seq = 0
        self._view: Optional[DayView] = None
        self._context = CompetitionContext()
        self._poller: Optional[PeriodicTask] = None
        self._shutdown = asyncio.Event()

    # ── State ───────────────────────────────────────────────────────────

    @property
    def view(self) -> Optional[DayView]:
        return self._view

    @property
    def context(self) -> CompetitionContext:
        return self._context

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def polling(self) -> bool:
        return self._poller is not None and self._poller.running

    def find_match(self, match_id: str) -> Optional[Match]:
        if self._view is None:
            return None
        for group in self._view.groups:
            for match in group.matches:
                if match.id == match_id:
                    return match
        return None

    # ── Day view ────────────────────────────────────────────────────────

    async def _fetch_records(self, reference: date) -> Optional[list[dict]]:
        start, end = fetch_window(reference)
        return await self._feed.fetch_matches(
            start, end, self._language, self._settings.match_fetch_count
        )

    async def _load_standings(self, meta: CompetitionMetadata) -> Optional[list[StandingsTable]]:
        payload = await self._feed.fetch_standings(
            meta.competition_id, meta.season_id, meta.stage_id, self._language
        )
        if payload is None:
            return None
        return self._standings.aggregate(payload)

    async def _build_day(self, reference: date, generation: int) -> Optional[tuple[DayView, CompetitionContext]]:
        records = await self._fetch_records(reference)
        if generation != self._generation:
            return None
        if records is None:
            logger.warning("day_view_fetch_failed", reference_date=reference.isoformat())
            return DayView(reference_date=reference, fetched=False), CompetitionContext()

        with track_latency(VIEW_BUILD, stage="group"):
            matches = self._normalizer.normalize_all(records)
            context = CompetitionContext.from_matches(records)
            groups = build_day_groups(matches, reference, context, self._tz)

        competitions = context.competitions_for(groups)
        tables = await asyncio.gather(*(self._load_standings(meta) for meta in competitions))
        if generation != self._generation:
            return None
        for meta, result in zip(competitions, tables):
            if result is not None:
                context.set_standings(meta.competition_id, result)

        view = DayView(
            reference_date=reference,
            groups=tuple(groups),
            standings=context.standings,
            fetched=True,
        )
        return view, context

    def _install(self, view: DayView, context: CompetitionContext) -> None:
        self._view = view
        self._context = context
        VISIBLE_GROUPS.set(len(view.groups))

    async def load_day(self, reference: date) -> Optional[DayView]:
        """
        Build and install the view for ``reference``.

        A failed feed fetch installs an empty, unfetched view. Returns None
        when a later date change superseded this load while it was waiting.
        """
        self._generation += 1
        self._applied_seq = 0
        generation = self._generation
        bind_context(reference_date=reference.isoformat())

        built = await self._build_day(reference, generation)
        if built is None:
            logger.info("day_view_discarded", reference_date=reference.isoformat())
            return None
        view, context = built
        self._install(view, context)
        logger.info(
            "day_view_loaded",
            reference_date=reference.isoformat(),
            groups=len(view.groups),
            matches=sum(len(g.matches) for g in view.groups),
            live=sum(m.status.is_live for g in view.groups for m in g.matches),
            standings=len(view.standings),
            fetched=view.fetched,
        )
        return view

    async def open_day(self, reference: date) -> Optional[DayView]:
        """Switch to ``reference``: stop polling, load the day, resume polling."""
        await self.stop_polling()
        view = await self.load_day(reference)
        if view is not None:
            self.start_polling()
        return view

    # ── Polling ─────────────────────────────────────────────────────────

    def start_polling(self) -> None:
        if self.polling:
            return
        self._poller = PeriodicTask(self._poll_tick, self._settings.poll_interval_s, name="day-poll")
        self._poller.start()

    async def stop_polling(self) -> None:
        poller, self._poller = self._poller, None
        if poller is not None:
            await poller.stop()

    def _is_stale(self, generation: int, seq: int) -> bool:
        return generation != self._generation or seq < self._applied_seq

    async def _poll_tick(self, seq: int) -> None:
        view = self._view
        if view is None:
            return
        generation = self._generation

        if not view.fetched:
            built = await self._build_day(view.reference_date, generation)
            if built is None or self._is_stale(generation, seq):
                POLL_TICKS.labels(outcome="discarded").inc()
                return
            if not built[0].fetched:
                POLL_TICKS.labels(outcome="failed").inc()
                return
            self._install(*built)
            self._applied_seq = seq
            POLL_TICKS.labels(outcome="applied").inc()
            logger.info("day_view_recovered", seq=seq, groups=len(built[0].groups))
            return

        records = await self._fetch_records(view.reference_date)
        if self._is_stale(generation, seq):
            POLL_TICKS.labels(outcome="discarded").inc()
            logger.debug("poll_tick_discarded", seq=seq)
            return
        if records is None:
            POLL_TICKS.labels(outcome="failed").inc()
            return

        fresh = self._normalizer.normalize_all(records)
        current = self._view
        if current is None:
            return
        groups = reconcile(current.groups, fresh)
        if any(new is not old for new, old in zip(groups, current.groups)):
            self._view = current.model_copy(update={"groups": tuple(groups)})
        self._applied_seq = seq
        POLL_TICKS.labels(outcome="applied").inc()

    # ── Match detail ────────────────────────────────────────────────────

    def _ids_for(self, match: Match) -> Optional[tuple[str, str, str]]:
        meta = self._context.metadata_for(match.competition_id)
        cid = match.competition_id
        sid = match.season_id or (meta.season_id if meta else None)
        stid = match.stage_id or (meta.stage_id if meta else None)
        if not (cid and sid and stid):
            return None
        return cid, sid, stid

    async def _head_to_head(self, match: Match) -> Optional[dict]:
        home_id, away_id = match.home_team.id, match.away_team.id
        if not (home_id and away_id):
            return None
        return await self._feed.fetch_head_to_head(
            home_id, away_id, self._language, self._settings.head_to_head_count, before=match.kickoff
        )

    async def _detail_standings(self, cid: str, sid: str, stid: str) -> tuple[StandingsTable, ...]:
        cached = self._context.standings_for(cid)
        if cached:
            return cached
        tables = await self._load_standings(
            CompetitionMetadata(competition_id=cid, season_id=sid, stage_id=stid)
        )
        return tuple(tables or ())

    async def load_match_details(self, match: Match) -> MatchDetailView:
        """
        Fetch detail, head-to-head and standings for ``match`` concurrently.
        Any part whose fetch fails is simply left empty.
        """
        ids = self._ids_for(match)
        if ids is None:
            logger.warning("match_detail_missing_ids", match_id=match.id)
            return MatchDetailView(match=match)
        cid, sid, stid = ids

        detail, h2h_payload, standings = await asyncio.gather(
            self._feed.fetch_match_detail(cid, sid, stid, match.id, self._language),
            self._head_to_head(match),
            self._detail_standings(cid, sid, stid),
        )

        merged = match
        timeline = ()
        if detail is not None:
            try:
                merged = refresh_match(match, self._normalizer.normalize(detail))
            except MalformedRecordError as exc:
                logger.warning("match_detail_malformed", match_id=match.id, error=str(exc))
            timeline = tuple(extract_timeline(detail, self._normalizer.preferred_locale))

        head_to_head: Optional[HeadToHeadStats] = aggregate_head_to_head(
            h2h_payload, match.home_team.id, match.away_team.id, self._normalizer
        )
        return MatchDetailView(
            match=merged,
            timeline=timeline,
            head_to_head=head_to_head,
            standings=standings,
        )

    async def load_match_details_by_id(
        self, competition_id: str, season_id: str, stage_id: str, match_id: str
    ) -> Optional[MatchDetailView]:
        """Detail view for a match that is not in the current day view."""
        known = self.find_match(match_id)
        if known is not None:
            return await self.load_match_details(known)

        detail = await self._feed.fetch_match_detail(
            competition_id, season_id, stage_id, match_id, self._language
        )
        if detail is None:
            return None
        try:
            match = self._normalizer.normalize(detail)
        except MalformedRecordError as exc:
            logger.warning("match_detail_malformed", match_id=match_id, error=str(exc))
            return None
        match = match.model_copy(
            update={
                "competition_id": match.competition_id or competition_id,
                "season_id": match.season_id or season_id,
                "stage_id": match.stage_id or stage_id,
            }
        )
        return await self.load_match_details(match)

    # ── Lifecycle ───────────────────────────────────────────────────────

    async def close(self) -> None:
        """Stop polling and invalidate any fetch still in flight."""
        self._generation += 1
        await self.stop_polling()

    def request_shutdown(self) -> None:
        self._shutdown.set()

    async def run(self, reference: date | None = None) -> None:
        """Show ``reference`` (today by default) until shutdown is requested."""
        reference = reference or datetime.now(self._tz).date()
        await self.open_day(reference)
        await self._shutdown.wait()


def summarize_groups(groups: tuple[CompetitionGroup, ...]) -> list[str]:
    return [f"{g.competition_name} ({g.date}): {len(g.matches)} matches" for g in groups]


async def main() -> None:
    """Session service entrypoint: follows today's matches until interrupted."""
    settings = get_settings()
    setup_logging("session")
    start_metrics_server()

    feed = FIFAFeedProvider(settings=settings)
    await feed.start()
    session = MatchCentreSession(feed, settings)

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, session.request_shutdown)

    logger.info("session_service_started", instance_id=settings.instance_id)

    try:
        await session.run()
    finally:
        await session.close()
        await feed.close()
        if session.view is not None:
            logger.info("session_final_view", groups=summarize_groups(session.view.groups))
        logger.info("session_service_stopped")


if __name__ == "__main__":
    asyncio.run(main())
