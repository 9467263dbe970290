"""
Competition context for one reference-date session.

Holds the (competition, season, stage) triples discovered in the raw feed and
the standings fetched for them. A fresh context is built whenever the viewer
changes date; nothing here outlives the session.
"""
from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional, Sequence

from shared.models.domain import CompetitionGroup, CompetitionMetadata, StandingsTable

from ingest.normalization.normalizer import extract_competition_metadata


class CompetitionContext:
    def __init__(self, metadata: Mapping[str, CompetitionMetadata] | None = None) -> None:
        self._metadata: dict[str, CompetitionMetadata] = dict(metadata or {})
        self._standings: dict[str, tuple[StandingsTable, ...]] = {}

    @classmethod
    def from_matches(cls, records: Iterable[Any]) -> "CompetitionContext":
        """Build from raw feed records or normalized matches."""
        return cls(extract_competition_metadata(records))

    def metadata_for(self, competition_id: Optional[str]) -> Optional[CompetitionMetadata]:
        if not competition_id:
            return None
        return self._metadata.get(competition_id)

    @property
    def metadata(self) -> dict[str, CompetitionMetadata]:
        return dict(self._metadata)

    def set_standings(self, competition_id: str, tables: Sequence[StandingsTable]) -> None:
        self._standings[competition_id] = tuple(tables)

    def standings_for(self, competition_id: Optional[str]) -> tuple[StandingsTable, ...]:
        if not competition_id:
            return ()
        return self._standings.get(competition_id, ())

    @property
    def standings(self) -> dict[str, tuple[StandingsTable, ...]]:
        return dict(self._standings)

    def competitions_for(self, groups: Iterable[CompetitionGroup]) -> list[CompetitionMetadata]:
        """Metadata for the competitions visible in ``groups``, in group order, once each."""
        seen: set[str] = set()
        result: list[CompetitionMetadata] = []
        for group in groups:
            meta = self.metadata_for(group.competition_id)
            if meta is None or meta.competition_id in seen:
                continue
            seen.add(meta.competition_id)
            result.append(meta)
        return result
