"""Tests for the fallback synthesizer."""

import logging

import pytest

from app.core.errors import SynthesisFailure
from app.modules.catalog.services import fallback
from app.modules.catalog.services.fallback import (
    FALLBACK_MESSAGE,
    MINIMAL_MESSAGE,
    Minimal,
    Synthetic,
    degrade,
    fallback_cap,
    minimal_record,
    synthesize,
)

KINDS = ["popular", "trending", "top-rated", "new-releases", "category", "search", "related"]


class TestSynthesize:
    """Tests for synthesize."""

    @pytest.mark.parametrize("kind", KINDS)
    @pytest.mark.parametrize("limit", [1, 5, 20, 50, 1000])
    def test_bounded_by_cap(self, kind: str, limit: int) -> None:
        """Never more records than requested or than the kind's cap."""
        games = synthesize(kind, limit)
        assert len(games) == min(limit, fallback_cap(kind))

    def test_caps(self) -> None:
        """Related lists cap at 8, every other list at 20."""
        assert fallback_cap("related") == 8
        assert fallback_cap("popular") == 20

    @pytest.mark.parametrize("limit", [0, -3])
    def test_at_least_one(self, limit: int) -> None:
        """Non-positive limits still produce one record."""
        assert len(synthesize("popular", limit)) == 1

    @pytest.mark.parametrize("kind", KINDS)
    def test_deterministic(self, kind: str) -> None:
        """Same kind and limit give identical records."""
        assert synthesize(kind, 10) == synthesize(kind, 10)

    def test_prefix_stable(self) -> None:
        """Record i is the same whatever the limit."""
        assert synthesize("trending", 3) == synthesize("trending", 10)[:3]

    @pytest.mark.parametrize("kind", KINDS)
    def test_records_valid(self, kind: str) -> None:
        """Synthetic records have unique positive ids and ratings in range."""
        games = synthesize(kind, 50)
        ids = [game.id for game in games]
        assert len(set(ids)) == len(ids)
        assert all(game.id > 0 for game in games)
        assert all(0 <= game.rating <= 5 for game in games)
        assert all(game.image.endswith(f"/{game.id}/header.jpg") for game in games)

    def test_popular_ids_and_names(self) -> None:
        """Popular records count up from 730."""
        games = synthesize("popular", 3)
        assert [game.id for game in games] == [730, 731, 732]
        assert [game.name for game in games] == ["Popular Game 1", "Popular Game 2", "Popular Game 3"]

    def test_new_releases_weekly_dates(self) -> None:
        """New releases step back one week at a time from 2024-01-01."""
        dates = [game.release_date for game in synthesize("new-releases", 3)]
        assert dates == ["2024-01-01", "2023-12-25", "2023-12-18"]

    def test_unknown_kind(self) -> None:
        """Unknown kinds cannot be synthesized."""
        with pytest.raises(SynthesisFailure):
            synthesize("bogus", 5)


class TestDegrade:
    """Tests for degrade and the minimal tier."""

    def test_synthetic_tier(self) -> None:
        """Normally degrade returns synthetic data with the fallback message."""
        result = degrade("popular", 5)
        assert isinstance(result, Synthetic)
        assert result.is_fallback is True
        assert result.message == FALLBACK_MESSAGE
        assert len(result.games) == 5

    def test_minimal_tier(self, monkeypatch, caplog) -> None:
        """A synthesis failure yields the single minimal record and logs an error."""
        def broken(profile, i):
            raise RuntimeError("boom")

        monkeypatch.setattr(fallback, "_synthetic_record", broken)
        with caplog.at_level(logging.ERROR):
            result = degrade("top-rated", 10)
        assert isinstance(result, Minimal)
        assert result.is_fallback is True
        assert result.message == MINIMAL_MESSAGE
        assert [game.name for game in result.games] == ["The Witcher 3: Wild Hunt"]
        assert "minimal record" in caplog.text

    def test_unknown_kind_degrades_to_minimal(self) -> None:
        """degrade never raises, even for unknown kinds."""
        result = degrade("bogus", 5)
        assert isinstance(result, Minimal)
        assert result.games == [minimal_record("popular")]

    @pytest.mark.parametrize("kind,name", [
        ("popular", "Counter-Strike 2"),
        ("top-rated", "The Witcher 3: Wild Hunt"),
        ("new-releases", "Recent Game"),
        ("related", "Dota 2"),
        ("search", "Counter-Strike 2"),
    ])
    def test_minimal_records(self, kind: str, name: str) -> None:
        """Each kind has a fixed minimal record; others share the popular one."""
        assert minimal_record(kind).name == name

    def test_minimal_record_is_a_fresh_copy(self) -> None:
        """Mutating a returned minimal record leaves later ones untouched."""
        record = minimal_record("popular")
        record.name = "Changed"
        record.tags.append("Mutated")
        fresh = minimal_record("popular")
        assert fresh.name == "Counter-Strike 2"
        assert "Mutated" not in fresh.tags
