"""Tests for the odds, injury and weather ingestion stages."""

from datetime import timedelta

import httpx
import pytest

from conftest import NOW, make_game
from nfl_edge.exceptions import ConfigurationError
from nfl_edge.schemas import SourceStatus
from nfl_edge.services.data.injuries_api import ESPNInjuryClient
from nfl_edge.services.data.odds_api import OddsAPIClient
from nfl_edge.services.data.weather_api import WeatherAPIClient
from nfl_edge.tasks.ingestion import ingest_injuries, ingest_odds, ingest_weather
from test_data_clients import FORECAST, INJURY_FEED, KICKOFF, ODDS_EVENT


def transport_returning(*responses):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return responses[min(len(calls), len(responses)) - 1]

    return httpx.MockTransport(handler), calls


def failing_transport():
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError(f"unexpected request to {request.url}")

    return httpx.MockTransport(handler)


class TestIngestOdds:
    @pytest.mark.asyncio
    async def test_stores_games_and_snapshots(self, store, settings):
        transport, _ = transport_returning(
            httpx.Response(200, json=[ODDS_EVENT], headers={"x-requests-remaining": "99"})
        )
        client = OddsAPIClient(settings=settings, transport=transport)

        result = await ingest_odds(store, settings, client=client, now=NOW)

        assert result.success
        assert result.processed == 1
        assert result.details["snapshots_stored"] == 2
        assert result.details["api_requests_remaining"] == 99
        assert store.games["evt-1"].start_time_utc == KICKOFF
        assert all(s.snapshot_time == NOW for s in store.snapshots)
        assert store.sources["odds"].last_success == NOW
        assert store.budgets[("odds_api", NOW.replace(hour=0))] == 1

    @pytest.mark.asyncio
    async def test_second_run_appends_snapshots(self, store, settings):
        transport, _ = transport_returning(httpx.Response(200, json=[ODDS_EVENT]))
        client = OddsAPIClient(settings=settings, transport=transport)

        await ingest_odds(store, settings, client=client, now=NOW)
        await ingest_odds(store, settings, client=client, now=NOW + timedelta(minutes=30))

        assert len(store.games) == 1
        assert len(store.snapshots) == 4

    @pytest.mark.asyncio
    async def test_kickoff_move_flags_schedule_change(self, store, settings):
        store.games["evt-1"] = make_game("evt-1", kickoff=KICKOFF - timedelta(hours=3, minutes=35))
        transport, _ = transport_returning(httpx.Response(200, json=[ODDS_EVENT]))
        client = OddsAPIClient(settings=settings, transport=transport)

        result = await ingest_odds(store, settings, client=client, now=NOW)

        assert result.details["schedule_changes"] == 1
        assert store.games["evt-1"].schedule_change
        assert store.games["evt-1"].start_time_utc == KICKOFF

    @pytest.mark.asyncio
    async def test_missing_api_key_fails_stage(self, store, settings):
        client = OddsAPIClient(api_key="", settings=settings, transport=failing_transport())

        with pytest.raises(ConfigurationError):
            await ingest_odds(store, settings, client=client, now=NOW)

    @pytest.mark.asyncio
    async def test_daily_budget_exhausted(self, store, settings):
        store.budgets[("odds_api", NOW.replace(hour=0))] = settings.odds_api_daily_budget
        client = OddsAPIClient(settings=settings, transport=failing_transport())

        result = await ingest_odds(store, settings, client=client, now=NOW)

        assert result.success
        assert result.processed == 0
        assert result.details["skipped"] == "daily budget exhausted"

    @pytest.mark.asyncio
    async def test_inactive_source_is_skipped(self, store, settings):
        store.sources["odds"] = SourceStatus(source_type="odds", is_active=False)
        client = OddsAPIClient(settings=settings, transport=failing_transport())

        result = await ingest_odds(store, settings, client=client, now=NOW)

        assert result.success
        assert result.details["skipped"] == "source inactive"
        assert not store.budgets

    @pytest.mark.asyncio
    async def test_fetch_failure_is_recorded(self, store, settings):
        transport, calls = transport_returning(httpx.Response(502))
        client = OddsAPIClient(settings=settings, transport=transport)

        result = await ingest_odds(store, settings, client=client, now=NOW)
        await ingest_odds(store, settings, client=client, now=NOW)

        assert result.success
        assert result.failed == 1
        assert len(calls) == 2 * settings.http_max_retries
        assert store.sources["odds"].consecutive_failures == 2
        assert store.sources["odds"].last_failure == NOW

    @pytest.mark.asyncio
    async def test_storage_failure_skips_game(self, store, settings):
        store.fail_games.add("evt-1")
        transport, _ = transport_returning(httpx.Response(200, json=[ODDS_EVENT]))
        client = OddsAPIClient(settings=settings, transport=transport)

        result = await ingest_odds(store, settings, client=client, now=NOW)

        assert result.success
        assert result.processed == 0
        assert result.failed == 1


class TestIngestInjuries:
    @pytest.mark.asyncio
    async def test_attaches_to_next_game(self, store, settings):
        store.games["game-1"] = make_game("game-1")
        store.games["game-later"] = make_game("game-later", kickoff=NOW + timedelta(days=6))
        transport, _ = transport_returning(httpx.Response(200, json=INJURY_FEED))
        client = ESPNInjuryClient(settings=settings, transport=transport)

        result = await ingest_injuries(store, settings, client=client, now=NOW)

        assert result.success
        assert result.processed == 2
        assert {s.game_id for s in store.signals} == {"game-1"}
        signal = next(s for s in store.signals if s.content["player"] == "Star Receiver")
        assert signal.signal_type == "injury"
        assert signal.source == "ESPN"
        assert signal.confidence == 0.8
        assert signal.content["severity"] == 1.0
        assert store.sources["injury"].consecutive_failures == 0

    @pytest.mark.asyncio
    async def test_team_without_upcoming_game_is_unmatched(self, store, settings):
        store.games["game-1"] = make_game(
            "game-1", home_team="Denver Broncos", away_team="Buffalo Bills"
        )
        transport, _ = transport_returning(httpx.Response(200, json=INJURY_FEED))
        client = ESPNInjuryClient(settings=settings, transport=transport)

        result = await ingest_injuries(store, settings, client=client, now=NOW)

        assert result.processed == 1
        assert result.details["unmatched"] == 1

    @pytest.mark.asyncio
    async def test_fetch_failure(self, store, settings):
        transport, _ = transport_returning(httpx.Response(500))
        client = ESPNInjuryClient(settings=settings, transport=transport)

        result = await ingest_injuries(store, settings, client=client, now=NOW)

        assert result.success
        assert result.failed == 1
        assert store.sources["injury"].consecutive_failures == 1


class TestIngestWeather:
    @pytest.mark.asyncio
    async def test_outdoor_venue_is_fetched(self, store, settings):
        store.games["game-1"] = make_game("game-1", kickoff=KICKOFF, venue="Lambeau Field")
        transport, calls = transport_returning(httpx.Response(200, json=FORECAST))
        client = WeatherAPIClient(settings=settings, transport=transport)

        result = await ingest_weather(store, settings, client=client, now=NOW)

        assert result.processed == 1
        assert len(calls) == 1
        signal = store.signals[0]
        assert signal.signal_type == "weather"
        assert signal.content["temperature"] == 16.5
        assert signal.content["severity"] == pytest.approx(0.6)

    @pytest.mark.asyncio
    async def test_indoor_venue_skips_network(self, store, settings):
        store.games["game-1"] = make_game("game-1", kickoff=KICKOFF, venue="Ford Field")
        client = WeatherAPIClient(settings=settings, transport=failing_transport())

        result = await ingest_weather(store, settings, client=client, now=NOW)

        assert result.processed == 1
        assert store.signals[0].content["indoor"] is True
        assert store.signals[0].content["severity"] == 0.0

    @pytest.mark.asyncio
    async def test_unknown_venue_and_games_outside_window(self, store, settings):
        store.games["game-1"] = make_game("game-1", kickoff=KICKOFF, venue=None)
        store.games["game-2"] = make_game(
            "game-2", kickoff=NOW + timedelta(days=20), venue="Lambeau Field"
        )
        client = WeatherAPIClient(settings=settings, transport=failing_transport())

        result = await ingest_weather(store, settings, client=client, now=NOW)

        assert result.processed == 0
        assert result.details["games_considered"] == 1
        assert result.details["unknown_venues"] == 1

    @pytest.mark.asyncio
    async def test_all_fetches_failing_records_source_failure(self, store, settings):
        store.games["game-1"] = make_game("game-1", kickoff=KICKOFF, venue="Lambeau Field")
        transport, _ = transport_returning(httpx.Response(503))
        client = WeatherAPIClient(settings=settings, transport=transport)

        result = await ingest_weather(store, settings, client=client, now=NOW)

        assert result.success
        assert result.failed == 1
        assert store.sources["weather"].consecutive_failures == 1
