"""
tests/test_tournament_service.py - lifecycle: create, join, predict, score.
"""
import asyncio
from datetime import timedelta

import pytest

from app.core.exceptions import (
    AlreadyPredictedError,
    PredictionWindowClosedError,
    ScoringInProgressError,
)
from app.utils.time_utils import parse_iso_datetime, to_utc_isoformat, utc_now
from tests.conftest import RecordingLedger, make_service


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def tournament(service):
    return service.create_tournament("Daily", "10", "1h")


# ======================================================================
# Creation
# ======================================================================


class TestCreateTournament:
    def test_one_hour_window(self, service):
        t = service.create_tournament("Daily", "10", "1h")
        assert t.end_time - t.start_time == timedelta(seconds=3600)
        assert t.reveal_time == t.end_time
        assert t.status == "active"
        assert t.participants == 0
        assert t.leaderboard is None

    @pytest.mark.parametrize("duration,seconds", [
        ("1m", 60), ("15m", 900), ("1h", 3600), ("4h", 14400), ("24h", 86400),
    ])
    def test_duration_classes(self, service, duration, seconds):
        t = service.create_tournament("T", "1", duration)
        assert (t.end_time - t.start_time).total_seconds() == seconds

    def test_unknown_duration_defaults_to_one_hour(self, service):
        t = service.create_tournament("T", "1", "2h")
        assert (t.end_time - t.start_time).total_seconds() == 3600

    def test_blank_name_uses_placeholder(self, service):
        assert service.create_tournament("   ", "1", "1h").name == "Tournament"
        assert service.create_tournament(None, "1", "1h").name == "Tournament"

    def test_later_reveal_time_is_kept(self, service):
        requested = to_utc_isoformat(utc_now() + timedelta(hours=3))
        t = service.create_tournament("T", "1", "1h", reveal_time=requested)
        assert t.reveal_time == parse_iso_datetime(requested)
        assert t.reveal_time > t.end_time

    def test_early_reveal_time_is_clamped(self, service):
        requested = to_utc_isoformat(utc_now() + timedelta(minutes=5))
        t = service.create_tournament("T", "1", "1h", reveal_time=requested)
        assert t.reveal_time == t.end_time

    def test_invalid_reveal_time_is_clamped(self, service):
        t = service.create_tournament("T", "1", "1h", reveal_time="not-a-date")
        assert t.reveal_time == t.end_time

    def test_creator_is_upserted(self, service, repository):
        t = service.create_tournament("T", "1", "1h", creator_address="0xCREATOR")
        creator = repository.upsert_user("0xCREATOR")
        assert repository.find_tournament(t.id).creator_id == creator.id


# ======================================================================
# Joins
# ======================================================================


class TestJoin:
    def test_join_records_on_ledger(self, service, tournament, ledger_client):
        result = run(service.add_join("0xA", tournament.id))
        assert result.joined is True
        assert result.participants == 1
        assert result.tournament.participants == 1
        assert result.on_chain.confirmed is True
        assert ledger_client.joins == [(tournament.id, "0xA", "10")]

    def test_rejoin_is_idempotent(self, service, tournament):
        run(service.add_join("0xA", tournament.id))
        second = run(service.add_join("0xA", tournament.id))
        assert second.joined is True
        assert second.participants == 1

    def test_missing_tournament(self, service):
        assert run(service.add_join("0xA", 999)) is None

    def test_join_accepted_on_finished_tournament(self, service, tournament):
        run(service.compute_scores(tournament.id))
        result = run(service.add_join("0xLATE", tournament.id))
        assert result.participants == 1

    def test_ledger_failure_does_not_undo_join(self, repository, tournament):
        class BrokenLedger(RecordingLedger):
            async def record_join(self, tournament_id, user_address, entry_fee):
                raise ConnectionError("node unreachable")

        service = make_service(repository, BrokenLedger())
        result = run(service.add_join("0xA", tournament.id))
        assert result.participants == 1
        assert result.on_chain.confirmed is False
        assert result.on_chain.error == "node unreachable"

    def test_slow_ledger_times_out(self, repository, tournament):
        service = make_service(repository, RecordingLedger(delay=1.0), timeout=0.05)
        result = run(service.add_join("0xA", tournament.id))
        assert result.participants == 1
        assert result.on_chain.confirmed is False
        assert result.on_chain.error == "timeout"


# ======================================================================
# Predictions
# ======================================================================


class TestPredictions:
    def test_create_prediction(self, service, tournament):
        p = service.add_prediction(tournament.id, "0xA", "BTC", "up")
        assert p.asset_symbol == "BTC"
        assert p.predicted_direction == "up"
        assert p.created_at is not None

    def test_duplicate_is_rejected_and_first_kept(self, service, tournament):
        service.add_prediction(tournament.id, "0xA", "BTC", "up")
        with pytest.raises(AlreadyPredictedError) as exc_info:
            service.add_prediction(tournament.id, "0xA", "BTC", "down")
        assert exc_info.value.code == "ALREADY_PREDICTED"

        mine = service.list_my_predictions(tournament.id, "0xA")
        assert [(p.asset_symbol, p.predicted_direction) for p in mine] == [("BTC", "up")]

    def test_symbol_match_is_exact(self, service, tournament):
        service.add_prediction(tournament.id, "0xA", "BTC", "up")
        service.add_prediction(tournament.id, "0xA", "btc", "up")
        assert len(service.list_my_predictions(tournament.id, "0xA")) == 2

    def test_storage_constraint_catches_race(self, service, repository, tournament):
        user = repository.upsert_user("0xA")
        repository.create_prediction(user.id, tournament.id, "ETH", "down")
        with pytest.raises(AlreadyPredictedError):
            repository.create_prediction(user.id, tournament.id, "ETH", "up")

    def test_missing_tournament(self, service):
        assert service.add_prediction(999, "0xA", "BTC", "up") is None
        assert service.list_my_predictions(999, "0xA") is None

    def test_accepted_after_end_time_by_default(self, service, tournament, reschedule):
        reschedule(tournament.id, end_time=utc_now() - timedelta(minutes=1))
        assert service.add_prediction(tournament.id, "0xA", "BTC", "up") is not None

    def test_my_predictions_newest_first(self, service, tournament):
        for symbol in ("BTC", "ETH", "SUI"):
            service.add_prediction(tournament.id, "0xA", symbol, "up")
        service.add_prediction(tournament.id, "0xB", "SOL", "up")

        mine = service.list_my_predictions(tournament.id, "0xA")
        assert [p.asset_symbol for p in mine] == ["SUI", "ETH", "BTC"]


class TestPredictionWindow:
    @pytest.fixture
    def strict_service(self, repository, ledger_client):
        return make_service(repository, ledger_client, enforce_prediction_window=True)

    def test_prediction_after_end_rejected(self, strict_service, reschedule):
        t = strict_service.create_tournament("T", "10", "1m")
        reschedule(t.id, end_time=utc_now() - timedelta(seconds=1))
        with pytest.raises(PredictionWindowClosedError):
            strict_service.add_prediction(t.id, "0xA", "BTC", "up")

    def test_prediction_inside_window_accepted(self, strict_service):
        t = strict_service.create_tournament("T", "10", "1h")
        assert strict_service.add_prediction(t.id, "0xA", "BTC", "up") is not None

    def test_join_after_scoring_rejected(self, strict_service):
        t = strict_service.create_tournament("T", "10", "1h")
        run(strict_service.compute_scores(t.id))
        with pytest.raises(PredictionWindowClosedError):
            run(strict_service.add_join("0xA", t.id))


# ======================================================================
# Scoring
# ======================================================================


def play_three_player_game(service, tournament_id):
    for address in ("0xA", "0xB", "0xC"):
        run(service.add_join(address, tournament_id))
    # Oracle: BTC up, ETH down
    service.add_prediction(tournament_id, "0xA", "BTC", "up")
    service.add_prediction(tournament_id, "0xA", "ETH", "down")
    service.add_prediction(tournament_id, "0xB", "BTC", "UP")
    service.add_prediction(tournament_id, "0xB", "ETH", "up")
    service.add_prediction(tournament_id, "0xC", "BTC", "down")
    service.add_prediction(tournament_id, "0xC", "ETH", "up")


class TestComputeScores:
    def test_three_player_scenario(self, service, tournament, ledger_client):
        play_three_player_game(service, tournament.id)

        outcome = run(service.compute_scores(tournament.id))

        assert [(r.rank, r.user_address, r.score) for r in outcome.results] == [
            (1, "0xA", 20), (2, "0xB", 10), (3, "0xC", 0),
        ]
        assert outcome.results[0].reward_amount == pytest.approx(16.363636, abs=1e-6)
        assert outcome.results[1].reward_amount == pytest.approx(8.181818, abs=1e-6)
        assert outcome.results[2].reward_amount == pytest.approx(5.454545, abs=1e-6)
        assert outcome.payout.confirmed is True

        (paid_tournament, winners), = ledger_client.payouts
        assert paid_tournament == tournament.id
        assert [w.address for w in winners] == ["0xA", "0xB", "0xC"]

        refreshed = service.get_tournament(tournament.id)
        assert refreshed.status == "finished"
        assert [row.user_address for row in refreshed.leaderboard] == ["0xA", "0xB", "0xC"]
        assert service.get_results(tournament.id) == outcome.results

    def test_empty_tournament_still_finishes(self, service, tournament, ledger_client):
        outcome = run(service.compute_scores(tournament.id))
        assert outcome.results == []
        assert outcome.payout is None
        assert ledger_client.payouts == []
        assert service.get_tournament(tournament.id).status == "finished"

    def test_unparseable_fee_pays_nothing(self, service, ledger_client):
        t = service.create_tournament("T", "abc", "1h")
        run(service.add_join("0xA", t.id))
        service.add_prediction(t.id, "0xA", "BTC", "up")

        outcome = run(service.compute_scores(t.id))
        assert [r.reward_amount for r in outcome.results] == [0.0]
        assert outcome.payout is None
        assert service.get_tournament(t.id).status == "finished"

    def test_missing_tournament(self, service):
        assert run(service.compute_scores(999)) is None
        assert service.get_results(999) is None

    def test_rescoring_replaces_previous_scores(self, service, tournament):
        run(service.add_join("0xA", tournament.id))
        service.add_prediction(tournament.id, "0xA", "BTC", "up")
        first = run(service.compute_scores(tournament.id))
        assert first.results[0].reward_amount == 10.0

        run(service.add_join("0xB", tournament.id))
        second = run(service.compute_scores(tournament.id))
        assert len(second.results) == 1
        assert second.results[0].reward_amount == 20.0
        assert service.get_results(tournament.id) == second.results

    def test_skip_finished_returns_stored_results(self, service, tournament, ledger_client):
        run(service.add_join("0xA", tournament.id))
        service.add_prediction(tournament.id, "0xA", "BTC", "up")
        first = run(service.compute_scores(tournament.id))

        again = run(service.compute_scores(tournament.id, skip_finished=True))
        assert again.results == first.results
        assert again.payout is None
        assert len(ledger_client.payouts) == 1


class TestScoringConcurrency:
    def test_concurrent_requests_score_once(self, repository, tournament):
        ledger = RecordingLedger(delay=0.05)
        service = make_service(repository, ledger)
        run(service.add_join("0xA", tournament.id))
        service.add_prediction(tournament.id, "0xA", "BTC", "up")

        async def race():
            return await asyncio.gather(
                service.compute_scores(tournament.id),
                service.compute_scores(tournament.id),
            )

        first, second = run(race())

        assert len(ledger.payouts) == 1
        assert first.results == second.results
        assert second.payout is None

    def test_no_wait_reports_in_progress(self, repository, tournament):
        ledger = RecordingLedger(delay=0.05)
        service = make_service(repository, ledger)
        run(service.add_join("0xA", tournament.id))
        service.add_prediction(tournament.id, "0xA", "BTC", "up")

        async def race():
            scoring = asyncio.create_task(service.compute_scores(tournament.id))
            await asyncio.sleep(0)
            with pytest.raises(ScoringInProgressError):
                await service.compute_scores(tournament.id, wait=False)
            return await scoring

        outcome = run(race())
        assert len(outcome.results) == 1
        assert len(ledger.payouts) == 1

    def test_waiter_scores_when_first_pass_fails(self, service, tournament, ledger_client, monkeypatch):
        run(service.add_join("0xA", tournament.id))
        service.add_prediction(tournament.id, "0xA", "BTC", "up")
        real_score = service._score_tournament
        attempts = []

        async def fail_first_attempt(t):
            attempts.append(t.id)
            if len(attempts) == 1:
                await asyncio.sleep(0.05)
                raise RuntimeError("db down")
            return await real_score(t)

        monkeypatch.setattr(service, "_score_tournament", fail_first_attempt)

        async def race():
            first = asyncio.create_task(service.compute_scores(tournament.id))
            await asyncio.sleep(0)
            second = await service.compute_scores(tournament.id)
            with pytest.raises(RuntimeError):
                await first
            return second

        outcome = run(race())

        assert len(attempts) == 2
        assert [r.user_address for r in outcome.results] == ["0xA"]
        assert outcome.payout is not None
        assert service.get_tournament(tournament.id).status == "finished"
        assert len(ledger_client.payouts) == 1

    def test_locks_are_released_after_scoring(self, service, tournament):
        run(service.compute_scores(tournament.id))
        assert tournament.id not in service._scoring_locks


class TestDueAndRescore:
    def test_list_due_tournaments(self, service, reschedule):
        due = service.create_tournament("Due", "10", "1m")
        service.create_tournament("Later", "10", "1h")
        past = utc_now() - timedelta(seconds=1)
        reschedule(due.id, end_time=past, reveal_time=past)

        assert [t.id for t in service.list_due_tournaments(utc_now())] == [due.id]

    def test_rescore_finished_recomputes_each(self, service, ledger_client):
        first = service.create_tournament("One", "10", "1h")
        second = service.create_tournament("Two", "10", "1h")
        active = service.create_tournament("Open", "10", "1h")
        for t in (first, second):
            run(service.add_join("0xA", t.id))
            service.add_prediction(t.id, "0xA", "BTC", "up")
            run(service.compute_scores(t.id))

        # A late join grows the pool; rescoring picks it up
        run(service.add_join("0xB", first.id))
        results = run(service.rescore_finished())

        assert [r.results[0].reward_amount for r in results] == [20.0, 10.0]
        assert service.get_tournament(active.id).status == "active"
        assert len(ledger_client.payouts) == 4

    def test_rescore_with_nothing_finished(self, service):
        service.create_tournament("Open", "10", "1h")
        assert run(service.rescore_finished()) == []


# ======================================================================
# Profile
# ======================================================================


class TestProfile:
    def test_profile_lists_joined_tournaments(self, service):
        first = service.create_tournament("One", "1", "1h")
        second = service.create_tournament("Two", "1", "1h")
        run(service.add_join("0xA", first.id))
        run(service.add_join("0xA", second.id))
        run(service.compute_scores(first.id))

        profile = service.get_profile("0xA")
        assert profile.address == "0xA"
        assert profile.budget == 100.0
        assert [(j.id, j.status) for j in profile.joined_tournaments] == [
            (first.id, "finished"), (second.id, "active"),
        ]

    def test_unknown_address_is_created(self, service, repository):
        profile = service.get_profile("0xNEW")
        assert profile.joined_tournaments == []
        assert repository.upsert_user("0xNEW").wallet_address == "0xNEW"
