"""
Tests for escrow configuration.

Test plan:
- Atomic: identical execution + cancellation conditions everywhere,
  cases == [case_id], no expires_at, part_of_payment kept
- Timed: expires_at = now + own duration from one shared now, execution
  condition on all but the final transfer, no cancellation, no cases
- Both: expiry_duration dropped, first debit of first transfer
  authorized, no other debit touched, phase BUILT → CONFIGURED,
  input chain untouched
- Errors: wrong phase, authorization for another account, missing
  expiry_duration in timed mode, naive now, invalid duration
- Durations quoted as numeric strings; the final transfer keeps a
  condition its quote carried
- transfer_expires_at formatting
"""

from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest
from conftest import (
    CANCELLATION_CONDITION,
    EXECUTION_CONDITION,
    NOW,
    SOURCE_ACCOUNT,
    make_path,
)

from chain_sender.chain import build_chain
from chain_sender.errors import ConfigurationError, MalformedQuoteError
from chain_sender.escrow import (
    AtomicEscrowPolicy,
    EscrowPolicy,
    InitiatorAuthorization,
    TimedEscrowPolicy,
    configure_escrow,
    format_timestamp,
    transfer_expires_at,
)
from chain_sender.phases import ChainPhase, TransferChain

CASE_ID = "http://notary.example/cases/case-1"
AUTH = InitiatorAuthorization(account=SOURCE_ACCOUNT)


def _built(hops: int = 2) -> TransferChain:
    return build_chain(make_path(hops), SOURCE_ACCOUNT)


def _atomic() -> AtomicEscrowPolicy:
    return AtomicEscrowPolicy(
        case_id=CASE_ID,
        execution_condition=EXECUTION_CONDITION,
        cancellation_condition=CANCELLATION_CONDITION,
    )


def _timed(now: datetime = NOW) -> TimedEscrowPolicy:
    return TimedEscrowPolicy(now=now, execution_condition=EXECUTION_CONDITION)


class TestAtomic:
    def test_identical_conditions(self) -> None:
        chain = configure_escrow(_built(3), _atomic(), AUTH)
        assert all(t.execution_condition == EXECUTION_CONDITION for t in chain)
        assert all(t.cancellation_condition == CANCELLATION_CONDITION for t in chain)

    def test_every_transfer_in_case(self) -> None:
        chain = configure_escrow(_built(3), _atomic(), AUTH)
        assert all(t.additional_info["cases"] == [CASE_ID] for t in chain)

    def test_no_expires_at(self) -> None:
        chain = configure_escrow(_built(2), _atomic(), AUTH)
        assert all(t.expires_at is None for t in chain)
        assert all("expires_at" not in t.to_dict() for t in chain)

    def test_part_of_payment_kept(self) -> None:
        built = _built(2)
        chain = configure_escrow(built, _atomic(), AUTH)
        assert [t.additional_info["part_of_payment"] for t in chain] == [
            t.additional_info["part_of_payment"] for t in built
        ]


class TestTimed:
    def test_expiry_from_own_duration(self) -> None:
        built = _built(2)
        chain = configure_escrow(built, _timed(), AUTH)
        for before, after in zip(built, chain):
            assert before.expiry_duration is not None
            expected = format_timestamp(NOW + timedelta(seconds=before.expiry_duration))
            assert after.expires_at == expected

    def test_concrete_deadlines(self) -> None:
        chain = configure_escrow(_built(2), _timed(), AUTH)
        assert [t.expires_at for t in chain] == [
            "2025-01-15T12:00:06.000Z",
            "2025-01-15T12:00:04.000Z",
            "2025-01-15T12:00:02.000Z",
        ]

    def test_execution_condition_on_all_but_final(self) -> None:
        chain = configure_escrow(_built(3), _timed(), AUTH)
        assert all(t.execution_condition == EXECUTION_CONDITION for t in chain.transfers[:-1])
        assert chain.final.execution_condition is None

    def test_single_hop_final_has_no_condition(self) -> None:
        chain = configure_escrow(_built(1), _timed(), AUTH)
        assert chain.first.execution_condition == EXECUTION_CONDITION
        assert chain.final.execution_condition is None

    def test_no_cancellation_and_no_cases(self) -> None:
        chain = configure_escrow(_built(2), _timed(), AUTH)
        assert all(t.cancellation_condition is None for t in chain)
        assert all(t.cases == [] for t in chain)

    def test_missing_duration_rejected(self) -> None:
        path = make_path(1)
        del path[0]["destination_transfers"][0]["expiry_duration"]
        built = build_chain(path, SOURCE_ACCOUNT)
        with pytest.raises(MalformedQuoteError):
            configure_escrow(built, _timed(), AUTH)

    def test_string_durations(self) -> None:
        path = make_path(1)
        path[0]["source_transfers"][0]["expiry_duration"] = "4"
        path[0]["destination_transfers"][0]["expiry_duration"] = "2.5"
        chain = configure_escrow(build_chain(path, SOURCE_ACCOUNT), _timed(), AUTH)
        assert [t.expires_at for t in chain] == [
            "2025-01-15T12:00:04.000Z",
            "2025-01-15T12:00:02.500Z",
        ]

    @pytest.mark.parametrize("duration", ["-1", "soon", -1])
    def test_invalid_duration_rejected(self, duration: object) -> None:
        path = make_path(1)
        path[0]["source_transfers"][0]["expiry_duration"] = duration
        with pytest.raises(MalformedQuoteError) as exc:
            build_chain(path, SOURCE_ACCOUNT)
        assert exc.value.details["path"] == "source_transfers/0/expiry_duration"

    def test_final_keeps_quoted_condition(self) -> None:
        quoted = {"type": "sha256", "condition": "cc:0:3:quoted"}
        path = make_path(2)
        path[-1]["destination_transfers"][0]["execution_condition"] = quoted
        chain = configure_escrow(build_chain(path, SOURCE_ACCOUNT), _timed(), AUTH)
        assert chain.final.execution_condition == quoted
        assert chain[1].execution_condition == EXECUTION_CONDITION

    def test_naive_now_rejected(self) -> None:
        with pytest.raises(ValueError):
            TimedEscrowPolicy(now=datetime(2025, 1, 15), execution_condition={})


class TestCommon:
    @pytest.mark.parametrize("policy", [_atomic(), _timed()])
    def test_expiry_duration_dropped(self, policy: EscrowPolicy) -> None:
        chain = configure_escrow(_built(2), policy, AUTH)
        assert all(t.expiry_duration is None for t in chain)
        assert all("expiry_duration" not in t.to_dict() for t in chain)

    @pytest.mark.parametrize("policy", [_atomic(), _timed()])
    def test_only_first_debit_authorized(self, policy: EscrowPolicy) -> None:
        chain = configure_escrow(_built(3), policy, AUTH)
        assert chain.first.debits[0].authorized is True
        others = [d for d in chain.first.debits[1:]] + [
            d for t in chain.transfers[1:] for d in t.debits
        ]
        assert all(d.authorized is None for d in others)

    @pytest.mark.parametrize("policy", [_atomic(), _timed()])
    def test_phase_advances(self, policy: EscrowPolicy) -> None:
        built = _built(2)
        chain = configure_escrow(built, policy, AUTH)
        assert chain.phase == ChainPhase.CONFIGURED
        assert built.phase == ChainPhase.BUILT
        assert built.first.debits[0].authorized is None

    def test_ids_unchanged(self) -> None:
        built = _built(2)
        chain = configure_escrow(built, _timed(), AUTH)
        assert chain.transfer_ids() == built.transfer_ids()

    def test_wrong_phase_rejected(self) -> None:
        configured = configure_escrow(_built(1), _timed(), AUTH)
        with pytest.raises(ValueError):
            configure_escrow(configured, _timed(), AUTH)

    def test_authorization_for_other_account_rejected(self) -> None:
        other = InitiatorAuthorization(account="http://ledger-0.example/accounts/mallory")
        with pytest.raises(ConfigurationError):
            configure_escrow(_built(1), _timed(), other)

    def test_policies_satisfy_protocol(self) -> None:
        assert isinstance(_atomic(), EscrowPolicy)
        assert isinstance(_timed(), EscrowPolicy)


class TestExpiryFormat:
    def test_milliseconds_and_z(self) -> None:
        moment = datetime(2025, 1, 15, 12, 0, 0, 123456, tzinfo=timezone.utc)
        assert format_timestamp(moment) == "2025-01-15T12:00:00.123Z"

    def test_converted_to_utc(self) -> None:
        moment = datetime(2025, 1, 15, 14, 0, 0, tzinfo=timezone(timedelta(hours=2)))
        assert format_timestamp(moment) == "2025-01-15T12:00:00.000Z"

    def test_fractional_duration(self) -> None:
        transfer = _built(1).first
        assert transfer_expires_at(NOW, replace(transfer, expiry_duration=1.5)) == (
            "2025-01-15T12:00:01.500Z"
        )
