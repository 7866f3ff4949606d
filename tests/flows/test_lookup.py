"""Tests for Lookup implementations."""

from __future__ import annotations

import pytest

from remoteflow import (
    Bus,
    ChannelLookup,
    KeyNotFoundError,
    Lookup,
    Responder,
    StaticLookup,
    TimeoutError,
    TypeMismatchError,
)
from tests.accounts import ACCT_TABLE, BAL_TABLE, PHONE, Acct, Bal, Num, SingleLineBalance


class TestStaticLookup:
    """Tests for StaticLookup."""

    async def test_hit(self) -> None:
        assert await StaticLookup(ACCT_TABLE)(PHONE) == Acct('alpha')

    async def test_miss(self) -> None:
        with pytest.raises(KeyNotFoundError):
            await StaticLookup(ACCT_TABLE)(Num('000-000-0000'))

    async def test_handle_is_already_resolved(self) -> None:
        assert StaticLookup(ACCT_TABLE)(PHONE).done()

    def test_satisfies_protocol(self) -> None:
        assert isinstance(StaticLookup({}), Lookup)

    async def test_flow_runs_against_static_tables(self) -> None:
        flow = SingleLineBalance(StaticLookup(ACCT_TABLE), StaticLookup(BAL_TABLE))
        assert await flow(PHONE) == Bal(124.5)


class TestChannelLookup:
    """Tests for ChannelLookup."""

    async def test_resolves_with_reply(self) -> None:
        async with Bus() as bus:
            Responder(ACCT_TABLE).bind(bus, 'acct')
            acct = ChannelLookup(bus, 'acct', Acct)
            assert await acct(PHONE) == Acct('alpha')

    async def test_failure_propagates_unchanged(self) -> None:
        async with Bus() as bus:
            Responder(ACCT_TABLE).bind(bus, 'acct')
            with pytest.raises(KeyNotFoundError):
                await ChannelLookup(bus, 'acct', Acct)(Num('000-000-0000'))

    async def test_reply_of_wrong_type(self) -> None:
        async with Bus() as bus:
            Responder(ACCT_TABLE).bind(bus, 'acct')
            with pytest.raises(TypeMismatchError) as exc_info:
                await ChannelLookup(bus, 'acct', Bal)(PHONE)
        assert exc_info.value.actual == 'Acct'

    async def test_times_out(self) -> None:
        async with Bus() as bus:
            lookup = ChannelLookup(bus, 'silent', Acct, timeout=0.05)
            with pytest.raises(TimeoutError):
                await lookup(PHONE)

    async def test_calls_do_not_block(self) -> None:
        async with Bus() as bus:
            Responder(ACCT_TABLE).bind(bus, 'acct')
            acct = ChannelLookup(bus, 'acct', Acct)
            first, second = acct(PHONE), acct(PHONE)
            assert [await first, await second] == [Acct('alpha'), Acct('alpha')]

    def test_rejects_invalid_channel(self) -> None:
        with pytest.raises(ValueError):
            ChannelLookup(None, '', Acct)  # type: ignore[arg-type]

    def test_satisfies_protocol(self) -> None:
        assert isinstance(ChannelLookup(None, 'acct'), Lookup)  # type: ignore[arg-type]
