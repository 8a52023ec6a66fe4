from datetime import UTC, datetime
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from application.services.rate_aggregator import RateAggregator, calculate_median
from domain.interfaces import ExchangeRateProvider
from domain.models.currency import RateSource
from tests.fakes import StubProvider, failing_provider, make_rate


class TestMedian:
    @pytest.mark.parametrize('values, expected', [
        (['1.0', '1.2', '1.4'], '1.2'),
        (['1.0', '1.2'], '1.1'),
        (['1.4', '1.0', '1.2'], '1.2'),
        (['0.95', '0.90', '0.91'], '0.91'),
        (['2'], '2'),
        (['1', '2', '3', '10'], '2.5'),
    ])
    def test_median(self, values, expected):
        assert calculate_median([Decimal(v) for v in values]) == Decimal(expected)

    def test_empty(self):
        assert calculate_median([]) is None


class TestRateAggregator:
    @pytest.mark.asyncio
    async def test_consensus_is_median_of_quotes(self):
        providers = [StubProvider('a', '0.90'), StubProvider('b', '0.91'), StubProvider('c', '0.95')]
        aggregator = RateAggregator(providers)

        rate = await aggregator.aggregate('USD', 'EUR')

        assert rate.rate == Decimal('0.91')
        assert rate.source == RateSource.LOCAL_DB
        assert all(p.calls == 1 for p in providers)

    @pytest.mark.asyncio
    async def test_failed_providers_are_ignored(self):
        providers = [StubProvider('a', '1.0'), failing_provider('b'), StubProvider('c', None), StubProvider('d', '1.2')]
        aggregator = RateAggregator(providers)

        rate = await aggregator.aggregate('USD', 'EUR')

        assert rate.value == '1.1'

    @pytest.mark.asyncio
    async def test_no_quotes_returns_none(self):
        aggregator = RateAggregator([failing_provider('a'), StubProvider('b', None)])

        assert await aggregator.aggregate('USD', 'EUR') is None

    @pytest.mark.asyncio
    async def test_timestamp_is_latest_quote(self):
        older = datetime(2025, 1, 1, 10, 0, tzinfo=UTC)
        newer = datetime(2025, 1, 1, 11, 0, tzinfo=UTC)

        first = AsyncMock(spec=ExchangeRateProvider)
        first.name = 'first'
        first.get_rate.return_value = make_rate(rate='0.90', timestamp=older)
        second = AsyncMock(spec=ExchangeRateProvider)
        second.name = 'second'
        second.get_rate.return_value = make_rate(rate='0.92', timestamp=newer)

        rate = await RateAggregator([first, second]).aggregate('USD', 'EUR')

        assert rate.timestamp == newer
        assert rate.value == '0.91'
        first.get_rate.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_slow_provider_is_cut_off(self):
        aggregator = RateAggregator([StubProvider('slow', 'hang'), StubProvider('fast', '0.9')], timeout_ms=20)

        rate = await aggregator.aggregate('USD', 'EUR')

        assert rate.value == '0.9'
