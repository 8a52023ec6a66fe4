import argparse
import asyncio
import logging
import signal
import sys
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field

from tenacity import AsyncRetrying, RetryCallState, retry_if_exception_type, stop_after_attempt, wait_chain, wait_fixed

from application.services.rate_aggregator import RateAggregator
from application.services.service_factory import ServiceFactory
from config.logging_config import setup_logging
from config.settings import get_settings
from domain.exceptions.currency import AggregationError, CurrencyException, ValidationError
from domain.interfaces import RateStore
from domain.models.currency import CurrencyCode

logger = logging.getLogger(__name__)

MAJOR_CURRENCIES = ('USD', 'EUR', 'GBP', 'JPY', 'CHF', 'CAD', 'AUD')


@dataclass
class SyncReport:
    base_currency: str
    succeeded: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.succeeded) + len(self.failed)


class RateSyncTask:
    """
    Periodic refresh of the durable store from the provider consensus.

    Each pass aggregates every configured currency against the base and upserts both the
    forward rate and its derived reverse. A pass fails as a whole only when every pair
    failed; ``run`` then retries it on a fixed backoff schedule.
    """

    def __init__(
            self,
            aggregator: RateAggregator,
            store: RateStore,
            base_currency: str = 'USD',
            currencies: Sequence[str] = MAJOR_CURRENCIES,
            max_tries: int = 3,
            backoff_seconds: Sequence[int] = (60, 120, 240),
            sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.aggregator = aggregator
        self.store = store
        self.base_currency = CurrencyCode.from_code(base_currency)
        self.currencies = [CurrencyCode.from_code(code) for code in currencies]
        self.max_tries = max_tries
        self.backoff_seconds = list(backoff_seconds)
        self._sleep = sleep
        self._stop_event = asyncio.Event()

    async def sync_once(self) -> SyncReport:
        base = self.base_currency
        report = SyncReport(base_currency=str(base))
        logger.info(f'Starting exchange rate synchronization for base: {base}')

        for target in self.currencies:
            if target == base:
                continue

            try:
                rate = await self.aggregator.aggregate(base, target)
                if rate is None:
                    raise AggregationError(f'No provider quotes for {base}->{target}')

                await self.store.upsert(rate)
                await self.store.upsert(rate.reverse())

                report.succeeded.append(str(target))
                logger.debug(f'Synced rate: {base} -> {target} = {rate.value}')

            except CurrencyException as e:
                report.failed.append(str(target))
                logger.error(f'Error syncing rate {base} -> {target}: {e}')
            except Exception as e:
                report.failed.append(str(target))
                logger.error(f'Unexpected error syncing rate {base} -> {target}: {e}', exc_info=True)

        logger.info(
            f'Exchange rate sync completed. Success: {len(report.succeeded)}, Failures: {len(report.failed)}',
            extra={'extra_data': {
                'event_type': 'rate_aggregation',
                'base_currency': report.base_currency,
                'succeeded': report.succeeded,
                'failed': report.failed,
            }},
        )

        if report.failed and not report.succeeded:
            raise AggregationError(f'All rate synchronizations failed for base {base}')

        return report

    def _log_retry(self, retry_state: RetryCallState) -> None:
        delay = retry_state.next_action.sleep if retry_state.next_action else 0
        logger.warning(
            f'Rate sync attempt {retry_state.attempt_number}/{self.max_tries} failed, retrying in {delay:.0f}s'
        )

    async def run(self) -> SyncReport:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_tries),
            wait=wait_chain(*[wait_fixed(seconds) for seconds in self.backoff_seconds]),
            retry=retry_if_exception_type(AggregationError),
            before_sleep=self._log_retry,
            sleep=self._sleep,
            reraise=True,
        )

        try:
            async for attempt in retrying:
                with attempt:
                    report = await self.sync_once()
        except AggregationError as e:
            logger.critical(f'Exchange rate sync failed permanently: {e}')
            raise

        return report

    async def prune(self, max_age_hours: int) -> int:
        return await self.store.delete_stale_rates(max_age_hours)

    async def run_forever(self, interval_seconds: int, prune_older_than: int | None = None) -> None:
        cycle_count = 0
        logger.info(f'Rate sync worker started, interval {interval_seconds}s')

        while not self._stop_event.is_set():
            cycle_count += 1
            logger.info(f'Cycle #{cycle_count}')

            try:
                await self.run()
                if prune_older_than:
                    await self.prune(prune_older_than)
            except CurrencyException as e:
                logger.error(f'Error in worker cycle: {e}')

            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=interval_seconds)
            except TimeoutError:
                pass

        logger.info('Rate sync worker stopped')

    def stop(self) -> None:
        """Gracefully stop the worker"""
        logger.info('Stopping rate sync worker...')
        self._stop_event.set()


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog='rate-sync', description='Synchronize exchange rates from providers')
    parser.add_argument('--base', default=None, help='Base currency (defaults to SYNC_BASE_CURRENCY)')
    parser.add_argument('--interval', type=int, default=None, help='Run continuously, sleeping this many seconds between passes')
    parser.add_argument('--prune-older-than', type=int, default=None, metavar='HOURS', help='Delete stored rates older than HOURS after each pass')
    return parser.parse_args(argv)


async def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    settings = get_settings()
    setup_logging(settings.LOG_DIRECTORY, settings.LOG_LEVEL, settings.LOG_FILE_LEVEL)

    factory = ServiceFactory(settings)
    try:
        task = RateSyncTask(
            aggregator=factory.create_rate_aggregator(),
            store=factory.repository,
            base_currency=args.base or settings.SYNC_BASE_CURRENCY,
            currencies=settings.SYNC_CURRENCIES,
            max_tries=settings.SYNC_MAX_TRIES,
            backoff_seconds=settings.SYNC_BACKOFF_SECONDS,
        )
    except ValidationError as e:
        logger.error(f'Invalid sync configuration: {e}')
        await factory.cleanup()
        return 2

    try:
        await factory.initialize()

        if args.interval:
            loop = asyncio.get_running_loop()
            for sig in (signal.SIGINT, signal.SIGTERM):
                loop.add_signal_handler(sig, task.stop)
            await task.run_forever(args.interval, args.prune_older_than)
            return 0

        await task.run()
        if args.prune_older_than:
            await task.prune(args.prune_older_than)
        return 0

    except AggregationError:
        return 1
    finally:
        await factory.cleanup()


def cli() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == '__main__':
    cli()
