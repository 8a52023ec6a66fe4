import logging
from datetime import UTC, datetime, timedelta

from sqlalchemy import delete, func, select
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError

from domain.exceptions.currency import StoreError
from domain.interfaces import RateStore
from domain.models.currency import CurrencyCode, ExchangeRate
from infrastructure.persistence.database import Database
from infrastructure.persistence.models.currency import CurrencyRateDB

logger = logging.getLogger(__name__)

_DIALECT_INSERTS = {
	'postgresql': postgresql_insert,
	'sqlite': sqlite_insert,
}


def _to_domain(row: CurrencyRateDB) -> ExchangeRate:
	return ExchangeRate(
		from_currency=row.from_currency,
		to_currency=row.to_currency,
		rate=row.rate,
		timestamp=row.last_updated,
		source=row.source,
	)


class CurrencyRateRepository(RateStore):
	"""L2 durable store, one row per currency pair."""

	def __init__(self, database: Database):
		self.database = database

	async def get(self, from_currency: CurrencyCode, to_currency: CurrencyCode) -> ExchangeRate | None:
		stmt = select(CurrencyRateDB).filter(
			CurrencyRateDB.from_currency == str(from_currency),
			CurrencyRateDB.to_currency == str(to_currency),
		)
		try:
			async with self.database.session() as session:
				row = (await session.execute(stmt)).scalar_one_or_none()
		except SQLAlchemyError as e:
			raise StoreError(f'Failed to read rate {from_currency}->{to_currency}: {e}') from e

		return _to_domain(row) if row else None

	async def exists(self, from_currency: CurrencyCode, to_currency: CurrencyCode) -> bool:
		stmt = select(func.count()).select_from(CurrencyRateDB).filter(
			CurrencyRateDB.from_currency == str(from_currency),
			CurrencyRateDB.to_currency == str(to_currency),
		)
		try:
			async with self.database.session() as session:
				count = (await session.execute(stmt)).scalar_one()
		except SQLAlchemyError as e:
			raise StoreError(f'Failed to check rate {from_currency}->{to_currency}: {e}') from e

		return count > 0

	async def upsert(self, rate: ExchangeRate) -> None:
		values = {
			'from_currency': str(rate.from_currency),
			'to_currency': str(rate.to_currency),
			'rate': rate.rate,
			'source': rate.source.value,
			'last_updated': rate.timestamp,
		}
		try:
			async with self.database.session() as session:
				insert = _DIALECT_INSERTS.get(self.database.dialect)
				if insert is not None:
					stmt = insert(CurrencyRateDB).values(**values)
					stmt = stmt.on_conflict_do_update(
						index_elements=['from_currency', 'to_currency'],
						set_={
							'rate': stmt.excluded.rate,
							'source': stmt.excluded.source,
							'last_updated': stmt.excluded.last_updated,
							'updated_at': func.now(),
						},
					)
					await session.execute(stmt)
				else:
					await self._upsert_generic(session, values)
		except SQLAlchemyError as e:
			raise StoreError(f'Failed to store rate {rate.from_currency}->{rate.to_currency}: {e}') from e

	async def _upsert_generic(self, session, values: dict) -> None:
		row = (
			await session.execute(
				select(CurrencyRateDB).filter(
					CurrencyRateDB.from_currency == values['from_currency'],
					CurrencyRateDB.to_currency == values['to_currency'],
				)
			)
		).scalar_one_or_none()

		if row is None:
			session.add(CurrencyRateDB(**values))
			return

		row.rate = values['rate']
		row.source = values['source']
		row.last_updated = values['last_updated']

	async def get_all_rates(self) -> list[ExchangeRate]:
		stmt = select(CurrencyRateDB).order_by(CurrencyRateDB.from_currency, CurrencyRateDB.to_currency)
		try:
			async with self.database.session() as session:
				rows = (await session.execute(stmt)).scalars().all()
		except SQLAlchemyError as e:
			raise StoreError(f'Failed to list rates: {e}') from e

		return [_to_domain(row) for row in rows]

	async def delete_stale_rates(self, max_age_hours: int = 24) -> int:
		cutoff = datetime.now(UTC) - timedelta(hours=max_age_hours)
		stmt = delete(CurrencyRateDB).where(CurrencyRateDB.last_updated < cutoff)
		try:
			async with self.database.session() as session:
				result = await session.execute(stmt)
		except SQLAlchemyError as e:
			raise StoreError(f'Failed to delete stale rates: {e}') from e

		deleted = result.rowcount or 0
		logger.info(f'Deleted {deleted} rates older than {max_age_hours}h')
		return deleted
