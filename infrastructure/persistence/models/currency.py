from datetime import datetime
from decimal import Decimal

from sqlalchemy import CHAR, DECIMAL, DateTime, Index, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
	pass


class CurrencyRateDB(Base):
	__tablename__ = 'currency_rates'

	id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
	from_currency: Mapped[str] = mapped_column(CHAR(3), nullable=False)
	to_currency: Mapped[str] = mapped_column(CHAR(3), nullable=False)
	rate: Mapped[Decimal] = mapped_column(DECIMAL(precision=18, scale=8), nullable=False)
	source: Mapped[str] = mapped_column(String(50), nullable=False)
	last_updated: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
	created_at: Mapped[datetime] = mapped_column(
		DateTime(timezone=True), nullable=False, server_default=func.now()
	)
	updated_at: Mapped[datetime] = mapped_column(
		DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
	)

	__table_args__ = (
		UniqueConstraint('from_currency', 'to_currency', name='currency_pair_unique'),
		Index('currency_pair_updated', 'from_currency', 'to_currency', 'last_updated'),
	)
