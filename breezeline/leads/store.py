"""Lead stores.

Two interchangeable implementations of one append/query/clear contract:

- ``InMemoryLeadStore``: bounded, FIFO eviction of the oldest lead once the
  capacity is exceeded. Append and eviction happen under one lock.
- ``SqlLeadStore``: unbounded, backed by the ``estimation_leads`` table.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError

from breezeline.db.connection import SessionFactory, get_session
from breezeline.db.models import EstimationLeadModel
from breezeline.errors import StorageFault
from breezeline.models import EstimationLead, LeadDraft, LeadStats

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 1000


def month_start(now: datetime) -> datetime:
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


class LeadStore(ABC):
    """Append-only collection of estimation leads."""

    @abstractmethod
    async def append(self, draft: LeadDraft) -> EstimationLead:
        """Persist a lead, assigning its id and created_at."""

    @abstractmethod
    async def recent(self, limit: int = 50) -> list[EstimationLead]:
        """Most recent leads, newest first."""

    @abstractmethod
    async def stats(self, now: datetime | None = None) -> LeadStats:
        """Count, count for the current calendar month, and summed total value."""

    @abstractmethod
    async def count(self) -> int:
        ...

    @abstractmethod
    async def clear(self) -> int:
        """Delete every lead. Returns how many were removed."""


class InMemoryLeadStore(LeadStore):
    """Bounded in-process store for single-node deployments."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._leads: list[EstimationLead] = []
        self._next_id = 1
        self._last_created_at: datetime | None = None
        self._lock = asyncio.Lock()

    def _timestamp(self) -> datetime:
        now = datetime.now(timezone.utc)
        # Strictly increasing even when the clock does not advance between calls
        if self._last_created_at is not None and now <= self._last_created_at:
            now = self._last_created_at + timedelta(microseconds=1)
        self._last_created_at = now
        return now

    async def append(self, draft: LeadDraft) -> EstimationLead:
        async with self._lock:
            lead = EstimationLead(
                id=self._next_id,
                created_at=self._timestamp(),
                **draft.model_dump(),
            )
            self._next_id += 1
            self._leads.append(lead)
            overflow = len(self._leads) - self.capacity
            if overflow > 0:
                del self._leads[:overflow]
                logger.debug("Evicted %d oldest lead(s) at capacity %d", overflow, self.capacity)
            return lead

    async def recent(self, limit: int = 50) -> list[EstimationLead]:
        async with self._lock:
            return list(reversed(self._leads[-limit:])) if limit > 0 else []

    async def stats(self, now: datetime | None = None) -> LeadStats:
        start = month_start(now or datetime.now(timezone.utc))
        async with self._lock:
            leads = list(self._leads)
        return LeadStats(
            total=len(leads),
            this_month=sum(1 for lead in leads if lead.created_at >= start),
            total_value=sum((lead.total_price for lead in leads), Decimal("0")),
        )

    async def count(self) -> int:
        async with self._lock:
            return len(self._leads)

    async def clear(self) -> int:
        async with self._lock:
            removed = len(self._leads)
            self._leads.clear()
            return removed


class SqlLeadStore(LeadStore):
    """Lead store on the relational database."""

    def __init__(self, session_factory: SessionFactory = get_session):
        self._session_factory = session_factory

    @staticmethod
    def _to_lead(row: EstimationLeadModel) -> EstimationLead:
        return EstimationLead.model_validate(row)

    async def append(self, draft: LeadDraft) -> EstimationLead:
        row = EstimationLeadModel(
            project_type=draft.project_type.value,
            service_class=draft.service_class.value,
            area=draft.area,
            unit_price=draft.unit_price,
            total_price=draft.total_price,
            phone=draft.phone,
            email=draft.email,
            contact_name=draft.contact_name,
            created_at=datetime.now(timezone.utc),
        )
        try:
            async with self._session_factory() as session:
                session.add(row)
                await session.flush()
                lead = self._to_lead(row)
        except SQLAlchemyError as e:
            logger.error("Failed to store lead: %s", e)
            raise StorageFault("Failed to submit estimation") from e
        return lead

    async def recent(self, limit: int = 50) -> list[EstimationLead]:
        stmt = (
            select(EstimationLeadModel)
            .order_by(EstimationLeadModel.created_at.desc(), EstimationLeadModel.id.desc())
            .limit(limit)
        )
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                return [self._to_lead(row) for row in result.scalars().all()]
        except SQLAlchemyError as e:
            raise StorageFault("Failed to load estimations") from e

    async def stats(self, now: datetime | None = None) -> LeadStats:
        start = month_start(now or datetime.now(timezone.utc))
        totals = select(
            func.count(EstimationLeadModel.id),
            func.coalesce(func.sum(EstimationLeadModel.total_price), 0),
        )
        monthly = select(func.count(EstimationLeadModel.id)).where(
            EstimationLeadModel.created_at >= start
        )
        try:
            async with self._session_factory() as session:
                total, total_value = (await session.execute(totals)).one()
                this_month = (await session.execute(monthly)).scalar_one()
        except SQLAlchemyError as e:
            raise StorageFault("Failed to load estimation stats") from e
        return LeadStats(
            total=total,
            this_month=this_month,
            total_value=Decimal(str(total_value)),
        )

    async def count(self) -> int:
        try:
            async with self._session_factory() as session:
                result = await session.execute(select(func.count(EstimationLeadModel.id)))
                return result.scalar_one()
        except SQLAlchemyError as e:
            raise StorageFault("Failed to count estimations") from e

    async def clear(self) -> int:
        try:
            async with self._session_factory() as session:
                result = await session.execute(delete(EstimationLeadModel))
                return result.rowcount or 0
        except SQLAlchemyError as e:
            raise StorageFault("Failed to clear estimations") from e
