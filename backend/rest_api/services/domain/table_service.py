"""
Table Service.

Floor management: listing, creation, manual status changes, waiter
assignment and occupancy figures. Seating and releasing a table for an
order happens in the order lifecycle, not here.
"""

from __future__ import annotations

from collections import Counter

from sqlalchemy import select
from sqlalchemy.orm import Session

from shared.config.constants import Roles, TableStatus
from shared.config.logging import tables_logger as logger
from shared.infrastructure.db import transaction
from shared.utils.exceptions import DuplicateEntityError, NotFoundError, ValidationError
from shared.utils.schemas import CreateTableRequest
from rest_api.models import Order, Table, User
from rest_api.models.base import utc_now


class TableService:
    """Service for table management."""

    def __init__(self, db: Session):
        self._db = db

    def get_table(self, table_id: int) -> Table:
        table = self._db.scalar(select(Table).where(Table.id == table_id, Table.is_active.is_(True)))
        if not table:
            raise NotFoundError("Table", table_id)
        return table

    def list_tables(
        self,
        *,
        statuses: list[str] | None = None,
        location: str | None = None,
        section: str | None = None,
    ) -> list[Table]:
        query = select(Table).where(Table.is_active.is_(True))
        if statuses:
            query = query.where(Table.status.in_(statuses))
        if location:
            query = query.where(Table.location == location)
        if section:
            query = query.where(Table.section == section)
        return list(self._db.scalars(query.order_by(Table.table_number)).all())

    def create_table(self, data: CreateTableRequest, user_id: int | None) -> Table:
        number = data.table_number.strip()
        if self._db.scalar(select(Table.id).where(Table.table_number == number)):
            raise DuplicateEntityError("Table number", number)

        with transaction(self._db):
            table = Table(**data.model_dump(exclude={"table_number"}), table_number=number, created_by_id=user_id)
            self._db.add(table)

        logger.info("Table created", table_id=table.id, table_number=number)
        return table

    def update_status(self, table_id: int, new_status: str, user_id: int | None) -> Table:
        """
        Manual status change.

        Occupied is only accepted while an open order is seated at the
        table; every other status detaches the seated order. Available
        also clears the waiter.

        Raises:
            ValidationError: Occupied requested without an open order.
        """
        table = self.get_table(table_id)
        now = utc_now()

        with transaction(self._db):
            if new_status == TableStatus.OCCUPIED:
                current = self._db.get(Order, table.current_order_id) if table.current_order_id else None
                if current is None or current.is_terminal:
                    raise ValidationError(
                        "A table can only be occupied by an open order",
                        table_id=table_id,
                    )
                table.status = new_status
            else:
                table.release(new_status, now)
                if new_status == TableStatus.AVAILABLE:
                    table.assigned_waiter_id = None

        logger.info("Table status updated", table_id=table.id, status=new_status, user_id=user_id)
        return table

    def assign_waiter(self, table_id: int, waiter_id: int | None) -> Table:
        table = self.get_table(table_id)
        waiter = None
        if waiter_id is not None:
            waiter = self._db.get(User, waiter_id)
            if waiter is None or not waiter.is_active:
                raise NotFoundError("Waiter", waiter_id)
            if waiter.role == Roles.CUSTOMER:
                raise ValidationError("Customers cannot be assigned to tables", waiter_id=waiter_id)

        with transaction(self._db):
            table.assigned_waiter = waiter

        logger.info("Waiter assigned", table_id=table.id, waiter_id=waiter_id)
        return table

    def stats(self) -> dict:
        tables = self._db.scalars(select(Table).where(Table.is_active.is_(True))).all()
        by_status = Counter(table.status for table in tables)
        by_location = Counter(table.location for table in tables)

        busy = by_status[TableStatus.OCCUPIED] + by_status[TableStatus.RESERVED]
        return {
            "total_tables": len(tables),
            "occupancy_rate": round(busy / len(tables) * 100, 1) if tables else 0.0,
            "tables_by_status": {status: by_status.get(status, 0) for status in TableStatus.ALL},
            "tables_by_location": dict(by_location),
        }
