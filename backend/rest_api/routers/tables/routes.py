"""
Tables router.
Handles table management, manual status changes and waiter assignment.
"""

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.orm import Session

from shared.config.constants import Actions, Modules, TableLocation, TableStatus
from shared.infrastructure.db import get_db
from shared.utils.schemas import (
    AssignWaiterRequest,
    CreateTableRequest,
    TableOutput,
    TableStatsOutput,
    UpdateTableStatusRequest,
)
from shared.utils.validators import parse_status_list
from rest_api.models import User
from rest_api.services.domain import TableService
from rest_api.services.events import publish_table_assignment, publish_table_status
from rest_api.services.permissions import require_permission


router = APIRouter(prefix="/api/tables", tags=["tables"])


@router.get("", response_model=list[TableOutput])
def list_tables(
    status_filter: Optional[str] = Query(default=None, alias="status", description="Comma separated statuses"),
    location: Optional[str] = Query(default=None),
    section: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
    user: User = Depends(require_permission(Modules.TABLES, Actions.READ)),
) -> list[TableOutput]:
    statuses = parse_status_list(status_filter, TableStatus.ALL)
    if location:
        parse_status_list(location, TableLocation.ALL, field="location")
    tables = TableService(db).list_tables(statuses=statuses, location=location, section=section)
    return [TableOutput.model_validate(t) for t in tables]


@router.get("/analytics/stats", response_model=TableStatsOutput)
def table_stats(
    db: Session = Depends(get_db),
    user: User = Depends(require_permission(Modules.TABLES, Actions.READ)),
) -> TableStatsOutput:
    """Table counts by status and location, and the share occupied or reserved."""
    return TableStatsOutput(**TableService(db).stats())


@router.get("/{table_id}", response_model=TableOutput)
def get_table(
    table_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission(Modules.TABLES, Actions.READ)),
) -> TableOutput:
    return TableOutput.model_validate(TableService(db).get_table(table_id))


@router.post("", response_model=TableOutput, status_code=status.HTTP_201_CREATED)
def create_table(
    body: CreateTableRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission(Modules.TABLES, Actions.CREATE)),
) -> TableOutput:
    return TableOutput.model_validate(TableService(db).create_table(body, user.id))


@router.patch("/{table_id}/status", response_model=TableOutput)
def update_table_status(
    table_id: int,
    body: UpdateTableStatusRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission(Modules.TABLES, Actions.UPDATE)),
) -> TableOutput:
    """
    Change a table's status by hand.

    available clears the seated order and the waiter; cleaning stamps
    last_cleaned_at; occupied needs an open order already seated there.
    """
    table = TableService(db).update_status(table_id, body.status, user.id)
    publish_table_status(background_tasks, table, user)
    return TableOutput.model_validate(table)


@router.patch("/{table_id}/assign-waiter", response_model=TableOutput)
def assign_waiter(
    table_id: int,
    body: AssignWaiterRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission(Modules.TABLES, Actions.UPDATE)),
) -> TableOutput:
    table = TableService(db).assign_waiter(table_id, body.waiter_id)
    publish_table_assignment(background_tasks, table, user)
    return TableOutput.model_validate(table)
