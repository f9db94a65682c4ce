# backend/routes/logs.py
from datetime import date, datetime, time, timedelta, timezone
from typing import Dict, Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func
from sqlalchemy.orm import Query as SqlQuery, Session

from database import get_db
from models.log import Log
from schemas.log import ActionSummary, LogOut, LogPage, LogSummary
from utils.admin_auth import require_admin

router = APIRouter(prefix="/logs", tags=["Logs"], dependencies=[Depends(require_admin)])


def _day_start(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


# Shared filters of the audit views. `action` takes a comma-separated list of action names.
def _filtered(
    db: Session,
    action: Optional[str],
    resource: Optional[str],
    since: Optional[date],
    until: Optional[date],
) -> SqlQuery:
    query = db.query(Log)
    actions = [a.strip().upper() for a in (action or "").split(",") if a.strip()]
    if actions:
        query = query.filter(Log.action.in_(actions))
    if resource:
        query = query.filter(Log.resource == resource)
    if since:
        query = query.filter(Log.ts >= _day_start(since))
    if until:
        # Whole day included
        query = query.filter(Log.ts < _day_start(until + timedelta(days=1)))
    return query


@router.get("", response_model=LogPage)
def get_logs(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    action: Optional[str] = Query(None, description="Action names, e.g. ORDER_CREATE,ORDER_DELETE"),
    actor: Optional[Literal["customer", "admin"]] = Query(None),
    resource: Optional[Literal["orders", "cart", "products"]] = Query(None),
    status: Optional[Literal["SUCCESS", "FAIL"]] = Query(None),
    since: Optional[date] = Query(None, description="First day (YYYY-MM-DD, UTC)"),
    until: Optional[date] = Query(None, description="Last day (YYYY-MM-DD, UTC)"),
    db: Session = Depends(get_db),
):
    query = _filtered(db, action, resource, since, until)
    if actor:
        query = query.filter(Log.actor == actor)
    if status:
        query = query.filter(Log.status == status)

    total = query.count()
    logs = (
        query.order_by(Log.ts.desc(), Log.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return LogPage(
        items=[LogOut.model_validate(entry) for entry in logs],
        total=total,
        page=page,
        page_size=page_size,
    )


# Success/failure counts per action, e.g. rejected checkouts for the dashboard
@router.get("/summary", response_model=LogSummary)
def get_logs_summary(
    action: Optional[str] = Query(None),
    resource: Optional[Literal["orders", "cart", "products"]] = Query(None),
    since: Optional[date] = Query(None),
    until: Optional[date] = Query(None),
    db: Session = Depends(get_db),
):
    rows = (
        _filtered(db, action, resource, since, until)
        .with_entities(Log.action, Log.status, func.count(Log.id))
        .group_by(Log.action, Log.status)
        .all()
    )

    by_action: Dict[str, ActionSummary] = {}
    for name, status, count in rows:
        summary = by_action.setdefault(name, ActionSummary(action=name))
        if status == "FAIL":
            summary.fail += count
        else:
            summary.success += count
    return LogSummary(actions=[by_action[name] for name in sorted(by_action)])
