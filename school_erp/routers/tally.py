from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.permissions import Permission, require_permission, resolve_school_id
from ..models.user import User
from ..services.tally_service import TallyService
from ..utils.tally import TallyClient, get_tally_client

router = APIRouter(prefix="/api/tally", tags=["Tally"])


class SalesVoucherRequest(BaseModel):
    payment_id: UUID
    company: Optional[str] = None


class AutoLedgerRequest(BaseModel):
    company: Optional[str] = None
    school_id: Optional[UUID] = None


@router.get("/health")
async def tally_health(
    user: User = Depends(require_permission(Permission.TALLY_MANAGE)),
    client: TallyClient = Depends(get_tally_client),
):
    return {"status": "ok", "bridge": await client.health()}


@router.get("/companies")
async def tally_companies(
    user: User = Depends(require_permission(Permission.TALLY_MANAGE)),
    client: TallyClient = Depends(get_tally_client),
):
    return await client.companies()


@router.get("/ledgers")
async def tally_ledgers(
    company: Optional[str] = Query(None),
    user: User = Depends(require_permission(Permission.TALLY_MANAGE)),
    client: TallyClient = Depends(get_tally_client),
):
    return await client.ledgers(company)


@router.get("/sales")
async def tally_sales(
    company: Optional[str] = Query(None),
    from_date: Optional[str] = Query(None),
    to_date: Optional[str] = Query(None),
    user: User = Depends(require_permission(Permission.TALLY_MANAGE)),
    client: TallyClient = Depends(get_tally_client),
):
    return await client.sales(company, from_date, to_date)


@router.post("/sales", status_code=201)
async def push_sale(
    payload: SalesVoucherRequest,
    user: User = Depends(require_permission(Permission.TALLY_MANAGE)),
    db: AsyncSession = Depends(get_db),
    client: TallyClient = Depends(get_tally_client),
):
    """Post a recorded fee payment as a sales voucher"""
    school_id = None if user.is_super_admin else resolve_school_id(user)
    return await TallyService(db, client).push_payment(school_id, payload.payment_id, payload.company)


@router.post("/auto-ledger")
async def auto_ledger(
    payload: AutoLedgerRequest,
    user: User = Depends(require_permission(Permission.TALLY_MANAGE)),
    db: AsyncSession = Depends(get_db),
    client: TallyClient = Depends(get_tally_client),
):
    school_id = resolve_school_id(user, payload.school_id)
    return await TallyService(db, client).auto_ledger(school_id, payload.company)
