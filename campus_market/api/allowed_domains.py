from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from campus_market.database import get_db
from campus_market.api.deps import get_current_admin
from campus_market.models.user import User
from campus_market.services.allowed_domain_service import allowed_domain_service
from campus_market.schemas.allowed_domain import (
    AllowedDomainCreate,
    AllowedDomainBulkCreate,
    AllowedDomainUpdate,
    AllowedDomainResponse,
    AllowedDomainList,
)
from typing import List

router = APIRouter()


@router.get("/active", response_model=List[AllowedDomainResponse])
async def list_active_domains(db: AsyncSession = Depends(get_db)):
    """Domains students can currently register with"""
    return await allowed_domain_service.list_active_domains(db)


@router.get("/", response_model=AllowedDomainList)
async def list_domains(
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    domains, total = await allowed_domain_service.list_domains(db, skip, limit)
    return AllowedDomainList(
        domains=[AllowedDomainResponse.model_validate(d) for d in domains],
        total=total,
        page=skip // limit + 1,
        page_size=limit
    )


@router.post("/", response_model=AllowedDomainResponse, status_code=status.HTTP_201_CREATED)
async def create_domain(
    data: AllowedDomainCreate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return await allowed_domain_service.create_domain(db, data.domain)


@router.post("/bulk", response_model=List[AllowedDomainResponse], status_code=status.HTTP_201_CREATED)
async def bulk_create_domains(
    data: AllowedDomainBulkCreate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """Add several domains at once; nothing is created if any entry is rejected"""
    return await allowed_domain_service.bulk_create_domains(db, data.domains)


@router.get("/{domain_id}", response_model=AllowedDomainResponse)
async def get_domain(
    domain_id: int,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return await allowed_domain_service.get_domain(db, domain_id)


@router.put("/{domain_id}", response_model=AllowedDomainResponse)
async def update_domain(
    domain_id: int,
    data: AllowedDomainUpdate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return await allowed_domain_service.update_domain(db, domain_id, data.domain, data.is_active)


@router.delete("/{domain_id}")
async def delete_domain(
    domain_id: int,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    deleted = await allowed_domain_service.delete_domain(db, domain_id)
    return {"message": f"Domain {deleted.domain} deleted"}


@router.patch("/{domain_id}/toggle", response_model=AllowedDomainResponse)
async def toggle_domain(
    domain_id: int,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return await allowed_domain_service.toggle_domain(db, domain_id)
