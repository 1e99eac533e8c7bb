from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from campus_market.models.allowed_domain import AllowedDomain
from campus_market.core.errors import AppError
from typing import Optional, List, Tuple
import logging
import re

logger = logging.getLogger(__name__)

DOMAIN_RE = re.compile(
    r"^[a-zA-Z0-9][a-zA-Z0-9-]{0,61}[a-zA-Z0-9]?(\.[a-zA-Z0-9][a-zA-Z0-9-]{0,61}[a-zA-Z0-9]?)*$"
)


def is_valid_domain(domain: str) -> bool:
    return len(domain) <= 253 and DOMAIN_RE.match(domain) is not None


def extract_domain(email: str) -> Optional[str]:
    parts = email.split("@")
    return parts[1].lower() if len(parts) == 2 and parts[1] else None


class AllowedDomainService:
    """Campus e-mail domains that may register"""

    @staticmethod
    async def get_by_domain(db: AsyncSession, domain: str) -> Optional[AllowedDomain]:
        result = await db.execute(select(AllowedDomain).where(AllowedDomain.domain == domain.lower()))
        return result.scalar_one_or_none()

    @staticmethod
    async def get_domain(db: AsyncSession, domain_id: int) -> AllowedDomain:
        result = await db.execute(select(AllowedDomain).where(AllowedDomain.id == domain_id))
        domain = result.scalar_one_or_none()
        if not domain:
            raise AppError(404, "Domain not found")
        return domain

    @staticmethod
    async def create_domain(db: AsyncSession, domain: str) -> AllowedDomain:
        domain = domain.strip().lower()
        if not is_valid_domain(domain):
            raise AppError(400, "Invalid domain format")
        if await AllowedDomainService.get_by_domain(db, domain):
            raise AppError(400, "Domain already exists")

        allowed = AllowedDomain(domain=domain, is_active=True)
        db.add(allowed)
        await db.commit()
        await db.refresh(allowed)
        logger.info(f"Allowed domain added: {domain}")
        return allowed

    @staticmethod
    async def bulk_create_domains(db: AsyncSession, domains: List[str]) -> List[AllowedDomain]:
        """Create all domains or none of them"""
        normalized = [d.strip().lower() for d in domains]

        invalid = [d for d in normalized if not is_valid_domain(d)]
        if invalid:
            raise AppError(400, f"Invalid domains: {', '.join(invalid)}")

        seen = set()
        duplicates = []
        for d in normalized:
            if d in seen or await AllowedDomainService.get_by_domain(db, d):
                duplicates.append(d)
            seen.add(d)
        if duplicates:
            raise AppError(400, f"Domains already exist: {', '.join(duplicates)}")

        created = [AllowedDomain(domain=d, is_active=True) for d in normalized]
        db.add_all(created)
        await db.commit()
        for allowed in created:
            await db.refresh(allowed)
        logger.info(f"Added {len(created)} allowed domains")
        return created

    @staticmethod
    async def list_domains(
        db: AsyncSession, skip: int = 0, limit: int = 20
    ) -> Tuple[List[AllowedDomain], int]:
        total_result = await db.execute(select(func.count(AllowedDomain.id)))
        total = total_result.scalar() or 0

        result = await db.execute(
            select(AllowedDomain).order_by(AllowedDomain.created_at.desc()).offset(skip).limit(limit)
        )
        return list(result.scalars().all()), total

    @staticmethod
    async def list_active_domains(db: AsyncSession) -> List[AllowedDomain]:
        result = await db.execute(
            select(AllowedDomain).where(AllowedDomain.is_active == True).order_by(AllowedDomain.domain)
        )
        return list(result.scalars().all())

    @staticmethod
    async def update_domain(
        db: AsyncSession,
        domain_id: int,
        domain: Optional[str] = None,
        is_active: Optional[bool] = None
    ) -> AllowedDomain:
        allowed = await AllowedDomainService.get_domain(db, domain_id)

        if domain is not None:
            domain = domain.strip().lower()
            if not is_valid_domain(domain):
                raise AppError(400, "Invalid domain format")
            existing = await AllowedDomainService.get_by_domain(db, domain)
            if existing and existing.id != domain_id:
                raise AppError(400, "Domain already exists")
            allowed.domain = domain

        if is_active is not None:
            allowed.is_active = is_active

        await db.commit()
        await db.refresh(allowed)
        return allowed

    @staticmethod
    async def delete_domain(db: AsyncSession, domain_id: int) -> AllowedDomain:
        allowed = await AllowedDomainService.get_domain(db, domain_id)
        await db.delete(allowed)
        await db.commit()
        logger.info(f"Allowed domain removed: {allowed.domain}")
        return allowed

    @staticmethod
    async def toggle_domain(db: AsyncSession, domain_id: int) -> AllowedDomain:
        allowed = await AllowedDomainService.get_domain(db, domain_id)
        allowed.is_active = not allowed.is_active
        await db.commit()
        await db.refresh(allowed)
        return allowed

    @staticmethod
    async def validate_email(db: AsyncSession, email: str) -> Tuple[bool, Optional[str]]:
        """
        Check whether the e-mail belongs to an active campus domain
        Returns: (is_valid, domain)
        """
        domain = extract_domain(email)
        if not domain:
            return False, None

        result = await db.execute(
            select(AllowedDomain.id).where(
                AllowedDomain.domain == domain,
                AllowedDomain.is_active == True
            )
        )
        return result.first() is not None, domain


allowed_domain_service = AllowedDomainService()
