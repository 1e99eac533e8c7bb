from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from campus_market.models.settings import PlatformSettings
from campus_market.config import settings as config
from typing import Optional
import logging

logger = logging.getLogger(__name__)

DEFAULT_COMMISSION_RATE_KEY = "default_commission_rate"


class SettingsService:
    """Runtime platform settings stored in the database"""

    @staticmethod
    async def get_setting(db: AsyncSession, key: str) -> Optional[str]:
        """Get setting value by key"""
        result = await db.execute(select(PlatformSettings).where(PlatformSettings.key == key))
        setting = result.scalar_one_or_none()
        return setting.value if setting else None

    @staticmethod
    async def get_setting_float(db: AsyncSession, key: str, default: float) -> float:
        """Get setting as float"""
        value = await SettingsService.get_setting(db, key)
        try:
            return float(value) if value else default
        except ValueError:
            logger.warning(f"Setting {key} has non-numeric value {value!r}, using {default}")
            return default

    @staticmethod
    async def set_setting(db: AsyncSession, key: str, value: str, description: Optional[str] = None):
        """Set or update setting"""
        result = await db.execute(select(PlatformSettings).where(PlatformSettings.key == key))
        setting = result.scalar_one_or_none()

        if setting:
            setting.value = value
            if description:
                setting.description = description
        else:
            setting = PlatformSettings(key=key, value=value, description=description)
            db.add(setting)

        await db.commit()
        logger.info(f"Setting updated: {key} = {value}")

    @staticmethod
    async def initialize_default_settings(db: AsyncSession):
        """Seed settings that are missing from the database"""
        defaults = {
            DEFAULT_COMMISSION_RATE_KEY: (
                str(config.DEFAULT_COMMISSION_RATE),
                "Commission rate (%) for categories without their own rate",
            ),
        }

        for key, (value, description) in defaults.items():
            existing = await SettingsService.get_setting(db, key)
            if not existing:
                await SettingsService.set_setting(db, key, value, description)

        logger.info("Default settings initialized")


settings_service = SettingsService()
