from typing import Optional, List
import uuid
from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.behavior_models import Misdemeanor
from src.schemas.behavior_schemas import MisdemeanorCreate
from src.services.behavior.base import BehaviorCacheManager
from src.services.behavior.discipline import filter_misdemeanors_by_location
from src.utils.logging.activity_logger import logger_instance as activity_logger


class MisdemeanorService:
    """
    Service for the misdemeanor policy catalogue
    """

    def __init__(self, db: AsyncSession, cache: Optional[BehaviorCacheManager] = None):
        self.db = db
        self.cache = cache

    async def list_misdemeanors(self, location: Optional[str] = None) -> List[Misdemeanor]:
        """
        List active misdemeanors ordered by name

        Args:
            location: Only return misdemeanors that apply at this location

        Returns:
            List of misdemeanors
        """
        result = await self.db.execute(
            select(Misdemeanor)
            .where(Misdemeanor.status == "active")
            .order_by(Misdemeanor.name)
        )
        return filter_misdemeanors_by_location(result.scalars().all(), location)

    async def get_misdemeanor(self, misdemeanor_id: uuid.UUID) -> Misdemeanor:
        result = await self.db.execute(select(Misdemeanor).where(Misdemeanor.id == misdemeanor_id))
        misdemeanor = result.scalars().first()

        if not misdemeanor:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Misdemeanor not found"
            )
        return misdemeanor

    async def create_misdemeanor(
        self, misdemeanor_data: MisdemeanorCreate, acting_user: Optional[str] = None
    ) -> Misdemeanor:
        """
        Add a misdemeanor to the policy catalogue

        Raises:
            HTTPException: If an active misdemeanor with the same name exists at the location
        """
        result = await self.db.execute(
            select(Misdemeanor).where(
                Misdemeanor.name == misdemeanor_data.name,
                Misdemeanor.location == misdemeanor_data.location.value,
                Misdemeanor.status == "active"
            )
        )
        if result.scalars().first():
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Misdemeanor '{misdemeanor_data.name}' already exists at {misdemeanor_data.location.value}"
            )

        misdemeanor = Misdemeanor(**misdemeanor_data.model_dump(mode="json"), status="active")
        self.db.add(misdemeanor)
        await self.db.commit()
        await self.db.refresh(misdemeanor)

        if self.cache:
            await self.cache.clear_search_cache()
        await activity_logger.log_activity(
            f"Misdemeanor '{misdemeanor.name}' added for {misdemeanor.location}",
            user_id=acting_user,
            activity_type="misdemeanor_created",
            metadata={"misdemeanor_id": str(misdemeanor.id)}
        )
        return misdemeanor
