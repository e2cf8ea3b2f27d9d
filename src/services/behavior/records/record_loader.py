"""
Record loader for behaviour search.
Fetches the searchable collections from the database as plain dicts.
"""

from typing import Dict, Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..base import BaseService, BehaviorCacheManager
from ....models.behavior_models import Student, BehaviorRecord, Misdemeanor
from ....schemas.behavior_schemas import (
    StudentResponse, BehaviorRecordResponse, MisdemeanorResponse
)


class RecordLoader(BaseService):
    """
    Service for loading students, behaviour records and misdemeanors.
    Rows are converted to JSON-friendly dicts, the shape the ranking
    engine reads and the search cache stores.
    """

    def __init__(self, cache_manager: BehaviorCacheManager, db_session: AsyncSession):
        """
        Initialize the record loader.

        Args:
            cache_manager: Cache manager instance
            db_session: Database session
        """
        super().__init__(cache_manager, db_session)

    def get_service_name(self) -> str:
        """Get the service name."""
        return "record_loader"

    async def load_students(self) -> List[Dict]:
        """Load all students ordered by name."""
        result = await self.db_session.execute(select(Student).order_by(Student.name))
        return [
            StudentResponse.model_validate(student).model_dump(mode="json")
            for student in result.scalars().all()
        ]

    async def load_behavior_records(self, limit: Optional[int] = None) -> List[Dict]:
        """
        Load behaviour records, latest first, with the student and
        misdemeanor rows joined in.
        """
        query = (
            select(BehaviorRecord)
            .options(
                selectinload(BehaviorRecord.student),
                selectinload(BehaviorRecord.misdemeanor)
            )
            .order_by(BehaviorRecord.timestamp.desc())
        )
        if limit:
            query = query.limit(limit)

        result = await self.db_session.execute(query)
        return [
            BehaviorRecordResponse.model_validate(record).model_dump(mode="json")
            for record in result.scalars().all()
        ]

    async def load_misdemeanors(self) -> List[Dict]:
        """Load active misdemeanors ordered by name."""
        result = await self.db_session.execute(
            select(Misdemeanor)
            .where(Misdemeanor.status == "active")
            .order_by(Misdemeanor.name)
        )
        return [
            MisdemeanorResponse.model_validate(misdemeanor).model_dump(mode="json")
            for misdemeanor in result.scalars().all()
        ]

    async def load_collections(self, types: Iterable[str]) -> Dict[str, List[Dict]]:
        """
        Load only the collections the requested result types can come from.

        Args:
            types: Requested result types

        Returns:
            Dict: students, behavior_records and misdemeanors lists
        """
        try:
            types = set(types)
            collections = {"students": [], "behavior_records": [], "misdemeanors": []}

            if "student" in types:
                collections["students"] = await self.load_students()
            if types & {"incident", "merit"}:
                collections["behavior_records"] = await self.load_behavior_records()
            if "misdemeanor" in types:
                collections["misdemeanors"] = await self.load_misdemeanors()

            self.logger.info(
                f"[{self.get_service_name()}] Loaded {len(collections['students'])} students, "
                f"{len(collections['behavior_records'])} behaviour records, "
                f"{len(collections['misdemeanors'])} misdemeanors"
            )
            return collections

        except Exception as e:
            self._handle_service_error(e, "Error loading searchable records")
