from typing import Optional, List, Dict, Any
import uuid
from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.core.config import settings
from src.models.behavior_models import BehaviorRecord, Misdemeanor, Student
from src.schemas.behavior_schemas import IncidentCreate, MeritCreate, IncidentStatus
from src.services.behavior.base import BehaviorCacheManager, ValidationError
from src.services.behavior.discipline import (
    build_sanction_preview,
    find_previous_offenses,
    merit_points,
    resolve_sanction,
    suggest_offense_number
)
from src.utils.custom_utils import utcnow
from src.utils.logging.activity_logger import logger_instance as activity_logger


class BehaviorRecordService:
    """
    Service for logging incidents and merits
    """

    def __init__(self, db: AsyncSession, cache: Optional[BehaviorCacheManager] = None):
        self.db = db
        self.cache = cache

    def _record_query(self):
        return select(BehaviorRecord).options(
            selectinload(BehaviorRecord.student),
            selectinload(BehaviorRecord.misdemeanor)
        )

    async def list_records(
        self,
        student_id: Optional[uuid.UUID] = None,
        record_type: Optional[str] = None,
        limit: Optional[int] = None
    ) -> List[BehaviorRecord]:
        """
        List behaviour records, latest first

        Args:
            student_id: Only return this student's records
            record_type: Only return incidents or merits
            limit: Maximum number of records, defaults to DEFAULT_RECORD_LIMIT

        Returns:
            List of behaviour records with student and misdemeanor loaded
        """
        query = self._record_query()
        if student_id:
            query = query.where(BehaviorRecord.student_id == student_id)
        if record_type:
            query = query.where(BehaviorRecord.type == record_type)
        query = query.order_by(BehaviorRecord.created_at.desc()).limit(limit or settings.default_record_limit)

        result = await self.db.execute(query)
        return result.scalars().all()

    async def get_record(self, record_id: uuid.UUID) -> BehaviorRecord:
        result = await self.db.execute(
            self._record_query()
            .where(BehaviorRecord.id == record_id)
            .execution_options(populate_existing=True)
        )
        record = result.scalars().first()

        if not record:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Behaviour record not found"
            )
        return record

    async def preview_sanction(
        self, student_id: uuid.UUID, misdemeanor_id: uuid.UUID, offense_number: Optional[int] = None
    ) -> Dict[str, Any]:
        """
        Show previous offenses, the suggested offense number and the sanction
        a new incident would receive
        """
        await self._get_student(student_id)
        misdemeanor = await self._get_misdemeanor(misdemeanor_id)
        records = await self._student_incidents(student_id, misdemeanor_id)
        return build_sanction_preview(records, student_id, misdemeanor, offense_number)

    async def create_incident(self, incident_data: IncidentCreate) -> BehaviorRecord:
        """
        Log an incident

        The offense number defaults to one more than the student's previous
        incidents for the misdemeanor, and the sanction to the misdemeanor's
        sanction for that offense.

        Raises:
            ValidationError: If the misdemeanor does not apply at the location
                or no sanction can be determined
            HTTPException: If the student or misdemeanor does not exist
        """
        student = await self._get_student(incident_data.student_id)
        misdemeanor = await self._get_misdemeanor(incident_data.misdemeanor_id)
        location = incident_data.location.value

        if misdemeanor.location != location:
            raise ValidationError(
                f"Misdemeanor '{misdemeanor.name}' applies to {misdemeanor.location}, not {location}"
            )

        previous = find_previous_offenses(
            await self._student_incidents(student.id, misdemeanor.id), student.id, misdemeanor.id
        )
        offense_number = incident_data.offense_number or suggest_offense_number(previous)
        sanction = (incident_data.sanction or "").strip() or resolve_sanction(misdemeanor.sanctions, offense_number)

        if not sanction:
            raise ValidationError("Sanction is required")

        record = BehaviorRecord(
            type="incident",
            student_id=student.id,
            misdemeanor_id=misdemeanor.id,
            location=location,
            offense_number=offense_number,
            sanction=sanction,
            description=incident_data.description or "",
            reported_by=incident_data.reported_by,
            attachment_url=incident_data.attachment_url,
            status=IncidentStatus.OPEN.value,
            timestamp=utcnow()
        )
        self.db.add(record)
        await self.db.commit()

        await self._clear_search_cache()
        await activity_logger.log_activity(
            f"Incident '{misdemeanor.name}' ({offense_number} offense) recorded for {student.name}",
            user_id=str(incident_data.reported_by) if incident_data.reported_by else None,
            activity_type="incident_created",
            metadata={
                "record_id": str(record.id),
                "student_id": str(student.id),
                "misdemeanor_id": str(misdemeanor.id),
                "offense_number": offense_number,
                "sanction": sanction
            }
        )
        return await self.get_record(record.id)

    async def create_merit(self, merit_data: MeritCreate) -> BehaviorRecord:
        """
        Award a merit; its points always come from the tier

        Raises:
            ValidationError: If the tier is unknown
            HTTPException: If the student does not exist
        """
        student = await self._get_student(merit_data.student_id)
        points = merit_points(merit_data.merit_tier)

        record = BehaviorRecord(
            type="merit",
            student_id=student.id,
            merit_tier=merit_data.merit_tier.value,
            points=points,
            description=merit_data.description,
            location=merit_data.location.value if merit_data.location else None,
            reported_by=merit_data.reported_by,
            timestamp=utcnow()
        )
        self.db.add(record)
        await self.db.commit()

        await self._clear_search_cache()
        await activity_logger.log_activity(
            f"{merit_data.merit_tier.value} merit ({points} points) awarded to {student.name}",
            user_id=str(merit_data.reported_by) if merit_data.reported_by else None,
            activity_type="merit_created",
            metadata={"record_id": str(record.id), "student_id": str(student.id), "points": points}
        )
        return await self.get_record(record.id)

    async def close_incident(self, record_id: uuid.UUID, acting_user: Optional[str] = None) -> BehaviorRecord:
        """
        Close an open incident

        Raises:
            ValidationError: If the record is a merit
            HTTPException: If the record does not exist or is already closed
        """
        record = await self.get_record(record_id)

        if record.type != "incident":
            raise ValidationError("Only incidents can be closed")
        if record.status == IncidentStatus.CLOSED.value:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Incident is already closed"
            )

        record.status = IncidentStatus.CLOSED.value
        record.resolved_at = utcnow()
        await self.db.commit()

        await self._clear_search_cache()
        await activity_logger.log_activity(
            f"Incident {record.id} closed",
            user_id=acting_user,
            activity_type="incident_closed",
            metadata={"record_id": str(record.id)}
        )
        return await self.get_record(record.id)

    async def _get_student(self, student_id: uuid.UUID) -> Student:
        result = await self.db.execute(select(Student).where(Student.id == student_id))
        student = result.scalars().first()
        if not student:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Student not found"
            )
        return student

    async def _get_misdemeanor(self, misdemeanor_id: uuid.UUID) -> Misdemeanor:
        result = await self.db.execute(
            select(Misdemeanor).where(
                Misdemeanor.id == misdemeanor_id,
                Misdemeanor.status == "active"
            )
        )
        misdemeanor = result.scalars().first()
        if not misdemeanor:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Misdemeanor not found"
            )
        return misdemeanor

    async def _student_incidents(self, student_id: uuid.UUID, misdemeanor_id: uuid.UUID) -> List[BehaviorRecord]:
        result = await self.db.execute(
            select(BehaviorRecord)
            .where(
                BehaviorRecord.student_id == student_id,
                BehaviorRecord.misdemeanor_id == misdemeanor_id,
                BehaviorRecord.type == "incident"
            )
            .order_by(BehaviorRecord.created_at)
        )
        return result.scalars().all()

    async def _clear_search_cache(self):
        if self.cache:
            await self.cache.clear_search_cache()
