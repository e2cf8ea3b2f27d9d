from typing import Optional, List, Sequence
import uuid
from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.models.behavior_models import CounselingAlert, Student
from src.schemas.behavior_schemas import CounselingAlertCreate
from src.utils.custom_utils import utcnow
from src.utils.logging.activity_logger import logger_instance as activity_logger

SEVERITY_RANK = {"low": 1, "medium": 2, "high": 3, "critical": 4}


def sort_unresolved_alerts(alerts: Sequence[CounselingAlert]) -> List[CounselingAlert]:
    """Most severe first, then newest first within a severity."""
    by_newest = sorted(alerts, key=lambda alert: alert.created_at.timestamp() if alert.created_at else 0, reverse=True)
    return sorted(by_newest, key=lambda alert: SEVERITY_RANK.get(alert.severity_level, 0), reverse=True)


class CounselingService:
    """
    Service for counseling alerts
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    def _alert_query(self):
        return select(CounselingAlert).options(selectinload(CounselingAlert.student))

    async def list_alerts(self, limit: Optional[int] = None) -> List[CounselingAlert]:
        """
        List every alert, latest first
        """
        query = self._alert_query().order_by(CounselingAlert.created_at.desc())
        if limit:
            query = query.limit(limit)
        result = await self.db.execute(query)
        return result.scalars().all()

    async def list_unresolved_alerts(self) -> List[CounselingAlert]:
        """
        List unresolved alerts, most severe first
        """
        result = await self.db.execute(
            self._alert_query().where(CounselingAlert.is_resolved.is_(False))
        )
        return sort_unresolved_alerts(result.scalars().all())

    async def get_alert(self, alert_id: uuid.UUID) -> CounselingAlert:
        result = await self.db.execute(
            self._alert_query()
            .where(CounselingAlert.id == alert_id)
            .execution_options(populate_existing=True)
        )
        alert = result.scalars().first()

        if not alert:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Counseling alert not found"
            )
        return alert

    async def create_alert(self, alert_data: CounselingAlertCreate, acting_user: Optional[str] = None) -> CounselingAlert:
        """
        Raise a counseling alert and flag the student as needing counseling

        Raises:
            HTTPException: If the student does not exist
        """
        result = await self.db.execute(select(Student).where(Student.id == alert_data.student_id))
        student = result.scalars().first()
        if not student:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Student not found"
            )

        alert = CounselingAlert(
            student_id=student.id,
            alert_type=alert_data.alert_type,
            severity_level=alert_data.severity_level.value,
            description=alert_data.description,
            triggered_by_record_id=alert_data.triggered_by_record_id,
            is_resolved=False
        )
        self.db.add(alert)

        student.needs_counseling = True
        student.counseling_reason = alert_data.description or alert_data.alert_type
        student.counseling_flagged_at = utcnow()

        await self.db.commit()

        await activity_logger.log_activity(
            f"{alert.severity_level.capitalize()} counseling alert '{alert.alert_type}' raised for {student.name}",
            user_id=acting_user,
            activity_type="counseling_alert_created",
            metadata={"alert_id": str(alert.id), "student_id": str(student.id)}
        )
        return await self.get_alert(alert.id)

    async def resolve_alert(self, alert_id: uuid.UUID, resolved_by: uuid.UUID) -> CounselingAlert:
        """
        Mark an alert as resolved

        Raises:
            HTTPException: If the alert does not exist or is already resolved
        """
        alert = await self.get_alert(alert_id)

        if alert.is_resolved:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Counseling alert is already resolved"
            )

        alert.is_resolved = True
        alert.resolved_by = resolved_by
        alert.resolved_at = utcnow()
        await self.db.commit()

        await activity_logger.log_activity(
            f"Counseling alert {alert.id} resolved",
            user_id=str(resolved_by),
            activity_type="counseling_alert_resolved",
            metadata={"alert_id": str(alert.id), "student_id": str(alert.student_id)}
        )
        return await self.get_alert(alert.id)
