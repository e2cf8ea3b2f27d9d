from typing import Optional, List, Dict
import uuid
from fastapi import HTTPException, status
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.core.config import settings
from src.models.behavior_models import ShadowParentAssignment, Student, Profile
from src.schemas.behavior_schemas import ShadowParentAssignmentCreate
from src.utils.logging.activity_logger import logger_instance as activity_logger


def shadow_capacity(assigned_count: int, max_children: Optional[int] = None) -> Dict[str, object]:
    """Remaining capacity of a shadow parent with `assigned_count` active students."""
    max_children = settings.max_shadow_children if max_children is None else max_children
    remaining = max(max_children - assigned_count, 0)
    return {
        "assigned_count": assigned_count,
        "remaining_capacity": remaining,
        "can_assign_more": remaining > 0
    }


class ShadowParentService:
    """
    Service for shadow parent mentorship assignments
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    def _assignment_query(self):
        return select(ShadowParentAssignment).options(selectinload(ShadowParentAssignment.student))

    async def list_assignments(self, shadow_parent_id: Optional[uuid.UUID] = None) -> List[ShadowParentAssignment]:
        """
        List active assignments, latest first

        Args:
            shadow_parent_id: Only return this shadow parent's students
        """
        query = self._assignment_query().where(ShadowParentAssignment.is_active.is_(True))
        if shadow_parent_id:
            query = query.where(ShadowParentAssignment.shadow_parent_id == shadow_parent_id)
        query = query.order_by(ShadowParentAssignment.assigned_at.desc())

        result = await self.db.execute(query)
        return result.scalars().all()

    async def get_capacity(self, shadow_parent_id: uuid.UUID) -> Dict[str, object]:
        result = await self.db.execute(
            select(func.count(ShadowParentAssignment.id)).where(
                ShadowParentAssignment.shadow_parent_id == shadow_parent_id,
                ShadowParentAssignment.is_active.is_(True)
            )
        )
        return shadow_capacity(result.scalar() or 0)

    async def get_assignment(self, assignment_id: uuid.UUID) -> ShadowParentAssignment:
        result = await self.db.execute(
            self._assignment_query()
            .where(ShadowParentAssignment.id == assignment_id)
            .execution_options(populate_existing=True)
        )
        assignment = result.scalars().first()

        if not assignment:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Shadow parent assignment not found"
            )
        return assignment

    async def assign_student(self, assignment_data: ShadowParentAssignmentCreate) -> ShadowParentAssignment:
        """
        Assign a student to a shadow parent

        Raises:
            HTTPException: If the shadow parent or student does not exist, the
                shadow parent is at capacity or the student already has one
        """
        shadow_parent = await self.db.get(Profile, assignment_data.shadow_parent_id)
        if not shadow_parent:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Shadow parent not found"
            )

        student = await self.db.get(Student, assignment_data.student_id)
        if not student:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Student not found"
            )

        capacity = await self.get_capacity(shadow_parent.id)
        if not capacity["can_assign_more"]:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"{shadow_parent.name} already has the maximum of {settings.max_shadow_children} students"
            )

        result = await self.db.execute(
            select(ShadowParentAssignment).where(
                ShadowParentAssignment.student_id == student.id,
                ShadowParentAssignment.is_active.is_(True)
            )
        )
        if result.scalars().first():
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"{student.name} already has a shadow parent"
            )

        assignment = ShadowParentAssignment(
            shadow_parent_id=shadow_parent.id,
            student_id=student.id,
            assigned_by=assignment_data.assigned_by,
            assignment_notes=assignment_data.assignment_notes,
            priority_score=assignment_data.priority_score,
            is_active=True
        )
        self.db.add(assignment)
        student.shadow_parent_id = shadow_parent.id
        await self.db.commit()

        await activity_logger.log_activity(
            f"{student.name} assigned to shadow parent {shadow_parent.name}",
            user_id=str(assignment_data.assigned_by) if assignment_data.assigned_by else None,
            activity_type="shadow_parent_assigned",
            metadata={"assignment_id": str(assignment.id), "student_id": str(student.id)}
        )
        return await self.get_assignment(assignment.id)

    async def remove_assignment(self, assignment_id: uuid.UUID, acting_user: Optional[str] = None) -> bool:
        """
        End an assignment; the row is kept with is_active False
        """
        assignment = await self.get_assignment(assignment_id)
        assignment.is_active = False

        student = await self.db.get(Student, assignment.student_id)
        if student and student.shadow_parent_id == assignment.shadow_parent_id:
            student.shadow_parent_id = None

        await self.db.commit()

        await activity_logger.log_activity(
            f"Shadow parent assignment {assignment.id} ended",
            user_id=acting_user,
            activity_type="shadow_parent_removed",
            metadata={"assignment_id": str(assignment.id), "student_id": str(assignment.student_id)}
        )
        return True
