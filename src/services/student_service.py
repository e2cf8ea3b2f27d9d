from typing import Optional, List
import uuid
from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.behavior_models import Student
from src.schemas.behavior_schemas import StudentCreate, StudentUpdate
from src.services.behavior.base import BehaviorCacheManager
from src.utils.custom_utils import utcnow
from src.utils.logging.activity_logger import logger_instance as activity_logger


class StudentService:
    """
    Service for handling student-related operations
    """

    def __init__(self, db: AsyncSession, cache: Optional[BehaviorCacheManager] = None):
        self.db = db
        self.cache = cache

    async def list_students(
        self, grade: Optional[str] = None, limit: Optional[int] = None, offset: int = 0
    ) -> List[Student]:
        """
        List students ordered by name

        Args:
            grade: Only return students in this grade
            limit: Maximum number of students to return
            offset: Offset for pagination

        Returns:
            List of students
        """
        query = select(Student)
        if grade:
            query = query.where(Student.grade == grade)
        query = query.order_by(Student.name).offset(offset)
        if limit:
            query = query.limit(limit)

        result = await self.db.execute(query)
        return result.scalars().all()

    async def get_student(self, student_id: uuid.UUID) -> Student:
        """
        Get a student by ID

        Raises:
            HTTPException: If the student does not exist
        """
        result = await self.db.execute(select(Student).where(Student.id == student_id))
        student = result.scalars().first()

        if not student:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Student not found"
            )
        return student

    async def create_student(self, student_data: StudentCreate, acting_user: Optional[str] = None) -> Student:
        """
        Create a student

        Raises:
            HTTPException: If the student code is already taken
        """
        result = await self.db.execute(
            select(Student).where(Student.student_id == student_data.student_id)
        )
        if result.scalars().first():
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Student ID {student_data.student_id} is already registered"
            )

        student = Student(**student_data.model_dump(mode="json"))
        self.db.add(student)
        await self.db.commit()
        await self.db.refresh(student)

        await self._clear_search_cache()
        await activity_logger.log_activity(
            f"Student {student.name} ({student.student_id}) registered in {student.grade}",
            user_id=acting_user,
            activity_type="student_created",
            metadata={"student_id": str(student.id)}
        )
        return student

    async def update_student(
        self, student_id: uuid.UUID, student_data: StudentUpdate, acting_user: Optional[str] = None
    ) -> Student:
        """
        Update a student with the fields that were sent
        """
        student = await self.get_student(student_id)
        changes = student_data.model_dump(mode="json", exclude_unset=True)

        for field, value in changes.items():
            setattr(student, field, value)

        if changes.get("needs_counseling"):
            student.counseling_flagged_at = utcnow()

        await self.db.commit()
        await self.db.refresh(student)

        await self._clear_search_cache()
        await activity_logger.log_activity(
            f"Student {student.name} updated: {', '.join(changes) or 'no changes'}",
            user_id=acting_user,
            activity_type="student_updated",
            metadata={"student_id": str(student.id), "fields": list(changes)}
        )
        return student

    async def delete_student(self, student_id: uuid.UUID, acting_user: Optional[str] = None) -> bool:
        """
        Delete a student together with their behaviour records and alerts
        """
        student = await self.get_student(student_id)
        await self.db.delete(student)
        await self.db.commit()

        await self._clear_search_cache()
        await activity_logger.log_activity(
            f"Student {student.name} ({student.student_id}) deleted",
            user_id=acting_user,
            activity_type="student_deleted",
            metadata={"student_id": str(student_id)}
        )
        return True

    async def _clear_search_cache(self):
        if self.cache:
            await self.cache.clear_search_cache()
