from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Callable, Type, TypeVar

from src.database import get_db
from src.services.behavior.base import BehaviorCacheManager
from src.services.behavior.records import RecordLoader
from src.services.behavior.search import SearchEngine, QueryProcessor, ResultHighlighter
from src.services.student_service import StudentService
from src.services.behavior_record_service import BehaviorRecordService
from src.services.misdemeanor_service import MisdemeanorService
from src.services.counseling_service import CounselingService
from src.services.shadow_parent_service import ShadowParentService
from src.services.notification_service import NotificationService

# Generic type for service classes
T = TypeVar('T')


def get_cache_manager(request: Request) -> BehaviorCacheManager:
    """
    Cache manager over the Redis client opened at startup.
    The client is None when Redis was unreachable; caching is then skipped.
    """
    return BehaviorCacheManager(getattr(request.app.state, "redis", None))


def get_service(service_class: Type[T]) -> Callable[[AsyncSession], T]:
    """
    Factory function to create a service dependency

    Args:
        service_class: The service class to instantiate

    Returns:
        A dependency function that creates and returns a service instance
    """
    def _get_service(db: AsyncSession = Depends(get_db)) -> T:
        return service_class(db)

    return _get_service


def get_cached_service(service_class: Type[T]) -> Callable[..., T]:
    """
    Factory function for services whose writes invalidate cached searches
    """
    def _get_service(
        db: AsyncSession = Depends(get_db),
        cache: BehaviorCacheManager = Depends(get_cache_manager)
    ) -> T:
        return service_class(db, cache)

    return _get_service


def get_search_engine(
    db: AsyncSession = Depends(get_db),
    cache: BehaviorCacheManager = Depends(get_cache_manager)
) -> SearchEngine:
    return SearchEngine(
        cache,
        RecordLoader(cache, db),
        QueryProcessor(cache),
        ResultHighlighter(cache)
    )


# Service dependencies
get_student_service = get_cached_service(StudentService)
get_behavior_record_service = get_cached_service(BehaviorRecordService)
get_misdemeanor_service = get_cached_service(MisdemeanorService)
get_counseling_service = get_service(CounselingService)
get_shadow_parent_service = get_service(ShadowParentService)
get_notification_service = get_service(NotificationService)
