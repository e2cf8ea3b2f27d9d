from fastapi import APIRouter, Depends, status, Query, BackgroundTasks
from typing import Dict, Any, List, Optional
import logging

from src.schemas.behavior_schemas import SearchRequest
from src.services.behavior import SearchEngine
from src.services.service_factory import get_search_engine
from src.utils.custom_utils import generate_response
from src.utils.exception_handlers import route_error_response

router = APIRouter(prefix="/search", tags=["Search"])
logger = logging.getLogger(__name__)


async def _run_search(search_engine: SearchEngine, search_request: SearchRequest,
                      background_tasks: BackgroundTasks):
    try:
        results = await search_engine.search_records(
            query=search_request.query,
            filters=search_request.filters.model_dump(exclude_none=True),
            limit=search_request.limit,
            offset=search_request.offset,
            highlight=search_request.highlight,
            background_tasks=background_tasks,
            no_cache=search_request.no_cache
        )

        return generate_response(
            status_code=status.HTTP_200_OK,
            response_message=f"Found {results['result_count']} results",
            customer_message="Search completed successfully",
            body=results
        )
    except Exception as e:
        return route_error_response(e, "Search failed", "Error searching records")


@router.post("", response_model=Dict[str, Any])
async def search_records(
    search_request: SearchRequest,
    background_tasks: BackgroundTasks,
    search_engine: SearchEngine = Depends(get_search_engine)
):
    """
    Search students, incidents, merits and misdemeanors.

    Results are ranked by relevance. An empty or whitespace-only query
    returns no results with `is_searching` false.
    """
    return await _run_search(search_engine, search_request, background_tasks)


@router.get("", response_model=Dict[str, Any])
async def quick_search(
    background_tasks: BackgroundTasks,
    q: str = Query("", description="Search query"),
    types: Optional[List[str]] = Query(None, description="Result types to include"),
    grades: Optional[List[str]] = Query(None, description="Only students in these grades"),
    locations: Optional[List[str]] = Query(None, description="Only records at these locations"),
    min_score: Optional[float] = Query(None, description="Minimum student behaviour score"),
    max_score: Optional[float] = Query(None, description="Maximum student behaviour score"),
    start: Optional[str] = Query(None, description="Earliest record date (ISO 8601)"),
    end: Optional[str] = Query(None, description="Latest record date (ISO 8601)"),
    limit: int = Query(20, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    highlight: bool = Query(False),
    search_engine: SearchEngine = Depends(get_search_engine)
):
    """
    Query-string version of the search endpoint for simple lookups.
    """
    filters: Dict[str, Any] = {
        "grades": grades,
        "locations": locations,
        "min_score": min_score,
        "max_score": max_score
    }
    if types:
        filters["types"] = types
    if start or end:
        filters["date_range"] = {"start": start, "end": end}

    search_request = SearchRequest(
        query=q,
        filters=filters,
        limit=limit,
        offset=offset,
        highlight=highlight
    )
    return await _run_search(search_engine, search_request, background_tasks)
