"""
HTTP routes for the restroom directory.

Routes are synchronous: FastAPI runs each one in its threadpool with its
own session, so requests execute in parallel against the shared engine.
Errors are raised as project exceptions and mapped to status codes by the
handlers registered in ``api.main``.
"""

from typing import Any, Iterator, Optional

from fastapi import APIRouter, Body, Depends, Query, Request
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from restroom_directory.api.schemas import ErrorResponse, PoopCountResponse
from restroom_directory.data.counters import CounterStore
from restroom_directory.data.criteria import FilterCriteria, SearchCriteria
from restroom_directory.data.records import (
    AccessibilityFeature,
    Address,
    Category,
    Image,
    OpeningHour,
    RestroomWithRating,
    Review,
)
from restroom_directory.data.repository import RestroomRepository, store_errors
from restroom_directory.data.validation import describe_errors
from restroom_directory.engine import RestroomQueryEngine, check_restroom_id
from restroom_directory.exceptions import InvalidParameterError
from restroom_directory.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter(
    prefix="/restrooms",
    tags=["restrooms"],
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)


def get_session(request: Request) -> Iterator[Session]:
    """One session per request, closed (and rolled back if uncommitted) afterwards."""
    session = request.app.state.session_factory()
    try:
        yield session
    finally:
        session.close()


def get_engine(session: Session = Depends(get_session)) -> RestroomQueryEngine:
    return RestroomQueryEngine(RestroomRepository(session))


def _parse_criteria(model: type[FilterCriteria], data: dict[str, Any], parameter: str) -> FilterCriteria:
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise InvalidParameterError(parameter, describe_errors(e)) from e


# --- Collection routes (declared before /{restroom_id}) ---


@router.get("", response_model=list[RestroomWithRating])
def list_restrooms(engine: RestroomQueryEngine = Depends(get_engine)):
    """All restrooms with their aggregated rating."""
    return engine.list_restrooms()


@router.get("/nearby", response_model=list[RestroomWithRating])
def nearby_restrooms(
    latitude: Optional[float] = Query(None),
    longitude: Optional[float] = Query(None),
    limit: Optional[int] = Query(None),
    radius: Optional[float] = Query(None, description="Search radius in kilometres."),
    engine: RestroomQueryEngine = Depends(get_engine),
):
    """Restrooms within ``radius`` km of a point, nearest first."""
    if latitude is None or longitude is None:
        raise InvalidParameterError("latitude/longitude", "both are required", value=None)
    return engine.nearby(latitude, longitude, limit=limit, radius_km=radius)


@router.get("/search", response_model=list[RestroomWithRating])
def search_restrooms(
    query: Optional[str] = Query(None),
    wheelchair_accessible: Optional[bool] = Query(None, alias="wheelchairAccessible"),
    min_rating: Optional[float] = Query(None, alias="minRating"),
    latitude: Optional[float] = Query(None),
    longitude: Optional[float] = Query(None),
    radius: Optional[float] = Query(None),
    limit: Optional[int] = Query(None),
    engine: RestroomQueryEngine = Depends(get_engine),
):
    """Free-text search with optional accessibility, rating and location filters."""
    if query is None or not query.strip():
        raise InvalidParameterError("query", "search query is required", value=query)

    params: dict[str, Any] = {"query": query}
    # wheelchairAccessible=false means "don't care", not "must not be accessible"
    if wheelchair_accessible:
        params["wheelchair_accessible"] = True
    for key, value in (
        ("min_rating", min_rating),
        ("latitude", latitude),
        ("longitude", longitude),
        ("radius_km", radius),
        ("limit", limit),
    ):
        if value is not None:
            params[key] = value

    criteria = _parse_criteria(SearchCriteria, params, "search")
    logger.debug("Search %r with %s", criteria.query, criteria.model_dump(exclude_none=True))
    return engine.search(criteria.query, criteria)


@router.post("/filter", response_model=list[RestroomWithRating])
def filter_restrooms(
    body: Any = Body(None),
    engine: RestroomQueryEngine = Depends(get_engine),
):
    """Filter on feature flags, minimum rating and optional location (AND)."""
    if not isinstance(body, dict):
        raise InvalidParameterError("body", "filter body must be a JSON object", value=type(body).__name__)
    criteria = _parse_criteria(FilterCriteria, body, "body")
    return engine.filter(criteria)


# --- Single restroom routes ---


@router.get("/{restroom_id}", response_model=RestroomWithRating)
def get_restroom(restroom_id: str, engine: RestroomQueryEngine = Depends(get_engine)):
    return engine.get_restroom(restroom_id)


@router.get("/{restroom_id}/reviews", response_model=list[Review])
def get_reviews(restroom_id: str, engine: RestroomQueryEngine = Depends(get_engine)):
    """Reviews for a restroom, newest first."""
    return engine.reviews(restroom_id)


@router.post("/{restroom_id}/track-poop", response_model=PoopCountResponse)
def track_poop(restroom_id: str, session: Session = Depends(get_session)):
    """Increment the restroom's counter and return the new value."""
    restroom_id = check_restroom_id(restroom_id)
    count = CounterStore(session).increment(restroom_id)
    with store_errors("commit poop_count"):
        session.commit()
    logger.info("Tracked visit for %s (count=%d)", restroom_id, count)
    return PoopCountResponse(id=restroom_id, poop_count=count)


@router.get("/{restroom_id}/poop-count", response_model=PoopCountResponse)
def get_poop_count(restroom_id: str, session: Session = Depends(get_session)):
    restroom_id = check_restroom_id(restroom_id)
    return PoopCountResponse(id=restroom_id, poop_count=CounterStore(session).read(restroom_id))


@router.get("/{restroom_id}/address", response_model=Optional[Address])
def get_address(restroom_id: str, engine: RestroomQueryEngine = Depends(get_engine)):
    """Structured address, or null when only the free-text address is known."""
    return engine.address(restroom_id)


@router.get("/{restroom_id}/accessibility-features", response_model=list[AccessibilityFeature])
def get_accessibility_features(restroom_id: str, engine: RestroomQueryEngine = Depends(get_engine)):
    return engine.accessibility_features(restroom_id)


@router.get("/{restroom_id}/categories", response_model=list[Category])
def get_categories(restroom_id: str, engine: RestroomQueryEngine = Depends(get_engine)):
    return engine.categories(restroom_id)


@router.get("/{restroom_id}/opening-hours", response_model=list[OpeningHour])
def get_opening_hours(restroom_id: str, engine: RestroomQueryEngine = Depends(get_engine)):
    return engine.opening_hours(restroom_id)


@router.get("/{restroom_id}/images", response_model=list[Image])
def get_images(restroom_id: str, engine: RestroomQueryEngine = Depends(get_engine)):
    return engine.images(restroom_id)
