"""
Eras endpoint.
"""
# pyright: reportAttributeAccessIssue=false
# pyright: reportCallIssue=false
# pyright: reportArgumentType=false
import logging

from fastapi import APIRouter, Depends, Response, status
from sqlmodel import Session, select

from timeline.core.database import get_session
from timeline.core.exceptions import ConflictError, NotFoundError, ValidationError
from timeline.models.models import Era, Event, Person
from timeline.schemas.era import CreateEraRequest, EraResponse, ErasResponse, UpdateEraRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/eras", tags=["eras"])


def _get_era(session: Session, era_id: int) -> Era:
    era = session.get(Era, era_id)
    if not era:
        raise NotFoundError(f"Era with id {era_id} not found")
    return era


@router.get("", response_model=ErasResponse)
async def get_eras(session: Session = Depends(get_session)):
    """Get all eras, oldest first."""
    query = select(Era).order_by(Era.start_year.is_(None), Era.start_year, Era.id)  # type: ignore
    eras = session.exec(query).all()
    return ErasResponse(eras=[EraResponse.model_validate(era) for era in eras])


@router.get("/{era_id}", response_model=EraResponse)
async def get_era(era_id: int, session: Session = Depends(get_session)):
    """Get an era by ID."""
    return EraResponse.model_validate(_get_era(session, era_id))


@router.post("", response_model=EraResponse, status_code=status.HTTP_201_CREATED)
async def create_era(
    request: CreateEraRequest,
    session: Session = Depends(get_session)
):
    """Create a new era."""
    name = request.name.strip()
    if not name:
        raise ValidationError("name must not be empty")

    era = Era(
        name=name,
        description=request.description.strip() if request.description and request.description.strip() else None,
        start_year=request.start_year,
        end_year=request.end_year,
    )
    session.add(era)
    session.commit()
    session.refresh(era)
    logger.info(f"Created era {era.id} ({era.name})")

    return EraResponse.model_validate(era)


@router.put("/{era_id}", response_model=EraResponse)
async def update_era(
    era_id: int,
    request: UpdateEraRequest,
    session: Session = Depends(get_session)
):
    """Update an era by ID."""
    era = _get_era(session, era_id)

    # Update fields if provided
    if request.name is not None:
        if not request.name.strip():
            raise ValidationError("name must not be empty")
        era.name = request.name.strip()
    if request.description is not None:
        era.description = request.description.strip() if request.description.strip() else None
    if request.start_year is not None:
        era.start_year = request.start_year
    if request.end_year is not None:
        era.end_year = request.end_year

    session.add(era)
    session.commit()
    session.refresh(era)

    return EraResponse.model_validate(era)


@router.delete("/{era_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_era(era_id: int, session: Session = Depends(get_session)):
    """Delete an era. Eras that still have events or persons cannot be deleted."""
    era = _get_era(session, era_id)

    in_use = (
        session.exec(select(Event.id).where(Event.era_id == era_id)).first() is not None
        or session.exec(select(Person.id).where(Person.era_id == era_id)).first() is not None
    )
    if in_use:
        raise ConflictError(f"Era {era_id} still has events or persons")

    session.delete(era)
    session.commit()
    logger.info(f"Deleted era {era_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
