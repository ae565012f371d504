"""
Persons endpoint.
"""
# pyright: reportAttributeAccessIssue=false
# pyright: reportCallIssue=false
# pyright: reportArgumentType=false
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile, status
from sqlmodel import Session

from timeline.api.v1.endpoints.form_helpers import (
    collect_text_fields,
    collect_year_fields,
    parse_child_list,
    parse_id_field,
    read_uploaded_image,
    store_record_image,
)
from timeline.core.database import get_session
from timeline.core.exceptions import ValidationError
from timeline.schemas.child import AchievementResponse
from timeline.schemas.person import (
    CreatePersonRequest,
    PersonResponse,
    PersonsResponse,
    PersonWithAchievementsResponse,
)
from timeline.schemas.reconcile import ReconcileOperationResponse
from timeline.services.image_service import delete_image_file, get_record_image_url
from timeline.services.timeline_service import (
    PersonDetail,
    create_person as create_person_record,
    delete_person as delete_person_record,
    get_person,
    get_person_with_achievements,
    list_persons,
    update_person_with_achievements,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/persons", tags=["persons"])

IMAGE_COLLECTION = "person"


def person_detail_response(detail: PersonDetail) -> PersonWithAchievementsResponse:
    return PersonWithAchievementsResponse(
        person=PersonResponse.model_validate(detail.person),
        achievements=[AchievementResponse.model_validate(a) for a in detail.achievements],
        operations=[ReconcileOperationResponse.model_validate(op) for op in detail.operations],
    )


@router.get("", response_model=PersonsResponse)
async def get_persons(session: Session = Depends(get_session)):
    """Get all persons sorted by year of birth."""
    persons = list_persons(session)
    return PersonsResponse(persons=[PersonResponse.model_validate(person) for person in persons])


@router.post("", response_model=PersonWithAchievementsResponse, status_code=status.HTTP_201_CREATED)
async def create_person(
    request: CreatePersonRequest,
    session: Session = Depends(get_session)
):
    """Create a person together with their initial achievements."""
    name = request.name.strip()
    if not name:
        raise ValidationError("name must not be empty")

    person_data = request.model_dump(exclude={"achievements"})
    person_data["name"] = name
    detail = create_person_record(session, person_data, request.achievements)
    logger.info(f"Created person {detail.person.id} with {len(detail.achievements)} achievement(s)")
    return person_detail_response(detail)


@router.get("/{person_id}", response_model=PersonWithAchievementsResponse)
async def get_person_detail(person_id: int, session: Session = Depends(get_session)):
    """Get a person with their achievements in chronological order."""
    return person_detail_response(get_person_with_achievements(session, person_id))


@router.patch("/{person_id}", response_model=PersonWithAchievementsResponse)
async def update_person(
    person_id: int,
    name: Optional[str] = Form(None),
    bio: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    born: Optional[str] = Form(None),
    died: Optional[str] = Form(None),
    era_id: Optional[str] = Form(None),
    person_achievements: Optional[str] = Form(None, description="JSON array of {id?, title, description, year}"),
    image: Optional[UploadFile] = File(None),
    session: Session = Depends(get_session)
):
    """
    Save the person edit form.

    Only the fields that are sent are changed; an empty year clears it. When
    `person_achievements` is sent it replaces the achievement list (reconciled
    by position, or by id where ids are given).
    """
    person_data = collect_text_fields(
        {"name": name, "bio": bio, "description": description},
        required=("name",),
    )
    person_data.update(collect_year_fields({"born": born, "died": died}))
    if era_id is not None:
        person_data["era_id"] = parse_id_field(era_id, "era_id")
    submitted = parse_child_list(person_achievements, "person_achievements")

    previous_image_url = get_person(session, person_id).image_url
    image_bytes = await read_uploaded_image(image)
    if image_bytes is not None:
        person_data["image_url"] = get_record_image_url(IMAGE_COLLECTION, person_id)

    detail = update_person_with_achievements(session, person_id, person_data, submitted)
    if image_bytes is not None:
        # The file is only replaced once the update has been committed
        store_record_image(IMAGE_COLLECTION, person_id, image_bytes, previous_image_url)
    return person_detail_response(detail)


@router.delete("/{person_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_person(person_id: int, session: Session = Depends(get_session)):
    """Delete a person and their achievements; cards generated from them are kept."""
    image_url = delete_person_record(session, person_id)
    delete_image_file(image_url)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
