"""
Events endpoint.
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
from timeline.schemas.child import SubeventResponse
from timeline.schemas.event import (
    CreateEventRequest,
    EventResponse,
    EventsResponse,
    EventWithSubeventsResponse,
)
from timeline.schemas.reconcile import ReconcileOperationResponse
from timeline.services.image_service import delete_image_file, get_record_image_url
from timeline.services.timeline_service import (
    EventDetail,
    create_event as create_event_record,
    delete_event as delete_event_record,
    get_event,
    get_event_with_subevents,
    list_events,
    update_event_with_subevents,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/events", tags=["events"])

IMAGE_COLLECTION = "event"


def event_detail_response(detail: EventDetail) -> EventWithSubeventsResponse:
    return EventWithSubeventsResponse(
        event=EventResponse.model_validate(detail.event),
        subevents=[SubeventResponse.model_validate(sub) for sub in detail.subevents],
        operations=[ReconcileOperationResponse.model_validate(op) for op in detail.operations],
    )


@router.get("", response_model=EventsResponse)
async def get_events(session: Session = Depends(get_session)):
    """Get all events sorted by start year."""
    events = list_events(session)
    return EventsResponse(events=[EventResponse.model_validate(event) for event in events])


@router.post("", response_model=EventWithSubeventsResponse, status_code=status.HTTP_201_CREATED)
async def create_event(
    request: CreateEventRequest,
    session: Session = Depends(get_session)
):
    """Create an event together with its initial sub-events."""
    title = request.title.strip()
    if not title:
        raise ValidationError("title must not be empty")

    event_data = request.model_dump(exclude={"subevents"})
    event_data["title"] = title
    detail = create_event_record(session, event_data, request.subevents)
    logger.info(f"Created event {detail.event.id} with {len(detail.subevents)} sub-event(s)")
    return event_detail_response(detail)


@router.get("/{event_id}", response_model=EventWithSubeventsResponse)
async def get_event_detail(event_id: int, session: Session = Depends(get_session)):
    """Get an event with its sub-events in chronological order."""
    return event_detail_response(get_event_with_subevents(session, event_id))


@router.patch("/{event_id}", response_model=EventWithSubeventsResponse)
async def update_event(
    event_id: int,
    title: Optional[str] = Form(None),
    summary: Optional[str] = Form(None),
    place: Optional[str] = Form(None),
    start_year: Optional[str] = Form(None),
    end_year: Optional[str] = Form(None),
    era_id: Optional[str] = Form(None),
    subevents: Optional[str] = Form(None, description="JSON array of {id?, title, description, year}"),
    image: Optional[UploadFile] = File(None),
    session: Session = Depends(get_session)
):
    """
    Save the event edit form.

    Only the fields that are sent are changed; an empty year clears it. When
    `subevents` is sent it is the full list of sub-events in form order and the
    stored sub-events are reconciled against it.
    """
    event_data = collect_text_fields(
        {"title": title, "summary": summary, "place": place},
        required=("title",),
    )
    event_data.update(collect_year_fields({"start_year": start_year, "end_year": end_year}))
    if era_id is not None:
        event_data["era_id"] = parse_id_field(era_id, "era_id")
    submitted = parse_child_list(subevents, "subevents")

    previous_image_url = get_event(session, event_id).image_url
    image_bytes = await read_uploaded_image(image)
    if image_bytes is not None:
        event_data["image_url"] = get_record_image_url(IMAGE_COLLECTION, event_id)

    detail = update_event_with_subevents(session, event_id, event_data, submitted)
    if image_bytes is not None:
        # The file is only replaced once the update has been committed
        store_record_image(IMAGE_COLLECTION, event_id, image_bytes, previous_image_url)
    return event_detail_response(detail)


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_event(event_id: int, session: Session = Depends(get_session)):
    """Delete an event and its sub-events; cards generated from it are kept."""
    image_url = delete_event_record(session, event_id)
    delete_image_file(image_url)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
