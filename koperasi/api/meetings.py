"""
Meeting, attendance and voting endpoints
"""

from typing import Optional
from fastapi import APIRouter, HTTPException, Depends, Query, status

from .auth import (
    CooperativeSystem, get_cooperative_system, get_locale, require_permission, error_body
)
from .schemas import (
    CreateMeetingRequest,
    UpdateMeetingRequest,
    AttendanceRequest,
    VoteRequest
)
from ..errors import MeetingError
from ..messages import render_message
from ..permissions import Permission
from ..logging_config import get_logger


router = APIRouter()
logger = get_logger("koperasi.api")


def _success(data, message_key: Optional[str], locale: str) -> dict:
    body = {"success": True, "data": data}
    if message_key:
        body["message"] = render_message(message_key, locale)
    return body


def _failure(e: Exception, locale: str, operation: str) -> HTTPException:
    """Map a failed core operation to an HTTP error in the caller's locale"""
    if isinstance(e, MeetingError):
        return HTTPException(
            status_code=e.http_status,
            detail=error_body(e.code, e.message_key, locale, e.params)
        )
    logger.error(f"Unexpected error in {operation}: {e}", exc_info=True)
    return HTTPException(
        status_code=400,
        detail=error_body("validation_failure", "invalid_request", locale)
    )


def _results_payload(results) -> dict:
    payload = results.to_dict()
    payload["total_votes"] = results.total_votes
    return payload


@router.get("")
async def list_meetings(
    status: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    start_date_camel: Optional[str] = Query(None, alias="startDate"),
    end_date_camel: Optional[str] = Query(None, alias="endDate"),
    system: CooperativeSystem = Depends(get_cooperative_system),
    locale: str = Depends(get_locale),
    _role=Depends(require_permission(Permission.VIEW_MEETINGS))
):
    """List meetings, most recent first, optionally filtered"""
    try:
        meetings = system.queries.list_meetings(
            status=status,
            start_date=start_date or start_date_camel,
            end_date=end_date or end_date_camel
        )
        return _success([meeting.to_dict() for meeting in meetings], None, locale)
    except Exception as e:
        raise _failure(e, locale, "list_meetings")


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_meeting(
    request: CreateMeetingRequest,
    system: CooperativeSystem = Depends(get_cooperative_system),
    locale: str = Depends(get_locale),
    role=Depends(require_permission(Permission.CREATE_MEETING))
):
    """Create a new scheduled meeting"""
    try:
        meeting = system.lifecycle.create_meeting(
            title=request.title,
            date=request.date,
            location=request.location,
            agenda_items=[item.to_input() for item in request.agenda_items],
            user_id=role.value if role else None
        )
        return _success(meeting.to_dict(), "meeting_created", locale)
    except Exception as e:
        raise _failure(e, locale, "create_meeting")


@router.post("/vote")
async def submit_vote(
    request: VoteRequest,
    system: CooperativeSystem = Depends(get_cooperative_system),
    locale: str = Depends(get_locale),
    _role=Depends(require_permission(Permission.VOTE))
):
    """Cast a member's vote on an agenda item"""
    try:
        results = system.voting.submit_vote(
            meeting_id=request.meeting_id,
            agenda_item_id=request.agenda_item_id,
            member_id=request.member_id,
            choice=request.choice
        )
        return _success(_results_payload(results), "vote_recorded", locale)
    except Exception as e:
        raise _failure(e, locale, "submit_vote")


@router.get("/{meeting_id}")
async def get_meeting(
    meeting_id: str,
    system: CooperativeSystem = Depends(get_cooperative_system),
    locale: str = Depends(get_locale),
    _role=Depends(require_permission(Permission.VIEW_MEETINGS))
):
    """Get meeting by ID"""
    try:
        meeting = system.queries.get_meeting(meeting_id)
        return _success(meeting.to_dict(), None, locale)
    except Exception as e:
        raise _failure(e, locale, "get_meeting")


@router.put("/{meeting_id}")
async def update_meeting(
    meeting_id: str,
    request: UpdateMeetingRequest,
    system: CooperativeSystem = Depends(get_cooperative_system),
    locale: str = Depends(get_locale),
    role=Depends(require_permission(Permission.EDIT_MEETING))
):
    """Update meeting fields or advance its status"""
    try:
        meeting = system.lifecycle.update_meeting(
            meeting_id,
            request.model_dump(exclude_none=True),
            user_id=role.value if role else None
        )
        return _success(meeting.to_dict(), "meeting_updated", locale)
    except Exception as e:
        raise _failure(e, locale, "update_meeting")


@router.post("/{meeting_id}/attendance")
async def record_attendance(
    meeting_id: str,
    request: AttendanceRequest,
    system: CooperativeSystem = Depends(get_cooperative_system),
    locale: str = Depends(get_locale),
    role=Depends(require_permission(Permission.EDIT_MEETING))
):
    """Record attending members"""
    try:
        meeting = system.lifecycle.record_attendance(
            meeting_id, request.member_ids, user_id=role.value if role else None
        )
        return _success(meeting.to_dict(), "attendance_recorded", locale)
    except Exception as e:
        raise _failure(e, locale, "record_attendance")


@router.post("/{meeting_id}/start")
async def start_meeting(
    meeting_id: str,
    system: CooperativeSystem = Depends(get_cooperative_system),
    locale: str = Depends(get_locale),
    role=Depends(require_permission(Permission.EDIT_MEETING))
):
    """Move a scheduled meeting to ongoing"""
    try:
        meeting = system.lifecycle.start_meeting(meeting_id, user_id=role.value if role else None)
        return _success(meeting.to_dict(), "meeting_started", locale)
    except Exception as e:
        raise _failure(e, locale, "start_meeting")


@router.post("/{meeting_id}/close")
async def close_meeting(
    meeting_id: str,
    system: CooperativeSystem = Depends(get_cooperative_system),
    locale: str = Depends(get_locale),
    role=Depends(require_permission(Permission.EDIT_MEETING))
):
    """Close a meeting; current tallies become final"""
    try:
        meeting = system.lifecycle.close_meeting(meeting_id, user_id=role.value if role else None)
        return _success(meeting.to_dict(), "meeting_closed", locale)
    except Exception as e:
        raise _failure(e, locale, "close_meeting")


@router.get("/{meeting_id}/agenda/{agenda_item_id}/results")
async def get_vote_results(
    meeting_id: str,
    agenda_item_id: str,
    system: CooperativeSystem = Depends(get_cooperative_system),
    locale: str = Depends(get_locale),
    _role=Depends(require_permission(Permission.VIEW_MEETINGS))
):
    """Get the vote tally of an agenda item"""
    try:
        results = system.queries.get_vote_results(meeting_id, agenda_item_id)
        return _success(_results_payload(results), None, locale)
    except Exception as e:
        raise _failure(e, locale, "get_vote_results")
