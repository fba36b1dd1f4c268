"""
Meeting Lifecycle Module

Creates meetings and drives the status machine
scheduled -> ongoing -> completed. Handles field updates and attendance
while a meeting is still open; a completed meeting is read-only.
"""

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Union

from .meetings import (
    Meeting, MeetingDraft, MeetingStatus, AgendaItemInput, MeetingComponent,
    materialize_agenda, coerce_datetime
)
from .errors import InvalidStateError, ValidationFailureError
from .audit import AuditEventType
from .events import DomainEvent
from .logging_config import get_logger, log_action


UPDATABLE_FIELDS = ("title", "date", "location", "agenda_items", "status")


def _require_text(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationFailureError("missing_field", {"field": field_name})
    return value.strip()


def parse_agenda_items(items: Optional[Iterable[Any]]) -> List[AgendaItemInput]:
    """Accept AgendaItemInput objects or plain dicts from the caller"""
    parsed = []
    for position, item in enumerate(items or [], start=1):
        if isinstance(item, dict):
            item = AgendaItemInput(
                title=item.get("title"),
                description=item.get("description") or "",
                requires_vote=bool(item.get("requires_vote", False))
            )
        if not isinstance(item, AgendaItemInput):
            raise ValidationFailureError("missing_field", {"field": f"agenda_items[{position}]"})
        item.title = _require_text(item.title, f"agenda_items[{position}].title")
        parsed.append(item)
    return parsed


def parse_status(value: Union[str, MeetingStatus]) -> MeetingStatus:
    if isinstance(value, MeetingStatus):
        return value
    try:
        return MeetingStatus(value)
    except ValueError:
        raise ValidationFailureError("invalid_status", {"status": value})


class MeetingLifecycleManager(MeetingComponent):
    """
    Owns every meeting mutation other than vote casting
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.logger = get_logger("koperasi.lifecycle")

    def create_meeting(
        self,
        title: str,
        date: Union[datetime, str],
        location: str,
        agenda_items: Optional[Iterable[Any]] = None,
        user_id: Optional[str] = None
    ) -> Meeting:
        """
        Create a new scheduled meeting

        Args:
            title: Meeting title
            date: Scheduled date/time (datetime or ISO-8601 string)
            location: Where the meeting takes place
            agenda_items: AgendaItemInput objects or dicts with title,
                description and requires_vote
            user_id: Operator creating the meeting, for the audit trail

        Returns:
            Created Meeting with agenda ids agenda-1..agenda-n
        """
        draft = MeetingDraft(
            title=_require_text(title, "title"),
            date=coerce_datetime(date),
            location=_require_text(location, "location"),
            agenda_items=parse_agenda_items(agenda_items)
        )
        meeting = self.store.create(draft)

        log_action(
            self.logger, "info", f"Meeting created: {meeting.title}",
            user_id=user_id, action="create_meeting", resource=f"meeting:{meeting.id}",
            extra={
                "date": meeting.date.isoformat(),
                "agenda_items": len(meeting.agenda_items),
                "voting_items": sum(1 for item in meeting.agenda_items if item.requires_vote)
            }
        )
        self._audit(AuditEventType.MEETING_CREATED, meeting, {
            "title": meeting.title,
            "date": meeting.date,
            "location": meeting.location,
            "agenda_item_ids": [item.id for item in meeting.agenda_items]
        }, user_id=user_id)
        self._publish(DomainEvent.MEETING_CREATED, meeting)

        return meeting

    def update_meeting(self, meeting_id: str, fields: Dict[str, Any],
                       user_id: Optional[str] = None) -> Meeting:
        """
        Merge the provided fields into an open meeting.

        Status may only move forward. Replacing the agenda re-assigns agenda
        ids and is refused once any vote has been recorded.
        """
        unknown = [name for name in fields if name not in UPDATABLE_FIELDS]
        if unknown:
            raise ValidationFailureError("unknown_field", {"field": unknown[0]})

        with self._locked(meeting_id):
            meeting = self._require_meeting(meeting_id)
            if meeting.is_completed:
                raise InvalidStateError("meeting_finalized", {"meeting_id": meeting_id})

            changed = {}
            if fields.get("title") is not None:
                meeting.title = _require_text(fields["title"], "title")
                changed["title"] = meeting.title
            if fields.get("location") is not None:
                meeting.location = _require_text(fields["location"], "location")
                changed["location"] = meeting.location
            if fields.get("date") is not None:
                meeting.date = coerce_datetime(fields["date"])
                changed["date"] = meeting.date
            if fields.get("agenda_items") is not None:
                if meeting.has_recorded_votes:
                    raise InvalidStateError("agenda_locked", {"meeting_id": meeting_id})
                meeting.agenda_items = materialize_agenda(parse_agenda_items(fields["agenda_items"]))
                changed["agenda_item_ids"] = [item.id for item in meeting.agenda_items]
            if fields.get("status") is not None:
                requested = parse_status(fields["status"])
                if requested != meeting.status:
                    if not meeting.status.can_advance_to(requested):
                        raise InvalidStateError("status_regression", {
                            "current": meeting.status.value,
                            "requested": requested.value
                        })
                    changed["status"] = {"from": meeting.status.value, "to": requested.value}
                    meeting.status = requested

            meeting.touch()
            self.store.replace(meeting_id, meeting)

        log_action(
            self.logger, "info", f"Meeting updated: {', '.join(changed) or 'no changes'}",
            user_id=user_id, action="update_meeting", resource=f"meeting:{meeting_id}",
            extra={"changed": sorted(changed)}
        )
        self._audit(AuditEventType.MEETING_UPDATED, meeting, {"changed": changed}, user_id=user_id)
        self._publish(DomainEvent.MEETING_UPDATED, meeting, changed=sorted(changed))
        if "status" in changed and meeting.is_completed:
            self._announce_close(meeting, MeetingStatus(changed["status"]["from"]), user_id)

        return meeting

    def record_attendance(self, meeting_id: str, member_ids: Iterable[str],
                          user_id: Optional[str] = None) -> Meeting:
        """Union member ids into the attendee list; re-adding is a no-op"""
        if member_ids is None or isinstance(member_ids, str):
            raise ValidationFailureError("missing_field", {"field": "member_ids"})
        member_ids = [self._require_member(member_id) for member_id in member_ids]

        with self._locked(meeting_id):
            meeting = self._require_meeting(meeting_id)
            if meeting.is_completed:
                raise InvalidStateError("meeting_finalized", {"meeting_id": meeting_id})

            added = []
            for member_id in member_ids:
                if member_id not in meeting.attendees:
                    meeting.attendees.append(member_id)
                    added.append(member_id)

            meeting.touch()
            self.store.replace(meeting_id, meeting)

        log_action(
            self.logger, "info", f"Attendance recorded: {len(added)} new of {len(member_ids)}",
            user_id=user_id, action="record_attendance", resource=f"meeting:{meeting_id}",
            extra={"added": added, "total_attendees": len(meeting.attendees)}
        )
        if added:
            self._audit(AuditEventType.ATTENDANCE_RECORDED, meeting, {"added": added}, user_id=user_id)
            self._publish(DomainEvent.ATTENDANCE_RECORDED, meeting, added=added)

        return meeting

    def start_meeting(self, meeting_id: str, user_id: Optional[str] = None) -> Meeting:
        """Move a scheduled meeting to ongoing"""
        with self._locked(meeting_id):
            meeting = self._require_meeting(meeting_id)
            if meeting.is_completed:
                raise InvalidStateError("meeting_finalized", {"meeting_id": meeting_id})
            if meeting.status != MeetingStatus.SCHEDULED:
                raise InvalidStateError("meeting_not_scheduled", {
                    "meeting_id": meeting_id,
                    "status": meeting.status.value
                })

            meeting.status = MeetingStatus.ONGOING
            meeting.touch()
            self.store.replace(meeting_id, meeting)

        log_action(
            self.logger, "info", "Meeting started",
            user_id=user_id, action="start_meeting", resource=f"meeting:{meeting_id}"
        )
        self._audit(AuditEventType.MEETING_STARTED, meeting, user_id=user_id)
        self._publish(DomainEvent.MEETING_STARTED, meeting)

        return meeting

    def close_meeting(self, meeting_id: str, user_id: Optional[str] = None) -> Meeting:
        """
        Finalize a meeting. Outstanding votes are not required; the tallies
        as they stand become final.
        """
        with self._locked(meeting_id):
            meeting = self._require_meeting(meeting_id)
            if meeting.is_completed:
                raise InvalidStateError("meeting_already_closed", {"meeting_id": meeting_id})

            previous = meeting.status
            meeting.status = MeetingStatus.COMPLETED
            meeting.touch()
            self.store.replace(meeting_id, meeting)

        log_action(
            self.logger, "info", "Meeting closed",
            user_id=user_id, action="close_meeting", resource=f"meeting:{meeting_id}",
            extra={"previous_status": previous.value, "attendees": len(meeting.attendees)}
        )
        self._announce_close(meeting, previous, user_id)

        return meeting

    def _announce_close(self, meeting: Meeting, previous: MeetingStatus,
                        user_id: Optional[str]) -> None:
        """Audit and publish a meeting reaching completed, whichever path closed it"""
        final_tallies = {
            item.id: item.vote_results.to_dict()
            for item in meeting.agenda_items
            if item.vote_results is not None
        }
        self._audit(AuditEventType.MEETING_CLOSED, meeting, {
            "previous_status": previous,
            "attendee_count": len(meeting.attendees),
            "final_tallies": {
                item_id: {k: v for k, v in tally.items() if k != "voters"}
                for item_id, tally in final_tallies.items()
            }
        }, user_id=user_id)
        self._publish(DomainEvent.MEETING_CLOSED, meeting, final_tallies=final_tallies)
