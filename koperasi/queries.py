"""
Meeting Query Module

Read-only access to meetings: status and date-range filtering, ordering by
scheduled date (most recent first) and vote result lookup. Reads work on
store snapshots and take no meeting locks.
"""

from datetime import datetime
from typing import List, Optional, Union

from .meetings import Meeting, MeetingStatus, MeetingStore, VoteResults, VoteState, coerce_datetime
from .lifecycle import parse_status
from .errors import NotFoundError


class MeetingQueryService:
    """Query/filter layer over the meeting store"""

    def __init__(self, store: MeetingStore):
        self.store = store

    def list_meetings(
        self,
        status: Optional[Union[str, MeetingStatus]] = None,
        start_date: Optional[Union[datetime, str]] = None,
        end_date: Optional[Union[datetime, str]] = None
    ) -> List[Meeting]:
        """
        List meetings, most recent scheduled date first

        Args:
            status: Only meetings in this status; all when omitted
            start_date: Only meetings scheduled at or after this moment
            end_date: Only meetings scheduled at or before this moment

        Returns:
            Meetings sorted by date descending
        """
        meetings = self.store.list()

        if status:
            wanted = parse_status(status)
            meetings = [m for m in meetings if m.status == wanted]
        if start_date:
            start = coerce_datetime(start_date, "start_date")
            meetings = [m for m in meetings if m.date >= start]
        if end_date:
            end = coerce_datetime(end_date, "end_date")
            meetings = [m for m in meetings if m.date <= end]

        meetings.sort(key=lambda m: m.date, reverse=True)
        return meetings

    def list_by_status(self, status: Optional[Union[str, MeetingStatus]] = None) -> List[Meeting]:
        return self.list_meetings(status=status)

    def get_meeting(self, meeting_id: str) -> Meeting:
        meeting = self.store.get(meeting_id)
        if not meeting:
            raise NotFoundError("meeting_not_found", {"meeting_id": meeting_id})
        return meeting

    def get_vote_results(self, meeting_id: str, agenda_item_id: str) -> VoteResults:
        """
        Tally for one agenda item. Items that take no vote have no tally and
        report NotFound rather than zeros.
        """
        meeting = self.get_meeting(meeting_id)
        item = meeting.get_agenda_item(agenda_item_id)
        if item is None:
            raise NotFoundError("agenda_item_not_found", {
                "meeting_id": meeting_id,
                "agenda_item_id": agenda_item_id
            })
        if item.vote_state == VoteState.NOT_APPLICABLE or item.vote_results is None:
            raise NotFoundError("vote_results_not_found", {"agenda_item_id": agenda_item_id})
        return item.vote_results
