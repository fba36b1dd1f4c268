"""
Pydantic schemas for API requests

Fields accept both snake_case and the camelCase names sent by the web client
(memberIds, agendaItemId, requiresVote, ...).
"""

from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field

from ..meetings import AgendaItemInput


class RequestModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class AgendaItemModel(RequestModel):
    title: str
    description: str = ""
    requires_vote: bool = Field(False, alias="requiresVote")

    def to_input(self) -> AgendaItemInput:
        return AgendaItemInput(
            title=self.title,
            description=self.description,
            requires_vote=self.requires_vote
        )


# Meeting schemas
class CreateMeetingRequest(RequestModel):
    title: str
    date: str = Field(..., description="Scheduled date/time, ISO-8601")
    location: str
    agenda_items: List[AgendaItemModel] = Field(default_factory=list, alias="agendaItems")


class UpdateMeetingRequest(RequestModel):
    title: Optional[str] = None
    date: Optional[str] = None  # ISO-8601
    location: Optional[str] = None
    status: Optional[str] = Field(None, description="Meeting status (scheduled, ongoing, completed)")
    agenda_items: Optional[List[AgendaItemModel]] = Field(
        None, alias="agendaItems",
        description="Replaces the whole agenda; refused once voting has started"
    )


class AttendanceRequest(RequestModel):
    member_ids: List[str] = Field(..., alias="memberIds")


# Voting schemas
class VoteRequest(RequestModel):
    meeting_id: str = Field(..., alias="meetingId")
    agenda_item_id: str = Field(..., alias="agendaItemId")
    member_id: str = Field(..., alias="memberId")
    choice: str = Field(..., description="Vote choice (approve, reject, abstain)")
