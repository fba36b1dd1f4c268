"""
Meeting Store Module

Data model for governance meetings (agenda items, vote tallies, attendance)
and the store that exclusively owns it. Meetings are kept in a storage table
as dictionaries so every read hands out an independent snapshot; mutations
are serialized per meeting through MeetingLockTable.
"""

from datetime import datetime, timezone
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Any
from enum import Enum
from contextlib import contextmanager
import threading

from .storage import StorageInterface, StorageRecord
from .errors import NotFoundError, ValidationFailureError
from .audit import AuditTrail, AuditEventType
from .events import EventDispatcher, DomainEvent, create_meeting_event
from .members import MemberDirectory


class MeetingStatus(Enum):
    """Meeting lifecycle status, strictly forward"""
    SCHEDULED = "scheduled"
    ONGOING = "ongoing"
    COMPLETED = "completed"

    @property
    def rank(self) -> int:
        return _STATUS_ORDER.index(self)

    def can_advance_to(self, other: 'MeetingStatus') -> bool:
        """True only for a strictly later status"""
        return other.rank > self.rank


_STATUS_ORDER = [MeetingStatus.SCHEDULED, MeetingStatus.ONGOING, MeetingStatus.COMPLETED]


class VoteChoice(Enum):
    """Choices a member can cast on an agenda item"""
    APPROVE = "approve"
    REJECT = "reject"
    ABSTAIN = "abstain"


class VoteState(Enum):
    """Whether an agenda item takes votes, and whether any arrived"""
    NOT_APPLICABLE = "not_applicable"  # requires_vote is false, no tally exists
    PENDING = "pending"                # tally initialized, no votes yet
    RECORDED = "recorded"              # at least one vote accepted


@dataclass
class VoteResults:
    """
    Running tally for one agenda item.

    Invariant: approve + reject + abstain == len(voters), voters unique.
    """
    approve: int = 0
    reject: int = 0
    abstain: int = 0
    voters: List[str] = field(default_factory=list)

    @property
    def total_votes(self) -> int:
        return self.approve + self.reject + self.abstain

    def has_voted(self, member_id: str) -> bool:
        return member_id in self.voters

    def record(self, member_id: str, choice: VoteChoice) -> None:
        """Fold one accepted vote into the tally (caller checks duplicates)"""
        if choice == VoteChoice.APPROVE:
            self.approve += 1
        elif choice == VoteChoice.REJECT:
            self.reject += 1
        else:
            self.abstain += 1
        self.voters.append(member_id)

    def is_consistent(self) -> bool:
        return (
            min(self.approve, self.reject, self.abstain) >= 0
            and self.total_votes == len(self.voters)
            and len(set(self.voters)) == len(self.voters)
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "approve": self.approve,
            "reject": self.reject,
            "abstain": self.abstain,
            "voters": list(self.voters)
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'VoteResults':
        return cls(
            approve=int(data.get("approve", 0)),
            reject=int(data.get("reject", 0)),
            abstain=int(data.get("abstain", 0)),
            voters=list(data.get("voters", []))
        )


@dataclass
class AgendaItemInput:
    """Agenda item as supplied by the caller, before ids are assigned"""
    title: str
    description: str = ""
    requires_vote: bool = False


@dataclass
class AgendaItem:
    """A discrete topic within a meeting, optionally put to a vote"""
    id: str
    title: str
    description: str
    requires_vote: bool
    vote_state: VoteState = VoteState.NOT_APPLICABLE
    vote_results: Optional[VoteResults] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "requires_vote": self.requires_vote,
            "vote_state": self.vote_state.value,
            "vote_results": self.vote_results.to_dict() if self.vote_results else None
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AgendaItem':
        results = data.get("vote_results")
        requires_vote = bool(data.get("requires_vote", False))
        state = data.get("vote_state")
        if state is None:
            # Records written without a vote state derive it from the tally
            if not requires_vote:
                state = VoteState.NOT_APPLICABLE.value
            elif results and results.get("voters"):
                state = VoteState.RECORDED.value
            else:
                state = VoteState.PENDING.value
        return cls(
            id=data["id"],
            title=data["title"],
            description=data.get("description", ""),
            requires_vote=requires_vote,
            vote_state=VoteState(state),
            vote_results=VoteResults.from_dict(results) if results is not None else None
        )


def materialize_agenda(items: List[AgendaItemInput]) -> List[AgendaItem]:
    """
    Assign per-meeting ids (agenda-1, agenda-2, ... in input order) and the
    initial vote state: PENDING with a zero tally when a vote is required,
    NOT_APPLICABLE with no tally otherwise.
    """
    agenda = []
    for index, item in enumerate(items, start=1):
        if item.requires_vote:
            state, results = VoteState.PENDING, VoteResults()
        else:
            state, results = VoteState.NOT_APPLICABLE, None
        agenda.append(AgendaItem(
            id=f"agenda-{index}",
            title=item.title,
            description=item.description,
            requires_vote=item.requires_vote,
            vote_state=state,
            vote_results=results
        ))
    return agenda


@dataclass
class MeetingDraft:
    """Fields supplied when creating a meeting"""
    title: str
    date: datetime
    location: str
    agenda_items: List[AgendaItemInput] = field(default_factory=list)


@dataclass
class Meeting(StorageRecord):
    """
    Governance meeting with attendance and agenda
    """
    title: str
    date: datetime
    location: str
    status: MeetingStatus = MeetingStatus.SCHEDULED
    attendees: List[str] = field(default_factory=list)
    agenda_items: List[AgendaItem] = field(default_factory=list)

    @property
    def is_completed(self) -> bool:
        return self.status == MeetingStatus.COMPLETED

    @property
    def has_recorded_votes(self) -> bool:
        return any(item.vote_state == VoteState.RECORDED for item in self.agenda_items)

    def get_agenda_item(self, agenda_item_id: str) -> Optional[AgendaItem]:
        for item in self.agenda_items:
            if item.id == agenda_item_id:
                return item
        return None

    def touch(self) -> None:
        self.updated_at = datetime.now(timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "date": self.date.isoformat(),
            "location": self.location,
            "status": self.status.value,
            "attendees": list(self.attendees),
            "agenda_items": [item.to_dict() for item in self.agenda_items],
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat()
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Meeting':
        return cls(
            id=data["id"],
            created_at=datetime.fromisoformat(data["created_at"]),
            updated_at=datetime.fromisoformat(data["updated_at"]),
            title=data["title"],
            date=datetime.fromisoformat(data["date"]),
            location=data["location"],
            status=MeetingStatus(data["status"]),
            attendees=list(data.get("attendees", [])),
            agenda_items=[AgendaItem.from_dict(item) for item in data.get("agenda_items", [])]
        )


@dataclass
class Vote:
    """A single vote submission; folded into VoteResults, never stored"""
    meeting_id: str
    agenda_item_id: str
    member_id: str
    choice: VoteChoice
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class MeetingStore:
    """
    Authoritative table of meetings keyed by id.

    The store performs no per-meeting serialization; writers hold the
    meeting's lock from MeetingLockTable around load-mutate-replace.
    """

    def __init__(self, storage: StorageInterface, table_name: str = "meetings"):
        self.storage = storage
        self.table_name = table_name
        self._id_lock = threading.Lock()
        self._next_id = self._initial_next_id()

    def _initial_next_id(self) -> int:
        highest = 0
        for record in self.storage.load_all(self.table_name):
            if str(record.get("id", "")).isdigit():
                highest = max(highest, int(record["id"]))
        return highest + 1

    def _allocate_id(self) -> str:
        with self._id_lock:
            meeting_id = str(self._next_id)
            self._next_id += 1
            return meeting_id

    def create(self, draft: MeetingDraft) -> Meeting:
        """Assign the next id and store a new scheduled meeting"""
        now = datetime.now(timezone.utc)
        meeting = Meeting(
            id=self._allocate_id(),
            created_at=now,
            updated_at=now,
            title=draft.title,
            date=draft.date,
            location=draft.location,
            status=MeetingStatus.SCHEDULED,
            attendees=[],
            agenda_items=materialize_agenda(draft.agenda_items)
        )
        self.storage.save(self.table_name, meeting.id, meeting.to_dict())
        return meeting

    def insert(self, meeting: Meeting) -> Meeting:
        """Store a fully formed meeting as-is (seeding, imports)"""
        with self._id_lock:
            self.storage.save(self.table_name, meeting.id, meeting.to_dict())
            if meeting.id.isdigit():
                self._next_id = max(self._next_id, int(meeting.id) + 1)
        return meeting

    def get(self, meeting_id: str) -> Optional[Meeting]:
        data = self.storage.load(self.table_name, meeting_id)
        if data:
            return Meeting.from_dict(data)
        return None

    def list(self) -> List[Meeting]:
        """All meetings, in no particular order"""
        return [Meeting.from_dict(data) for data in self.storage.load_all(self.table_name)]

    def replace(self, meeting_id: str, meeting: Meeting) -> Meeting:
        if not self.storage.exists(self.table_name, meeting_id):
            raise NotFoundError("meeting_not_found", {"meeting_id": meeting_id})
        self.storage.save(self.table_name, meeting_id, meeting.to_dict())
        return meeting

    def exists(self, meeting_id: str) -> bool:
        return self.storage.exists(self.table_name, meeting_id)

    def count(self) -> int:
        return self.storage.count(self.table_name)


class MeetingLockTable:
    """
    One re-entrant lock per meeting id. Locks are created on first use and
    kept for the life of the table; callers only ask for ids of stored
    meetings.
    """

    def __init__(self):
        self._locks: Dict[str, threading.RLock] = {}
        self._guard = threading.Lock()

    def lock_for(self, meeting_id: str) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(meeting_id)
            if lock is None:
                lock = threading.RLock()
                self._locks[meeting_id] = lock
            return lock

    @contextmanager
    def hold(self, meeting_id: str) -> Iterator[None]:
        with self.lock_for(meeting_id):
            yield


def coerce_datetime(value: Any, field_name: str = "date") -> datetime:
    """
    Accept a datetime or ISO-8601 string; naive values are taken as UTC so
    every stored date compares with every other.
    """
    if value is None or value == "":
        raise ValidationFailureError("missing_field", {"field": field_name})
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            raise ValidationFailureError("invalid_date", {"field": field_name, "value": value})
    if not isinstance(value, datetime):
        raise ValidationFailureError("invalid_date", {"field": field_name, "value": str(value)})
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


class MeetingComponent:
    """
    Shared plumbing for components that mutate meetings: lookup, optional
    member validation, audit logging and event publishing.
    """

    def __init__(
        self,
        store: MeetingStore,
        locks: MeetingLockTable,
        audit_trail: Optional[AuditTrail] = None,
        event_dispatcher: Optional[EventDispatcher] = None,
        member_directory: Optional[MemberDirectory] = None
    ):
        self.store = store
        self.locks = locks
        self.audit_trail = audit_trail
        self.event_dispatcher = event_dispatcher
        self.member_directory = member_directory

    @contextmanager
    def _locked(self, meeting_id: str) -> Iterator[None]:
        """Hold the lock of an existing meeting; unknown ids never get a lock"""
        if not self.store.exists(meeting_id):
            raise NotFoundError("meeting_not_found", {"meeting_id": meeting_id})
        with self.locks.hold(meeting_id):
            yield

    def _require_meeting(self, meeting_id: str) -> Meeting:
        meeting = self.store.get(meeting_id)
        if not meeting:
            raise NotFoundError("meeting_not_found", {"meeting_id": meeting_id})
        return meeting

    def _require_member(self, member_id: Any) -> str:
        if not isinstance(member_id, str) or not member_id.strip():
            raise ValidationFailureError("missing_field", {"field": "member_id"})
        # Directory is only wired in when strict member validation is on
        if self.member_directory is not None and not self.member_directory.exists(member_id):
            raise ValidationFailureError("unknown_member", {"member_id": member_id})
        return member_id

    def _audit(self, event_type: AuditEventType, meeting: Meeting,
               metadata: Optional[Dict[str, Any]] = None, user_id: Optional[str] = None) -> None:
        if self.audit_trail is None:
            return
        self.audit_trail.log_event(
            event_type=event_type,
            entity_type="meeting",
            entity_id=meeting.id,
            metadata=metadata or {},
            user_id=user_id
        )

    def _publish(self, event_type: DomainEvent, meeting: Meeting, **data: Any) -> None:
        if self.event_dispatcher is None:
            return
        self.event_dispatcher.publish(create_meeting_event(event_type, meeting, **data))
