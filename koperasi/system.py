"""
Cooperative System Container

Wires storage, audit trail, event dispatcher and the meeting components
together according to configuration.
"""

from typing import Optional

from .config import KoperasiConfig, get_config
from .storage import InMemoryStorage, StorageInterface
from .audit import AuditTrail, AuditEventType
from .events import EventDispatcher
from .members import InMemoryMemberDirectory, MemberDirectory
from .meetings import MeetingStore, MeetingLockTable
from .lifecycle import MeetingLifecycleManager
from .voting import VotingEngine
from .queries import MeetingQueryService


class CooperativeSystem:
    """Meeting governance core with all components initialized"""

    def __init__(
        self,
        config: Optional[KoperasiConfig] = None,
        storage: Optional[StorageInterface] = None,
        member_directory: Optional[MemberDirectory] = None
    ):
        self.config = config or get_config()
        self.storage = storage or InMemoryStorage()

        self.audit_trail = AuditTrail(self.storage) if self.config.enable_audit_logging else None
        self.event_dispatcher = EventDispatcher() if self.config.enable_events else None
        self.member_directory = member_directory or InMemoryMemberDirectory()

        self.meeting_store = MeetingStore(self.storage)
        self.locks = MeetingLockTable()

        component_args = dict(
            store=self.meeting_store,
            locks=self.locks,
            audit_trail=self.audit_trail,
            event_dispatcher=self.event_dispatcher,
            member_directory=self.member_directory if self.config.strict_member_validation else None
        )
        self.lifecycle = MeetingLifecycleManager(**component_args)
        self.voting = VotingEngine(**component_args)
        self.queries = MeetingQueryService(self.meeting_store)

        if self.audit_trail is not None:
            self.audit_trail.log_event(
                AuditEventType.SYSTEM_START, "system", "koperasi",
                metadata={"strict_member_validation": self.config.strict_member_validation}
            )

        if self.config.seed_demo_data:
            from .seed import seed_demo_meetings
            seed_demo_meetings(self)
