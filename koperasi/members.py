"""
Member Directory Module

Interface to the cooperative's member registry. The meeting core only asks
one question of it: is this member id known and active? The directory is
consulted only when strict member validation is configured.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Iterable, Optional
import threading


@dataclass
class Member:
    """Cooperative member as seen by the meeting core"""
    id: str
    name: str
    is_active: bool = True


class MemberDirectory(ABC):
    """Abstract member identity provider"""

    @abstractmethod
    def get_member(self, member_id: str) -> Optional[Member]:
        """Look up a member by id"""
        pass

    def exists(self, member_id: str) -> bool:
        """True if the member is registered and active"""
        member = self.get_member(member_id)
        return member is not None and member.is_active


class InMemoryMemberDirectory(MemberDirectory):
    """Member directory held in memory, fed by the member subsystem or tests"""

    def __init__(self, members: Optional[Iterable[Member]] = None):
        self._members: Dict[str, Member] = {}
        self._lock = threading.RLock()
        for member in members or []:
            self.add_member(member)

    def add_member(self, member: Member) -> None:
        with self._lock:
            self._members[member.id] = member

    def deactivate(self, member_id: str) -> bool:
        with self._lock:
            member = self._members.get(member_id)
            if not member:
                return False
            member.is_active = False
            return True

    def get_member(self, member_id: str) -> Optional[Member]:
        with self._lock:
            return self._members.get(member_id)
