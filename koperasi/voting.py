"""
Voting Engine Module

Validates and applies member votes on agenda items. Each member gets one
vote per item and that vote is final: there is no revision or retraction,
and only membership in the voter list is kept, never who chose what.
"""

from typing import Union

from .meetings import Vote, VoteChoice, VoteResults, VoteState, MeetingComponent
from .errors import (
    NotFoundError, InvalidStateError, DuplicateVoteError, ValidationFailureError
)
from .audit import AuditEventType
from .events import DomainEvent
from .logging_config import get_logger, log_action


def parse_choice(value: Union[str, VoteChoice]) -> VoteChoice:
    if isinstance(value, VoteChoice):
        return value
    try:
        return VoteChoice(value)
    except ValueError:
        raise ValidationFailureError("invalid_choice", {"choice": value})


class VotingEngine(MeetingComponent):
    """
    Records votes against agenda items under the meeting's lock.

    Checks run in a fixed order so the reported error is deterministic:
    meeting exists, meeting open, agenda item exists, item takes votes,
    member has not voted yet.
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.logger = get_logger("koperasi.voting")

    def submit_vote(
        self,
        meeting_id: str,
        agenda_item_id: str,
        member_id: str,
        choice: Union[str, VoteChoice]
    ) -> VoteResults:
        """
        Cast one member's vote on one agenda item

        Args:
            meeting_id: Meeting the agenda item belongs to
            agenda_item_id: Agenda item id within the meeting (e.g. "agenda-2")
            member_id: Voting member
            choice: approve, reject or abstain

        Returns:
            The item's updated VoteResults

        Raises:
            ValidationFailureError: bad choice or empty member id
            NotFoundError: unknown meeting or agenda item
            InvalidStateError: meeting completed, or item does not take votes
            DuplicateVoteError: member already voted on this item
        """
        vote = Vote(
            meeting_id=meeting_id,
            agenda_item_id=agenda_item_id,
            member_id=self._require_member(member_id),
            choice=parse_choice(choice)
        )
        return self.cast(vote)

    def cast(self, vote: Vote) -> VoteResults:
        """Apply a validated Vote"""
        try:
            with self._locked(vote.meeting_id):
                meeting = self._require_meeting(vote.meeting_id)
                if meeting.is_completed:
                    raise InvalidStateError("voting_closed", {"meeting_id": meeting.id})

                item = meeting.get_agenda_item(vote.agenda_item_id)
                if item is None:
                    raise NotFoundError("agenda_item_not_found", {
                        "meeting_id": meeting.id,
                        "agenda_item_id": vote.agenda_item_id
                    })
                if not item.requires_vote:
                    raise InvalidStateError("vote_not_required", {"agenda_item_id": item.id})

                if item.vote_results is None:
                    item.vote_results = VoteResults()

                if item.vote_results.has_voted(vote.member_id):
                    raise DuplicateVoteError("duplicate_vote", {
                        "member_id": vote.member_id,
                        "agenda_item_id": item.id
                    })

                item.vote_results.record(vote.member_id, vote.choice)
                item.vote_state = VoteState.RECORDED
                meeting.touch()
                self.store.replace(meeting.id, meeting)
                results = item.vote_results
        except (NotFoundError, InvalidStateError) as e:
            log_action(
                self.logger, "warning", f"Vote rejected: {e}",
                user_id=vote.member_id, action="submit_vote",
                resource=f"meeting:{vote.meeting_id}",
                extra={"agenda_item_id": vote.agenda_item_id, "reason": e.code}
            )
            raise

        log_action(
            self.logger, "info", "Vote recorded",
            user_id=vote.member_id, action="submit_vote", resource=f"meeting:{meeting.id}",
            extra={"agenda_item_id": item.id, "total_votes": results.total_votes}
        )
        self._audit(AuditEventType.VOTE_CAST, meeting, {
            "agenda_item_id": item.id,
            "member_id": vote.member_id,
            "voted_at": vote.timestamp
        }, user_id=vote.member_id)
        self._publish(
            DomainEvent.VOTE_CAST, meeting,
            agenda_item_id=item.id, total_votes=results.total_votes
        )

        return results

    def has_voted(self, meeting_id: str, agenda_item_id: str, member_id: str) -> bool:
        """True if the member already has a vote on the item"""
        meeting = self._require_meeting(meeting_id)
        item = meeting.get_agenda_item(agenda_item_id)
        if item is None:
            raise NotFoundError("agenda_item_not_found", {
                "meeting_id": meeting_id,
                "agenda_item_id": agenda_item_id
            })
        return item.vote_results is not None and item.vote_results.has_voted(member_id)
