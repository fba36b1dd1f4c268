"""
Domain Errors Module

Classified errors raised by the meeting core. Every error carries a message
key plus parameters so the caller can render it in its own locale, and a
code that maps onto an HTTP-equivalent status.
"""

from typing import Any, Dict, Optional

from .messages import render_message


class MeetingError(ValueError):
    """Base class for all classified meeting/voting failures"""

    code = "validation_failure"
    http_status = 400

    def __init__(self, message_key: str, params: Optional[Dict[str, Any]] = None):
        self.message_key = message_key
        self.params = params or {}
        # str(e) is always the English rendering
        super().__init__(render_message(message_key, "en", self.params))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message_key": self.message_key,
            "params": self.params
        }


class NotFoundError(MeetingError):
    """Meeting, agenda item or vote results do not exist"""
    code = "not_found"
    http_status = 404


class InvalidStateError(MeetingError):
    """Operation conflicts with the meeting's current lifecycle state"""
    code = "invalid_state"
    http_status = 409


class DuplicateVoteError(InvalidStateError):
    """Member already voted on this agenda item"""
    code = "duplicate_vote"


class ValidationFailureError(MeetingError):
    """Malformed or incomplete input"""
    code = "validation_failure"
    http_status = 400
