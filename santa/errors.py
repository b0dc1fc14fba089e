# santa/errors.py
# -----------------------------------------------------------------------------
# Типизированные ошибки домена. Сервисы их бросают, а santa.main одним
# обработчиком превращает в JSON {"detail": ..., "code": ...}.
# -----------------------------------------------------------------------------

from __future__ import annotations

from typing import Optional


class SantaError(Exception):
    code: str = "santa_error"
    status_code: int = 400
    detail: str = "Request failed"

    def __init__(self, detail: Optional[str] = None):
        if detail:
            self.detail = detail
        super().__init__(self.detail)

    def to_dict(self) -> dict:
        return {"detail": self.detail, "code": self.code}


# ===== Ядро: жеребьёвка / статус / подарки ===================================

class InsufficientParticipants(SantaError):
    code = "insufficient_participants"
    status_code = 422
    detail = "Need at least 2 participants to draw names"


class EventLocked(SantaError):
    code = "event_locked"
    status_code = 409
    detail = "Names are already drawn, the event can no longer be changed"


class NotAParticipant(SantaError):
    code = "not_a_participant"
    status_code = 403
    detail = "You are not part of this event"


class NotAuthorized(SantaError):
    code = "not_authorized"
    status_code = 403
    detail = "You are not allowed to perform this action"


class InvalidTransition(SantaError):
    code = "invalid_transition"
    status_code = 422
    detail = "Unsupported gift status change"


class DrawFailed(SantaError):
    code = "draw_failed"
    status_code = 503
    detail = "Could not draw names right now, please try again"


# ===== Поиск / валидация =====================================================

class EventNotFound(SantaError):
    code = "event_not_found"
    status_code = 404
    detail = "Event not found"


class ParticipantNotFound(SantaError):
    code = "participant_not_found"
    status_code = 404
    detail = "Participant not found"


class AssignmentNotFound(SantaError):
    code = "assignment_not_found"
    status_code = 404
    detail = "Assignment not found"


class AlreadyParticipant(SantaError):
    code = "already_participant"
    status_code = 409
    detail = "Already participating in this event"


class InvalidInviteCode(SantaError):
    code = "invalid_invite_code"
    status_code = 404
    detail = "Invalid invite code"


class InvalidBudget(SantaError):
    code = "invalid_budget"
    status_code = 422
    detail = "Budget must be non-negative and min_budget <= max_budget"


class WishlistItemNotFound(SantaError):
    code = "wishlist_item_not_found"
    status_code = 404
    detail = "Wishlist item not found"


class AlreadyReserved(SantaError):
    code = "already_reserved"
    status_code = 409
    detail = "This gift is already reserved"


class InvalidName(SantaError):
    code = "invalid_name"
    status_code = 422
    detail = "Name must not be empty"
