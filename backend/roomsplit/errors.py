"""Errors raised by the balance and settlement engine.

Each error carries the HTTP status the API layer answers with; see the
exception handler registered in ``roomsplit.main``.
"""


class SettlementError(Exception):
    """Request rejected by the settlement engine."""
    status_code = 400

    def __init__(self, message: str = ""):
        super().__init__(message or self.__class__.__doc__)
        self.message = message or self.__class__.__doc__


class DegenerateRoom(SettlementError):
    """Room has no members; a fair share cannot be computed."""
    status_code = 422


class InvalidAmount(SettlementError):
    """Expense amounts must be positive."""
    status_code = 400


class BalanceMismatch(SettlementError):
    """Balances do not net to zero."""
    status_code = 500


class NoOpenRound(SettlementError):
    """No open round found."""
    status_code = 400


class AlreadyGenerated(SettlementError):
    """Settlements were already generated for this round."""
    status_code = 409


class RoundAlreadyOpen(SettlementError):
    """There is already an open round."""
    status_code = 409


class RoundLocked(SettlementError):
    """Round no longer accepts expense changes."""
    status_code = 409


class InvalidTransition(SettlementError):
    """Settlement cannot move to the requested status."""
    status_code = 409


class NotSettlementParty(InvalidTransition):
    """Only the payer can mark a settlement paid and only the receiver can confirm it."""
    status_code = 403


class NotFound(SettlementError):
    """Record not found."""
    status_code = 404
