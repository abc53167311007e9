# ! /usr/bin/env python
# -*- coding: utf-8 -*-
# ===================================================================
# errors.py
#
# @desc: Exceptions raised by the Go Fish contract and orchestrator.
# ===================================================================


class GoFishError(RuntimeError):
    """Base class for all game errors."""


class ProtocolViolation(GoFishError):
    """Raised when a call is made in the wrong phase, by the wrong player or
    out of sequence. The ledger is left unchanged."""


class ArithmeticFailure(GoFishError):
    """Raised when a cryptographic computation is impossible or a witness
    does not verify. Fatal for the game session."""


class DesyncDetected(GoFishError):
    """Raised when a local hand or score mirror disagrees with the ledger.

    Attributes:
        player (int): player whose mirror is out of sync
        expected: local mirror value
        actual: value read from the ledger
    """

    def __init__(self, player, expected, actual):
        super().__init__(
            "mirror of player %d out of sync: local=%s ledger=%s"
            % (player, expected, actual))
        self.player = player
        self.expected = expected
        self.actual = actual
