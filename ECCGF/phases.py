# ! /usr/bin/env python
# -*- coding: utf-8 -*-
# ===================================================================
# phases.py
#
# @desc: Phases of a Go Fish game and the requests they carry. A
#        pending ask or draw lives inside the phase value itself, so
#        leaving the phase drops the request with it.
# ===================================================================
from collections import namedtuple
from enum import Enum

from ECCGF.errors import ProtocolViolation


class GamePhase(Enum):
    SETUP = 0
    TURN_START = 1
    WAIT_FOR_RESPONSE = 2
    WAIT_FOR_TRANSFER = 3
    WAIT_FOR_DRAW = 4
    WAIT_FOR_DRAW_CHECK = 5
    GAME_OVER = 6


PHASE_NAMES = {
    GamePhase.SETUP: "Setup",
    GamePhase.TURN_START: "Turn Start",
    GamePhase.WAIT_FOR_RESPONSE: "Waiting for Response",
    GamePhase.WAIT_FOR_TRANSFER: "Transferring Cards",
    GamePhase.WAIT_FOR_DRAW: "Go Fish - Draw",
    GamePhase.WAIT_FOR_DRAW_CHECK: "Checking Draw",
    GamePhase.GAME_OVER: "Game Over",
}

# phases whose value carries the asking player
_REQUEST_PHASES = frozenset([
    GamePhase.WAIT_FOR_RESPONSE,
    GamePhase.WAIT_FOR_TRANSFER,
    GamePhase.WAIT_FOR_DRAW,
    GamePhase.WAIT_FOR_DRAW_CHECK,
])

# source phases from which each contract call may be made
PHASE_TABLE = {
    "apply_mask": frozenset([GamePhase.SETUP]),
    "deal_cards": frozenset([GamePhase.SETUP]),
    "partial_decryption": frozenset([GamePhase.SETUP,
                                     GamePhase.WAIT_FOR_DRAW_CHECK]),
    "ask_for_card": frozenset([GamePhase.TURN_START]),
    "respond_to_ask": frozenset([GamePhase.WAIT_FOR_RESPONSE]),
    "go_fish": frozenset([GamePhase.WAIT_FOR_DRAW, GamePhase.TURN_START]),
    "after_go_fish": frozenset([GamePhase.WAIT_FOR_DRAW_CHECK]),
    "switch_turn": frozenset([GamePhase.TURN_START,
                              GamePhase.WAIT_FOR_DRAW]),
    "check_and_score_book": frozenset([GamePhase.TURN_START]),
    "check_and_end_game": frozenset([GamePhase.TURN_START]),
}


class PhaseState(namedtuple("PhaseState", ["kind", "rank", "asker"])):
    """Current phase with the request it carries.

    Attributes:
        kind (GamePhase): phase
        rank (int): asked rank, None outside of a request and for a draw
            made because the hand was empty
        asker (int): player who asked or draws, None outside of a request
    """
    __slots__ = ()

    def __new__(cls, kind, rank=None, asker=None):
        if kind in _REQUEST_PHASES:
            if asker not in (1, 2):
                raise ValueError("%s needs the asking player" % kind.name)
            if rank is None and kind is not GamePhase.WAIT_FOR_DRAW_CHECK:
                raise ValueError("%s needs the asked rank" % kind.name)
        elif rank is not None or asker is not None:
            raise ValueError("%s carries no request" % kind.name)
        return super().__new__(cls, kind, rank, asker)

    @classmethod
    def setup(cls):
        return cls(GamePhase.SETUP)

    @classmethod
    def turn_start(cls):
        return cls(GamePhase.TURN_START)

    @classmethod
    def wait_for_response(cls, rank, asker):
        return cls(GamePhase.WAIT_FOR_RESPONSE, rank, asker)

    @classmethod
    def wait_for_draw(cls, rank, asker):
        return cls(GamePhase.WAIT_FOR_DRAW, rank, asker)

    @classmethod
    def wait_for_draw_check(cls, rank, asker):
        return cls(GamePhase.WAIT_FOR_DRAW_CHECK, rank, asker)

    @classmethod
    def game_over(cls):
        return cls(GamePhase.GAME_OVER)

    @property
    def name(self):
        return PHASE_NAMES[self.kind]


def require_phase(call, phase):
    """Check that call is legal from phase

    Args:
        call (str): contract call name, key of PHASE_TABLE
        phase (PhaseState): current phase of the game

    Raises:
        ProtocolViolation: if the call is not allowed in this phase
    """
    if phase.kind not in PHASE_TABLE[call]:
        raise ProtocolViolation("%s is not allowed in phase %s"
                                % (call, phase.name))
