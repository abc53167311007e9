# ! /usr/bin/env python
# -*- coding: utf-8 -*-
# ===================================================================
# ledger.py
#
# @desc: Immutable snapshot of all games, threaded through every
#        contract call. A call returns its result together with the
#        new snapshot; the old one stays valid.
# ===================================================================
from collections import namedtuple
from types import MappingProxyType

from ECCGF.errors import ProtocolViolation

GAME_ID_SIZE = 32

CallResult = namedtuple("CallResult", ["result", "ledger"])


def check_game_id(game_id):
    if not isinstance(game_id, bytes) or len(game_id) != GAME_ID_SIZE:
        raise ProtocolViolation("game id must be %d bytes" % GAME_ID_SIZE)


class Ledger:
    """Map game id -> GameSet. Never mutated, updates return a new ledger.

    Attributes:
        _games (MappingProxyType): read only view of the games
    """
    def __init__(self, games=None):
        """
        Args:
            games (Mapping[bytes, GameSet]): initial games, copied
        """
        self._games = MappingProxyType(dict(games or {}))

    def __contains__(self, game_id):
        return game_id in self._games

    def __iter__(self):
        return iter(self._games)

    def __len__(self):
        return len(self._games)

    def get(self, game_id):
        """Get the game stored under game_id

        Args:
            game_id (bytes): 32 byte identifier

        Returns:
            GameSet: stored game, must not be mutated

        Raises:
            ProtocolViolation: if the id is malformed or unknown
        """
        check_game_id(game_id)
        try:
            return self._games[game_id]
        except KeyError:
            raise ProtocolViolation(
                "unknown game %s" % game_id.hex()[:16]) from None

    def replace(self, game):
        """New ledger with game stored under its id

        Args:
            game (GameSet): game to be stored

        Returns:
            Ledger: new snapshot
        """
        games = dict(self._games)
        games[game.game_id] = game
        return Ledger(games)
