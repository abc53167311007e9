# ! /usr/bin/env python
# -*- coding: utf-8 -*-
# ===================================================================
# gofish.py
#
# @desc: Go Fish between two local players on top of the mental card
#        contract. GoFishGame owns the ledger, threads it through one
#        contract call at a time and keeps hand and score mirrors
#        that are rebuilt from the ledger after each action.
# ===================================================================
from collections import deque
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import List, Optional
import logging

from ECCGF.cards import (BOOK_SIZE, DECK_SIZE, card_rank, format_card,
                         group_by_rank, rank_name)
from ECCGF.config import Config
from ECCGF.contract import GoFishContract
from ECCGF.eccwrapper import Fastecdsa
from ECCGF.errors import ArithmeticFailure, DesyncDetected, ProtocolViolation
from ECCGF.gameset import PLAYERS, opponent
from ECCGF.ledger import GAME_ID_SIZE, Ledger
from ECCGF.phases import PHASE_NAMES, GamePhase
from ECCGF.secret_provider import RandomSecretProvider
from ECCGF.toolbox import Toolbox

logger = logging.getLogger(__name__)


class InputMode(Enum):
    NONE = auto()
    SELECT_RANK = auto()
    CONFIRM_ASK = auto()


@dataclass
class TurnResult:
    """Consolidated outcome of one action for the display."""
    player: int
    message: str
    asked_rank: Optional[int] = None
    transferred: int = 0
    drawn_card: Optional[int] = None
    matched: bool = False
    books_scored: List[int] = field(default_factory=list)
    turn_passed: bool = False
    game_over: bool = False
    error: Optional[str] = None


def choose_rank(hand):
    """Ask for the rank held most often, the lowest one on ties

    Args:
        hand (List[int]): card indices of the player

    Returns:
        int: rank to ask for

    Raises:
        ValueError: if the hand is empty
    """
    grouped = group_by_rank(hand)
    if not grouped:
        raise ValueError("cannot choose a rank from an empty hand")
    return max(sorted(grouped), key=lambda rank: len(grouped[rank]))


class GoFishGame:
    """Drive one game between two local players.

    Attributes:
        config (Config): game and logging configuration
        toolbox (Toolbox): masking functions shared by both contracts
        contracts (Dict[int, GoFishContract]): contract per player, each
            holding only that player's secrets
        game_id (bytes): 32 byte identifier of the game
        ledger (Ledger): current snapshot, replaced after every call
        hands (Dict[int, List[int]]): local hand mirror per player
        scores (Dict[int, int]): local book count per player
        actions (deque): recent contract calls for display
        input_mode (InputMode): state of the rank selection
        available_ranks (List[int]): ranks the player to act may ask for
        selected_rank (int): rank waiting for confirmation
        failure (ArithmeticFailure): set once the session is lost
    """
    def __init__(self, config=None, providers=None, game_id=None,
                 ledger=None):
        """
        Args:
            config (Config): configuration, defaults if None
            providers (Mapping[int, SecretProvider]): secrets per seat,
                fresh random secrets if None
            game_id (bytes): game identifier, random if None
            ledger (Ledger): existing snapshot, empty if None
        """
        self.config = config or Config()
        game_config = self.config.game
        curve = Fastecdsa.by_name(game_config.curve)
        self.toolbox = Toolbox(curve)

        if providers is None:
            providers = {p: RandomSecretProvider(curve, p) for p in PLAYERS}
        for player in PLAYERS:
            if providers[player].player != player:
                raise ValueError(
                    "provider for seat %d belongs to player %s"
                    % (player, providers[player].player))
        self.contracts = {
            p: GoFishContract(self.toolbox, providers[p],
                              game_config.hand_size, game_config.shuffle)
            for p in PLAYERS}

        if game_id is None:
            game_id = curve.rand_gen.get_random_bytes(GAME_ID_SIZE)
        self.game_id = game_id
        self.ledger = ledger if ledger is not None else Ledger()

        self.hands = {p: [] for p in PLAYERS}
        self.scores = {p: 0 for p in PLAYERS}
        self.actions = deque(maxlen=game_config.action_log_size)
        self.input_mode = InputMode.NONE
        self.available_ranks = []
        self.selected_rank = None
        self.failure = None

    # contract plumbing -------------------------------------------------------
    def _check_alive(self):
        if self.failure is not None:
            raise self.failure

    def _call(self, player, call, *args, label=""):
        """Run one contract call as player and adopt the new ledger

        Returns:
            result of the call
        """
        self._check_alive()
        entry = "[P%d] %s(%s)" % (player, call, label)
        self.actions.append(entry)
        logger.debug(entry)
        try:
            result = getattr(self.contracts[player], call)(
                self.ledger, self.game_id, *args)
        except ArithmeticFailure as exc:
            logger.error("arithmetic failure in %s, game session is lost: "
                         "%s", call, exc)
            self.failure = exc
            raise
        self.ledger = result.ledger
        return result.result

    def _query(self, query, *args):
        return getattr(GoFishContract, query)(self.ledger, self.game_id,
                                              *args)

    def _reveal(self, player, point):
        canonical = self._call(player, "partial_decryption", point, player)
        return self.contracts[player].get_card_from_point(canonical)

    def _draw(self, player):
        point = self._call(opponent(player), "go_fish", player)
        card = self._reveal(player, point)
        self.hands[player].append(card)
        return card

    def _probe_hand(self, player):
        return [card for card in range(DECK_SIZE)
                if self._query("does_player_have_specific_card", player,
                               card)]

    def _score_books(self, player):
        scored = []
        grouped = group_by_rank(self._probe_hand(player))
        for rank, cards in sorted(grouped.items()):
            if len(cards) != BOOK_SIZE:
                continue
            if self._call(player, "check_and_score_book", player, rank,
                          label=rank_name(rank)):
                scored.append(rank)
                self.hands[player] = [c for c in self.hands[player]
                                      if card_rank(c) != rank]
                self.scores[player] += 1
        return scored

    def _check_end(self):
        if self._query("get_game_phase") is not GamePhase.TURN_START:
            return False
        return self._call(1, "check_and_end_game")

    # mirrors -----------------------------------------------------------------
    def verify_mirrors(self):
        """Compare hand and score mirrors with the ledger

        Raises:
            DesyncDetected: on the first mirror that differs
        """
        scores = self._query("get_scores")
        for player in PLAYERS:
            actual = self._probe_hand(player)
            if sorted(self.hands[player]) != actual:
                raise DesyncDetected(player, sorted(self.hands[player]),
                                     actual)
            if self.scores[player] != scores[player - 1]:
                raise DesyncDetected(player, self.scores[player],
                                     scores[player - 1])

    def resync(self):
        """Rebuild hand and score mirrors from the ledger, logging a
        desync if one was found."""
        try:
            self.verify_mirrors()
        except DesyncDetected as exc:
            logger.warning("%s, rebuilding mirrors from the ledger", exc)
        scores = self._query("get_scores")
        for player in PLAYERS:
            self.hands[player] = self._probe_hand(player)
            self.scores[player] = scores[player - 1]

    # queries for the display -------------------------------------------------
    @property
    def exists(self):
        return GoFishContract.does_game_exist(self.ledger, self.game_id)

    @property
    def current_turn(self):
        return self._query("get_current_turn") if self.exists else 1

    @property
    def phase(self):
        if not self.exists:
            return GamePhase.SETUP
        return self._query("get_game_phase")

    def phase_name(self):
        return PHASE_NAMES[self.phase]

    def hand(self, player):
        return sorted(self.hands[player])

    def score(self, player):
        return self.scores[player]

    def deck_remaining(self):
        if not self.exists:
            return DECK_SIZE
        return (self._query("get_deck_size")
                - self._query("get_top_card_index"))

    def recent_actions(self):
        return list(self.actions)

    def is_over(self):
        return self.phase is GamePhase.GAME_OVER

    def winner(self):
        """Player with more books, None on a tie."""
        if self.scores[1] == self.scores[2]:
            return None
        return 1 if self.scores[1] > self.scores[2] else 2

    # setup actions -----------------------------------------------------------
    def shuffle(self):
        """Both players mask and shuffle the deck, the first mask creates
        the game

        Returns:
            TurnResult: confirmation message
        """
        for player in PLAYERS:
            self._call(player, "apply_mask", player)
        return TurnResult(player=1,
                          message="Deck masked and shuffled by both players.")

    def deal(self):
        """Deal a hand to each player, score books held from the start
        and sync the mirrors

        Returns:
            TurnResult: starting player and initial books

        Raises:
            ProtocolViolation: if the deal did not start the game
        """
        for player in PLAYERS:
            points = self._call(opponent(player), "deal_cards", player)
            for point in points:
                self.hands[player].append(self._reveal(player, point))
        if self._query("get_game_phase") is not GamePhase.TURN_START:
            raise ProtocolViolation("deal did not start the game")

        books = {player: self._score_books(player) for player in PLAYERS}
        self.resync()
        message = "Game ready! Player %d goes first." % self.current_turn
        scored = ["P%d: %s" % (p, ", ".join(rank_name(r) for r in ranks))
                  for p, ranks in books.items() if ranks]
        if scored:
            message += " Books: %s." % "; ".join(scored)
        logger.info("dealt %s", self._query("get_hand_sizes"))
        return TurnResult(player=self.current_turn, message=message,
                          books_scored=books[1] + books[2])

    # turn actions ------------------------------------------------------------
    def prepare_turn(self):
        """Start the turn of the current player: draw or pass for an
        empty hand, otherwise enter rank selection

        Returns:
            TurnResult: outcome, game_over set once the game has ended

        Raises:
            ProtocolViolation: if the game is stuck outside Turn Start
        """
        self._check_alive()
        phase = self._query("get_game_phase")
        player = self._query("get_current_turn")
        if phase is GamePhase.GAME_OVER:
            self.input_mode = InputMode.NONE
            return self._game_over_result(player)
        if phase is not GamePhase.TURN_START:
            raise ProtocolViolation("cannot start a turn in phase %s"
                                    % PHASE_NAMES[phase])

        self.resync()
        if not self.hands[player]:
            if self.deck_remaining() > 0:
                return self._empty_hand_draw(player)
            if self._check_end():
                return self._game_over_result(player)
            self._call(player, "switch_turn", player)
            return TurnResult(
                player=player,
                message="Player %d has no cards. Player %d's turn."
                % (player, opponent(player)),
                turn_passed=True)

        self.available_ranks = sorted(group_by_rank(self.hands[player]))
        self.selected_rank = None
        self.input_mode = InputMode.SELECT_RANK
        return TurnResult(player=player,
                          message="Player %d, select a rank to ask for:"
                          % player)

    def select_rank(self, rank):
        """Choose the rank to ask for, confirmation follows

        Args:
            rank (int): rank index 0 to 12

        Returns:
            TurnResult: confirmation prompt, or error if the rank is not
            held and the selection stays open
        """
        player = self.current_turn
        if self.input_mode is not InputMode.SELECT_RANK:
            raise ProtocolViolation("no rank selection is in progress")
        if rank not in self.available_ranks:
            return TurnResult(
                player=player,
                message="You hold no %s. Select a rank to ask for:"
                % rank_name(rank),
                asked_rank=rank, error="rank not held")
        self.selected_rank = rank
        self.input_mode = InputMode.CONFIRM_ASK
        return TurnResult(
            player=player,
            message="Ask Player %d for %ss? (confirm/cancel)"
            % (opponent(player), rank_name(rank)),
            asked_rank=rank)

    def cancel(self):
        if self.input_mode is not InputMode.CONFIRM_ASK:
            raise ProtocolViolation("nothing to cancel")
        self.input_mode = InputMode.SELECT_RANK
        self.selected_rank = None
        player = self.current_turn
        return TurnResult(player=player,
                          message="Player %d, select a rank to ask for:"
                          % player)

    def confirm(self):
        if (self.input_mode is not InputMode.CONFIRM_ASK
                or self.selected_rank is None):
            raise ProtocolViolation("no ask to confirm")
        return self.ask(self.selected_rank)

    def ask(self, rank):
        """Run ask, response and, if needed, the draw for the current
        player

        Args:
            rank (int): rank to ask the opponent for

        Returns:
            TurnResult: outcome of the turn. A rejected ask returns to
            rank selection with the error; after the end of the game the
            game over result is returned.

        Raises:
            ProtocolViolation: if the game is not at the start of a turn
        """
        self._check_alive()
        phase = self._query("get_game_phase")
        player = self._query("get_current_turn")
        self.input_mode = InputMode.NONE
        self.selected_rank = None
        if phase is GamePhase.GAME_OVER:
            return self._game_over_result(player)
        if phase is not GamePhase.TURN_START:
            raise ProtocolViolation("cannot ask in phase %s"
                                    % PHASE_NAMES[phase])

        asked = opponent(player)
        try:
            self._call(player, "ask_for_card", player, rank,
                       label=rank_name(rank))
        except ProtocolViolation as exc:
            logger.warning("ask rejected: %s", exc)
            self.available_ranks = sorted(group_by_rank(self.hands[player]))
            self.input_mode = InputMode.SELECT_RANK
            return TurnResult(player=player, message=str(exc),
                              asked_rank=rank, error=str(exc))

        had_cards, count = self._call(asked, "respond_to_ask", asked)
        if had_cards:
            moved = [c for c in self.hands[asked] if card_rank(c) == rank]
            self.hands[asked] = [c for c in self.hands[asked]
                                 if card_rank(c) != rank]
            self.hands[player].extend(moved)
            message = "Player %d had %d %s%s!" % (
                asked, count, rank_name(rank), "s" if count > 1 else "")
            return self._finish(
                TurnResult(player=player, message=message, asked_rank=rank,
                           transferred=count),
                keep_turn=True)

        if self._query("is_deck_empty"):
            self._call(player, "switch_turn", player)
            return self._finish(
                TurnResult(player=player,
                           message="Go fish! The deck is empty, turn "
                                   "switches.",
                           asked_rank=rank, turn_passed=True),
                keep_turn=False)

        card = self._draw(player)
        matched = card_rank(card) == rank
        self._call(player, "after_go_fish", player, matched,
                   label=str(matched))
        message = "Go fish! Player %d has no %ss. Drew %s." % (
            asked, rank_name(rank), format_card(card))
        if matched:
            message += " Lucky, got the %s!" % rank_name(rank)
        return self._finish(
            TurnResult(player=player, message=message, asked_rank=rank,
                       drawn_card=card, matched=matched,
                       turn_passed=not matched),
            keep_turn=matched)

    def _empty_hand_draw(self, player):
        card = self._draw(player)
        self._call(player, "after_go_fish", player, False, label="False")
        return self._finish(
            TurnResult(player=player,
                       message="Player %d had no cards and drew %s."
                       % (player, format_card(card)),
                       drawn_card=card, turn_passed=True),
            keep_turn=False)

    def _finish(self, result, keep_turn):
        result.books_scored = self._score_books(result.player)
        if result.books_scored:
            result.message += " BOOK: %s!" % ", ".join(
                rank_name(r) for r in result.books_scored)
        result.game_over = self._check_end()
        self.resync()
        if result.game_over:
            result.message += " " + self._game_over_result(
                result.player).message
        elif keep_turn:
            result.message += " Player %d goes again!" % result.player
        else:
            result.message += " Player %d's turn." % self.current_turn
        return result

    def _game_over_result(self, player):
        winner = self.winner()
        if winner is None:
            outcome = "It's a tie"
        else:
            outcome = "Player %d wins" % winner
        return TurnResult(
            player=player,
            message="Game over! %s %d-%d." % (outcome, self.scores[1],
                                              self.scores[2]),
            game_over=True)

    # automatic play ----------------------------------------------------------
    def play_turn(self, strategy=choose_rank):
        """Play one turn, asking for the rank chosen by strategy

        Args:
            strategy (Callable[[List[int]], int]): picks a rank from a hand

        Returns:
            TurnResult: outcome of the turn
        """
        result = self.prepare_turn()
        if self.input_mode is not InputMode.SELECT_RANK:
            return result
        self.select_rank(strategy(self.hands[self.current_turn]))
        return self.confirm()

    def autoplay(self, max_turns=1000, strategy=choose_rank, on_turn=None):
        """Set the game up if needed and play until it is over

        Args:
            max_turns (int): turn limit
            strategy (Callable[[List[int]], int]): picks a rank from a hand
            on_turn (Callable[[GoFishGame, TurnResult], None]): called
                after every turn

        Returns:
            List[TurnResult]: results of setup and of every turn
        """
        results = []
        if not self.exists:
            results.append(self.shuffle())
        if self.phase is GamePhase.SETUP:
            results.append(self.deal())
        for _ in range(max_turns):
            if self.is_over():
                break
            result = self.play_turn(strategy)
            results.append(result)
            if on_turn is not None:
                on_turn(self, result)
        if not self.is_over():
            logger.warning("game not finished after %d turns", max_turns)
        return results
