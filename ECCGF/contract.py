# ! /usr/bin/env python
# -*- coding: utf-8 -*-
# ===================================================================
# contract.py
#
# @desc: Authoritative Go Fish host. One contract object per player
#        holds that player's secret provider; every call checks the
#        phase and the caller, works on a copy of the game and
#        returns the result together with a new ledger.
# ===================================================================
import logging

from ECCGF.cards import BOOK_SIZE, RANK_COUNT, card_rank, rank_name
from ECCGF.errors import ProtocolViolation
from ECCGF.gameset import (PLAYERS, GameSet, PendingReveal, hand_owner,
                            opponent)
from ECCGF.ledger import CallResult, check_game_id
from ECCGF.phases import GamePhase, PhaseState, require_phase

logger = logging.getLogger(__name__)

DEFAULT_HAND_SIZE = 7


class GoFishContract:
    """Contract calls and queries as seen by one player.

    Attributes:
        toolbox (Toolbox): masking and unmasking functions
        secrets (SecretProvider): secrets of the player
        player (int): player owning this contract, 1 or 2
        hand_size (int): cards dealt to each player
        shuffle (bool): permute the deck while masking
    """
    def __init__(self, toolbox, provider, hand_size=DEFAULT_HAND_SIZE,
                 shuffle=True):
        """
        Args:
            toolbox (Toolbox): masking and unmasking functions
            provider (SecretProvider): secrets of the player
            hand_size (int): cards dealt to each player
            shuffle (bool): permute the deck while masking
        """
        self.toolbox = toolbox
        self.secrets = provider
        self.player = provider.player
        self.hand_size = hand_size
        self.shuffle = shuffle

    def _trace(self, call, *args):
        logger.debug("[P%d] %s(%s)", self.player, call,
                     ", ".join(str(a) for a in args))

    def _require_self(self, call, player):
        if player != self.player:
            raise ProtocolViolation(
                "%s for player %s must be called by that player, not by "
                "player %d" % (call, player, self.player))

    def _require_opponent_of(self, call, player):
        if player not in PLAYERS or self.player != opponent(player):
            raise ProtocolViolation(
                "%s for player %s must be called by the opponent"
                % (call, player))

    @staticmethod
    def _require_rank(rank):
        if not 0 <= rank < RANK_COUNT:
            raise ProtocolViolation("rank %s does not exist" % rank)

    @staticmethod
    def _require_player(player):
        if player not in PLAYERS:
            raise ProtocolViolation("player %s does not exist" % player)

    @staticmethod
    def _require_card(game, card):
        if not 0 <= card < game.cards_no:
            raise ProtocolViolation("card %s does not exist" % card)

    def _reveal_top(self, game, player):
        """Remove own mask layer from the next undrawn position and queue
        the result for player.

        Returns:
            ShortPoint: point masked only by player's key
        """
        position = game.top_index + len(game.pending)
        if position >= game.cards_no:
            raise ProtocolViolation("deck is exhausted")
        key = self.secrets.secret_key(self.player)
        point = self.toolbox.dec_partial(game.cards_shuffled[position], key,
                                         self.secrets)
        game.pending.append(PendingReveal(position, player, point))
        return point

    # setup -------------------------------------------------------------------
    def apply_mask(self, ledger, game_id, player):
        """Mask (and shuffle) the deck with the player's key. The first
        mask creates the game.

        Returns:
            CallResult: None, new ledger
        """
        self._trace("apply_mask", player)
        self._require_self("apply_mask", player)
        check_game_id(game_id)
        if game_id in ledger:
            game = ledger.get(game_id).copy()
        else:
            game = GameSet(game_id, self.toolbox.cards_raw, self.hand_size)
            logger.info("created game %s", game_id.hex()[:16])
        require_phase("apply_mask", game.phase)
        if game.mask_applied[player - 1]:
            raise ProtocolViolation("player %d already masked the deck"
                                    % player)

        key = self.secrets.secret_key(player)
        seed = self.secrets.shuffle_seed(player) if self.shuffle else None
        game.cards_shuffled = self.toolbox.mask_and_shuffle(
            game.cards_shuffled, key, seed, self.secrets)
        game.mask_applied[player - 1] = True
        logger.info("player %d masked the deck", player)
        return CallResult(None, ledger.replace(game))

    def deal_cards(self, ledger, game_id, player):
        """Opponent side of dealing: remove own layer from the next
        hand_size positions for player.

        Returns:
            CallResult: list of half decrypted points in deal order,
            new ledger
        """
        self._trace("deal_cards", player)
        self._require_opponent_of("deal_cards", player)
        game = ledger.get(game_id)
        require_phase("deal_cards", game.phase)
        if not game.both_masked():
            raise ProtocolViolation("deck is not masked by both players")
        if game.cards_dealt[player - 1] or game.hand(player):
            raise ProtocolViolation("player %d was already dealt" % player)
        if game.pending:
            raise ProtocolViolation("another reveal is still pending")

        game = game.copy()
        points = [self._reveal_top(game, player)
                  for _ in range(game.hand_size)]
        return CallResult(points, ledger.replace(game))

    # reveal ------------------------------------------------------------------
    def partial_decryption(self, ledger, game_id, point, player):
        """Drawing player's side of a reveal: remove own layer from the
        next pending point, record the card and advance the deck.

        Returns:
            CallResult: canonical card point, new ledger
        """
        self._trace("partial_decryption", player)
        self._require_self("partial_decryption", player)
        game = ledger.get(game_id)
        require_phase("partial_decryption", game.phase)
        if not game.both_masked():
            raise ProtocolViolation("deck is not masked by both players")
        if not game.pending:
            raise ProtocolViolation("no card is waiting to be revealed")
        head = game.pending[0]
        if head.player != player:
            raise ProtocolViolation("next reveal belongs to player %d"
                                    % head.player)
        if head.point != point:
            raise ProtocolViolation("point is not the next card to reveal")

        key = self.secrets.secret_key(player)
        canonical = self.toolbox.dec_partial(point, key, self.secrets)
        card = self.toolbox.dec_index_raw_card(canonical)

        game = game.copy()
        game.pending.pop(0)
        game.give(card, player)
        game.top_index += 1
        game.last_drawn_card = card

        if (game.phase.kind is GamePhase.SETUP
                and not game.pending_for(player)
                and len(game.hand(player)) == game.hand_size):
            game.cards_dealt[player - 1] = True
            if all(game.cards_dealt):
                game.phase = PhaseState.turn_start()
                game.current_turn = 1
                logger.info("deal complete, player 1 starts")
        return CallResult(canonical, ledger.replace(game))

    def get_card_from_point(self, point):
        """Card index of a fully unmasked point."""
        return self.toolbox.dec_index_raw_card(point)

    # turn --------------------------------------------------------------------
    def ask_for_card(self, ledger, game_id, player, rank):
        """Ask the opponent for all cards of rank.

        Returns:
            CallResult: None, new ledger
        """
        self._trace("ask_for_card", player, rank_name(rank))
        self._require_self("ask_for_card", player)
        game = ledger.get(game_id)
        require_phase("ask_for_card", game.phase)
        if player != game.current_turn:
            raise ProtocolViolation("it is not player %d's turn" % player)
        self._require_rank(rank)
        if game.rank_count(player, rank) == 0:
            raise ProtocolViolation("player %d holds no %s"
                                    % (player, rank_name(rank)))

        game = game.copy()
        game.phase = PhaseState.wait_for_response(rank, player)
        return CallResult(None, ledger.replace(game))

    def respond_to_ask(self, ledger, game_id, player):
        """Hand over all cards of the asked rank, or send the asker
        fishing.

        Returns:
            CallResult: (had cards, number transferred), new ledger
        """
        self._trace("respond_to_ask", player)
        self._require_self("respond_to_ask", player)
        game = ledger.get(game_id)
        require_phase("respond_to_ask", game.phase)
        asker, rank = game.phase.asker, game.phase.rank
        if player != opponent(asker):
            raise ProtocolViolation("player %d was not asked" % player)

        game = game.copy()
        cards = [c for c in game.hand(player) if card_rank(c) == rank]
        for card in cards:
            game.give(card, asker)
        if cards:
            game.phase = PhaseState.turn_start()
        else:
            game.phase = PhaseState.wait_for_draw(rank, asker)
        return CallResult((bool(cards), len(cards)), ledger.replace(game))

    def go_fish(self, ledger, game_id, player):
        """Opponent side of a draw for player, after a failed ask or for
        an empty hand at the start of the turn.

        Returns:
            CallResult: half decrypted point, new ledger
        """
        self._trace("go_fish", player)
        self._require_opponent_of("go_fish", player)
        game = ledger.get(game_id)
        require_phase("go_fish", game.phase)
        if game.phase.kind is GamePhase.WAIT_FOR_DRAW:
            if game.phase.asker != player:
                raise ProtocolViolation("player %d did not ask" % player)
            rank = game.phase.rank
        else:
            if game.current_turn != player:
                raise ProtocolViolation("it is not player %d's turn"
                                        % player)
            if game.hand(player):
                raise ProtocolViolation(
                    "player %d has cards and must ask first" % player)
            rank = None
        if game.is_deck_exhausted():
            raise ProtocolViolation("deck is exhausted")

        game = game.copy()
        point = self._reveal_top(game, player)
        game.phase = PhaseState.wait_for_draw_check(rank, player)
        return CallResult(point, ledger.replace(game))

    def after_go_fish(self, ledger, game_id, player, matched):
        """Report whether the drawn card has the asked rank. The report
        is checked against the revealed card; the turn is kept on a
        match and passed otherwise.

        Returns:
            CallResult: matched, new ledger
        """
        self._trace("after_go_fish", player, matched)
        self._require_self("after_go_fish", player)
        game = ledger.get(game_id)
        require_phase("after_go_fish", game.phase)
        if game.phase.asker != player:
            raise ProtocolViolation("player %d is not drawing" % player)
        if game.pending:
            raise ProtocolViolation("drawn card is not revealed yet")
        actual = (game.phase.rank is not None
                  and card_rank(game.last_drawn_card) == game.phase.rank)
        if bool(matched) != actual:
            raise ProtocolViolation("reported match disagrees with the draw")

        game = game.copy()
        game.phase = PhaseState.turn_start()
        if not actual:
            game.current_turn = opponent(player)
        return CallResult(actual, ledger.replace(game))

    def switch_turn(self, ledger, game_id, player):
        """Pass the turn when nothing can be drawn.

        Returns:
            CallResult: None, new ledger
        """
        self._trace("switch_turn", player)
        self._require_self("switch_turn", player)
        game = ledger.get(game_id)
        require_phase("switch_turn", game.phase)
        if game.phase.kind is GamePhase.TURN_START:
            if player != game.current_turn:
                raise ProtocolViolation("it is not player %d's turn"
                                        % player)
            if game.hand(player) or not game.is_deck_exhausted():
                raise ProtocolViolation(
                    "turn can only be passed with an empty hand and deck")
        else:
            if game.phase.asker != player:
                raise ProtocolViolation("player %d did not ask" % player)
            if not game.is_deck_exhausted():
                raise ProtocolViolation("deck still has cards, go fish")

        game = game.copy()
        game.phase = PhaseState.turn_start()
        game.current_turn = opponent(player)
        return CallResult(None, ledger.replace(game))

    # scoring -----------------------------------------------------------------
    def check_and_score_book(self, ledger, game_id, player, rank):
        """Score rank for player if all 4 cards of it are in the hand.

        Returns:
            CallResult: True if a book was scored, new ledger
        """
        self._trace("check_and_score_book", player, rank_name(rank))
        self._require_self("check_and_score_book", player)
        game = ledger.get(game_id)
        require_phase("check_and_score_book", game.phase)
        self._require_rank(rank)
        if (rank in game.books[player - 1]
                or game.rank_count(player, rank) != BOOK_SIZE):
            return CallResult(False, ledger)

        game = game.copy()
        game.score_book(player, rank)
        logger.info("player %d scored a book of %s", player, rank_name(rank))
        return CallResult(True, ledger.replace(game))

    def check_and_end_game(self, ledger, game_id):
        """End the game when all books are scored, or when the deck is
        exhausted and a hand is empty.

        Returns:
            CallResult: True if the game is over now, new ledger
        """
        self._trace("check_and_end_game")
        game = ledger.get(game_id)
        require_phase("check_and_end_game", game.phase)
        over = game.total_books() == RANK_COUNT or (
            game.is_deck_exhausted() and 0 in game.hand_sizes())
        if not over:
            return CallResult(False, ledger)

        game = game.copy()
        game.phase = PhaseState.game_over()
        logger.info("game over, scores %s", game.scores())
        return CallResult(True, ledger.replace(game))

    # queries -----------------------------------------------------------------
    @staticmethod
    def does_game_exist(ledger, game_id):
        return game_id in ledger

    @staticmethod
    def get_game_phase(ledger, game_id):
        return ledger.get(game_id).phase.kind

    @staticmethod
    def get_current_turn(ledger, game_id):
        return ledger.get(game_id).current_turn

    @staticmethod
    def get_scores(ledger, game_id):
        return ledger.get(game_id).scores()

    @staticmethod
    def get_hand_sizes(ledger, game_id):
        return ledger.get(game_id).hand_sizes()

    @staticmethod
    def does_player_have_card(ledger, game_id, player, rank):
        return GoFishContract.count_cards_of_rank(ledger, game_id, player,
                                                  rank) > 0

    @staticmethod
    def count_cards_of_rank(ledger, game_id, player, rank):
        game = ledger.get(game_id)
        GoFishContract._require_player(player)
        GoFishContract._require_rank(rank)
        return game.rank_count(player, rank)

    @staticmethod
    def does_player_have_specific_card(ledger, game_id, player, card):
        game = ledger.get(game_id)
        GoFishContract._require_player(player)
        GoFishContract._require_card(game, card)
        return game.cards_owner[card] == hand_owner(player)

    @staticmethod
    def get_deck_size(ledger, game_id):
        return ledger.get(game_id).cards_no

    @staticmethod
    def get_top_card_index(ledger, game_id):
        return ledger.get(game_id).top_index

    @staticmethod
    def is_deck_empty(ledger, game_id):
        return ledger.get(game_id).is_deck_exhausted()

    @staticmethod
    def is_game_over(ledger, game_id):
        return ledger.get(game_id).phase.kind is GamePhase.GAME_OVER

    @staticmethod
    def has_mask_applied(ledger, game_id, player):
        game = ledger.get(game_id)
        GoFishContract._require_player(player)
        return game.mask_applied[player - 1]

    @staticmethod
    def get_cards_dealt(ledger, game_id, player):
        game = ledger.get(game_id)
        GoFishContract._require_player(player)
        return game.cards_dealt[player - 1]

    @staticmethod
    def get_last_asked_rank(ledger, game_id):
        """Rank of the outstanding request, None outside of one."""
        return ledger.get(game_id).phase.rank

    @staticmethod
    def get_last_asking_player(ledger, game_id):
        return ledger.get(game_id).phase.asker
