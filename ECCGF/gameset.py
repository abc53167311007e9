# ! /usr/bin/env python
# -*- coding: utf-8 -*-
# ===================================================================
# gameset.py
#
# @desc: Authoritative state of one Go Fish game: masked deck, card
#        ownership, books, phase and turn.
# ===================================================================
from copy import deepcopy

from ECCGF.cards import BOOK_SIZE, DECK_SIZE, card_rank
from ECCGF.phases import PhaseState

PLAYERS = (1, 2)


def opponent(player):
    return 2 if player == 1 else 1


def hand_owner(player):
    return "P%d" % player


def book_owner(player):
    return "B%d" % player


class PendingReveal:
    """A deck position whose opponent layer has been removed.

    Attributes:
        position (int): deck position
        player (int): player the card is revealed to
        point (ShortPoint): point still masked with the player's key
    """
    __slots__ = ("position", "player", "point")

    def __init__(self, position, player, point):
        self.position = position
        self.player = player
        self.point = point


class GameSet:
    """Game information and cards

    Attributes:
        game_id (bytes): 32 byte identifier of the game
        cards_no (int): number of total game cards
        hand_size (int): cards dealt to each player
        cards_shuffled (List[ShortPoint]): deck masked by the players so far
        top_index (int): number of deck positions drawn
        mask_applied (List[bool]): mask flag per player
        cards_dealt (List[bool]): deal completed flag per player
        cards_owner (List[str]): for each card index None while in the deck,
            "P1"/"P2" while in a hand, "B1"/"B2" once scored in a book
        books (List[List[int]]): scored ranks per player
        phase (PhaseState): current phase with its pending request
        current_turn (int): player to act
        pending (List[PendingReveal]): half decrypted positions in order
        last_drawn_card (int): card revealed by the last completed draw
    """

    def __init__(self, game_id, cards_raw, hand_size):
        """
        Args:
            game_id (bytes): 32 byte identifier
            cards_raw (List[ShortPoint]): canonical card points
            hand_size (int): number of cards dealt per player
        """
        self.game_id = game_id
        self.cards_no = DECK_SIZE
        self.hand_size = hand_size

        self.cards_shuffled = list(cards_raw)
        self.top_index = 0

        self.mask_applied = [False, False]
        self.cards_dealt = [False, False]

        self.cards_owner = [None] * DECK_SIZE
        self.books = [[], []]

        self.phase = PhaseState.setup()
        self.current_turn = 1

        self.pending = []
        self.last_drawn_card = None

    def copy(self):
        return deepcopy(self)

    def hand(self, player):
        owner = hand_owner(player)
        return [c for c, o in enumerate(self.cards_owner) if o == owner]

    def hand_sizes(self):
        return [len(self.hand(p)) for p in PLAYERS]

    def rank_count(self, player, rank):
        return sum(1 for c in self.hand(player) if card_rank(c) == rank)

    def scores(self):
        return [len(self.books[p - 1]) for p in PLAYERS]

    def total_books(self):
        return sum(self.scores())

    def deck_remaining(self):
        return self.cards_no - self.top_index

    def is_deck_exhausted(self):
        return self.top_index >= self.cards_no

    def both_masked(self):
        return all(self.mask_applied)

    def pending_for(self, player):
        return [r for r in self.pending if r.player == player]

    def give(self, card, player):
        self.cards_owner[card] = hand_owner(player)

    def score_book(self, player, rank):
        """Move the 4 cards of rank from the hand of player into a book."""
        owner = hand_owner(player)
        for card in range(rank, self.cards_no, 13):
            if self.cards_owner[card] == owner:
                self.cards_owner[card] = book_owner(player)
        self.books[player - 1].append(rank)

    def check_partition(self):
        """Every card is in exactly one hand, the deck or a book.

        Returns:
            bool: True if hands + books + undrawn deck account for all cards
        """
        held = sum(1 for o in self.cards_owner if o is not None)
        booked = sum(1 for o in self.cards_owner if o and o[0] == "B")
        return (held + self.deck_remaining() == self.cards_no
                and booked == BOOK_SIZE * self.total_books())
