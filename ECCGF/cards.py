# ! /usr/bin/env python
# -*- coding: utf-8 -*-
# ===================================================================
# cards.py
#
# @desc: Card indices 0 to 51 of a standard deck. The rank of a card
#        is index % 13 (Ace to King), the suit is index // 13.
# ===================================================================
DECK_SIZE = 52
RANK_COUNT = 13
SUIT_COUNT = 4
BOOK_SIZE = 4

RANK_NAMES = ["A", "2", "3", "4", "5", "6", "7", "8", "9", "10", "J", "Q",
              "K"]
SUIT_NAMES = ["♠", "♥", "♦", "♣"]


def card_rank(card):
    return card % RANK_COUNT


def card_suit(card):
    return card // RANK_COUNT


def rank_name(rank):
    if 0 <= rank < RANK_COUNT:
        return RANK_NAMES[rank]
    return "?"


def format_card(card):
    return rank_name(card_rank(card)) + SUIT_NAMES[card_suit(card)]


def format_hand(hand):
    """Hand grouped by rank, e.g. "[A: A♠ A♥] [6: 6♠]"

    Args:
        hand (Iterable[int]): card indices

    Returns:
        str: readable hand, "(empty)" for no cards
    """
    grouped = group_by_rank(hand)
    if not grouped:
        return "(empty)"
    return " ".join(
        "[%s: %s]" % (rank_name(rank), " ".join(format_card(c) for c in cards))
        for rank, cards in sorted(grouped.items()))


def group_by_rank(hand):
    """Map rank -> cards of that rank, cards in input order."""
    grouped = {}
    for card in hand:
        grouped.setdefault(card_rank(card), []).append(card)
    return grouped


def parse_rank(text):
    """Parse a rank name such as 'K' or '10' into its index

    Args:
        text (str): rank name, case and surrounding blanks are ignored

    Returns:
        int: rank index 0 to 12

    Raises:
        ValueError: if text names no rank
    """
    name = text.strip().upper()
    if name not in RANK_NAMES:
        raise ValueError("unknown rank: %r" % text)
    return RANK_NAMES.index(name)
