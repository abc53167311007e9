"""
Test/conftest.py

Shared fixtures: a curve and toolbox for the whole session, fixed secrets
for both players and helpers that build games through the contract or
arrange hands and deck order directly.
"""

import sys
from pathlib import Path

import pytest

_project_root = str(Path(__file__).resolve().parent.parent)
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from ECCGF.cards import DECK_SIZE
from ECCGF.contract import GoFishContract
from ECCGF.eccwrapper import Fastecdsa
from ECCGF.gameset import PLAYERS, GameSet, hand_owner, opponent
from ECCGF.ledger import Ledger
from ECCGF.phases import PhaseState
from ECCGF.secret_provider import FixedSecretProvider
from ECCGF.toolbox import Toolbox

KEY_1 = 0x1F2E3D4C5B6A79881726354453627180ABCDEF0123456789
KEY_2 = 0x0DEADBEEFCAFEBABE0123456789ABCDEF0F1E2D3C4B5A6978
SEED_1 = bytes(range(32))
SEED_2 = bytes(range(100, 132))

# Every rank but aces and twos already booked by player 1.
HIGH_BOOKS_P1 = {1: list(range(2, 13))}


def make_game_id(n=1):
    return n.to_bytes(32, "big")


@pytest.fixture(scope="session")
def curve():
    return Fastecdsa.by_name("secp256k1")


@pytest.fixture(scope="session")
def toolbox(curve):
    return Toolbox(curve)


@pytest.fixture(scope="session")
def providers(curve):
    return {
        1: FixedSecretProvider(curve, 1, KEY_1, SEED_1),
        2: FixedSecretProvider(curve, 2, KEY_2, SEED_2),
    }


@pytest.fixture(scope="session")
def contracts(toolbox, providers):
    return {p: GoFishContract(toolbox, providers[p]) for p in PLAYERS}


@pytest.fixture
def game_id():
    return make_game_id()


def mask_both(contracts, ledger, game_id, order=(1, 2)):
    for player in order:
        ledger = contracts[player].apply_mask(ledger, game_id, player).ledger
    return ledger


def deal_player(contracts, ledger, game_id, player):
    """Deal one hand through both reveal steps, return (cards, ledger)."""
    result = contracts[opponent(player)].deal_cards(ledger, game_id, player)
    ledger = result.ledger
    cards = []
    for point in result.result:
        result = contracts[player].partial_decryption(ledger, game_id, point, player)
        ledger = result.ledger
        cards.append(contracts[player].get_card_from_point(result.result))
    return cards, ledger


def started_game(contracts, game_id, ledger=None):
    """Mask, deal 7 each; returns (ledger, {player: cards})."""
    ledger = mask_both(contracts, ledger or Ledger(), game_id)
    hands = {}
    for player in PLAYERS:
        hands[player], ledger = deal_player(contracts, ledger, game_id, player)
    return ledger, hands


def draw(contracts, ledger, game_id, player):
    """go_fish by the opponent and reveal by the player; returns (card, ledger)."""
    result = contracts[opponent(player)].go_fish(ledger, game_id, player)
    result = contracts[player].partial_decryption(result.ledger, game_id, result.result, player)
    return contracts[player].get_card_from_point(result.result), result.ledger


def arranged_game(toolbox, providers, p1_hand, p2_hand, deck=None, turn=1,
                  game_id=None, books=None):
    """Build a started game with chosen hands and undrawn deck order.

    Args:
        p1_hand, p2_hand: card indices held by each player
        deck: undrawn cards from top to bottom, default ascending remainder
        turn: player to act
        books: {player: [ranks]} already scored, their cards out of play
    """
    game_id = game_id or make_game_id()
    books = books or {}
    booked = {c for ranks in books.values() for r in ranks for c in range(r, DECK_SIZE, 13)}
    held = list(p1_hand) + list(p2_hand)
    if deck is None:
        deck = [c for c in range(DECK_SIZE) if c not in set(held) | booked]
    drawn = held + sorted(booked)
    order = drawn + list(deck)
    assert sorted(order) == list(range(DECK_SIZE))

    k1 = providers[1].secret_key(1)
    k2 = providers[2].secret_key(2)
    points = [toolbox.cards_raw[c] for c in order]
    game = GameSet(game_id, toolbox.cards_raw, 7)
    game.cards_shuffled = toolbox.enc_cards(k2, toolbox.enc_cards(k1, points))
    game.top_index = len(drawn)
    game.mask_applied = [True, True]
    game.cards_dealt = [True, True]
    for player, hand in ((1, p1_hand), (2, p2_hand)):
        for card in hand:
            game.cards_owner[card] = hand_owner(player)
    for player, ranks in books.items():
        for rank in ranks:
            for card in range(rank, DECK_SIZE, 13):
                game.cards_owner[card] = "B%d" % player
            game.books[player - 1].append(rank)
    game.phase = PhaseState.turn_start()
    game.current_turn = turn
    return Ledger({game_id: game}), game_id


def fingerprint(ledger, game_id):
    """Everything a call may change, to compare before and after."""
    game = ledger.get(game_id)
    return (
        game.phase,
        game.current_turn,
        game.top_index,
        tuple(game.cards_owner),
        tuple(tuple(b) for b in game.books),
        tuple((r.position, r.player, r.point) for r in game.pending),
        tuple(game.mask_applied),
        tuple(game.cards_dealt),
        tuple(game.cards_shuffled),
    )


def partition_holds(ledger, game_id):
    game = ledger.get(game_id)
    p1, p2 = game.hand(1), game.hand(2)
    booked = [c for c, o in enumerate(game.cards_owner) if o in ("B1", "B2")]
    undrawn = game.deck_remaining()
    return (
        not set(p1) & set(p2)
        and len(p1) + len(p2) + len(booked) + undrawn == DECK_SIZE
        and len(booked) == 4 * game.total_books()
        and game.check_partition()
    )
