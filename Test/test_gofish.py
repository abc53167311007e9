import pytest

from conftest import (HIGH_BOOKS_P1, KEY_2, SEED_2, arranged_game, fingerprint,
                      make_game_id, partition_holds)
from ECCGF.config import Config, GameConfig
from ECCGF.contract import GoFishContract
from ECCGF.errors import ArithmeticFailure, DesyncDetected, ProtocolViolation
from ECCGF.gofish import GoFishGame, InputMode, choose_rank
from ECCGF.phases import GamePhase, PhaseState
from ECCGF.secret_provider import FixedSecretProvider

ACE, KING = 0, 12


class BrokenInverseProvider(FixedSecretProvider):
    def field_inverse(self, x):
        return super().field_inverse(x) + 1


def new_game(providers, **kwargs):
    return GoFishGame(providers=providers, game_id=make_game_id(), **kwargs)


def ready_game(providers, **kwargs):
    game = new_game(providers, **kwargs)
    game.shuffle()
    game.deal()
    return game


def arranged(toolbox, providers, p1, p2, **kwargs):
    ledger, gid = arranged_game(toolbox, providers, p1, p2, **kwargs)
    game = GoFishGame(providers=providers, game_id=gid, ledger=ledger)
    game.resync()
    return game


def test_choose_rank():
    assert choose_rank([5, 0, 13]) == ACE
    assert choose_rank([5, 0]) == ACE
    assert choose_rank([12, 25, 1]) == KING
    with pytest.raises(ValueError):
        choose_rank([])


def test_before_setup(providers):
    game = new_game(providers)
    assert not game.exists
    assert game.phase is GamePhase.SETUP
    assert game.phase_name() == "Setup"
    assert game.deck_remaining() == 52
    assert game.current_turn == 1


def test_providers_must_match_seats(providers):
    with pytest.raises(ValueError):
        GoFishGame(providers={1: providers[2], 2: providers[1]})


def test_shuffle_and_deal(providers):
    game = ready_game(providers)
    assert game.phase is GamePhase.TURN_START
    assert game.deck_remaining() == 38
    for player in (1, 2):
        assert len(game.hand(player)) + 4 * game.score(player) == 7
    assert not set(game.hand(1)) & set(game.hand(2))
    game.verify_mirrors()
    assert partition_holds(game.ledger, game.game_id)


def test_deal_without_shuffle_is_in_deck_order(providers):
    config = Config(game=GameConfig(shuffle=False))
    game = ready_game(providers, config=config)
    assert game.hand(1) == list(range(7))
    assert game.hand(2) == list(range(7, 14))


def test_action_log_is_bounded(providers):
    config = Config(game=GameConfig(action_log_size=5))
    game = ready_game(providers, config=config)
    actions = game.recent_actions()
    assert len(actions) == 5
    assert actions[-1].startswith("[P")


def test_autoplay_reaches_game_over(providers):
    game = new_game(providers)
    checked = []

    def check(g, result):
        assert partition_holds(g.ledger, g.game_id)
        assert g.ledger.get(g.game_id).total_books() <= 13
        g.verify_mirrors()
        checked.append(result)

    results = game.autoplay(on_turn=check)
    assert game.is_over()
    assert checked
    assert sum(1 for r in checked if r.game_over) == 1
    assert checked[-1].game_over
    assert game.score(1) + game.score(2) <= 13
    game_set = game.ledger.get(game.game_id)
    assert game_set.total_books() == 13 or (
        game_set.is_deck_exhausted() and 0 in game_set.hand_sizes())
    assert results[0].message.startswith("Deck masked")

    with pytest.raises(ProtocolViolation):
        game.contracts[1].check_and_end_game(game.ledger, game.game_id)
    assert game.prepare_turn().game_over


def test_autoplay_with_random_secrets():
    game = GoFishGame()
    game.autoplay()
    assert game.is_over()
    assert partition_holds(game.ledger, game.game_id)


def test_resync_heals_tampered_mirror(providers):
    game = ready_game(providers)
    real = game.hand(1)
    game.hands[1].append(game.hands[2][0])
    game.scores[2] = 9
    with pytest.raises(DesyncDetected) as exc:
        game.verify_mirrors()
    assert exc.value.player == 1
    game.resync()
    assert game.hand(1) == real
    assert game.score(2) == GoFishContract.get_scores(game.ledger, game.game_id)[1]
    game.verify_mirrors()


def test_prepare_turn_heals_mirror(providers):
    game = ready_game(providers)
    game.hands[1] = []
    game.prepare_turn()
    assert game.hands[1]
    game.verify_mirrors()


def test_rank_selection_flow(providers):
    game = ready_game(providers)
    result = game.prepare_turn()
    assert game.input_mode is InputMode.SELECT_RANK
    assert result.player == 1
    held = game.available_ranks
    assert held == sorted({c % 13 for c in game.hand(1)})

    missing = next(r for r in range(13) if r not in held)
    result = game.select_rank(missing)
    assert result.error
    assert game.input_mode is InputMode.SELECT_RANK

    game.select_rank(held[0])
    assert game.input_mode is InputMode.CONFIRM_ASK
    game.cancel()
    assert game.input_mode is InputMode.SELECT_RANK
    assert game.selected_rank is None
    with pytest.raises(ProtocolViolation):
        game.confirm()

    game.select_rank(held[0])
    result = game.confirm()
    assert result.asked_rank == held[0]
    assert game.input_mode is InputMode.NONE
    assert game.phase is GamePhase.TURN_START
    game.verify_mirrors()


def test_rejected_ask_returns_to_selection(toolbox, providers):
    game = arranged(toolbox, providers, [0], [1])
    before = fingerprint(game.ledger, game.game_id)
    result = game.ask(KING)
    assert result.error
    assert game.input_mode is InputMode.SELECT_RANK
    assert fingerprint(game.ledger, game.game_id) == before


def test_ask_after_game_over_reports_game_over(toolbox, providers):
    game = arranged(toolbox, providers, [], [0, 13, 26, 39, 1, 14, 27, 40],
                    deck=[], books=HIGH_BOOKS_P1)
    game.prepare_turn()
    assert game.is_over()
    before = fingerprint(game.ledger, game.game_id)
    result = game.ask(ACE)
    assert result.game_over
    assert result.error is None
    assert "Player 1 wins 11-0" in result.message
    assert game.input_mode is InputMode.NONE
    assert fingerprint(game.ledger, game.game_id) == before


def test_ask_during_setup_raises(providers):
    game = new_game(providers)
    game.shuffle()
    with pytest.raises(ProtocolViolation):
        game.ask(ACE)
    assert game.input_mode is InputMode.NONE
    assert game.phase is GamePhase.SETUP


def test_ask_transfer_keeps_turn(toolbox, providers):
    game = arranged(toolbox, providers, [12, 0], [25, 38, 1])
    result = game.ask(KING)
    assert result.transferred == 2
    assert not result.turn_passed
    assert game.hand(1) == [0, 12, 25, 38]
    assert game.hand(2) == [1]
    assert game.current_turn == 1
    assert "goes again" in result.message
    game.verify_mirrors()


def test_ask_go_fish_passes_turn(toolbox, providers):
    game = arranged(toolbox, providers, [0], [1])
    result = game.ask(ACE)
    assert result.drawn_card == 2
    assert not result.matched
    assert result.turn_passed
    assert game.current_turn == 2
    assert game.hand(1) == [0, 2]
    game.verify_mirrors()


def test_ask_scores_book(toolbox, providers):
    game = arranged(toolbox, providers, [0, 13, 26, 5], [39, 1])
    result = game.ask(ACE)
    assert result.books_scored == [ACE]
    assert game.score(1) == 1
    assert game.hand(1) == [5]
    assert "BOOK" in result.message


def test_empty_hand_draws(toolbox, providers):
    game = arranged(toolbox, providers, [], [1])
    result = game.prepare_turn()
    assert result.drawn_card == 0
    assert result.turn_passed
    assert game.current_turn == 2
    assert game.hand(1) == [0]
    assert game.input_mode is InputMode.NONE


def test_empty_hand_and_deck_ends_game(toolbox, providers):
    game = arranged(toolbox, providers, [], [0, 13, 26, 39, 1, 14, 27, 40],
                    deck=[], books=HIGH_BOOKS_P1)
    result = game.prepare_turn()
    assert result.game_over
    assert game.is_over()
    assert game.winner() == 1
    assert "Player 1 wins 11-0" in result.message


def test_failed_ask_on_empty_deck_switches(toolbox, providers):
    game = arranged(toolbox, providers, [0, 13, 26, 39, 1], [14, 27, 40],
                    deck=[], books=HIGH_BOOKS_P1)
    result = game.ask(ACE)
    assert result.turn_passed
    assert result.drawn_card is None
    assert game.current_turn == 2


def test_prepare_turn_outside_turn_start(toolbox, providers):
    ledger, gid = arranged_game(toolbox, providers, [0], [1])
    game_set = ledger.get(gid).copy()
    game_set.phase = PhaseState.wait_for_response(ACE, 1)
    game = GoFishGame(providers=providers, game_id=gid, ledger=ledger.replace(game_set))
    with pytest.raises(ProtocolViolation):
        game.prepare_turn()


def test_arithmetic_failure_is_fatal(curve, providers):
    broken = {1: providers[1], 2: BrokenInverseProvider(curve, 2, KEY_2, SEED_2)}
    game = new_game(broken)
    game.shuffle()
    with pytest.raises(ArithmeticFailure):
        game.deal()
    assert game.failure is not None
    with pytest.raises(ArithmeticFailure):
        game.prepare_turn()
    with pytest.raises(ArithmeticFailure):
        game.ask(ACE)


def test_unknown_curve_rejected():
    with pytest.raises(ValueError):
        GoFishGame(config=Config(game=GameConfig(curve="no_such_curve")))
