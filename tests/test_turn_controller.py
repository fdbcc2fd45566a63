import unittest

from gym_backgammon.controller import TurnController
from gym_backgammon.errors import GameBusyError, TurnOrderError
from gym_backgammon.model import (
    BAR,
    OFF,
    MoveAction,
    MoveActionType,
    Piece,
    PieceType,
    TurnEnd,
    TurnPhase,
)
from gym_backgammon.rules import get_rule


def setup_position(controller, white=None, black=None, white_bar=0, black_bar=0, white_off=0):
    """Replace the controller's board with a custom position."""
    state = controller.state
    state.clear()
    for piece_type, layout in ((PieceType.WHITE, white or {}), (PieceType.BLACK, black or {})):
        for position, count in layout.items():
            for _ in range(count):
                state.add_piece(piece_type, position)
    for _ in range(white_bar):
        state.add_piece(PieceType.WHITE, BAR)
    for _ in range(black_bar):
        state.add_piece(PieceType.BLACK, BAR)
    for _ in range(white_off):
        state.add_piece(PieceType.WHITE, OFF)


class TestTurnController(unittest.TestCase):
    """Test case for dice, move requests and turn transitions."""

    def setUp(self):
        self.rule = get_rule('RuleBgCasual')
        self.controller = TurnController(self.rule, seed=7)

    def test_initial_state(self):
        game = self.controller.game
        self.assertEqual(game.phase, TurnPhase.AWAITING_ROLL)
        self.assertEqual(game.turn_player, PieceType.WHITE)
        self.assertEqual(game.rule_name, 'RuleBgCasual')
        self.assertEqual(self.controller.state.count_pieces(PieceType.WHITE), 15)

    def test_roll_two_values(self):
        moves = self.controller.roll([3, 5])
        self.assertEqual(moves, [3, 5])
        self.assertEqual(self.controller.game.dice, [3, 5])
        self.assertEqual(self.controller.game.phase, TurnPhase.MOVES_PENDING)
        self.assertFalse(self.controller.game.turn_started)
        self.assertEqual(self.controller.game.rolls[PieceType.WHITE], 1)

    def test_roll_double(self):
        self.assertEqual(self.controller.roll([4, 4]), [4, 4, 4, 4])

    def test_random_roll(self):
        moves = self.controller.roll()
        self.assertIn(len(moves), (2, 4))
        self.assertTrue(all(1 <= m <= 6 for m in moves))

    def test_seeded_rolls_repeat(self):
        first = TurnController(self.rule, seed=42).roll()
        second = TurnController(self.rule, seed=42).roll()
        self.assertEqual(first, second)

    def test_invalid_dice(self):
        with self.assertRaises(ValueError):
            self.controller.roll([0, 7])
        with self.assertRaises(ValueError):
            self.controller.roll([3])
        self.assertEqual(self.controller.game.phase, TurnPhase.AWAITING_ROLL)

    def test_non_integer_dice(self):
        for dice in ([2.9, 3], ['2', 3], [True, 3]):
            with self.assertRaises(ValueError):
                self.controller.roll(dice)
        self.assertEqual(self.controller.game.rolls[PieceType.WHITE], 0)
        self.assertEqual(self.controller.roll([2, 3]), [2, 3])

    def test_move_with_borrowed_id_is_rejected(self):
        self.controller.roll([1, 2])
        black = self.controller.state.get_top_piece(12)
        before = self.controller.state.to_dict()
        self.assertEqual(self.controller.move(Piece(PieceType.WHITE, black.id), 1), [])
        self.assertEqual(self.controller.state.to_dict(), before)
        self.assertEqual(self.controller.game.moves, [1, 2])

    def test_roll_twice(self):
        self.controller.roll([1, 2])
        with self.assertRaises(TurnOrderError):
            self.controller.roll([1, 2])

    def test_move_before_roll(self):
        piece = self.controller.state.get_top_piece(0)
        with self.assertRaises(TurnOrderError):
            self.controller.move(piece, 1)
        with self.assertRaises(TurnOrderError):
            self.controller.move_from(0, 1)

    def test_accepted_move(self):
        self.controller.roll([1, 2])
        piece = self.controller.state.get_top_piece(0)
        actions = self.controller.move(piece, 1)

        self.assertEqual(actions, [MoveAction(MoveActionType.MOVE, piece, 0, 1)])
        self.assertEqual(self.controller.state.get_piece_pos(piece), 1)
        self.assertEqual(self.controller.game.moves, [2])
        self.assertTrue(self.controller.game.turn_started)
        self.assertEqual(self.controller.game.history, actions)

    def test_turn_ends_when_moves_exhausted(self):
        self.controller.roll([1, 2])
        self.assertTrue(self.controller.move_from(0, 1))
        self.assertTrue(self.controller.move_from(0, 2))

        game = self.controller.game
        self.assertEqual(game.phase, TurnPhase.AWAITING_ROLL)
        self.assertEqual(game.turn_player, PieceType.BLACK)
        self.assertEqual(game.last_turn_end, TurnEnd.MOVES_EXHAUSTED)
        self.assertEqual(game.moves, [])
        self.assertFalse(game.turn_started)
        self.assertEqual(game.turn_number, 2)

    def test_illegal_requests_change_nothing(self):
        self.controller.roll([5, 6])
        before = self.controller.state.to_dict()

        # Blocked by five black pieces on point 6
        self.assertEqual(self.controller.move_from(0, 5), [])
        # Value not rolled
        self.assertEqual(self.controller.move_from(0, 1), [])
        # Opponent's piece
        black = self.controller.state.get_top_piece(12)
        self.assertEqual(self.controller.move(black, 5), [])
        # No white piece there
        self.assertEqual(self.controller.move_from(12, 5), [])

        self.assertEqual(self.controller.state.to_dict(), before)
        self.assertEqual(self.controller.game.moves, [5, 6])
        self.assertFalse(self.controller.game.turn_started)

    def test_legal_moves_are_pure(self):
        self.controller.roll([1, 2])
        before = self.controller.state.to_dict()
        legal = self.controller.legal_moves()

        self.assertTrue(legal)
        for piece, steps, actions in legal:
            self.assertEqual(piece.type, PieceType.WHITE)
            self.assertIn(steps, (1, 2))
            self.assertTrue(actions)
        self.assertEqual(self.controller.state.to_dict(), before)

    def test_legal_moves_empty_before_roll(self):
        self.assertEqual(self.controller.legal_moves(), [])

    def test_moves_transfer_when_turn_not_started(self):
        """White is stuck on the bar before moving: Black plays White's values."""
        setup_position(
            self.controller,
            white={12: 14}, white_bar=1,
            black={0: 2, 1: 2, 2: 2, 3: 2, 4: 2, 5: 2, 10: 3},
        )
        self.controller.roll([3, 5])

        game = self.controller.game
        self.assertEqual(game.turn_player, PieceType.BLACK)
        self.assertEqual(game.phase, TurnPhase.MOVES_PENDING)
        self.assertEqual(game.moves, [3, 5])
        self.assertTrue(game.transferred)
        self.assertFalse(game.turn_started)
        self.assertEqual(game.last_turn_end, TurnEnd.TRANSFERRED)

        self.assertTrue(self.controller.move_from(10, 3))
        self.assertTrue(self.controller.move_from(10, 5))
        self.assertEqual(game.turn_player, PieceType.WHITE)
        self.assertEqual(game.phase, TurnPhase.AWAITING_ROLL)
        self.assertEqual(game.rolls[PieceType.BLACK], 0)

    def test_transferred_moves_are_not_returned(self):
        """If the receiver cannot play the transferred values either, they are dropped."""
        setup_position(
            self.controller,
            white={18: 2, 19: 2, 20: 2, 21: 2, 22: 2, 23: 2, 14: 2}, white_bar=1,
            black={0: 2, 1: 2, 2: 2, 3: 2, 4: 2, 5: 2, 10: 2}, black_bar=1,
        )
        self.controller.roll([3, 5])

        game = self.controller.game
        self.assertEqual(game.phase, TurnPhase.AWAITING_ROLL)
        self.assertEqual(game.turn_player, PieceType.WHITE)
        self.assertEqual(game.last_turn_end, TurnEnd.FORFEITED)
        self.assertEqual(game.moves, [])

    def test_remaining_moves_forfeited_after_start(self):
        setup_position(self.controller, white={0: 1}, white_off=14, black={3: 2, 12: 13})
        self.controller.roll([1, 2])
        self.assertTrue(self.controller.move_from(0, 1))

        game = self.controller.game
        self.assertEqual(game.last_turn_end, TurnEnd.FORFEITED)
        self.assertEqual(game.turn_player, PieceType.BLACK)
        self.assertEqual(game.phase, TurnPhase.AWAITING_ROLL)
        self.assertEqual(game.moves, [])

    def test_win_is_terminal(self):
        setup_position(self.controller, white={23: 1}, white_off=14, black={12: 15})
        self.controller.roll([1, 2])
        actions = self.controller.move_from(23, 1)

        self.assertEqual([a.type for a in actions], [MoveActionType.BEAR])
        game = self.controller.game
        self.assertTrue(game.is_over)
        self.assertEqual(game.winner, PieceType.WHITE)
        self.assertEqual(game.phase, TurnPhase.FINISHED)
        with self.assertRaises(TurnOrderError):
            self.controller.roll([1, 2])
        with self.assertRaises(TurnOrderError):
            self.controller.move_from(12, 1)

    def test_concurrent_request_rejected(self):
        self.controller._lock.acquire()
        try:
            with self.assertRaises(GameBusyError):
                self.controller.roll([1, 2])
        finally:
            self.controller._lock.release()
        self.assertEqual(self.controller.roll([1, 2]), [1, 2])

    def test_custom_game_id(self):
        controller = TurnController(self.rule, game_id='table-1')
        self.assertEqual(controller.game.id, 'table-1')


class TestGulbaraController(unittest.TestCase):
    """Cascading doubles through the controller."""

    def test_third_roll_cascades(self):
        controller = TurnController(get_rule('RuleBgGulbara'))
        controller.game.rolls[PieceType.WHITE] = 2
        moves = controller.roll([5, 5])
        self.assertEqual(moves, [5, 5, 5, 5, 6, 6, 6, 6])
        self.assertEqual(controller.game.rolls[PieceType.WHITE], 3)


if __name__ == '__main__':
    unittest.main()
