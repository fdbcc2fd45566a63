import numpy as np
import pytest

from gym_backgammon.errors import InternalInconsistencyError
from gym_backgammon.model import (
    BAR,
    OFF,
    MoveAction,
    MoveActionType,
    Piece,
    PieceType,
    State,
)


@pytest.fixture
def state():
    """Small position: two white pieces on 0, one black piece on 3."""
    s = State()
    s.add_piece(PieceType.WHITE, 0)
    s.add_piece(PieceType.WHITE, 0)
    s.add_piece(PieceType.BLACK, 3)
    return s


class TestState:
    """Test suite for the board state."""

    def test_add_piece_tracks_position(self, state):
        white = state.get_top_piece(0)
        assert white.type == PieceType.WHITE
        assert state.get_piece_pos(white) == 0
        assert state.count_at(0) == 2
        assert state.count_at(3) == 1

    def test_piece_ids_are_unique(self, state):
        ids = [p.id for stack in state.points for p in stack]
        assert len(ids) == len(set(ids)) == 3

    def test_unknown_piece_is_inconsistency(self, state):
        with pytest.raises(InternalInconsistencyError):
            state.get_piece_pos(Piece(PieceType.WHITE, 999))

    def test_get_movable_piece(self, state):
        assert state.get_movable_piece(0, PieceType.WHITE) is state.get_top_piece(0)
        assert state.get_movable_piece(0, PieceType.BLACK) is None
        assert state.get_movable_piece(BAR, PieceType.WHITE) is None
        assert state.get_movable_piece(30, PieceType.WHITE) is None
        assert state.get_movable_piece(np.int64(3), PieceType.BLACK) is state.get_top_piece(3)

    def test_board_counts(self, state):
        counts = state.board_counts()
        assert counts.shape == (2, 24)
        assert counts.dtype == np.int32
        assert counts[PieceType.WHITE, 0] == 2
        assert counts[PieceType.BLACK, 3] == 1
        assert counts.sum() == 3

    def test_clear(self, state):
        state.clear()
        assert all(len(stack) == 0 for stack in state.points)
        assert state.count_pieces(PieceType.WHITE) == 0

    def test_to_dict(self, state):
        snapshot = state.to_dict()
        assert len(snapshot['points']) == 24
        assert snapshot['points'][3] == [(2, 'black')]
        assert snapshot['bar'] == {'white': [], 'black': []}


class TestApplyActions:
    """Test suite for applying action lists."""

    def test_hit_then_move(self, state):
        white = state.get_top_piece(0)
        black = state.get_top_piece(3)
        state.apply_actions([
            MoveAction(MoveActionType.HIT, black, 3),
            MoveAction(MoveActionType.MOVE, white, 0, 3),
        ])
        assert state.get_piece_pos(black) == BAR
        assert state.get_piece_pos(white) == 3
        assert state.bar[PieceType.BLACK] == [black]
        assert state.get_top_piece(3) is white

    def test_place_from_bar(self, state):
        black = state.get_top_piece(3)
        state.apply_actions([MoveAction(MoveActionType.HIT, black, 3)])
        state.apply_actions([MoveAction(MoveActionType.PLACE, black, BAR, 20)])
        assert state.get_piece_pos(black) == 20
        assert not state.has_pieces_on_bar(PieceType.BLACK)

    def test_bear(self, state):
        white = state.get_top_piece(0)
        state.apply_actions([MoveAction(MoveActionType.BEAR, white, 0)])
        assert state.get_piece_pos(white) == OFF
        assert state.count_off(PieceType.WHITE) == 1
        assert state.count_pieces(PieceType.WHITE) == 2

    def test_failed_list_changes_nothing(self, state):
        """If any action cannot be applied, none of the list is kept."""
        white = state.get_top_piece(0)
        black = state.get_top_piece(3)
        before = state.to_dict()

        with pytest.raises(InternalInconsistencyError):
            state.apply_actions([
                MoveAction(MoveActionType.MOVE, white, 0, 1),
                # Wrong source: black is on 3, not 5
                MoveAction(MoveActionType.MOVE, black, 5, 6),
            ])

        assert state.to_dict() == before
        assert state.get_piece_pos(white) == 0
        assert state.get_piece_pos(black) == 3

    def test_place_requires_bar(self, state):
        white = state.get_top_piece(0)
        with pytest.raises(InternalInconsistencyError):
            state.apply_actions([MoveAction(MoveActionType.PLACE, white, 0, 4)])
        assert state.get_piece_pos(white) == 0

    def test_move_outside_board_rejected(self, state):
        white = state.get_top_piece(0)
        with pytest.raises(InternalInconsistencyError):
            state.apply_actions([MoveAction(MoveActionType.MOVE, white, 0, 24)])
        assert state.count_at(0) == 2


def test_piece_type_opponent():
    assert PieceType.WHITE.opponent == PieceType.BLACK
    assert PieceType.BLACK.opponent == PieceType.WHITE


def test_move_action_to_dict():
    piece = Piece(PieceType.BLACK, 7)
    action = MoveAction(MoveActionType.BEAR, piece, 2)
    assert action.to_dict() == {
        'type': 'bear',
        'piece': {'id': 7, 'type': 'black'},
        'from': 2,
        'to': None,
    }
