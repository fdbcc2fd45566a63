import pytest

from gym_backgammon.model import BAR, OFF, PieceType, State


def build_state(white=None, black=None, white_bar=0, black_bar=0, white_off=0, black_off=0,
                bottom=PieceType.WHITE):
    """
    Build a State from {position: count} maps. On points holding both sides
    (tapa) the pieces of `bottom` are stacked first.
    """
    state = State()
    layout = {PieceType.WHITE: white or {}, PieceType.BLACK: black or {}}
    for piece_type in (bottom, bottom.opponent):
        for position, count in layout[piece_type].items():
            for _ in range(count):
                state.add_piece(piece_type, position)
    for piece_type, count in ((PieceType.WHITE, white_bar), (PieceType.BLACK, black_bar)):
        for _ in range(count):
            state.add_piece(piece_type, BAR)
    for piece_type, count in ((PieceType.WHITE, white_off), (PieceType.BLACK, black_off)):
        for _ in range(count):
            state.add_piece(piece_type, OFF)
    return state


@pytest.fixture
def board():
    return build_state
