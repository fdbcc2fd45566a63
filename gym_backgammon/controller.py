"""
Turn controller: dice, move requests and turn transitions of a single game.

Phases of a turn:

    AWAITING_ROLL -> MOVES_PENDING -> (moves exhausted | forfeited | transferred)
                  -> AWAITING_ROLL of the other side

    FINISHED is terminal and entered as soon as one side has borne off all pieces.

Step values that cannot be played are handled depending on whether the
turn has started: before the first move they are transferred to the
opponent, who plays them as their next turn; after it they are dropped.
"""

import logging
import random
import threading
from contextlib import contextmanager
from typing import List, Optional, Tuple

import numpy as np

from gym_backgammon.errors import GameBusyError, TurnOrderError
from gym_backgammon.model import (
    BAR,
    POINT_COUNT,
    Game,
    MoveAction,
    Piece,
    PieceType,
    Position,
    State,
    TurnEnd,
    TurnPhase,
)

logger = logging.getLogger(__name__)


class TurnController:
    """
    Owns the State and the Game record of one game and applies move requests
    to them one at a time. The rule is shared and only ever read.
    """

    def __init__(self, rule, game_id: Optional[str] = None, seed: Optional[int] = None,
                 first_player: PieceType = PieceType.WHITE):
        self.rule = rule
        self.rng = random.Random(seed)
        self.game = Game(rule_name=rule.name, turn_player=first_player)
        if game_id is not None:
            self.game.id = game_id
        self.rule.reset_state(self.game.state)
        self._lock = threading.Lock()

    @property
    def state(self) -> State:
        return self.game.state

    @property
    def turn_player(self) -> PieceType:
        return self.game.turn_player

    @contextmanager
    def _exclusive(self):
        # Reject instead of queueing: the caller decides whether to retry
        if not self._lock.acquire(blocking=False):
            raise GameBusyError("Another request is being applied", context={'game': self.game.id})
        try:
            yield
        finally:
            self._lock.release()

    def roll(self, dice: Optional[List[int]] = None) -> List[int]:
        """
        Roll two dice for the side to move (or use `dice`) and return the
        step values that are now pending.
        """
        with self._exclusive():
            game = self.game
            if game.phase != TurnPhase.AWAITING_ROLL:
                raise TurnOrderError(f"Cannot roll during {game.phase.value}",
                                     context={'game': game.id})
            if dice is None:
                dice = [self.rng.randint(1, 6), self.rng.randint(1, 6)]
            dice = list(dice)
            if (len(dice) != 2
                    or not all(isinstance(d, (int, np.integer)) and not isinstance(d, bool) for d in dice)
                    or not all(1 <= d <= 6 for d in dice)):
                raise ValueError(f"Invalid dice {dice}")
            dice = [int(d) for d in dice]

            game.rolls[game.turn_player] += 1
            game.dice = dice
            game.moves = self.rule.expand_roll(game, dice)
            game.turn_started = False
            game.transferred = False
            game.phase = TurnPhase.MOVES_PENDING
            logger.info(f"Game {game.id}: {game.turn_player.name} rolled {dice}, moves {game.moves}")

            self._check_turn()
            return list(game.moves)

    def move(self, piece: Piece, steps: int) -> List[MoveAction]:
        """
        Move `piece` by `steps` if allowed. Returns the applied actions, or an
        empty list if the request is not a legal move (nothing changes then).
        """
        with self._exclusive():
            return self._move(piece, steps)

    def move_from(self, position: Position, steps: int) -> List[MoveAction]:
        """Move the top piece of the side to move at `position` (a point or BAR)."""
        with self._exclusive():
            self._require_phase(TurnPhase.MOVES_PENDING)
            piece = self.state.get_movable_piece(position, self.game.turn_player)
            if piece is None:
                logger.debug(f"Game {self.game.id}: no movable piece at {position}")
                return []
            return self._move(piece, steps)

    def legal_moves(self) -> List[Tuple[Piece, int, List[MoveAction]]]:
        """All (piece, steps, actions) the side to move can currently play."""
        game = self.game
        if game.phase != TurnPhase.MOVES_PENDING:
            return []
        result = []
        for steps in sorted(set(game.moves)):
            for piece in self._candidate_pieces(game.turn_player):
                actions = self.rule.get_move_actions(game.state, piece, steps)
                if actions:
                    result.append((piece, steps, actions))
        return result

    def has_legal_move(self) -> bool:
        game = self.game
        for steps in set(game.moves):
            for piece in self._candidate_pieces(game.turn_player):
                if self.rule.get_move_actions(game.state, piece, steps):
                    return True
        return False

    def _candidate_pieces(self, piece_type: PieceType) -> List[Piece]:
        # One piece per position is enough: pieces on the same spot are interchangeable
        state = self.state
        candidates = []
        bar_piece = state.get_movable_piece(BAR, piece_type)
        if bar_piece is not None:
            candidates.append(bar_piece)
        for position in range(POINT_COUNT):
            piece = state.get_movable_piece(position, piece_type)
            if piece is not None:
                candidates.append(piece)
        return candidates

    def _require_phase(self, phase: TurnPhase):
        if self.game.phase != phase:
            raise TurnOrderError(f"Expected {phase.value}, game is in {self.game.phase.value}",
                                 context={'game': self.game.id})

    def _move(self, piece: Piece, steps: int) -> List[MoveAction]:
        game = self.game
        self._require_phase(TurnPhase.MOVES_PENDING)

        if piece.type != game.turn_player:
            logger.debug(f"Game {game.id}: piece {piece.id} does not belong to {game.turn_player.name}")
            return []
        if steps not in game.moves:
            logger.debug(f"Game {game.id}: {steps} is not a pending move {game.moves}")
            return []

        actions = self.rule.get_move_actions(game.state, piece, steps)
        if not actions:
            logger.debug(f"Game {game.id}: piece {piece.id} cannot move {steps}")
            return []

        # Raises without changing anything if the list does not fit the state
        game.state.apply_actions(actions)
        self.rule.mark_as_played(game, steps)
        game.history.extend(actions)

        winner = self.rule.get_winner(game.state)
        if winner is not None:
            game.winner = winner
            game.moves = []
            game.phase = TurnPhase.FINISHED
            logger.info(f"Game {game.id}: {winner.name} wins")
            return actions

        self._check_turn()
        return actions

    def _check_turn(self):
        """End, forfeit or transfer the turn when nothing more can be played."""
        game = self.game
        if game.phase != TurnPhase.MOVES_PENDING:
            return
        if not game.moves:
            self._end_turn(TurnEnd.MOVES_EXHAUSTED)
            return
        if self.has_legal_move():
            return

        if not game.turn_started and not game.transferred:
            self._transfer_moves()
        else:
            logger.info(f"Game {game.id}: {game.turn_player.name} forfeits moves {game.moves}")
            self._end_turn(TurnEnd.FORFEITED)

    def _transfer_moves(self):
        game = self.game
        logger.info(f"Game {game.id}: {game.turn_player.name} cannot move, "
                    f"moves {game.moves} go to {game.turn_player.opponent.name}")
        game.last_turn_end = TurnEnd.TRANSFERRED
        game.turn_player = game.turn_player.opponent
        game.turn_number += 1
        game.turn_started = False
        game.transferred = True
        self._check_turn()

    def _end_turn(self, reason: TurnEnd):
        game = self.game
        game.last_turn_end = reason
        game.moves = []
        game.dice = []
        game.turn_started = False
        game.transferred = False
        game.turn_player = game.turn_player.opponent
        game.turn_number += 1
        game.phase = TurnPhase.AWAITING_ROLL
        logger.info(f"Game {game.id}: turn ended ({reason.value}), {game.turn_player.name} to roll")
