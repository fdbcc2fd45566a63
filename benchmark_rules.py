#!/usr/bin/env python3
"""
Soak benchmark for the rule engine.

Plays games with uniformly random legal moves for each selected rule,
checks piece conservation after every applied move and reports throughput.
"""

import argparse
import json
import logging
import random
import time
from typing import Dict

from tqdm import tqdm

from gym_backgammon.config import SELECTABLE_RULES, configure_logging
from gym_backgammon.controller import TurnController
from gym_backgammon.errors import InternalInconsistencyError
from gym_backgammon.model import PieceType, TurnPhase
from gym_backgammon.rules import load_rules

logger = logging.getLogger(__name__)


def play_random_game(rule, seed: int, max_moves: int = 5000, max_turns: int = 5000) -> Dict:
    """Play one game with random legal moves. Returns move and turn counts."""
    controller = TurnController(rule, seed=seed)
    chooser = random.Random(seed)
    moves = 0

    while (not controller.game.is_over and moves < max_moves
           and controller.game.turn_number < max_turns):
        if controller.game.phase == TurnPhase.AWAITING_ROLL:
            controller.roll()
            continue

        piece, steps, _ = chooser.choice(controller.legal_moves())
        if not controller.move(piece, steps):
            raise InternalInconsistencyError("Listed legal move was rejected",
                                             context={'piece': piece.id, 'steps': steps})
        moves += 1

        for piece_type in PieceType:
            count = controller.state.count_pieces(piece_type)
            if count != rule.piece_count:
                raise InternalInconsistencyError(
                    "Piece count changed",
                    context={'side': piece_type.name, 'count': count, 'game': controller.game.id},
                )

    return {
        'moves': moves,
        'turns': controller.game.turn_number,
        'winner': controller.game.winner.name if controller.game.winner is not None else None,
    }


def benchmark_rule(rule, games: int, seed: int) -> Dict:
    start = time.time()
    wins = {'WHITE': 0, 'BLACK': 0, None: 0}
    total_moves = 0

    for i in tqdm(range(games), desc=rule.name):
        result = play_random_game(rule, seed + i)
        wins[result['winner']] += 1
        total_moves += result['moves']

    elapsed = time.time() - start
    return {
        'games': games,
        'white_wins': wins['WHITE'],
        'black_wins': wins['BLACK'],
        'unfinished': wins[None],
        'avg_moves': total_moves / games if games else 0.0,
        'moves_per_sec': total_moves / elapsed if elapsed > 0 else 0.0,
        'seconds': elapsed,
    }


def main():
    parser = argparse.ArgumentParser(description='Play random games to exercise the rule engine')
    parser.add_argument('--rules', type=str, default=','.join(SELECTABLE_RULES),
                        help='Comma separated rule names')
    parser.add_argument('--games', type=int, default=50,
                        help='Games per rule')
    parser.add_argument('--seed', type=int, default=0,
                        help='Base random seed')
    parser.add_argument('--log_level', type=str, default='WARNING',
                        help='Logging level')
    parser.add_argument('--json_output', type=str, default='',
                        help='Write results to this JSON file')
    args = parser.parse_args()

    configure_logging(args.log_level)
    rules = load_rules([name.strip() for name in args.rules.split(',') if name.strip()])

    results = {}
    for name, rule in rules.items():
        results[name] = benchmark_rule(rule, args.games, args.seed)
        r = results[name]
        print(f"{name}: {r['games']} games | White {r['white_wins']} | Black {r['black_wins']} | "
              f"unfinished {r['unfinished']} | {r['avg_moves']:.1f} moves/game | "
              f"{r['moves_per_sec']:.0f} moves/sec")

    if args.json_output:
        with open(args.json_output, 'w') as f:
            json.dump(results, f, indent=2)
        print(f"Results written to {args.json_output}")


if __name__ == '__main__':
    main()
