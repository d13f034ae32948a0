"""Static position evaluation shared by every move picker.

Scores are centipawn-like and always from White's point of view: positive
favours White, negative favours Black. ``MATE_SCORE`` marks a forced mate and
drawn positions score exactly zero.
"""

from __future__ import annotations

from typing import Dict

import chess

import chess_logic

MATE_SCORE = 10**9

PIECE_VALUES: Dict[int, int] = {
    chess.PAWN: 100,
    chess.KNIGHT: 320,
    chess.BISHOP: 330,
    chess.ROOK: 500,
    chess.QUEEN: 900,
    chess.KING: 0,
}

# Keyed by the lowercase piece letters used in annotated moves.
PIECE_VALUES_BY_KIND: Dict[str, int] = {
    chess.piece_symbol(piece_type): value for piece_type, value in PIECE_VALUES.items()
}

MOBILITY_CAP = 30
CHECK_PENALTY = 15


def material_balance(board: chess.Board) -> int:
    score = 0
    for piece in board.piece_map().values():
        value = PIECE_VALUES[piece.piece_type]
        score += value if piece.color == chess.WHITE else -value
    return score


def evaluate(board: chess.Board) -> int:
    """Return the score of ``board`` from White's perspective.

    Material, plus a capped mobility bonus for the side to move, minus a small
    penalty when that side is in check. Checkmate overrides everything with
    ``-MATE_SCORE`` / ``+MATE_SCORE`` against the mated side, and any draw
    overrides everything with ``0``.
    """

    score = material_balance(board)

    white_to_move = board.turn == chess.WHITE
    mobility = min(board.legal_moves.count(), MOBILITY_CAP)
    score += mobility if white_to_move else -mobility

    if chess_logic.is_in_check(board):
        score += -CHECK_PENALTY if white_to_move else CHECK_PENALTY

    if chess_logic.is_checkmate(board):
        return -MATE_SCORE if white_to_move else MATE_SCORE
    if chess_logic.is_draw(board):
        return 0
    return score


__all__ = ["MATE_SCORE", "PIECE_VALUES", "PIECE_VALUES_BY_KIND", "evaluate", "material_balance"]
