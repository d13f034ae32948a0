"""Rules-engine adapter over ``python-chess``.

The move pickers only talk to the board through the functions below, so the
rules authority (legal move generation, check/mate/draw detection, move
application and FEN snapshots) stays behind one seam.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Union

import chess


class IllegalMoveError(RuntimeError):
    """A move believed legal was rejected by the rules engine."""


@dataclass(frozen=True)
class MoveInfo:
    """Legal move annotated with piece kinds and SAN."""

    move: chess.Move
    from_square: str
    to_square: str
    piece: str
    captured: Optional[str]
    promotion: Optional[str]
    san: str


def _kind(piece_type: Optional[int]) -> Optional[str]:
    if piece_type is None:
        return None
    return chess.piece_symbol(piece_type)


def describe_move(board: chess.Board, move: chess.Move) -> MoveInfo:
    moving = board.piece_type_at(move.from_square)
    if board.is_en_passant(move):
        captured: Optional[int] = chess.PAWN
    elif board.is_capture(move):
        captured = board.piece_type_at(move.to_square)
    else:
        captured = None
    return MoveInfo(
        move=move,
        from_square=chess.square_name(move.from_square),
        to_square=chess.square_name(move.to_square),
        piece=_kind(moving) or "",
        captured=_kind(captured),
        promotion=_kind(move.promotion),
        san=board.san(move),
    )


def legal_moves(board: chess.Board, verbose: bool = False) -> Union[List[chess.Move], List[MoveInfo]]:
    """Legal moves in generation order, optionally annotated."""
    moves = list(board.legal_moves)
    if not verbose:
        return moves
    return [describe_move(board, move) for move in moves]


def is_valid_move(board: chess.Board, move: chess.Move) -> bool:
    return move in board.legal_moves


def is_in_check(board: chess.Board) -> bool:
    return board.is_check()


def is_checkmate(board: chess.Board) -> bool:
    return board.is_checkmate()


def is_stalemate(board: chess.Board) -> bool:
    return board.is_stalemate()


def is_threefold_repetition(board: chess.Board) -> bool:
    return board.is_repetition(3)


def is_draw(board: chess.Board) -> bool:
    return (
        board.is_stalemate()
        or board.is_insufficient_material()
        or board.halfmove_clock >= 100
        or is_threefold_repetition(board)
    )


def is_game_over(board: chess.Board) -> bool:
    return board.is_checkmate() or is_draw(board)


def side_to_move(board: chess.Board) -> chess.Color:
    return board.turn


def get_game_result(board: chess.Board) -> str:
    if board.is_checkmate():
        return "Checkmate"
    elif board.is_stalemate():
        return "Stalemate"
    elif is_threefold_repetition(board):
        return "Threefold repetition"
    elif board.is_insufficient_material():
        return "Insufficient material"
    elif is_draw(board):
        return "Draw"
    side = "White" if board.turn == chess.WHITE else "Black"
    if board.is_check():
        return f"{side} in check"
    return f"{side} to move"


def make_move(board: chess.Board, move: chess.Move) -> None:
    board.push(move)


def apply_move(board: chess.Board, move: chess.Move) -> bool:
    if not is_valid_move(board, move):
        return False
    board.push(move)
    return True


def undo_move(board: chess.Board) -> bool:
    if board.move_stack:
        board.pop()
        return True
    return False


def is_pawn_promotion_attempt(board: chess.Board, move: chess.Move) -> bool:
    piece = board.piece_at(move.from_square)
    if piece is None or piece.piece_type != chess.PAWN:
        return False

    rank = chess.square_rank(move.to_square)
    if not ((piece.color == chess.WHITE and rank == 7) or (piece.color == chess.BLACK and rank == 0)):
        return False

    candidate = chess.Move(move.from_square, move.to_square, promotion=chess.QUEEN)
    return is_valid_move(board, candidate)


def serialize(board: chess.Board) -> str:
    return board.fen()


def deserialize(fen: str) -> chess.Board:
    return chess.Board(fen)


def export_board_fen(board: chess.Board) -> str:
    return board.fen()


def export_move_history_uci(board: chess.Board) -> str:
    """Exports the move history of a chess game in Universal Chess Interface (UCI) format."""
    moves_uci = [move.uci() for move in board.move_stack]
    return ' '.join(moves_uci)


def export_move_history_san(board: chess.Board) -> str:
    replay = board.root()
    moves_san = []
    for move in board.move_stack:
        moves_san.append(replay.san(move))
        replay.push(move)
    return ' '.join(moves_san)
