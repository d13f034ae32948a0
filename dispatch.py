"""Background move search with a synchronous fallback.

The foreground owns the authoritative board. Each request ships a FEN
snapshot to a :class:`SearchWorker` thread and gets back a tagged
:class:`SearchResponse`. :class:`DispatchCoordinator` keeps at most one
request outstanding. It drops responses whose id is no longer current, and
falls back to computing the move in the calling thread when the worker
errors, disappears or misses the deadline.
"""

from __future__ import annotations

import queue
import random
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

import chess

import chess_logic
from chess_logic import IllegalMoveError
from config import DEFAULT_TIMEOUT
from strategies import EngineMove, StrategyKind, select_move

WAIT_SLICE = 0.05


class WorkerUnavailableError(RuntimeError):
    """The background search thread could not be used."""


@dataclass(frozen=True)
class SearchRequest:
    id: int
    fen: str
    strategy: StrategyKind
    depth: int
    ai_color: chess.Color


@dataclass(frozen=True)
class SearchResponse:
    id: int
    move: Optional[EngineMove]
    score: Optional[float] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class DispatchOutcome:
    request_id: int
    move: Optional[EngineMove]
    source: str
    score: Optional[float] = None


def run_search_request(request: SearchRequest, rng: Optional[random.Random] = None) -> SearchResponse:
    board = chess_logic.deserialize(request.fen)
    result = select_move(board, request.strategy, request.depth, request.ai_color, rng)
    return SearchResponse(id=request.id, move=result.move, score=result.score)


class SearchWorker:
    """Daemon thread that answers :class:`SearchRequest` messages in order.

    The worker keeps no state between requests: every request carries its own
    position snapshot, which is discarded once the response is posted.
    """

    def __init__(
        self,
        *,
        handler: Callable[[SearchRequest], SearchResponse] = run_search_request,
        logger: Optional[Callable[[str], None]] = None,
        name: str = "search-worker",
    ) -> None:
        self._handler = handler
        self._logger = logger or (lambda *_: None)
        self._name = name
        self._requests: "queue.Queue[Optional[SearchRequest]]" = queue.Queue()
        self._responses: "queue.Queue[SearchResponse]" = queue.Queue()
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    def start(self) -> None:
        with self._lock:
            if self._thread is not None and self._thread.is_alive():
                return
            thread = threading.Thread(target=self._run, name=self._name, daemon=True)
            try:
                thread.start()
            except RuntimeError as exc:
                raise WorkerUnavailableError(f"could not start search worker: {exc}") from exc
            self._thread = thread

    def is_alive(self) -> bool:
        thread = self._thread
        return thread is not None and thread.is_alive()

    def submit(self, request: SearchRequest) -> None:
        if not self.is_alive():
            raise WorkerUnavailableError("search worker is not running")
        self._requests.put(request)

    def get_response(self, timeout: Optional[float] = None) -> Optional[SearchResponse]:
        try:
            if timeout is not None and timeout <= 0:
                return self._responses.get_nowait()
            return self._responses.get(timeout=timeout)
        except queue.Empty:
            return None

    def stop(self, timeout: float = 1.0) -> None:
        with self._lock:
            thread = self._thread
            self._thread = None
        if thread is None:
            return
        self._requests.put(None)
        thread.join(timeout=timeout)

    def _run(self) -> None:
        while True:
            request = self._requests.get()
            if request is None:
                break
            try:
                response = self._handler(request)
            except Exception as exc:
                self._logger(f"search worker: request {request.id} failed: {exc}")
                response = SearchResponse(id=request.id, move=None, error=str(exc) or exc.__class__.__name__)
            self._responses.put(response)


def create_worker(logger: Optional[Callable[[str], None]] = None) -> Optional[SearchWorker]:
    """Start a worker, or return ``None`` when threads are unavailable."""
    log = logger or (lambda *_: None)
    worker = SearchWorker(logger=log)
    try:
        worker.start()
    except WorkerUnavailableError as exc:
        log(f"search worker disabled: {exc}")
        return None
    return worker


class CoordinatorState(Enum):
    IDLE = "idle"
    AWAITING_RESULT = "awaiting_result"


@dataclass
class _PendingSearch:
    request_id: int
    strategy: StrategyKind
    depth: int
    ai_color: chess.Color
    deadline: Optional[float] = None
    fallback_reason: Optional[str] = None


class DispatchCoordinator:
    """Single-flight move requests against a background :class:`SearchWorker`.

    All methods are meant to be called from the thread that owns the
    authoritative board; the board is only touched when a result is accepted.
    """

    def __init__(
        self,
        worker: Optional[SearchWorker] = None,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        clock: Callable[[], float] = time.monotonic,
        logger: Optional[Callable[[str], None]] = None,
        rng: Optional[random.Random] = None,
        on_move: Optional[Callable[[DispatchOutcome], None]] = None,
    ) -> None:
        self._worker = worker
        self.timeout = timeout
        self._clock = clock
        self._logger = logger or (lambda *_: None)
        self._rng = rng
        self._on_move = on_move
        self._previous_id = 0
        self._pending: Optional[_PendingSearch] = None
        self._board: Optional[chess.Board] = None
        self.last_outcome: Optional[DispatchOutcome] = None

    @property
    def state(self) -> CoordinatorState:
        return CoordinatorState.IDLE if self._pending is None else CoordinatorState.AWAITING_RESULT

    @property
    def current_id(self) -> Optional[int]:
        return self._pending.request_id if self._pending is not None else None

    @property
    def worker(self) -> Optional[SearchWorker]:
        return self._worker

    def request_move(self, board: chess.Board, strategy, depth: int, ai_color: chess.Color) -> int:
        if self._pending is not None:
            raise RuntimeError(f"search request {self._pending.request_id} is still outstanding")
        kind = StrategyKind.parse(strategy)
        if depth < 1:
            raise ValueError(f"depth must be >= 1, got {depth}")

        self._previous_id += 1
        request_id = self._previous_id
        pending = _PendingSearch(request_id=request_id, strategy=kind, depth=depth, ai_color=ai_color)
        self._pending = pending
        self._board = board

        worker = self._worker
        if worker is None or not worker.is_alive():
            pending.fallback_reason = "no search worker"
            self._logger(f"request {request_id}: no search worker, computing on next poll")
            return request_id

        request = SearchRequest(
            id=request_id,
            fen=chess_logic.serialize(board),
            strategy=kind,
            depth=depth,
            ai_color=ai_color,
        )
        try:
            worker.submit(request)
        except WorkerUnavailableError as exc:
            pending.fallback_reason = str(exc)
            self._logger(f"request {request_id}: {exc}, computing on next poll")
            return request_id

        pending.deadline = self._clock() + self.timeout
        self._logger(f"request {request_id}: {kind.value} depth={depth} sent to worker")
        return request_id

    def poll(self) -> Optional[DispatchOutcome]:
        """Process pending responses and deadlines without blocking."""
        outcome: Optional[DispatchOutcome] = None
        if self._worker is not None:
            while True:
                response = self._worker.get_response(timeout=0)
                if response is None:
                    break
                handled = self._handle_response(response)
                if handled is not None:
                    outcome = handled
        if outcome is None:
            outcome = self._check_pending()
        return outcome

    def wait(self, timeout: Optional[float] = None) -> Optional[DispatchOutcome]:
        """Block until the outstanding request resolves or ``timeout`` elapses."""
        started = self._clock()
        while self._pending is not None:
            outcome = self.poll()
            if outcome is not None:
                return outcome
            if self._pending is None:
                return None

            now = self._clock()
            if timeout is not None and now - started >= timeout:
                return None
            block = WAIT_SLICE
            if self._pending.deadline is not None:
                block = min(block, max(0.0, self._pending.deadline - now))
            if timeout is not None:
                block = min(block, max(0.0, started + timeout - now))

            response = self._worker.get_response(timeout=block) if self._worker is not None else None
            if response is not None:
                outcome = self._handle_response(response)
                if outcome is not None:
                    return outcome
        return None

    def cancel(self) -> bool:
        """Forget the outstanding request; its response will be treated as stale."""
        pending = self._pending
        if pending is None:
            return False
        self._logger(f"request {pending.request_id}: cancelled")
        self._pending = None
        self._board = None
        return True

    def _handle_response(self, response: SearchResponse) -> Optional[DispatchOutcome]:
        pending = self._pending
        if pending is None or response.id != pending.request_id:
            self._logger(f"discarding stale response {response.id}")
            return None
        if response.error is not None:
            return self._run_fallback(f"worker error: {response.error}")
        return self._accept(response.move, "worker", response.score)

    def _check_pending(self) -> Optional[DispatchOutcome]:
        pending = self._pending
        if pending is None:
            return None
        reason = pending.fallback_reason
        if reason is None:
            if self._worker is None or not self._worker.is_alive():
                reason = "search worker stopped"
            elif pending.deadline is not None and self._clock() >= pending.deadline:
                reason = f"no response within {self.timeout:.2f}s"
            else:
                return None
        return self._run_fallback(reason)

    def _run_fallback(self, reason: str) -> DispatchOutcome:
        pending = self._pending
        assert pending is not None and self._board is not None
        self._logger(f"request {pending.request_id}: fallback ({reason})")
        snapshot = chess_logic.deserialize(chess_logic.serialize(self._board))
        result = select_move(snapshot, pending.strategy, pending.depth, pending.ai_color, self._rng)
        return self._accept(result.move, "fallback", result.score)

    def _accept(self, move: Optional[EngineMove], source: str, score: Optional[float]) -> DispatchOutcome:
        pending = self._pending
        board = self._board
        assert pending is not None and board is not None
        self._pending = None
        self._board = None

        if move is not None and not chess_logic.apply_move(board, move.to_chess()):
            raise IllegalMoveError(f"rules engine rejected {move.uci()} from request {pending.request_id}")

        outcome = DispatchOutcome(request_id=pending.request_id, move=move, source=source, score=score)
        self.last_outcome = outcome
        played = move.uci() if move is not None else "(none)"
        self._logger(f"request {pending.request_id}: {source} move {played}")
        if self._on_move is not None:
            self._on_move(outcome)
        return outcome


__all__ = [
    "CoordinatorState",
    "DispatchCoordinator",
    "DispatchOutcome",
    "SearchRequest",
    "SearchResponse",
    "SearchWorker",
    "WorkerUnavailableError",
    "create_worker",
    "run_search_request",
]
