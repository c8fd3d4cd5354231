from __future__ import annotations

import threading
import time
from typing import Any, Callable

from orderbook_gateway.schemas.orderbook import AcquisitionState, OrderBookSnapshot
from orderbook_gateway.services.orderbook_parser import parse_order_book


class PollScheduler:
    """Fixed-interval order book poller owning the single acquisition state slot.

    One worker thread runs the periodic cycles; `trigger()` runs a manual
    cycle in the caller's thread. Cycles never overlap: a manual trigger that
    arrives while another cycle is in flight is dropped. Each cycle gets a
    monotonic sequence number and a result is only applied if it is newer than
    the last applied one and the scheduler was not stopped meanwhile.
    """

    def __init__(
        self,
        fetch_payload: Callable[[], Any],
        *,
        interval_sec: float = 5.0,
        retain_snapshot_on_error: bool = False,
        parser: Callable[..., OrderBookSnapshot] = parse_order_book,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.fetch_payload = fetch_payload
        self.interval_sec = interval_sec
        self.retain_snapshot_on_error = retain_snapshot_on_error
        self._parser = parser
        self._clock = clock

        self._lock = threading.Lock()
        self._state = AcquisitionState()
        self._seq = 0
        self._applied_seq = 0
        self._generation = 0
        self._in_flight = False
        self._stop_event = threading.Event()
        self._worker: threading.Thread | None = None
        self.running = False

        self.metrics_counters = {
            "cycles": 0,
            "succeeded": 0,
            "failed": 0,
            "consecutive_failures": 0,
            "manual_triggers": 0,
            "manual_dropped": 0,
            "stale_results_dropped": 0,
        }
        self.last_error: str | None = None

    def _inc(self, key: str, value: int = 1) -> None:
        self.metrics_counters[key] = self.metrics_counters.get(key, 0) + value

    def state(self) -> AcquisitionState:
        with self._lock:
            return self._state.model_copy()

    @property
    def in_flight(self) -> bool:
        with self._lock:
            return self._in_flight

    def start(self) -> None:
        with self._lock:
            if self.running:
                return
            self.running = True
            self._stop_event = threading.Event()
            self._state = self._state.model_copy(update={"status": "LOADING"})

        worker = threading.Thread(
            target=self._run_loop,
            args=(self._stop_event,),
            daemon=True,
            name="orderbook-poller",
        )
        self._worker = worker
        print(f"[POLL][worker_start] interval_sec={self.interval_sec}", flush=True)
        worker.start()

    def stop(self, join_timeout_sec: float = 1.0) -> None:
        with self._lock:
            if not self.running:
                return
            self.running = False
            # results of cycles already in flight belong to the old generation
            self._generation += 1
            self._in_flight = False
            self._state = self._state.model_copy(update={"status": "IDLE"})
            self._stop_event.set()

        worker = self._worker
        if worker is not None and worker is not threading.current_thread():
            worker.join(timeout=join_timeout_sec)
        self._worker = None
        print("[POLL][worker_stop] thread=orderbook-poller", flush=True)

    def _run_loop(self, stop_event: threading.Event) -> None:
        self.run_cycle(source="timer")
        while not stop_event.wait(self.interval_sec):
            self.run_cycle(source="timer")

    def trigger(self) -> bool:
        """Run one cycle right now. Returns False if it was dropped."""
        self._inc("manual_triggers")
        return self.run_cycle(source="manual")

    def _begin_cycle(self, source: str) -> tuple[int, int] | None:
        with self._lock:
            if self._in_flight:
                return None
            self._in_flight = True
            self._seq += 1
            # previous snapshot stays visible while the refresh is loading
            self._state = self._state.model_copy(update={"status": "LOADING", "cycle_seq": self._seq})
            return self._seq, self._generation

    def _finish_cycle(self, seq: int, generation: int, next_state: AcquisitionState) -> bool:
        with self._lock:
            # a stop/start in between already released the in-flight slot
            if generation == self._generation:
                self._in_flight = False
            if generation != self._generation or seq <= self._applied_seq:
                self._inc("stale_results_dropped")
                print(f"[POLL][stale_result_dropped] seq={seq} status={next_state.status}", flush=True)
                return False
            self._applied_seq = seq
            self._state = next_state
            return True

    def run_cycle(self, source: str = "timer") -> bool:
        begun = self._begin_cycle(source)
        if begun is None:
            if source == "manual":
                self._inc("manual_dropped")
            print(f"[POLL][cycle_skip] source={source} reason=in_flight", flush=True)
            return False

        seq, generation = begun
        self._inc("cycles")
        try:
            payload = self.fetch_payload()
            snapshot = self._parser(payload, fetched_at=self._clock())
        except Exception as exc:
            message = str(exc) or exc.__class__.__name__
            previous = self.state().snapshot if self.retain_snapshot_on_error else None
            next_state = AcquisitionState(
                status="FAILED",
                snapshot=previous,
                fetched_at=previous.fetched_at if previous is not None else None,
                error=message,
                stale=previous is not None,
                cycle_seq=seq,
            )
            applied = self._finish_cycle(seq, generation, next_state)
            if applied:
                self._inc("failed")
                self._inc("consecutive_failures")
                self.last_error = message
            print(
                f"[POLL][cycle_failed] source={source} seq={seq} "
                f"error_type={exc.__class__.__name__} error={message}",
                flush=True,
            )
            return applied

        next_state = AcquisitionState(
            status="READY",
            snapshot=snapshot,
            fetched_at=snapshot.fetched_at,
            cycle_seq=seq,
        )
        applied = self._finish_cycle(seq, generation, next_state)
        if applied:
            self._inc("succeeded")
            self.metrics_counters["consecutive_failures"] = 0
        print(
            f"[POLL][cycle_ok] source={source} seq={seq} "
            f"asks={len(snapshot.asks)} bids={len(snapshot.bids)}",
            flush=True,
        )
        return applied

    def metrics(self) -> dict[str, Any]:
        state = self.state()
        out: dict[str, Any] = dict(self.metrics_counters)
        out.update(
            {
                "running": self.running,
                "status": state.status,
                "cycle_seq": state.cycle_seq,
                "last_error": self.last_error,
                "interval_sec": self.interval_sec,
            }
        )
        return out
