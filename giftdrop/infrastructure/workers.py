# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Background loops: avatar refresh and ledger consistency check."""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass, field

from giftdrop.infrastructure.observability import WORKER_GAUGE
from giftdrop.shared.logging import logger


@dataclass
class PeriodicWorker:
    name: str
    interval: float
    task: Callable[[], object]
    stop: threading.Event = field(default_factory=threading.Event)
    thread: threading.Thread | None = None

    def run_once(self) -> None:
        try:
            self.task()
        except Exception:
            logger.exception(f"worker[{self.name}]: iteration failed")

    def _loop(self) -> None:
        logger.info(f"worker[{self.name}]: started interval={self.interval}s")
        WORKER_GAUGE.inc()
        while not self.stop.wait(self.interval):
            self.run_once()
        WORKER_GAUGE.dec()
        logger.info(f"worker[{self.name}]: stopped")

    def start(self) -> None:
        if self.thread is not None and self.thread.is_alive():
            return
        self.stop.clear()
        self.thread = threading.Thread(
            target=self._loop, name=f"giftdrop-{self.name}", daemon=True
        )
        self.thread.start()

    def shutdown(self, timeout: float = 5.0) -> None:
        self.stop.set()
        if self.thread is not None:
            self.thread.join(timeout)
            self.thread = None


__all__ = ["PeriodicWorker"]
