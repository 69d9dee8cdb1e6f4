"""加热计时器：每秒一次的可取消计时。"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class HeatingTimer:
    """累计加热秒数。

    ``start()`` 在已运行时不会重复调度；``pause()`` / ``stop()`` 取消待执行的 tick。
    ``tick()`` 公开，便于在不等待真实时间的情况下驱动计时。
    """

    def __init__(
        self,
        seconds: int = 0,
        interval: float = 1.0,
        on_tick: Optional[Callable[[int], None]] = None,
    ) -> None:
        self.interval = interval
        self.on_tick = on_tick
        self._seconds = max(0, int(seconds))
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None

    @property
    def seconds(self) -> int:
        return self._seconds

    @property
    def running(self) -> bool:
        return self._timer is not None

    def _schedule(self) -> None:
        self._timer = threading.Timer(self.interval, self._fire)
        self._timer.daemon = True
        self._timer.start()

    def _fire(self) -> None:
        with self._lock:
            # 已被 pause/stop 取消，或已被新的 start 替换
            if self._timer is not threading.current_thread():
                return
            self._schedule()
        self.tick()

    def tick(self) -> int:
        with self._lock:
            self._seconds += 1
            value = self._seconds
        if self.on_tick is not None:
            self.on_tick(value)
        return value

    def start(self) -> bool:
        """开始计时，返回是否真正启动了新的调度。"""

        with self._lock:
            if self._timer is not None:
                return False
            self._schedule()
        logger.debug("Heating timer started at %ss", self._seconds)
        return True

    def pause(self) -> None:
        with self._lock:
            timer, self._timer = self._timer, None
        if timer is not None:
            timer.cancel()

    def reset(self, seconds: int = 0) -> None:
        self.pause()
        with self._lock:
            self._seconds = max(0, int(seconds))

    def stop(self) -> int:
        """停止并返回累计秒数（用于页面卸载等收尾场景）。"""

        self.pause()
        return self._seconds
