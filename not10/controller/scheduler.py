"""
调度器抽象.

房主用周期性的tick检测"现在轮到机器人"并触发一次决策. 测试中使用
ManualTicker逐步驱动，运行时使用ThreadTicker. SingleFlightGuard保证
同一房间同一时刻只有一个机器人决策在进行.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Callable, Iterator, Optional, Protocol, Set, runtime_checkable

MIN_TICK_INTERVAL = 1.0

TickCallback = Callable[[], object]


@runtime_checkable
class Ticker(Protocol):
    """周期触发回调的调度器接口"""

    def start(self, callback: TickCallback) -> None:
        ...

    def stop(self) -> None:
        ...

    @property
    def running(self) -> bool:
        ...


class ManualTicker:
    """手动驱动的调度器，每次调用tick()同步执行一次回调"""

    def __init__(self):
        self._callback: Optional[TickCallback] = None
        self.tick_count = 0

    def start(self, callback: TickCallback) -> None:
        self._callback = callback

    def stop(self) -> None:
        self._callback = None

    @property
    def running(self) -> bool:
        return self._callback is not None

    def tick(self, times: int = 1) -> list:
        """
        执行回调times次.

        Returns:
            list: 每次回调的返回值

        Raises:
            RuntimeError: 调度器未启动
        """
        if self._callback is None:
            raise RuntimeError("调度器未启动")
        results = []
        for _ in range(times):
            self.tick_count += 1
            results.append(self._callback())
        return results


class ThreadTicker:
    """后台线程调度器，间隔不小于1秒"""

    def __init__(self, interval: float = MIN_TICK_INTERVAL, logger: Optional[logging.Logger] = None,
                 name: str = "not10-ticker"):
        if interval < MIN_TICK_INTERVAL:
            raise ValueError(f"轮询间隔不能小于{MIN_TICK_INTERVAL}秒: {interval}")
        self.interval = interval
        self._name = name
        self._logger = logger or logging.getLogger(__name__)
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self, callback: TickCallback) -> None:
        if self.running:
            raise RuntimeError("调度器已在运行")
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, args=(callback,), name=self._name, daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop_event.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)
        self._thread = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _run(self, callback: TickCallback) -> None:
        while not self._stop_event.wait(self.interval):
            try:
                callback()
            except Exception:
                self._logger.exception("调度回调执行失败")


class SingleFlightGuard:
    """
    按键的非阻塞互斥.

    已有同键的操作在进行时，try_acquire立即返回False而不是等待.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._in_flight: Set[str] = set()

    def try_acquire(self, key: str) -> bool:
        with self._lock:
            if key in self._in_flight:
                return False
            self._in_flight.add(key)
            return True

    def release(self, key: str) -> None:
        with self._lock:
            self._in_flight.discard(key)

    def is_in_flight(self, key: str) -> bool:
        with self._lock:
            return key in self._in_flight

    @contextmanager
    def claim(self, key: str) -> Iterator[bool]:
        """
        上下文管理器形式.

        Yields:
            bool: 是否拿到了执行权；拿到时退出上下文会自动释放
        """
        acquired = self.try_acquire(key)
        try:
            yield acquired
        finally:
            if acquired:
                self.release(key)
