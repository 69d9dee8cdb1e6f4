"""时间工具。"""

from datetime import datetime
from typing import Callable

Clock = Callable[[], datetime]


def local_now() -> datetime:
    """带本地时区的当前时间；练习编码中的日期按本地日历计算。"""

    return datetime.now().astimezone()
