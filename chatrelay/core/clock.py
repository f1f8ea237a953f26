from __future__ import annotations

import time
from datetime import datetime
from zoneinfo import ZoneInfo

DEFAULT_TIMEZONE = "America/Sao_Paulo"
STAMP_FORMAT = "%H:%M:%S"


class Clock:
    """Wall clock shared by the registry, the log and the reaper.

    ``now()`` returns seconds since the epoch; ``stamp()`` renders a message
    time as ``HH:MM:SS`` in the deployment-wide zone.
    """

    def __init__(self, tz: str = DEFAULT_TIMEZONE) -> None:
        self.tz = ZoneInfo(tz)

    def now(self) -> float:
        return time.time()

    def stamp(self, ts: float | None = None) -> str:
        moment = self.now() if ts is None else ts
        return datetime.fromtimestamp(moment, tz=self.tz).strftime(STAMP_FORMAT)


__all__ = ["Clock", "DEFAULT_TIMEZONE"]
