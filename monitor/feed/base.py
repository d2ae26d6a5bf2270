"""
Feed base class — the interface every reading source implements.
Swap source by changing config FEED.kind without touching other code.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional
import datetime


@dataclass
class FetchResult:
    """Outcome of one poll. reading is None when there is nothing new."""
    success:  bool
    reading:  Optional[dict] = None
    error:    Optional[str] = None


class BaseFeed(ABC):
    """
    Abstract feed. All implementations must provide:
      init()   — connect/configure, called once at startup
      fetch()  — return the next reading (blocking is allowed)
      close()  — clean shutdown
    """

    def __init__(self, cfg: dict):
        self._cfg         = cfg
        self._connected   = False
        self._last_fetch: Optional[datetime.datetime] = None
        self._last_error: Optional[str] = None

    @abstractmethod
    def init(self) -> bool:
        """Initialize. Return True if ready."""
        ...

    @abstractmethod
    def fetch(self) -> FetchResult:
        """
        Fetch one reading. Must never raise for transport errors;
        report them in the result instead.
        """
        ...

    @abstractmethod
    def close(self):
        ...

    def status(self) -> dict:
        return {
            "kind":       type(self).__name__,
            "connected":  self._connected,
            "last_fetch": self._last_fetch.isoformat() if self._last_fetch else None,
            "last_error": self._last_error,
        }
