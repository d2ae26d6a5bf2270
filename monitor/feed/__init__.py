"""
Feed factory — returns the configured reading source.
Change FEED.kind in config.py to swap between relay polling and simulation.
"""
from monitor.feed.base import BaseFeed, FetchResult


def get_feed(feed_cfg: dict) -> BaseFeed:
    kind = feed_cfg.get("kind", "sim").lower()

    if kind == "http":
        from monitor.feed.http_feed import HttpFeed
        return HttpFeed(feed_cfg["http"])

    elif kind == "sim":
        from monitor.feed.sim_feed import SimFeed
        return SimFeed(feed_cfg.get("sim", {}))

    else:
        raise ValueError(f"Unknown feed type: {kind!r}. Use 'http' or 'sim'.")


__all__ = ["BaseFeed", "FetchResult", "get_feed"]
