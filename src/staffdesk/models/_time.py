import datetime as dt


def utcnow() -> dt.datetime:
    """Naive UTC timestamp, matching ``CURRENT_TIMESTAMP`` on every backend."""
    return dt.datetime.now(dt.UTC).replace(tzinfo=None)
