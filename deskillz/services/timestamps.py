# deskillz/services/timestamps.py

"""
Timestamp helpers for score submission

is_timestamp_valid is a client-side sanity check (e.g. spotting a tampered
local clock before signing). Replay protection itself depends on the
backend rejecting reused nonces.
"""

import time

DEFAULT_MAX_AGE_SECS = 300
DEFAULT_MAX_FUTURE_SECS = 30


def get_timestamp() -> int:
    """Current Unix timestamp in whole seconds"""
    return int(time.time())


def is_timestamp_valid(
    timestamp: int,
    max_age_secs: int = DEFAULT_MAX_AGE_SECS,
    max_future_secs: int = DEFAULT_MAX_FUTURE_SECS,
) -> bool:
    """True when -max_future_secs <= now - timestamp <= max_age_secs"""
    age = get_timestamp() - timestamp
    return -max_future_secs <= age <= max_age_secs
