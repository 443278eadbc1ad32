import random


def compute_backoff_seconds(attempt: int, base: int = 10, cap: int = 900) -> int:
    # exponential backoff with jitter
    exp = min(cap, base * (2 ** max(0, attempt - 1)))
    jitter = random.randint(0, min(30, exp // 3))
    return exp + jitter


def contention_backoff_seconds(attempt: int, base_ms: int = 5, cap_ms: int = 200) -> float:
    # full jitter
    exp = min(cap_ms, base_ms * (2 ** max(0, attempt - 1)))
    return random.uniform(0, exp) / 1000.0
