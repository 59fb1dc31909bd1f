"""
Organic traffic estimate from tracked keyword positions

Uses a position-based click-through-rate curve; no analytics API is involved.
"""
from typing import Iterable, Optional

from models import Keyword

# Google organic desktop CTR by position (industry averages)
ORGANIC_CTR = {
    1: 0.319,
    2: 0.158,
    3: 0.107,
    4: 0.078,
    5: 0.058,
    6: 0.043,
    7: 0.033,
    8: 0.026,
    9: 0.021,
    10: 0.017,
    # Page 2
    11: 0.010,
    12: 0.009,
    13: 0.008,
    14: 0.007,
    15: 0.006,
    16: 0.005,
    17: 0.005,
    18: 0.004,
    19: 0.004,
    20: 0.003,
}


def get_ctr(position: Optional[int]) -> float:
    """CTR for a 1-based position; decays exponentially past page 2 down to a 0.01% floor"""
    if not position or position < 1:
        return 0.0
    if position <= 20:
        return ORGANIC_CTR[position]
    if position <= 50:
        return max(0.003 * (0.8 ** (position - 20)), 0.0001)
    return 0.0001


def estimate_organic_traffic(keywords: Iterable[Keyword]) -> int:
    """Monthly visits: sum of search volume x CTR at the current position"""
    total = 0.0
    for keyword in keywords:
        if keyword.search_volume:
            total += keyword.search_volume * get_ctr(keyword.current_position)
    return int(round(total))
