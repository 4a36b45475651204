"""
Deterministic shock-and-recovery asset price path for stress tests.

Drop phase: linear decline from P0 to P0*(1 - d) over drop_days.
Recovery phase: linear rebound recovering a fixed share of the drop.

    P(t)      = P0 * (1 - (t / T) * d)                 t = 0..T
    P(T + k)  = P_min + (k / K) * (P0 - P_min) * r     k = 1..K
"""

import numpy as np

from config.params import RECOVERY, RecoveryParams
from models.validation import require_min_int, require_percentage, require_positive


def generate_price_path(initial_price: float, drop_percent: float, drop_days: int,
                        recovery: RecoveryParams = RECOVERY) -> np.ndarray:
    """
    Build the full asset price path.

    Parameters:
        initial_price: Asset price on day 0 (> 0)
        drop_percent: Total drop over the shock leg, in percent [0, 100]
        drop_days: Length of the shock leg in days (>= 1)
        recovery: Recovery-leg length and recovered share of the drop

    Returns:
        Array of length drop_days + 1 + recovery.recovery_days.
    """
    initial_price = require_positive("initial_price", initial_price)
    drop_percent = require_percentage("drop_percent", drop_percent)
    drop_days = require_min_int("drop_days", drop_days, 1)

    drop_fraction = drop_percent / 100.0
    progress = np.arange(drop_days + 1, dtype=float) / drop_days
    drop_leg = initial_price * (1.0 - progress * drop_fraction)

    lowest_price = initial_price * (1.0 - drop_fraction)
    recovery_amount = (initial_price - lowest_price) * recovery.recovery_fraction
    recovery_progress = (
        np.arange(1, recovery.recovery_days + 1, dtype=float) / recovery.recovery_days
    )
    recovery_leg = lowest_price + recovery_progress * recovery_amount

    return np.concatenate([drop_leg, recovery_leg])
