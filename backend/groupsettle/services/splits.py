"""Per-person shares of an expense under equal / percent / exact splits."""
from __future__ import annotations

import math
from typing import Optional, Sequence

SPLIT_MODES = ("equal", "percent", "exact")

TOLERANCE = 0.01


class SplitError(ValueError):
    pass


def compute_shares(
    amount: float,
    split_mode: str,
    participants: Sequence[tuple[int, Optional[float]]],
) -> list[tuple[int, float]]:
    """
    participants: (person_id, value) pairs; value is a percentage for "percent", an
    amount for "exact" and ignored for "equal".
    Returns (person_id, share_amount) pairs in participant order. Their sum equals
    ``amount`` within TOLERANCE.
    """
    if split_mode not in SPLIT_MODES:
        raise SplitError(f"Invalid split mode. Must be one of: {', '.join(SPLIT_MODES)}")
    if amount <= 0:
        raise SplitError("Amount must be positive")
    if not participants:
        raise SplitError("At least one participant required")
    ids = [pid for pid, _ in participants]
    if len(set(ids)) != len(ids):
        raise SplitError("Participants must be unique")

    if split_mode == "equal":
        share = amount / len(ids)
        return [(pid, share) for pid in ids]

    values = []
    for pid, value in participants:
        if value is None:
            raise SplitError(f"Missing {split_mode} value for person {pid}")
        if value < 0:
            raise SplitError("Share values cannot be negative")
        values.append((pid, float(value)))

    total = sum(v for _, v in values)
    if split_mode == "percent":
        if round(abs(total - 100), 2) > TOLERANCE:
            raise SplitError("Percentages must add up to 100%")
        return [(pid, amount * v / 100) for pid, v in values]

    if round(abs(total - amount), 2) > TOLERANCE:
        raise SplitError(f"Exact amounts must add up to {amount:.2f}")
    return values


def default_share_values(split_mode: str, person_ids: Sequence[int], amount: float) -> dict[int, float]:
    """Starting values for a split form; empty for equal splits."""
    if split_mode not in SPLIT_MODES:
        raise SplitError(f"Invalid split mode. Must be one of: {', '.join(SPLIT_MODES)}")
    n = len(person_ids)
    if split_mode == "equal" or n == 0:
        return {}

    if split_mode == "percent":
        even = math.floor(100 / n)
        values = {pid: float(even) for pid in person_ids}
        # remainder goes to the last person
        values[person_ids[-1]] = float(100 - even * (n - 1))
        return values

    return {pid: round(amount / n, 2) for pid in person_ids}
