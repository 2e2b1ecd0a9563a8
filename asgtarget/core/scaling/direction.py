"""
Scale direction calculation.
"""

from __future__ import annotations

from typing import Tuple

from asgtarget.core.entities.types import Direction, ScaleDirection


def calculate_direction(current_desired: int, strategy_desired: int) -> Tuple[int, Direction]:
    """
    Compare the group's desired capacity with the strategy's desired count.

    Scaling in yields the number of instances to remove. Scaling out yields
    the new absolute desired capacity, since the out executor sets capacity
    directly rather than incrementing it.
    """
    if strategy_desired < current_desired:
        return current_desired - strategy_desired, Direction.IN
    if strategy_desired > current_desired:
        return strategy_desired, Direction.OUT
    return 0, Direction.NONE


def scale_direction(current_desired: int, strategy_desired: int) -> ScaleDirection:
    amount, direction = calculate_direction(current_desired, strategy_desired)
    return ScaleDirection(amount=amount, direction=direction)
