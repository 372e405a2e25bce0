"""
Pure domain layer.

Clock, money rounding and workflow value types with NO dependencies on
ORM, database or I/O (except SystemClock, the one sanctioned time source).
"""

from estate_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from estate_kernel.domain.money import CENT, floor_money, round_money
from estate_kernel.domain.workflow import Guard, Transition, Workflow

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "CENT",
    "floor_money",
    "round_money",
    "Guard",
    "Transition",
    "Workflow",
]
