"""Shared type definitions for erd-layout.

Enums and small geometry types used across the IR, layout engines, and CLI.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto


class Orientation(Enum):
    HORIZONTAL = auto()  # ranks left to right
    VERTICAL = auto()  # ranks top to bottom


@dataclass(frozen=True)
class Point:
    """A 2D point in diagram units."""

    x: float
    y: float


@dataclass(frozen=True)
class Size:
    width: float
    height: float
