"""Centralized configuration for erd-layout.

Every threshold below is an empirically chosen default. Callers pass a
``LayoutConfig`` explicitly to each layout call; nothing reads global state.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SizingConfig:
    """Table box measurement constants."""

    header_height: float = 36.0
    row_height: float = 26.0
    bottom_padding: float = 10.0
    min_width: float = 220.0
    side_padding: float = 20.0
    column_char_width: float = 7.5
    column_extra: float = 60.0
    header_char_width: float = 9.0
    header_extra: float = 48.0
    collapsed_extra: float = 8.0


@dataclass(frozen=True)
class SpacingStep:
    """Node/rank spacing used up to ``max_nodes`` nodes (inclusive)."""

    max_nodes: int | None
    node_spacing: float
    rank_spacing: float


@dataclass(frozen=True)
class LayoutConfig:
    """Configuration for the layout pipeline."""

    sizing: SizingConfig = SizingConfig()

    # Orientation switches: vertical rank stacking above these node counts.
    flat_vertical_threshold: int = 25
    group_vertical_threshold: int = 6
    focus_vertical_threshold: int = 8

    spacing_steps: tuple[SpacingStep, ...] = (
        SpacingStep(20, 40.0, 80.0),
        SpacingStep(40, 50.0, 100.0),
        SpacingStep(None, 60.0, 120.0),
    )
    margin: float = 60.0
    dummy_extent: float = 10.0
    max_ordering_passes: int = 24

    group_node_spacing: float = 40.0
    group_rank_spacing: float = 70.0
    group_padding: float = 100.0
    pack_min_width: float = 3000.0
    pack_factor: float = 1.4

    rank_tolerance: float = 60.0
    exact_permutation_limit: int = 7
    crossing_passes: int = 3

    def spacing_for(self, node_count: int) -> SpacingStep:
        for step in self.spacing_steps:
            if step.max_nodes is None or node_count <= step.max_nodes:
                return step
        return self.spacing_steps[-1]


DEFAULT_CONFIG = LayoutConfig()
