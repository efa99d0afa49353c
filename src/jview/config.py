"""Viewer settings assembled from the command line."""

from __future__ import annotations

from dataclasses import dataclass, field

from jview.render import Theme


@dataclass
class ViewerConfig:
    indent: int = 2
    collapse_depth: int | None = None  # None: start fully expanded
    scrolloff: int = 3
    h_scroll_step: int = 4
    theme: Theme = field(default_factory=Theme.default)
