"""Ornament sprite-sheet coordinate math and default tree layout.

A sprite sheet tiles ``columns x rows`` ornament icons. Picking an icon is a
crop: grid position plus global offset plus an optional per-item override.
"""

from __future__ import annotations

import random
from dataclasses import asdict, dataclass
from typing import Any, Mapping

# Source sheet: 1536x1536 px, 10x10 grid, cells of roughly 153.6 px.
DEFAULT_COLUMNS = 10
DEFAULT_ROWS = 10

# (ornaments in row, top %) from the tree tip downwards.
TREE_ROWS: tuple[tuple[int, float], ...] = (
    (1, 6),
    (3, 12),
    (5, 18),
    (7, 24),
    (9, 30),
    (11, 37),
    (13, 44),
    (15, 52),
    (17, 60),
    (19, 68),
)
TREE_SPACING = 4.2
FALLBACK_POSITION = (50.0, 50.0)

_CAMEL_KEYS = {
    "columns": "columns",
    "rows": "rows",
    "cellWidth": "cell_width",
    "cellHeight": "cell_height",
    "offsetX": "offset_x",
    "offsetY": "offset_y",
    "gapX": "gap_x",
    "gapY": "gap_y",
    "imageWidth": "image_width",
    "imageHeight": "image_height",
    "displayScale": "display_scale",
}


@dataclass(frozen=True)
class SpriteConfig:
    columns: int = DEFAULT_COLUMNS
    rows: int = DEFAULT_ROWS
    cell_width: float = 154
    cell_height: float = 154
    offset_x: float = 0
    offset_y: float = 0
    gap_x: float = 0
    gap_y: float = 0
    image_width: float | None = 1536
    image_height: float | None = 1536
    display_scale: float = 1.0

    @property
    def total(self) -> int:
        return self.columns * self.rows

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "SpriteConfig":
        """Build from stored template JSON; accepts camelCase or snake_case keys."""

        if not data:
            return cls()
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            attr = _CAMEL_KEYS.get(key, key)
            if attr in cls.__dataclass_fields__ and value is not None:
                kwargs[attr] = _coerce(attr, value)
        config = cls(**kwargs)
        if config.columns < 1 or config.rows < 1 or config.cell_width <= 0 or config.cell_height <= 0:
            raise ValueError("Sprite grid needs at least one cell with a positive size")
        return config

    def to_mapping(self) -> dict[str, Any]:
        inverse = {v: k for k, v in _CAMEL_KEYS.items()}
        return {inverse[k]: v for k, v in asdict(self).items()}


_INT_FIELDS = frozenset({"columns", "rows"})


def _coerce(attr: str, value: Any) -> int | float:
    """JSON numbers only; grid counts must be whole."""

    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"{attr} must be a number")
    if attr in _INT_FIELDS:
        if isinstance(value, float) and not value.is_integer():
            raise ValueError(f"{attr} must be a whole number")
        return int(value)
    return value


DEFAULT_SPRITE_CONFIG = SpriteConfig()


@dataclass(frozen=True)
class CropRect:
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class BackgroundStyle:
    """CSS background values that show one cell in a ``size`` px box."""

    size: float
    background_width: float
    background_height: float
    position_x: float
    position_y: float
    display_scale: float

    def to_css(self) -> dict[str, str]:
        css = {
            "width": f"{_fmt(self.size)}px",
            "height": f"{_fmt(self.size)}px",
            "background-size": f"{_fmt(self.background_width)}px {_fmt(self.background_height)}px",
            "background-position": f"{_fmt(-self.position_x)}px {_fmt(-self.position_y)}px",
            "background-repeat": "no-repeat",
        }
        if self.display_scale != 1.0:
            css["transform"] = f"scale({_fmt(self.display_scale)})"
        return css


def _fmt(value: float) -> str:
    if value == 0:
        return "0"
    return f"{value:.4f}".rstrip("0").rstrip(".") or "0"


def clamp_index(index: int, config: SpriteConfig = DEFAULT_SPRITE_CONFIG) -> int:
    return max(0, min(int(index), config.total - 1))


def grid_position(index: int, config: SpriteConfig = DEFAULT_SPRITE_CONFIG) -> tuple[int, int]:
    """Return ``(column, row)`` of a flat index."""

    safe = clamp_index(index, config)
    return safe % config.columns, safe // config.columns


def crop_origin(
    index: int,
    config: SpriteConfig = DEFAULT_SPRITE_CONFIG,
    individual_offset: tuple[float, float] = (0, 0),
) -> tuple[float, float]:
    col, row = grid_position(index, config)
    src_x = config.offset_x + col * (config.cell_width + config.gap_x) + individual_offset[0]
    src_y = config.offset_y + row * (config.cell_height + config.gap_y) + individual_offset[1]
    return src_x, src_y


def crop_rect(
    index: int,
    config: SpriteConfig = DEFAULT_SPRITE_CONFIG,
    individual_offset: tuple[float, float] = (0, 0),
) -> CropRect:
    x, y = crop_origin(index, config, individual_offset)
    return CropRect(x=x, y=y, width=config.cell_width, height=config.cell_height)


def sheet_size(config: SpriteConfig = DEFAULT_SPRITE_CONFIG) -> tuple[float, float]:
    width = config.image_width or config.columns * (config.cell_width + config.gap_x)
    height = config.image_height or config.rows * (config.cell_height + config.gap_y)
    return width, height


def background_style(
    index: int,
    size: float = 64,
    config: SpriteConfig = DEFAULT_SPRITE_CONFIG,
    individual_offset: tuple[float, float] = (0, 0),
) -> BackgroundStyle:
    scale = size / config.cell_width
    src_x, src_y = crop_origin(index, config, individual_offset)
    total_w, total_h = sheet_size(config)
    return BackgroundStyle(
        size=size,
        background_width=total_w * scale,
        background_height=total_h * scale,
        position_x=src_x * scale,
        position_y=src_y * scale,
        display_scale=config.display_scale,
    )


def default_tree_positions() -> list[tuple[float, float]]:
    """Triangular tree layout as ``(top %, left %)`` pairs, tip first."""

    positions: list[tuple[float, float]] = []
    for count, top in TREE_ROWS:
        start_left = 50 - ((count - 1) * TREE_SPACING) / 2
        for i in range(count):
            positions.append((float(top), round(start_left + i * TREE_SPACING, 4)))
    return positions


def default_position(slot_number: int) -> tuple[float, float]:
    positions = default_tree_positions()
    if 1 <= slot_number <= len(positions):
        return positions[slot_number - 1]
    return FALLBACK_POSITION


def random_ornament_indices(
    count: int,
    config: SpriteConfig = DEFAULT_SPRITE_CONFIG,
    rng: random.Random | None = None,
) -> list[int]:
    """Pick ``count`` distinct icons (capped at the sheet size)."""

    rng = rng or random.Random()
    return rng.sample(range(config.total), min(max(count, 0), config.total))
