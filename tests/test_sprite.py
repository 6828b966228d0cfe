import random

import pytest

from lucky_draw.services.sprite import (
    DEFAULT_SPRITE_CONFIG,
    FALLBACK_POSITION,
    SpriteConfig,
    background_style,
    crop_origin,
    crop_rect,
    default_position,
    default_tree_positions,
    grid_position,
    random_ornament_indices,
    sheet_size,
)


def test_grid_position_walks_rows_left_to_right():
    assert grid_position(0) == (0, 0)
    assert grid_position(9) == (9, 0)
    assert grid_position(10) == (0, 1)
    assert grid_position(57) == (7, 5)


def test_index_is_clamped_into_the_sheet():
    assert grid_position(-5) == (0, 0)
    assert grid_position(1000) == (9, 9)


def test_crop_origin_adds_gaps_global_and_individual_offsets():
    config = SpriteConfig(columns=4, rows=2, cell_width=100, cell_height=50, offset_x=3, offset_y=5, gap_x=2, gap_y=4)

    assert crop_origin(5, config) == (3 + 1 * 102, 5 + 1 * 54)
    assert crop_origin(5, config, individual_offset=(-3, 7)) == (102, 66)
    rect = crop_rect(5, config)
    assert (rect.width, rect.height) == (100, 50)


def test_sheet_size_falls_back_to_grid_when_image_size_missing():
    config = SpriteConfig(columns=3, rows=2, cell_width=10, cell_height=20, gap_x=1, gap_y=2, image_width=None, image_height=None)
    assert sheet_size(config) == (33, 44)
    assert sheet_size(DEFAULT_SPRITE_CONFIG) == (1536, 1536)


def test_background_style_scales_sheet_to_requested_size():
    config = SpriteConfig(columns=10, rows=10, cell_width=100, cell_height=100, image_width=1000, image_height=1000)

    style = background_style(11, size=50, config=config)

    assert style.background_width == 500
    assert style.position_x == 50
    assert style.position_y == 50
    css = style.to_css()
    assert css["background-size"] == "500px 500px"
    assert css["background-position"] == "-50px -50px"
    assert "transform" not in css


def test_background_style_at_origin_and_with_display_scale():
    config = SpriteConfig(display_scale=1.5)
    css = background_style(0, size=64, config=config).to_css()

    assert css["background-position"] == "0px 0px"
    assert css["transform"] == "scale(1.5)"


def test_from_mapping_reads_camel_case_and_keeps_defaults():
    config = SpriteConfig.from_mapping({"columns": 8, "cellWidth": 120, "offsetX": 4, "displayScale": 0.8})

    assert config.columns == 8
    assert config.cell_width == 120
    assert config.offset_x == 4
    assert config.display_scale == 0.8
    assert config.rows == 10
    assert SpriteConfig.from_mapping(None) == DEFAULT_SPRITE_CONFIG
    assert SpriteConfig.from_mapping(config.to_mapping()) == config


def test_from_mapping_rejects_empty_grid():
    with pytest.raises(ValueError):
        SpriteConfig.from_mapping({"columns": 0})


@pytest.mark.parametrize(
    "mapping",
    [{"offsetX": "10"}, {"columns": 2.5}, {"rows": "4"}, {"cellWidth": True}, {"displayScale": [1]}],
)
def test_from_mapping_rejects_non_numeric_values(mapping):
    with pytest.raises((TypeError, ValueError)):
        SpriteConfig.from_mapping(mapping)


def test_from_mapping_accepts_whole_float_counts():
    config = SpriteConfig.from_mapping({"columns": 5.0, "gapX": 1.5})

    assert config.columns == 5
    assert isinstance(config.columns, int)
    assert config.gap_x == 1.5


def test_default_tree_layout():
    positions = default_tree_positions()

    assert len(positions) == 100
    assert positions[0] == (6.0, 50.0)
    assert positions[1] == (12.0, 45.8)
    assert positions[3] == (12.0, 54.2)
    assert positions[-1][0] == 68.0
    assert default_position(1) == (6.0, 50.0)
    assert default_position(101) == FALLBACK_POSITION
    assert default_position(0) == FALLBACK_POSITION


def test_random_ornament_indices_are_unique_and_capped():
    indices = random_ornament_indices(30, rng=random.Random(1))
    assert len(indices) == len(set(indices)) == 30
    assert all(0 <= i < 100 for i in indices)

    assert len(random_ornament_indices(500)) == 100
    assert random_ornament_indices(0) == []
