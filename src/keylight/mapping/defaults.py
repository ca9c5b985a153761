"""Built-in signal mappings and the ``mappings.json`` loader."""

import logging
from pathlib import Path

from keylight.model_manager import PydanticPersistence
from keylight.models import (
    Animation,
    LayoutMapping,
    MappingMode,
    MappingTable,
    Range,
    SignalMapping,
    solid_color,
    solid_color_flashing,
)

logger = logging.getLogger(__name__)

MAPPINGS_FILENAME = "mappings.json"


def _bands(*bands: tuple[float, bool, float, Animation]) -> list[Range]:
    return [
        Range(start=start, start_inclusive=start_inclusive, end=end, end_inclusive=True, activated_animation=animation)
        for start, start_inclusive, end, animation in bands
    ]


def default_mappings() -> list[SignalMapping]:
    """
    Mappings used when no ``mappings.json`` exists.

    - ``cpu_utilization_max`` on the number row: green, yellow, red, flashing red
    - ``memory_utilization`` on F1-F10: green, yellow, red
    """
    cpu = SignalMapping(
        id="0ae6d89e89f14906aa16a76c17270859",
        signal="cpu_utilization_max",
        min=0,
        max=100,
        ranges=_bands(
            (0, True, 80, solid_color("00FF00")),
            (80, False, 90, solid_color("FFFF00")),
            (90, False, 99, solid_color("FF0000")),
            (99, False, 100, solid_color_flashing("FF0000")),
        ),
        layouts={
            "en-US": LayoutMapping(
                key_groups=[[key] for key in ("1", "2", "3", "4", "5", "6", "7", "8", "9", "0")],
                mode=MappingMode.MULTI,
            )
        },
    )
    memory = SignalMapping(
        id="5dca1f2d738648a8b2b3b74931dd36f3",
        signal="memory_utilization",
        min=0,
        max=100,
        ranges=_bands(
            (0, True, 80, solid_color("00FF00")),
            (80, False, 90, solid_color("FFFF00")),
            (90, False, 100, solid_color("FF0000")),
        ),
        layouts={
            "en-US": LayoutMapping(
                key_groups=[[f"f{number}"] for number in range(1, 11)],
                mode=MappingMode.MULTI,
            )
        },
    )
    return [cpu, memory]


def load_mappings(config_dir: Path) -> list[SignalMapping]:
    """
    Mappings from ``<config_dir>/mappings.json``, or the built-in defaults.

    Raises:
        ConfigurationError: If the document exists but is malformed
    """
    path = config_dir / MAPPINGS_FILENAME
    if not path.exists():
        logger.info(f"No {MAPPINGS_FILENAME} in {config_dir}, using built-in mappings")
        return default_mappings()

    table = PydanticPersistence.load_json(path, MappingTable)
    logger.info(f"Loaded {len(table.mappings)} mappings from {path}")
    return list(table.mappings)


def save_default_mappings(config_dir: Path) -> Path:
    """Write the built-in mappings to ``mappings.json`` so they can be edited."""
    path = config_dir / MAPPINGS_FILENAME
    PydanticPersistence.save_json(MappingTable(mappings=default_mappings()), path)
    return path
