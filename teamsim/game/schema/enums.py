"""Enums for battle state representation."""

from enum import Enum
from typing import Optional

from teamsim.game.schema.object_name_normalizer import normalize_effect_name


class Weather(Enum):
    """Field weather conditions."""

    SUN = "sunnyday"
    RAIN = "raindance"
    SANDSTORM = "sandstorm"
    SNOW = "snow"
    HARSH_SUN = "desolateland"
    HEAVY_RAIN = "primordialsea"
    STRONG_WINDS = "deltastream"

    @classmethod
    def from_protocol(cls, protocol_str: str) -> Optional["Weather"]:
        """Parse weather from a protocol string, None for "none".

        Raises:
            ValueError: If protocol string is not recognized

        Examples:
            >>> Weather.from_protocol("SunnyDay")
            <Weather.SUN: 'sunnyday'>
            >>> Weather.from_protocol("none") is None
            True
        """
        mapping = {
            "sunnyday": cls.SUN,
            "sun": cls.SUN,
            "raindance": cls.RAIN,
            "rain": cls.RAIN,
            "sandstorm": cls.SANDSTORM,
            "snow": cls.SNOW,
            "snowscape": cls.SNOW,
            "hail": cls.SNOW,
            "desolateland": cls.HARSH_SUN,
            "primordialsea": cls.HEAVY_RAIN,
            "deltastream": cls.STRONG_WINDS,
        }
        normalized = normalize_effect_name(protocol_str)
        if normalized in ("none", ""):
            return None
        if normalized not in mapping:
            raise ValueError(f"Unknown weather protocol string: {protocol_str}")
        return mapping[normalized]


class Terrain(Enum):
    """Field terrain conditions."""

    ELECTRIC = "electricterrain"
    GRASSY = "grassyterrain"
    PSYCHIC = "psychicterrain"
    MISTY = "mistyterrain"


class SideCondition(Enum):
    """Side-specific field conditions."""

    REFLECT = "reflect"
    LIGHT_SCREEN = "lightscreen"
    AURORA_VEIL = "auroraveil"
    TAILWIND = "tailwind"
    SAFEGUARD = "safeguard"
    MIST = "mist"
    STEALTH_ROCK = "stealthrock"
    SPIKES = "spikes"
    TOXIC_SPIKES = "toxicspikes"
    STICKY_WEB = "stickyweb"

    @property
    def is_hazard(self) -> bool:
        return self in (
            SideCondition.STEALTH_ROCK,
            SideCondition.SPIKES,
            SideCondition.TOXIC_SPIKES,
            SideCondition.STICKY_WEB,
        )
