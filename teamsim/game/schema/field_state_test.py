"""Unit tests for FieldConditions."""

import json
import unittest

from teamsim.game.schema.enums import SideCondition, Terrain, Weather
from teamsim.game.schema.field_state import FieldConditions


class FieldConditionsTest(unittest.TestCase):
    """Test FieldConditions functionality."""

    def test_defaults(self) -> None:
        """Test that a fresh field has nothing active."""
        field = FieldConditions()

        self.assertIsNone(field.weather)
        self.assertIsNone(field.terrain)
        self.assertFalse(field.trick_room)
        self.assertFalse(field.tailwind("p1"))
        self.assertEqual(field.hazards("p2"), [])

    def test_side_conditions_are_per_side(self) -> None:
        """Test that screens and tailwind only apply to their own side."""
        field = FieldConditions(
            side_conditions={
                "p1": {SideCondition.TAILWIND: 1, SideCondition.AURORA_VEIL: 1},
                "p2": {SideCondition.REFLECT: 1, SideCondition.LIGHT_SCREEN: 1},
            }
        )

        self.assertTrue(field.tailwind("p1"))
        self.assertTrue(field.aurora_veil("p1"))
        self.assertFalse(field.tailwind("p2"))
        self.assertTrue(field.reflect("p2"))
        self.assertTrue(field.light_screen("p2"))
        self.assertFalse(field.reflect("p1"))

    def test_hazards_exclude_screens(self) -> None:
        """Test that only entry hazards are reported as hazards."""
        field = FieldConditions(
            side_conditions={
                "p1": {
                    SideCondition.STEALTH_ROCK: 1,
                    SideCondition.SPIKES: 2,
                    SideCondition.REFLECT: 1,
                },
                "p2": {},
            }
        )

        self.assertEqual(
            field.hazards("p1"), [SideCondition.STEALTH_ROCK, SideCondition.SPIKES]
        )

    def test_to_dict_is_json_serializable(self) -> None:
        """Test the dict form uses protocol ids."""
        field = FieldConditions(
            weather=Weather.RAIN,
            terrain=Terrain.PSYCHIC,
            trick_room=True,
            side_conditions={"p1": {SideCondition.SPIKES: 3}, "p2": {}},
        )
        data = json.loads(json.dumps(field.to_dict()))

        self.assertEqual(data["weather"], "raindance")
        self.assertEqual(data["terrain"], "psychicterrain")
        self.assertTrue(data["trick_room"])
        self.assertEqual(data["side_conditions"]["p1"], {"spikes": 3})

    def test_weather_from_protocol(self) -> None:
        """Test weather parsing from protocol strings."""
        self.assertEqual(Weather.from_protocol("SunnyDay"), Weather.SUN)
        self.assertEqual(Weather.from_protocol("Snowscape"), Weather.SNOW)
        self.assertIsNone(Weather.from_protocol("none"))
        with self.assertRaises(ValueError):
            Weather.from_protocol("Fog")


if __name__ == "__main__":
    unittest.main()
