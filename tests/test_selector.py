from __future__ import annotations

import numpy as np

from conftest import ScriptedGenerator
from nft import pick_element


def _layer(number: int, count: int) -> dict:
    return {
        "id": 0,
        "name": "bg",
        "number": number,
        "elements": [{"id": i + 1, "name": f"t{i + 1}"} for i in range(count)],
    }


def test_draw_maps_to_slot_index() -> None:
    layer = _layer(number=4, count=4)
    generator = ScriptedGenerator([0.0, 0.24, 0.25, 0.99])

    picks = [pick_element(layer, generator)["id"] for _ in range(4)]

    assert picks == [1, 1, 2, 4]


def test_slots_past_elements_select_nothing() -> None:
    layer = _layer(number=4, count=2)
    generator = ScriptedGenerator([0.49, 0.5, 0.99])

    assert pick_element(layer, generator)["id"] == 2
    assert pick_element(layer, generator) is None
    assert pick_element(layer, generator) is None


def test_elements_past_slot_count_are_never_drawn() -> None:
    layer = _layer(number=2, count=5)
    generator = np.random.default_rng(7)

    ids = {pick_element(layer, generator)["id"] for _ in range(200)}

    assert ids == {1, 2}
