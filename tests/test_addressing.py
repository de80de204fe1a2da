from __future__ import annotations

import pytest

from pedalctl.core.addressing import pedal_label, resolve
from pedalctl.core.errors import InvalidPedalReferenceError, InvalidSlotError


@pytest.mark.parametrize("reference", ["1", "left", "LEFT", " Left "])
def test_first_pedal_references_are_equivalent(three_pedal, reference: str) -> None:
    assert resolve(three_pedal, reference) == 0


def test_names_and_numbers(three_pedal) -> None:
    assert resolve(three_pedal, "2") == 1
    assert resolve(three_pedal, "middle") == 1
    assert resolve(three_pedal, "3") == resolve(three_pedal, "right") == 2


@pytest.mark.parametrize("reference", ["4", "0", "-1", "centre", "", "1.0"])
def test_invalid_references(three_pedal, reference: str) -> None:
    with pytest.raises(InvalidPedalReferenceError) as excinfo:
        resolve(three_pedal, reference)
    assert excinfo.value.valid_names == ("left", "middle", "right")
    assert "Use 1-3 or one of: left, middle, right" in str(excinfo.value)


def test_single_pedal_model(one_pedal) -> None:
    assert resolve(one_pedal, "1") == 0
    assert resolve(one_pedal, "Pedal") == 0
    with pytest.raises(InvalidPedalReferenceError):
        resolve(one_pedal, "left")


def test_pedal_label(three_pedal) -> None:
    assert pedal_label(three_pedal, 2) == "right"
    with pytest.raises(InvalidSlotError):
        pedal_label(three_pedal, 3)
