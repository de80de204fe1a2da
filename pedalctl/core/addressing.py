"""Resolve user pedal references (numbers or names) to slot indices."""

from __future__ import annotations

from pedalctl.core.errors import InvalidPedalReferenceError, InvalidSlotError
from pedalctl.core.model import ModelDescriptor


def resolve(descriptor: ModelDescriptor, reference: str) -> int:
    """Return the 0-based slot for a 1-based numeral or a pedal name."""
    token = reference.strip()
    if token.isdecimal():
        number = int(token)
        if 1 <= number <= descriptor.pedal_count:
            return number - 1
    else:
        lowered = token.lower()
        for slot, name in enumerate(descriptor.pedal_names):
            if name.lower() == lowered:
                return slot
    raise InvalidPedalReferenceError(reference, descriptor.pedal_names, descriptor.pedal_count)


def pedal_label(descriptor: ModelDescriptor, slot: int) -> str:
    if not 0 <= slot < descriptor.pedal_count:
        raise InvalidSlotError(slot, descriptor.pedal_count)
    return descriptor.pedal_names[slot]
