"""HID endpoint to model descriptor matching."""

from __future__ import annotations

from typing import Iterable

from pedalctl.core.model import HidEndpoint, ModelDescriptor


def _usb_id_match(endpoint: HidEndpoint, descriptor: ModelDescriptor) -> bool:
    return (endpoint.vendor_id, endpoint.product_id) == descriptor.usb_id


def _interface_match(endpoint: HidEndpoint, descriptor: ModelDescriptor) -> bool:
    # hidapi reports -1 (or nothing) when the platform does not expose interfaces.
    if descriptor.interface is None or endpoint.interface is None or endpoint.interface < 0:
        return True
    return endpoint.interface == descriptor.interface


def match_descriptor(endpoint: HidEndpoint, models: Iterable[ModelDescriptor]) -> ModelDescriptor | None:
    for descriptor in models:
        if _usb_id_match(endpoint, descriptor) and _interface_match(endpoint, descriptor):
            return descriptor
    return None
