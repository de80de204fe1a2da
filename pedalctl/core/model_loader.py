"""Model table loading and validation for YAML device model files."""

from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import dataclass
from importlib import resources
from importlib.resources.abc import Traversable
from pathlib import Path
from typing import Any

import yaml
from jsonschema import ValidationError, validators

from pedalctl.core.errors import ModelLoadError, ModelValidationError
from pedalctl.core.model import ModelDescriptor

_HEX_RE = re.compile(r"^[0-9a-f]{4}$")
_DEFAULT_TIMEOUT_MS = 500
LOGGER = logging.getLogger(__name__)


class UniqueKeyLoader(yaml.SafeLoader):
    """YAML loader that rejects duplicate mapping keys."""


UniqueKeyLoader.yaml_implicit_resolvers = {
    key: list(value) for key, value in yaml.SafeLoader.yaml_implicit_resolvers.items()
}

# YAML 1.1 booleans ("on", "off", "yes") stay strings.
for first_char, mappings in list(UniqueKeyLoader.yaml_implicit_resolvers.items()):
    UniqueKeyLoader.yaml_implicit_resolvers[first_char] = [
        (tag, regexp)
        for tag, regexp in mappings
        if tag != "tag:yaml.org,2002:bool"
    ]


def _construct_mapping(loader: UniqueKeyLoader, node: yaml.Node, deep: bool = False) -> dict[str, Any]:
    mapping: dict[str, Any] = {}
    for key_node, value_node in node.value:
        key = loader.construct_object(key_node, deep=deep)
        if key in mapping:
            raise ModelValidationError(f"Duplicate key '{key}' in YAML document")
        mapping[key] = loader.construct_object(value_node, deep=deep)
    return mapping


UniqueKeyLoader.add_constructor(
    yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG,
    _construct_mapping,
)


@dataclass(frozen=True)
class LoadedModels:
    models: tuple[ModelDescriptor, ...]
    warnings: tuple[str, ...]


def _load_schema_validator() -> Any:
    schema_text = resources.files("pedalctl.schemas").joinpath("model.schema.json").read_text(
        encoding="utf-8"
    )
    schema = json.loads(schema_text)
    validator_cls = validators.validator_for(schema)
    validator_cls.check_schema(schema)
    return validator_cls(schema)


def _model_dirs() -> tuple[Path, Path]:
    xdg_config = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    xdg_data = Path(os.environ.get("XDG_DATA_HOME", Path.home() / ".local/share"))
    return xdg_config / "pedalctl/models", xdg_data / "pedalctl/models"


def _read_yaml(path: Path | Traversable) -> dict[str, Any]:
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ModelLoadError(f"Could not read model file {path}: {exc}") from exc

    try:
        loaded = yaml.load(content, Loader=UniqueKeyLoader)
    except yaml.YAMLError as exc:
        raise ModelValidationError(f"Invalid YAML in {path}: {exc}") from exc

    if not isinstance(loaded, dict):
        raise ModelValidationError(f"Model file {path} must contain a mapping at root")
    return loaded


def _parse_hex_id(value: str, *, context: str) -> int:
    normalized = value.strip().lower()
    if not _HEX_RE.match(normalized):
        raise ModelValidationError(f"{context} must be four hex digits, got '{value}'")
    return int(normalized, 16)


def _parse_usb_id(value: str, *, context: str) -> tuple[int, int]:
    vendor, sep, product = value.partition(":")
    if not sep:
        raise ModelValidationError(f"{context} must look like 'vvvv:pppp', got '{value}'")
    return (
        _parse_hex_id(vendor, context=f"{context} vendor"),
        _parse_hex_id(product, context=f"{context} product"),
    )


def _check_pedal_names(doc: dict[str, Any], source: Path | Traversable) -> tuple[str, ...]:
    names = tuple(doc["pedal_names"])
    if len(names) != doc["pedal_count"]:
        raise ModelValidationError(
            f"{source}: pedal_names lists {len(names)} name(s) but pedal_count is {doc['pedal_count']}"
        )
    lowered = [name.lower() for name in names]
    if len(set(lowered)) != len(lowered):
        raise ModelValidationError(f"{source}: pedal names must be unique (case-insensitive)")
    return names


def _build_descriptors(doc: dict[str, Any], source: Path | Traversable) -> tuple[ModelDescriptor, ...]:
    validator = _load_schema_validator()
    try:
        validator.validate(doc)
    except ValidationError as exc:
        path = ".".join(str(p) for p in exc.path)
        where = f" ({path})" if path else ""
        raise ModelValidationError(f"Schema validation failed for {source}{where}: {exc.message}") from exc

    pedal_names = _check_pedal_names(doc, source)
    timing = doc.get("timing", {})
    framing = doc.get("framing", {})
    quirks = frozenset(doc.get("quirks", []))

    descriptors: list[ModelDescriptor] = []
    for position, raw_id in enumerate(doc["usb_ids"]):
        vendor_id, product_id = _parse_usb_id(raw_id, context=f"{doc['id']}.usb_ids[{position}]")
        descriptors.append(
            ModelDescriptor(
                id=doc["id"],
                name=doc["name"],
                vendor_id=vendor_id,
                product_id=product_id,
                pedal_count=int(doc["pedal_count"]),
                pedal_names=pedal_names,
                timeout_s=timing.get("timeout_ms", _DEFAULT_TIMEOUT_MS) / 1000,
                report_delay_s=timing.get("report_delay_ms", 0) / 1000,
                begin_write_delay_s=timing.get("begin_write_delay_ms", 0) / 1000,
                first_slot=int(doc.get("first_slot", 0)),
                interface=doc.get("interface"),
                quirks=quirks,
                begin_write_arg=framing.get("begin_write_arg", 1),
                header_size=framing.get("header_size"),
            )
        )

    if quirks:
        unknown = descriptors[0].unknown_quirks
        if unknown:
            LOGGER.debug("Model '%s' declares unsupported quirk(s): %s", doc["id"], ", ".join(sorted(unknown)))
    return tuple(descriptors)


def _iter_packaged_model_paths() -> list[Traversable]:
    model_root = resources.files("pedalctl.models")
    return [item for item in model_root.iterdir() if item.name.endswith((".yml", ".yaml"))]


def _iter_user_model_paths() -> list[Path]:
    paths: list[Path] = []
    for directory in _model_dirs():
        if not directory.exists() or not directory.is_dir():
            continue
        paths.extend(sorted(p for p in directory.iterdir() if p.suffix in {".yml", ".yaml"}))
    return paths


def _check_unique_usb_ids(families: dict[str, tuple[ModelDescriptor, ...]]) -> None:
    owners: dict[tuple[int, int], str] = {}
    for family_id, descriptors in families.items():
        for descriptor in descriptors:
            owner = owners.setdefault(descriptor.usb_id, family_id)
            if owner != family_id:
                raise ModelValidationError(
                    f"USB id {descriptor.usb_id_text} is declared by both '{owner}' and '{family_id}'"
                )


def load_models() -> LoadedModels:
    families: dict[str, tuple[ModelDescriptor, ...]] = {}
    warnings: list[str] = []

    for path in sorted(_iter_packaged_model_paths(), key=lambda p: p.name):
        doc = _read_yaml(path)
        descriptors = _build_descriptors(doc, path)
        families[descriptors[0].id] = descriptors

    for path in _iter_user_model_paths():
        doc = _read_yaml(path)
        descriptors = _build_descriptors(doc, path)
        family_id = descriptors[0].id
        if family_id in families:
            warning = f"User model '{family_id}' overrides packaged model"
            LOGGER.warning(warning)
            warnings.append(warning)
        families[family_id] = descriptors

    _check_unique_usb_ids(families)
    models = tuple(descriptor for descriptors in families.values() for descriptor in descriptors)
    LOGGER.debug("Loaded %d model descriptor(s) from %d model file(s)", len(models), len(families))
    return LoadedModels(models=models, warnings=tuple(warnings))
