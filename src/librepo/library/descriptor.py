"""
Library descriptors and the two on-disk descriptor generations.

Generation 1 (``spark.json``) is a JSON object read verbatim. Generation 2
(``library.properties``) is line oriented ``key=value`` text written in a
fixed key order so that equal descriptors always serialize to equal bytes.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional, Union

import aiofiles

from .errors import LibraryFormatError

V2_FIELD_ORDER = ("name", "version", "license", "author", "sentence")
NAME_MISMATCH = "name in descriptor does not match directory name"


@dataclass
class Descriptor:
    """Library metadata: known fields plus a sideband for anything else."""

    name: str
    version: Optional[str] = None
    license: Optional[str] = None
    author: Optional[str] = None
    sentence: Optional[str] = None
    description: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "Descriptor":
        known = {f.name for f in fields(cls) if f.name != "extra"}
        values = {k: v for k, v in mapping.items() if k in known}
        extra = {k: v for k, v in mapping.items() if k not in known}
        values.setdefault("name", "")
        return cls(**values, extra=extra)

    def to_mapping(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        for f in fields(self):
            if f.name == "extra":
                continue
            value = getattr(self, f.name)
            if value is not None:
                data[f.name] = value
        data.update(self.extra)
        return data


DescriptorLike = Union[Descriptor, Mapping[str, Any]]


def _as_mapping(descriptor: DescriptorLike) -> Dict[str, Any]:
    if isinstance(descriptor, Descriptor):
        return descriptor.to_mapping()
    return dict(descriptor)


def remove_id(mapping: Mapping[str, Any]) -> Dict[str, Any]:
    """Drop the catalog-assigned ``id`` key."""
    return {k: v for k, v in mapping.items() if k != "id"}


# ----------------------------------------------------------------------
# Generation 1: spark.json
# ----------------------------------------------------------------------
def parse_descriptor_v1(text: str, name: str, path: Union[str, Path], repository: Any = None) -> Descriptor:
    try:
        data = json.loads(text)
    except ValueError as exc:
        raise LibraryFormatError(repository, name, f'Error parsing file "{path}"') from exc
    if not isinstance(data, dict):
        raise LibraryFormatError(repository, name, f'Error parsing file "{path}"')
    return Descriptor.from_mapping(data)


def build_descriptor_v1(descriptor: DescriptorLike) -> str:
    return json.dumps(remove_id(_as_mapping(descriptor)), indent=2) + "\n"


async def read_descriptor_v1(path: Path, name: str, repository: Any = None) -> Descriptor:
    text = await _read_text(path, name, repository)
    return parse_descriptor_v1(text, name, path, repository)


# ----------------------------------------------------------------------
# Generation 2: library.properties
# ----------------------------------------------------------------------
def _parse_properties(text: str, name: str, repository: Any) -> Dict[str, str]:
    properties: Dict[str, str] = {}
    for lineno, line in enumerate(text.splitlines(), start=1):
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        key, sep, value = stripped.partition("=")
        if not sep:
            raise LibraryFormatError(repository, name, f"line {lineno} is not a key=value pair")
        properties[key.strip()] = value.strip()
    return properties


def parse_descriptor_v2(text: str, name: Optional[str] = None, repository: Any = None) -> Descriptor:
    """Parse ``library.properties`` content.

    When ``name`` is given, the ``name`` property must equal it.
    """
    properties = _parse_properties(text, name or "", repository)
    if name and properties.get("name") != name:
        raise LibraryFormatError(repository, name, NAME_MISMATCH)
    if "description" not in properties and "sentence" in properties:
        properties["description"] = properties["sentence"]
    return Descriptor.from_mapping(properties)


def prepare_descriptor_v2(descriptor: DescriptorLike) -> Dict[str, Any]:
    """Return a copy with ``sentence`` derived from ``description`` when absent."""
    data = _as_mapping(descriptor)
    if data.get("sentence") is None and data.get("description") is not None:
        data["sentence"] = data["description"]
    return data


def _property_lines(items: Iterable[tuple[str, Any]]) -> Iterable[str]:
    for key, value in items:
        if value is None or value == "":
            continue
        yield f"{key}={value}\n"


def build_descriptor_v2(descriptor: DescriptorLike) -> str:
    data = prepare_descriptor_v2(descriptor)
    ordered = [(key, data.get(key)) for key in V2_FIELD_ORDER]
    skip = set(V2_FIELD_ORDER) | {"description", "id"}
    extras = [
        (key, value)
        for key, value in data.items()
        if key not in skip and isinstance(value, (str, int, float))
    ]
    return "".join(_property_lines(ordered)) + "".join(_property_lines(extras))


async def read_descriptor_v2(path: Path, name: Optional[str] = None, repository: Any = None) -> Descriptor:
    text = await _read_text(path, name or "", repository)
    return parse_descriptor_v2(text, name, repository)


async def _read_text(path: Path, name: str, repository: Any) -> str:
    try:
        async with aiofiles.open(path, "r", encoding="utf-8") as handle:
            return await handle.read()
    except (OSError, UnicodeDecodeError) as exc:
        raise LibraryFormatError(repository, name, f'Error reading file "{path}"') from exc
