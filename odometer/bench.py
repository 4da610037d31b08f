"""Benchmark definitions and per-request measurement summaries."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from odometer.engine_api import EngineApiParseError, EngineApiRequest, EngineApiResponse


def _require_str(data: dict, key: str) -> str:
    if key not in data:
        raise EngineApiParseError(f"missing field `{key}`")
    value = data[key]
    if not isinstance(value, str):
        raise EngineApiParseError(f"invalid type for `{key}`: expected a string")
    return value


@dataclass
class SequenceItem:
    """One Engine API call in a benchmark, and whether its timing is kept."""

    description: str
    expect_measurement: bool
    request: EngineApiRequest

    @classmethod
    def from_dict(cls, data: Any) -> SequenceItem:
        if not isinstance(data, dict):
            raise EngineApiParseError("invalid type for SequenceItem: expected an object")
        description = _require_str(data, "description")
        if "expect_measurement" not in data:
            raise EngineApiParseError("missing field `expect_measurement`")
        expect = data["expect_measurement"]
        if not isinstance(expect, bool):
            raise EngineApiParseError("invalid type for `expect_measurement`: expected a boolean")
        if "request" not in data:
            raise EngineApiParseError("missing field `request`")
        return cls(
            description=description,
            expect_measurement=expect,
            request=EngineApiRequest.from_dict(data["request"]),
        )


@dataclass
class BenchInput:
    """A named benchmark: the sequence of Engine API calls needed to run it."""

    name: str
    description: str
    sequence: list[SequenceItem]

    @classmethod
    def from_dict(cls, data: Any) -> BenchInput:
        if not isinstance(data, dict):
            raise EngineApiParseError("invalid type for BenchInput: expected an object")
        name = _require_str(data, "name")
        description = _require_str(data, "description")
        if "sequence" not in data:
            raise EngineApiParseError("missing field `sequence`")
        sequence = data["sequence"]
        if not isinstance(sequence, list):
            raise EngineApiParseError("invalid type for `sequence`: expected a list")
        return cls(
            name=name,
            description=description,
            sequence=[SequenceItem.from_dict(item) for item in sequence],
        )

    @classmethod
    def from_json(cls, text: str) -> BenchInput:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise EngineApiParseError(str(exc)) from exc
        return cls.from_dict(data)


@dataclass
class BenchRequestSummary:
    """Timing and gas of one measured Engine API request."""

    description: str
    time_taken_microseconds: int
    gas_used: str
    response: EngineApiResponse