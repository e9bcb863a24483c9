import re
from datetime import timedelta
from typing import Any, Self

from pydantic_core import CoreSchema, core_schema

from src.alerting.domain.time.unit import TimeUnit

_UNIT_SECONDS = {
    TimeUnit.s: 1,
    TimeUnit.m: 60,
    TimeUnit.h: 3600,
    TimeUnit.d: 86400,
    TimeUnit.w: 604800,
}


class Duration:
    """Lookback span written as ``"7d"``, ``"12h"`` or ``"1d12h"``."""

    __REGEX_PATTERN = rf"(\d+(?:\.\d+)?)({TimeUnit.get_regex_pattern()})"

    delta: timedelta

    def __init__(self, delta: str | timedelta | int | float) -> None:
        if isinstance(delta, str):
            self.delta = self.__class__.__parse_str(delta)
        elif isinstance(delta, timedelta):
            self.delta = delta
        else:
            # bare numbers are minutes, like every other window in a rule
            self.delta = timedelta(minutes=delta)

        if self.delta < timedelta():
            raise ValueError(f"Duration cannot be negative: {delta}")

    @classmethod
    def __parse_str(cls, duration_str: str) -> timedelta:
        duration_str = duration_str.strip().lower()

        if not duration_str or duration_str == "0":
            return timedelta()

        matches = re.findall(cls.__REGEX_PATTERN, duration_str)
        consumed = "".join(f"{value}{unit}" for value, unit in matches)

        if not matches or consumed != duration_str:
            raise ValueError(f"Invalid duration format: {duration_str}")

        seconds = sum(float(value) * _UNIT_SECONDS[TimeUnit(unit)] for value, unit in matches)
        return timedelta(seconds=seconds)

    def __str__(self) -> str:
        total_seconds = int(self.delta.total_seconds())
        if total_seconds == 0:
            return "0"

        parts = []
        for unit in (TimeUnit.w, TimeUnit.d, TimeUnit.h, TimeUnit.m, TimeUnit.s):
            value, total_seconds = divmod(total_seconds, _UNIT_SECONDS[unit])
            if value:
                parts.append(f"{value}{unit}")
        return "".join(parts)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.__str__()})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Duration):
            return NotImplemented
        return self.delta == other.delta

    def __hash__(self) -> int:
        return hash(self.delta)

    def __bool__(self) -> bool:
        return self.delta != timedelta()

    @classmethod
    def __get_pydantic_core_schema__(cls, source_type: Any, handler: Any) -> CoreSchema:
        return core_schema.no_info_after_validator_function(
            cls._validate,
            core_schema.union_schema(
                [
                    core_schema.is_instance_schema(cls),
                    core_schema.str_schema(),
                    core_schema.is_instance_schema(timedelta),
                    core_schema.float_schema(),
                ]
            ),
            serialization=core_schema.to_string_ser_schema(),
        )

    @classmethod
    def _validate(cls, value: Any) -> Self:
        if isinstance(value, cls):
            return value
        if isinstance(value, (str, timedelta, int, float)):
            return cls(value)
        raise ValueError(f"Cannot convert {type(value)} to Duration")

    @classmethod
    def __get_pydantic_json_schema__(cls, schema: CoreSchema, handler: Any) -> dict[str, Any]:
        return {"type": "string", "examples": ["7d", "12h", "1d12h"]}
