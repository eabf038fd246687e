"""Rate window units and refill interval math."""

from __future__ import annotations

from enum import Enum

from crpt_api.errors import InvalidConfiguration


class TimeUnit(Enum):
    """Window granularity, valued in nanoseconds."""

    NANOSECONDS = 1
    MICROSECONDS = 1_000
    MILLISECONDS = 1_000_000
    SECONDS = 1_000_000_000
    MINUTES = 60 * 1_000_000_000
    HOURS = 60 * 60 * 1_000_000_000
    DAYS = 24 * 60 * 60 * 1_000_000_000

    @property
    def nanos(self) -> int:
        return int(self.value)

    @classmethod
    def parse(cls, raw: str | TimeUnit) -> TimeUnit:
        """Resolve a unit from its name, case-insensitive, singular or plural."""
        if isinstance(raw, TimeUnit):
            return raw
        name = str(raw).strip().upper()
        if name and not name.endswith("S"):
            name = f"{name}S"
        try:
            return cls[name]
        except KeyError:
            allowed = ", ".join(unit.name.lower() for unit in cls)
            raise InvalidConfiguration(
                f"unknown time unit {raw!r}; expected one of: {allowed}"
            ) from None


def validate_limit(request_limit: object) -> int:
    if isinstance(request_limit, bool) or not isinstance(request_limit, int):
        raise InvalidConfiguration(f"request_limit must be an integer, got {request_limit!r}")
    if request_limit <= 0:
        raise InvalidConfiguration(f"request_limit must be > 0, got {request_limit}")
    return request_limit


def refill_interval_ns(time_unit: TimeUnit, request_limit: int) -> int:
    """Nanoseconds between single-permit refills, never below one tick."""
    limit = validate_limit(request_limit)
    return max(1, time_unit.nanos // limit)
