"""Resource usage of waited-for child processes."""

from __future__ import annotations

import resource
from dataclasses import dataclass


@dataclass(frozen=True)
class Rusage:
    """CPU times in microseconds and maximum resident set size."""

    user_time: float
    system_time: float
    max_res_size: float

    @classmethod
    def children(cls) -> Rusage:
        """Snapshot the accumulated usage of terminated child processes."""
        usage = resource.getrusage(resource.RUSAGE_CHILDREN)
        return cls(
            user_time=float(round(usage.ru_utime * 1_000_000)),
            system_time=float(round(usage.ru_stime * 1_000_000)),
            max_res_size=float(usage.ru_maxrss),
        )

    def __sub__(self, other: Rusage) -> Rusage:
        if not isinstance(other, Rusage):
            return NotImplemented
        return Rusage(
            user_time=self.user_time - other.user_time,
            system_time=self.system_time - other.system_time,
            max_res_size=self.max_res_size - other.max_res_size,
        )