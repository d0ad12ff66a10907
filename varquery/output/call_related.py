"""Call-related part of the result payload."""

from __future__ import annotations

import dataclasses
import math
from dataclasses import dataclass, field
from typing import Any

from varquery.schema import SequenceVariant

_I32_MIN = -(2**31)
_I32_MAX = 2**31 - 1


def _quality_to_int(value: float) -> int:
    """Truncate a genotype quality to a 32-bit integer, saturating at the bounds."""
    if math.isnan(value):
        return 0
    if value >= _I32_MAX:
        return _I32_MAX
    if value <= _I32_MIN:
        return _I32_MIN
    return int(value)


@dataclass
class CallInfo:
    """Genotype information of one sample."""

    dp: int | None = None
    ad: int | None = None
    gq: int | None = None
    gt: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return dataclasses.asdict(self)


@dataclass
class Record:
    """Genotype calls of all samples, in sample order."""

    call_info: dict[str, CallInfo] = field(default_factory=dict)

    @classmethod
    def with_seqvar(cls, seqvar: SequenceVariant) -> Record:
        """Build from the call information of a sequence variant."""
        return cls(
            call_info={
                name: CallInfo(
                    dp=call.dp,
                    ad=call.ad,
                    gq=None if call.quality is None else _quality_to_int(call.quality),
                    gt=call.genotype,
                )
                for name, call in seqvar.call_info.items()
            }
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "call_info": {name: info.to_dict() for name, info in self.call_info.items()}
        }