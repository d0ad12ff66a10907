"""Wrappers that order sequence variants by HGNC ID or by coordinate."""

from __future__ import annotations

import functools
import json
from dataclasses import dataclass
from typing import Any

from varquery.schema import SequenceVariant


def _dump(data: dict[str, Any]) -> str:
    return json.dumps(data, separators=(",", ":"))


def _load(text: str) -> dict[str, Any]:
    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError(f"expected a JSON object, got {type(data).__name__}")
    return data


@functools.total_ordering
@dataclass(eq=False)
class ByHgncId:
    """A sequence variant compared only by the HGNC ID of its first annotation."""

    hgnc_id: str
    seqvar: SequenceVariant

    @classmethod
    def from_seqvar(cls, seqvar: SequenceVariant) -> ByHgncId:
        hgnc_id = seqvar.ann_fields[0].gene_id if seqvar.ann_fields else ""
        return cls(hgnc_id=hgnc_id, seqvar=seqvar)

    def to_json(self) -> str:
        return _dump({"hgnc_id": self.hgnc_id, "seqvar": self.seqvar.to_dict()})

    @classmethod
    def from_json(cls, text: str) -> ByHgncId:
        data = _load(text)
        try:
            return cls(
                hgnc_id=str(data["hgnc_id"]),
                seqvar=SequenceVariant.from_dict(data["seqvar"]),
            )
        except KeyError as err:
            raise ValueError(f"missing field {err}") from None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ByHgncId):
            return NotImplemented
        return self.hgnc_id == other.hgnc_id

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, ByHgncId):
            return NotImplemented
        return self.hgnc_id < other.hgnc_id

    def __hash__(self) -> int:
        return hash(self.hgnc_id)


@functools.total_ordering
@dataclass(eq=False)
class ByCoordinate:
    """A sequence variant compared only by its ``(chrom, pos)`` coordinate."""

    coordinate: tuple[str, int]
    seqvar: SequenceVariant

    @classmethod
    def from_seqvar(cls, seqvar: SequenceVariant) -> ByCoordinate:
        return cls(coordinate=(seqvar.chrom, seqvar.pos), seqvar=seqvar)

    def to_json(self) -> str:
        return _dump(
            {"coordinate": list(self.coordinate), "seqvar": self.seqvar.to_dict()}
        )

    @classmethod
    def from_json(cls, text: str) -> ByCoordinate:
        data = _load(text)
        try:
            chrom, pos = data["coordinate"]
            return cls(
                coordinate=(str(chrom), int(pos)),
                seqvar=SequenceVariant.from_dict(data["seqvar"]),
            )
        except KeyError as err:
            raise ValueError(f"missing field {err}") from None
        except TypeError as err:
            raise ValueError(f"invalid coordinate: {err}") from None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ByCoordinate):
            return NotImplemented
        return self.coordinate == other.coordinate

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, ByCoordinate):
            return NotImplemented
        return self.coordinate < other.coordinate

    def __hash__(self) -> int:
        return hash(self.coordinate)