import json

import pytest

from varquery.schema import AnnField, CallInfo, Consequence, SequenceVariant
from varquery.sorting import ByCoordinate, ByHgncId


def _variant(chrom="1", pos=100, gene_id="HGNC:1100"):
    ann_fields = (
        [AnnField(gene_id=gene_id, consequences=[Consequence.MISSENSE_VARIANT])]
        if gene_id is not None
        else []
    )
    return SequenceVariant(
        chrom=chrom,
        pos=pos,
        reference="A",
        alternative="G",
        ann_fields=ann_fields,
        gnomad_exomes_an=1000,
        gnomad_exomes_het=2,
        call_info={"index": CallInfo(genotype="0/1", quality=30.0, dp=20, ad=10)},
    )


def test_by_hgnc_id_takes_first_annotation_gene():
    seqvar = _variant(gene_id="HGNC:1100")
    seqvar.ann_fields.append(AnnField(gene_id="HGNC:1"))
    assert ByHgncId.from_seqvar(seqvar).hgnc_id == "HGNC:1100"


def test_by_hgnc_id_without_annotation_is_empty():
    assert ByHgncId.from_seqvar(_variant(gene_id=None)).hgnc_id == ""


def test_by_hgnc_id_orders_by_gene_only():
    items = [
        ByHgncId.from_seqvar(_variant(pos=1, gene_id="HGNC:2")),
        ByHgncId.from_seqvar(_variant(pos=2, gene_id="HGNC:1")),
        ByHgncId.from_seqvar(_variant(pos=3, gene_id="HGNC:2")),
    ]
    ordered = sorted(items)
    assert [item.hgnc_id for item in ordered] == ["HGNC:1", "HGNC:2", "HGNC:2"]
    assert [item.seqvar.pos for item in ordered] == [2, 1, 3]


def test_by_hgnc_id_equality_ignores_variant():
    first = ByHgncId.from_seqvar(_variant(pos=1))
    second = ByHgncId.from_seqvar(_variant(pos=2))
    assert first == second
    assert hash(first) == hash(second)


def test_by_hgnc_id_json_round_trip():
    item = ByHgncId.from_seqvar(_variant())
    restored = ByHgncId.from_json(item.to_json())
    assert restored.hgnc_id == item.hgnc_id
    assert restored.seqvar == item.seqvar


def test_by_hgnc_id_json_layout():
    data = json.loads(ByHgncId.from_seqvar(_variant()).to_json())
    assert set(data) == {"hgnc_id", "seqvar"}
    assert data["hgnc_id"] == "HGNC:1100"


def test_by_hgnc_id_from_json_missing_field():
    with pytest.raises(ValueError):
        ByHgncId.from_json('{"seqvar": {}}')


def test_by_coordinate_uses_chrom_and_pos():
    item = ByCoordinate.from_seqvar(_variant(chrom="X", pos=42))
    assert item.coordinate == ("X", 42)


def test_by_coordinate_orders_lexicographically_by_chrom_then_pos():
    items = [
        ByCoordinate.from_seqvar(_variant(chrom="2", pos=5)),
        ByCoordinate.from_seqvar(_variant(chrom="10", pos=7)),
        ByCoordinate.from_seqvar(_variant(chrom="2", pos=1)),
    ]
    assert [item.coordinate for item in sorted(items)] == [
        ("10", 7),
        ("2", 1),
        ("2", 5),
    ]


def test_by_coordinate_json_round_trip():
    item = ByCoordinate.from_seqvar(_variant(chrom="MT", pos=73))
    restored = ByCoordinate.from_json(item.to_json())
    assert restored == item
    assert restored.seqvar == item.seqvar


def test_by_coordinate_json_coordinate_is_array():
    data = json.loads(ByCoordinate.from_seqvar(_variant(chrom="3", pos=9)).to_json())
    assert data["coordinate"] == ["3", 9]


def test_by_coordinate_from_json_rejects_non_object():
    with pytest.raises(ValueError):
        ByCoordinate.from_json("[1, 2]")