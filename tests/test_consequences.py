import pytest

from varquery.interpreter.consequences import passes
from varquery.schema import AnnField, CaseQuery, Consequence, SequenceVariant


def _seqvar(csqs, chrom=""):
    return SequenceVariant(
        chrom=chrom,
        reference="G",
        alternative="A",
        ann_fields=[AnnField(allele="A", consequences=list(csqs))],
    )


@pytest.mark.parametrize("c_equals_csq", [True, False])
@pytest.mark.parametrize("csq", list(Consequence))
def test_passes_consequence(csq, c_equals_csq):
    query = CaseQuery(
        consequences=[c for c in Consequence if (c == csq) == c_equals_csq]
    )
    assert passes(query, _seqvar([csq])) == c_equals_csq


def test_empty_selection_passes():
    query = CaseQuery(consequences=[])
    assert passes(query, _seqvar([])) is True


@pytest.mark.parametrize("chrom", ["MT", "chrM", "chrMT", "M"])
def test_mitochondrial_always_passes(chrom):
    query = CaseQuery(consequences=[Consequence.MISSENSE_VARIANT])
    assert passes(query, _seqvar([Consequence.INTRON_VARIANT], chrom=chrom)) is True


def test_no_annotation_fails():
    query = CaseQuery(consequences=[Consequence.MISSENSE_VARIANT])
    seqvar = SequenceVariant(chrom="1", reference="G", alternative="A")
    assert passes(query, seqvar) is False


def test_any_annotation_matching_passes():
    query = CaseQuery(consequences=[Consequence.STOP_GAINED])
    seqvar = SequenceVariant(
        chrom="1",
        ann_fields=[
            AnnField(consequences=[Consequence.INTRON_VARIANT]),
            AnnField(consequences=[Consequence.STOP_GAINED]),
        ],
    )
    assert passes(query, seqvar) is True