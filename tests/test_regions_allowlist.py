import pytest

from varquery.interpreter.regions_allowlist import overlaps, passes
from varquery.schema import CaseQuery, GenomicRegion, Range, SequenceVariant


@pytest.mark.parametrize(
    "region_chrom, region_range, seqvar_chrom, seqvar_start, seqvar_end, expected",
    [
        ("1", (100, 200), "1", 100, 200, True),
        ("chr1", (100, 200), "1", 100, 200, True),
        ("chr1", (100, 200), "chr1", 100, 200, True),
        ("chr1", (100, 200), "chr1", 200, 300, True),
        ("chr1", (100, 200), "chr1", 201, 300, False),
        ("1", (100, 200), "2", 100, 200, False),
    ],
)
def test_overlaps(
    region_chrom, region_range, seqvar_chrom, seqvar_start, seqvar_end, expected
):
    region = GenomicRegion(
        chrom=region_chrom,
        range=None if region_range is None else Range(*region_range),
    )
    assert overlaps(region, seqvar_chrom, seqvar_start, seqvar_end) == expected


def test_overlaps_whole_chromosome():
    assert overlaps(GenomicRegion(chrom="chrX"), "X", 5, 5) is True
    assert overlaps(GenomicRegion(chrom="chrX"), "Y", 5, 5) is False


def test_passes_without_regions():
    seqvar = SequenceVariant(chrom="1", pos=10, reference="A", alternative="G")
    assert passes(CaseQuery(genomic_regions=None), seqvar) is True
    assert passes(CaseQuery(genomic_regions=[]), seqvar) is True


def test_passes_uses_reference_length_for_end():
    query = CaseQuery(genomic_regions=[GenomicRegion(chrom="1", range=Range(105, 110))])
    long_ref = SequenceVariant(chrom="chr1", pos=100, reference="ACGTAC", alternative="A")
    short_ref = SequenceVariant(chrom="chr1", pos=100, reference="ACGTA", alternative="A")
    assert passes(query, long_ref) is True
    assert passes(query, short_ref) is False


def test_passes_any_region():
    query = CaseQuery(
        genomic_regions=[
            GenomicRegion(chrom="2", range=Range(1, 1000)),
            GenomicRegion(chrom="3"),
        ]
    )
    assert passes(query, SequenceVariant(chrom="3", pos=50, reference="A")) is True
    assert passes(query, SequenceVariant(chrom="4", pos=50, reference="A")) is False