"""Genomic region allowlist filter."""

from __future__ import annotations

import logging

from varquery.schema import CaseQuery, GenomicRegion, SequenceVariant, canonicalize

logger = logging.getLogger(__name__)


def passes(query: CaseQuery, seqvar: SequenceVariant) -> bool:
    """Return whether the variant overlaps any region of the allowlist.

    A missing or empty region list lets every variant pass.
    """
    regions = query.genomic_regions
    if not regions:
        return True
    end = seqvar.pos + len(seqvar.reference) - 1
    result = any(overlaps(region, seqvar.chrom, seqvar.pos, end) for region in regions)
    if not result:
        logger.debug("variant %r fails region allowlist filter %r", seqvar, regions)
    return result


def overlaps(
    region: GenomicRegion, seqvar_chrom: str, seqvar_pos: int, seqvar_end: int
) -> bool:
    """Return whether the closed interval on ``seqvar_chrom`` overlaps ``region``."""
    if canonicalize(region.chrom) != canonicalize(seqvar_chrom):
        return False
    if region.range is None:
        return True
    return region.range.start <= seqvar_end and region.range.end >= seqvar_pos