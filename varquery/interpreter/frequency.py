"""Population frequency filter."""

from __future__ import annotations

import logging

from varquery.schema import CaseQuery, SequenceVariant, canonicalize

logger = logging.getLogger(__name__)


def _exceeds(value: float, limit: float | None) -> bool:
    return limit is not None and value > limit


def _fails_helixmtdb(query: CaseQuery, seqvar: SequenceVariant) -> bool:
    return query.helixmtdb_enabled and (
        _exceeds(seqvar.helixmtdb_af(), query.helixmtdb_frequency)
        or _exceeds(seqvar.helix_het, query.helixmtdb_heteroplasmic)
        or _exceeds(seqvar.helix_hom, query.helixmtdb_homoplasmic)
    )


def _fails_gnomad_exomes(query: CaseQuery, seqvar: SequenceVariant) -> bool:
    return query.gnomad_exomes_enabled and (
        _exceeds(seqvar.gnomad_exomes_af(), query.gnomad_exomes_frequency)
        or _exceeds(seqvar.gnomad_exomes_het, query.gnomad_exomes_heterozygous)
        or _exceeds(seqvar.gnomad_exomes_hom, query.gnomad_exomes_homozygous)
        or _exceeds(seqvar.gnomad_exomes_hemi, query.gnomad_exomes_hemizygous)
    )


def _fails_gnomad_genomes(
    query: CaseQuery, seqvar: SequenceVariant, is_mtdna: bool
) -> bool:
    return query.gnomad_genomes_enabled and (
        _exceeds(seqvar.gnomad_genomes_af(), query.gnomad_genomes_frequency)
        or _exceeds(seqvar.gnomad_genomes_het, query.gnomad_genomes_heterozygous)
        or _exceeds(seqvar.gnomad_genomes_hom, query.gnomad_genomes_homozygous)
        or (
            not is_mtdna
            and _exceeds(seqvar.gnomad_genomes_hemi, query.gnomad_genomes_hemizygous)
        )
    )


def passes(query: CaseQuery, seqvar: SequenceVariant) -> bool:
    """Return whether the variant passes the population frequency filter.

    HelixMtDb applies to mitochondrial variants only, gnomAD exomes to nuclear
    variants only, and gnomAD genomes to both (hemizygous counts nuclear only).
    """
    is_mtdna = canonicalize(seqvar.chrom) == "MT"

    if is_mtdna:
        if _fails_helixmtdb(query, seqvar):
            logger.debug("variant %r fails HelixMtDb frequency filter", seqvar)
            return False
    elif _fails_gnomad_exomes(query, seqvar):
        logger.debug(
            "variant %r fails gnomAD exomes frequency filter %r",
            seqvar,
            query.gnomad_exomes_frequency,
        )
        return False

    if _fails_gnomad_genomes(query, seqvar, is_mtdna):
        logger.debug(
            "variant %r fails gnomAD genomes frequency filter %r",
            seqvar,
            query.gnomad_genomes_frequency,
        )
        return False

    return True