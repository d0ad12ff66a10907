"""Genotype filter, including the recessive inheritance modes."""

from __future__ import annotations

import logging
from collections.abc import Collection, Mapping

from varquery.schema import CaseQuery, GenotypeChoice, SequenceVariant

logger = logging.getLogger(__name__)

_NO_CALL = "."


def passes(
    query: CaseQuery,
    seqvar: SequenceVariant,
    no_call_samples: Collection[str],
) -> bool:
    """Return whether the variant passes the genotype filter of ``query``.

    Genotypes of samples in ``no_call_samples`` are treated as no-calls.
    Raises ``ValueError`` if the query or the variant is inconsistent.
    """
    if query.recessive_mode():
        index_sample = query.index_sample()
        if index_sample is None:
            raise ValueError("recessive mode requires an index sample, but none was found")
        result = passes_recessive_modes(query.genotype, index_sample, seqvar, no_call_samples)
    else:
        result = passes_non_recessive_mode(query.genotype, seqvar, no_call_samples)

    if not result:
        logger.debug("variant %r fails genotype filter %r", seqvar, query.genotype)
    return result


def _sample_genotype(
    role: str,
    name: str,
    seqvar: SequenceVariant,
    no_call_samples: Collection[str],
) -> str:
    if name in no_call_samples:
        return _NO_CALL
    call_info = seqvar.call_info.get(name)
    if call_info is None:
        raise ValueError(f"{role} sample {name} not found in call info for {seqvar!r}")
    if call_info.genotype is None:
        raise ValueError(f"{role} sample {name} has no genotype in call info for {seqvar!r}")
    return call_info.genotype


def passes_recessive_modes(
    query_genotype: Mapping[str, GenotypeChoice | None],
    index_name: str,
    seqvar: SequenceVariant,
    no_call_samples: Collection[str],
) -> bool:
    """Evaluate the compound heterozygous and homozygous recessive modes."""
    if index_name not in query_genotype:
        raise ValueError(
            f"index sample {index_name} not found in genotype filter {query_genotype!r}"
        )
    index_choice = query_genotype[index_name]
    if index_choice is None:
        raise ValueError(
            f"index sample {index_name} has no genotype choice "
            f"in genotype filter {query_genotype!r}"
        )

    index_gt = _sample_genotype("index", index_name, seqvar, no_call_samples)
    parent_names = [
        sample
        for sample, choice in query_genotype.items()
        if choice is GenotypeChoice.RECESSIVE_PARENT
    ]
    parent_gts = [
        _sample_genotype("parent", name, seqvar, no_call_samples) for name in parent_names
    ]

    index_is_het = GenotypeChoice.HET.matches(index_gt)
    parents_ref = sum(GenotypeChoice.REF.matches(gt) for gt in parent_gts)
    parents_het = sum(GenotypeChoice.HET.matches(gt) for gt in parent_gts)
    parents_hom = sum(GenotypeChoice.HOM.matches(gt) for gt in parent_gts)

    if len(parent_names) == 0:
        compound_ok = index_is_het
    elif len(parent_names) == 1:
        compound_ok = index_is_het and parents_ref + parents_het == 1 and parents_hom == 0
    elif len(parent_names) == 2:
        compound_ok = index_is_het and parents_ref == 1 and parents_het == 1 and parents_hom == 0
    else:
        raise ValueError("more than two recessive parents selected")

    homozygous_ok = GenotypeChoice.HOM.matches(index_gt) and all(
        GenotypeChoice.HET.matches(gt) for gt in parent_gts
    )

    if index_choice is GenotypeChoice.COMPHET_INDEX:
        return compound_ok
    if index_choice is GenotypeChoice.RECESSIVE_INDEX:
        return compound_ok or homozygous_ok
    raise ValueError(f"invalid genotype choice for recessive mode: {index_choice!r}")


def passes_non_recessive_mode(
    query_genotype: Mapping[str, GenotypeChoice | None],
    seqvar: SequenceVariant,
    no_call_samples: Collection[str],
) -> bool:
    """Check each sample's genotype against its plain genotype choice.

    Samples without a choice are skipped; samples without call information or
    genotype make the variant fail.  Recessive markers raise ``ValueError``.
    """
    for sample_name, choice in query_genotype.items():
        if choice is None:
            logger.debug("no genotype choice for sample %s (skip&pass)", sample_name)
            continue
        if sample_name in no_call_samples:
            genotype = _NO_CALL
        else:
            call_info = seqvar.call_info.get(sample_name)
            if call_info is None:
                logger.debug("no call info for sample %s (skip&fail)", sample_name)
                return False
            if call_info.genotype is None:
                logger.debug("no GT for sample %s (skip&fail)", sample_name)
                return False
            genotype = call_info.genotype

        try:
            matched = choice.matches(genotype)
        except ValueError as err:
            raise ValueError(f"invalid genotype choice in {seqvar!r}: {err}") from err
        if not matched:
            logger.debug(
                "variant %r fails genotype filter %r on sample %s",
                seqvar,
                query_genotype,
                sample_name,
            )
            return False

    return True