"""Molecular consequence filter."""

from __future__ import annotations

import logging

from varquery.schema import CaseQuery, SequenceVariant, canonicalize

logger = logging.getLogger(__name__)


def passes(query: CaseQuery, seqvar: SequenceVariant) -> bool:
    """Return whether any annotation of the variant has a selected consequence.

    An empty consequence selection and mitochondrial variants always pass.
    """
    if not query.consequences:
        return True
    if canonicalize(seqvar.chrom) == "MT":
        return True

    wanted = set(query.consequences)
    if any(wanted.intersection(ann.consequences) for ann in seqvar.ann_fields):
        return True

    logger.debug(
        "variant %r fails consequence filter %r", seqvar, query.consequences
    )
    return False