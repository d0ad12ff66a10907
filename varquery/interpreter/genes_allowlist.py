"""Gene allowlist filter."""

from __future__ import annotations

import logging
from collections.abc import Set

from varquery.schema import SequenceVariant

logger = logging.getLogger(__name__)


def passes(hgnc_allowlist: Set[str] | None, seqvar: SequenceVariant) -> bool:
    """Return whether any annotated gene of the variant is on the allowlist.

    A missing or empty allowlist lets every variant pass.
    """
    if not hgnc_allowlist:
        return True
    result = any(ann.gene_id in hgnc_allowlist for ann in seqvar.ann_fields)
    if not result:
        logger.debug(
            "variant %r fails gene allowlist filter %r", seqvar, hgnc_allowlist
        )
    return result