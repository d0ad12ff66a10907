"""ClinVar membership and significance filter."""

from __future__ import annotations

import logging

from varquery.annotator import Annotator, ClinicalSignificance
from varquery.schema import CaseQuery, SequenceVariant

logger = logging.getLogger(__name__)


def passes(query: CaseQuery, annotator: Annotator, seqvar: SequenceVariant) -> bool:
    """Return whether the variant passes the ClinVar filter.

    Variants without a ClinVar record pass.  Raises ``ValueError`` for a record
    without reference assertions.
    """
    if not query.require_in_clinvar:
        return True

    record = annotator.query_clinvar_minimal(seqvar)
    if record is None:
        return True
    if not record.reference_assertions:
        raise ValueError("no reference clinvar assertion")

    significance = record.reference_assertions[0].clinical_significance
    included = {
        ClinicalSignificance.BENIGN: query.clinvar_include_benign,
        ClinicalSignificance.LIKELY_BENIGN: query.clinvar_include_likely_benign,
        ClinicalSignificance.UNCERTAIN_SIGNIFICANCE: query.clinvar_include_uncertain_significance,
        ClinicalSignificance.LIKELY_PATHOGENIC: query.clinvar_include_likely_pathogenic,
        ClinicalSignificance.PATHOGENIC: query.clinvar_include_pathogenic,
        ClinicalSignificance.UNKNOWN: False,
    }[significance]
    if not included:
        logger.debug("variant %r fails clinvar filter from query %r", seqvar, query)
    return included