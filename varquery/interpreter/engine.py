"""Applies all filters of a case query to sequence variants."""

from __future__ import annotations

from dataclasses import dataclass, field

from varquery.annotator import Annotator
from varquery.interpreter import (
    clinvar,
    consequences,
    frequency,
    genes_allowlist,
    genotype,
    quality,
    regions_allowlist,
)
from varquery.schema import CaseQuery, SequenceVariant


@dataclass
class PassesResult:
    """Outcome of :meth:`QueryInterpreter.passes`."""

    pass_all: bool = False


@dataclass
class QueryInterpreter:
    """A case query together with its gene allowlist translated to HGNC IDs."""

    query: CaseQuery = field(default_factory=CaseQuery)
    hgnc_allowlist: set[str] | None = None

    def passes(self, seqvar: SequenceVariant, annotator: Annotator) -> PassesResult:
        """Return whether the variant passes every filter of the query."""
        pass_frequency = frequency.passes(self.query, seqvar)
        pass_consequences = consequences.passes(self.query, seqvar)
        res_quality = quality.passes(self.query, seqvar)
        pass_genes = genes_allowlist.passes(self.hgnc_allowlist, seqvar)
        pass_regions = regions_allowlist.passes(self.query, seqvar)
        if not (
            pass_frequency
            and pass_consequences
            and res_quality.passed
            and pass_genes
            and pass_regions
        ):
            return PassesResult(pass_all=False)

        if not genotype.passes(self.query, seqvar, res_quality.no_call_samples):
            return PassesResult(pass_all=False)

        return PassesResult(pass_all=clinvar.passes(self.query, annotator, seqvar))