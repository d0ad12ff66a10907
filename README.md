# varquery

`varquery` decides which annotated sequence variants pass a case query. A query
holds per-sample genotype and quality settings, population frequency limits,
molecular consequences, a gene allow list, genomic regions and ClinVar criteria.

## Installation

```
pip install .
```

To run the tests as well:

```
pip install ".[test]"
pytest
```

## Building blocks

- `varquery.schema`: the query model (`CaseQuery`, `QualitySettings`,
  `GenotypeChoice`, `FailChoice`, `GenomicRegion`, `Range`) and the variant model
  (`SequenceVariant`, `CallInfo`, `AnnField`). `read_vcf` and
  `SequenceVariant.from_vcf_line` read ingested VCF text, and `canonicalize`
  normalises chromosome names.
- `varquery.interpreter.frequency`, `.consequences`, `.quality`, `.genotype`,
  `.genes_allowlist`, `.regions_allowlist` and `.clinvar`: the individual filters.
  Each one provides a `passes` function.
- `varquery.interpreter.engine.QueryInterpreter`: applies all of the filters to one
  variant. The cheaper filters run first, then the genotype filter, which uses the
  quality filter's no-call samples, and last the ClinVar lookup.
- `varquery.annotator.Annotator`: looks up gene, ClinVar, dbSNP, CADD and dbNSFP
  records for a variant.
- `varquery.sorting`: `ByHgncId` and `ByCoordinate` wrappers that order variants
  and turn them into JSON lines and back.
- `varquery.output.call_related` and `varquery.output.gene_related`: the
  payload records built for each variant that passes.

## Example

```python
from varquery.schema import CaseQuery, GenotypeChoice, read_vcf
from varquery.interpreter.engine import QueryInterpreter
from varquery.annotator import Annotator, GenomeRelease

query = CaseQuery(genotype={"index": GenotypeChoice.HET})
annotator = Annotator.with_path("path/to/db", GenomeRelease.GRCH37)
interpreter = QueryInterpreter(query)

with open("case.ingested.vcf") as lines:
    for seqvar in read_vcf(lines):
        if interpreter.passes(seqvar, annotator).pass_all:
            print(seqvar.chrom, seqvar.pos, seqvar.reference, seqvar.alternative)
```

Genotype strings follow the ingested form `0/1`, `1|1`, `0` and so on, with one
alternate allele per record. Asking a recessive marker such as `comphet-index`
to match a genotype raises `ValueError`.