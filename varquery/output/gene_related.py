"""Gene-related part of the result payload."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Any

from varquery.annotator import Annotator, GeneRecord, GnomadConstraints
from varquery.schema import Consequence, SequenceVariant


@dataclass
class Identity:
    """Gene identity for display."""

    hgnc_id: str = ""
    hgnc_symbol: str = ""

    def to_dict(self) -> dict[str, Any]:
        return dataclasses.asdict(self)


@dataclass
class Phenotype:
    """Phenotype and disease information of a gene."""

    is_acmg_sf: bool = False
    is_disease_gene: bool = False

    @classmethod
    def with_gene_record(cls, gene_record: GeneRecord) -> Phenotype:
        """Build from a genes database record."""
        return cls(
            is_acmg_sf=gene_record.acmg_sf is not None,
            is_disease_gene=gene_record.omim is not None or gene_record.orpha is not None,
        )

    def to_dict(self) -> dict[str, Any]:
        return dataclasses.asdict(self)


@dataclass
class Consequences:
    """Consequences of a variant on a gene."""

    hgvs_t: str = ""
    hgvs_p: str | None = None
    consequences: list[Consequence] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"hgvs_t": self.hgvs_t}
        if self.hgvs_p is not None:
            result["hgvs_p"] = self.hgvs_p
        if self.consequences:
            result["consequences"] = [csq.value for csq in self.consequences]
        return result


def _or_zero(value: float | None) -> float:
    return 0.0 if value is None else float(value)


@dataclass
class Constraints:
    """gnomAD constraint scores of a gene."""

    gnomad_mis_z: float = 0.0
    gnomad_oe_lof: float = 0.0
    gnomad_oe_lof_lower: float = 0.0
    gnomad_oe_lof_upper: float = 0.0
    gnomad_oe_mis: float = 0.0
    gnomad_oe_mis_lower: float = 0.0
    gnomad_oe_mis_upper: float = 0.0
    gnomad_pli: float = 0.0
    gnomad_syn_z: float = 0.0

    @classmethod
    def with_constraints_record(cls, constraints: GnomadConstraints) -> Constraints:
        """Build from gnomAD constraints; missing scores become zero."""
        return cls(
            gnomad_mis_z=_or_zero(constraints.mis_z),
            gnomad_oe_lof=_or_zero(constraints.oe_lof),
            gnomad_oe_lof_lower=_or_zero(constraints.oe_lof_lower),
            gnomad_oe_lof_upper=_or_zero(constraints.oe_lof_upper),
            gnomad_oe_mis=_or_zero(constraints.oe_mis),
            gnomad_oe_mis_lower=_or_zero(constraints.oe_mis_lower),
            gnomad_oe_mis_upper=_or_zero(constraints.oe_mis_upper),
            gnomad_pli=_or_zero(constraints.pli),
            gnomad_syn_z=_or_zero(constraints.syn_z),
        )

    def to_dict(self) -> dict[str, Any]:
        return dataclasses.asdict(self)


@dataclass
class Record:
    """Gene-related information of a result."""

    identity: Identity = field(default_factory=Identity)
    consequences: Consequences = field(default_factory=Consequences)
    phenotype: Phenotype | None = None
    constraints: Constraints | None = None

    @classmethod
    def with_seqvar_and_annotator(
        cls, seqvar: SequenceVariant, annotator: Annotator
    ) -> Record | None:
        """Build from the first annotation of the variant, if it names a gene.

        Raises ``ValueError`` if the annotation lacks an HGVS transcript code,
        and re-raises database errors with context.
        """
        if not seqvar.ann_fields:
            return None
        ann = seqvar.ann_fields[0]
        hgnc_id = ann.gene_id

        try:
            gene_record = annotator.query_genes(hgnc_id)
        except OSError as err:
            raise OSError(f"problem querying genes database: {err}") from err
        except ValueError as err:
            raise ValueError(f"problem querying genes database: {err}") from err

        if not ann.gene_id or not ann.gene_symbol:
            return None
        if ann.hgvs_t is None:
            raise ValueError("missing hgvs_t annotation")

        constraints = None
        if gene_record is not None and gene_record.gnomad_constraints is not None:
            constraints = Constraints.with_constraints_record(gene_record.gnomad_constraints)

        return cls(
            identity=Identity(hgnc_id=hgnc_id, hgnc_symbol=ann.gene_symbol),
            consequences=Consequences(
                hgvs_t=ann.hgvs_t,
                hgvs_p=ann.hgvs_p,
                consequences=list(ann.consequences),
            ),
            phenotype=None if gene_record is None else Phenotype.with_gene_record(gene_record),
            constraints=constraints,
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "identity": self.identity.to_dict(),
            "consequences": self.consequences.to_dict(),
        }
        if self.phenotype is not None:
            result["phenotype"] = self.phenotype.to_dict()
        if self.constraints is not None:
            result["constraints"] = self.constraints.to_dict()
        return result