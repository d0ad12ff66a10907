import json
import sqlite3

import pytest

from varquery.annotator import (
    DB_FILE_NAME,
    Annotator,
    GeneRecord,
    GenomeRelease,
    GnomadConstraints,
)
from varquery.output.gene_related import (
    Consequences,
    Constraints,
    Identity,
    Phenotype,
    Record,
)
from varquery.schema import AnnField, Consequence, SequenceVariant

GENE_ID = "HGNC:1100"
BARE_GENE_ID = "HGNC:1"
BROKEN_GENE_ID = "HGNC:2"


def _make_db(directory, table, rows=None, meta=None):
    directory.mkdir(parents=True)
    conn = sqlite3.connect(directory / DB_FILE_NAME)
    with conn:
        conn.execute("CREATE TABLE meta (key TEXT, value TEXT)")
        conn.execute(f"CREATE TABLE {table} (key TEXT, value TEXT)")
        conn.executemany("INSERT INTO meta VALUES (?, ?)", list((meta or {}).items()))
        conn.executemany(
            f"INSERT INTO {table} VALUES (?, ?)", list((rows or {}).items())
        )
    conn.close()


@pytest.fixture
def annotator(tmp_path):
    base = tmp_path / "annonars"
    release = base / "grch37"
    _make_db(
        base / "genes",
        "genes",
        rows={
            GENE_ID: json.dumps(
                {
                    "hgnc_id": GENE_ID,
                    "acmg_sf": {"gene": "BRCA1"},
                    "omim": {"diseases": []},
                    "gnomad_constraints": {"mis_z": 1.5, "pli": 0.25},
                }
            ),
            BARE_GENE_ID: json.dumps({"hgnc_id": BARE_GENE_ID}),
            BROKEN_GENE_ID: "not json",
        },
    )
    _make_db(release / "clinvar-minimal", "clinvar")
    _make_db(release / "dbsnp", "dbsnp_data")
    _make_db(release / "cadd", "tsv_data", meta={"columns": json.dumps(["PHRED"])})
    _make_db(
        release / "dbnsfp", "tsv_data", meta={"columns": json.dumps(["REVEL_score"])}
    )
    with Annotator.with_path(tmp_path, GenomeRelease.GRCH37) as opened:
        yield opened


def _seqvar(gene_id=GENE_ID, gene_symbol="BRCA1", hgvs_t="c.100G>A", hgvs_p="p.G34S"):
    return SequenceVariant(
        chrom="17",
        pos=100,
        reference="G",
        alternative="A",
        ann_fields=[
            AnnField(
                gene_id=gene_id,
                gene_symbol=gene_symbol,
                hgvs_t=hgvs_t,
                hgvs_p=hgvs_p,
                consequences=[Consequence.MISSENSE_VARIANT],
            )
        ],
    )


def test_no_annotation_gives_none(annotator):
    seqvar = SequenceVariant(chrom="1", pos=1, reference="G", alternative="A")
    assert Record.with_seqvar_and_annotator(seqvar, annotator) is None


def test_missing_symbol_gives_none(annotator):
    assert Record.with_seqvar_and_annotator(_seqvar(gene_symbol=""), annotator) is None


def test_missing_gene_id_gives_none(annotator):
    assert Record.with_seqvar_and_annotator(_seqvar(gene_id=""), annotator) is None


def test_missing_hgvs_t_raises(annotator):
    with pytest.raises(ValueError, match="missing hgvs_t annotation"):
        Record.with_seqvar_and_annotator(_seqvar(hgvs_t=None), annotator)


def test_broken_gene_record_raises(annotator):
    with pytest.raises(ValueError, match="problem querying genes database"):
        Record.with_seqvar_and_annotator(_seqvar(gene_id=BROKEN_GENE_ID), annotator)


def test_full_record(annotator):
    record = Record.with_seqvar_and_annotator(_seqvar(), annotator)
    assert record.identity == Identity(hgnc_id=GENE_ID, hgnc_symbol="BRCA1")
    assert record.consequences == Consequences(
        hgvs_t="c.100G>A", hgvs_p="p.G34S", consequences=[Consequence.MISSENSE_VARIANT]
    )
    assert record.phenotype == Phenotype(is_acmg_sf=True, is_disease_gene=True)
    assert record.constraints.gnomad_mis_z == 1.5
    assert record.constraints.gnomad_pli == 0.25
    assert record.constraints.gnomad_oe_lof == 0.0


def test_gene_without_extras(annotator):
    record = Record.with_seqvar_and_annotator(_seqvar(gene_id=BARE_GENE_ID), annotator)
    assert record.phenotype == Phenotype(is_acmg_sf=False, is_disease_gene=False)
    assert record.constraints is None
    assert "constraints" not in record.to_dict()


def test_gene_not_in_database(annotator):
    record = Record.with_seqvar_and_annotator(_seqvar(gene_id="HGNC:9999"), annotator)
    assert record.phenotype is None
    assert record.constraints is None
    assert set(record.to_dict()) == {"identity", "consequences"}


def test_to_dict_full(annotator):
    data = Record.with_seqvar_and_annotator(_seqvar(), annotator).to_dict()
    assert data["identity"] == {"hgnc_id": GENE_ID, "hgnc_symbol": "BRCA1"}
    assert data["consequences"] == {
        "hgvs_t": "c.100G>A",
        "hgvs_p": "p.G34S",
        "consequences": ["missense_variant"],
    }
    assert data["phenotype"] == {"is_acmg_sf": True, "is_disease_gene": True}
    assert len(data["constraints"]) == 9


def test_consequences_to_dict_skips_empty():
    assert Consequences(hgvs_t="n.5A>G").to_dict() == {"hgvs_t": "n.5A>G"}


def test_phenotype_from_orpha_only():
    gene = GeneRecord(hgnc_id=GENE_ID, orpha={"disorders": []})
    assert Phenotype.with_gene_record(gene) == Phenotype(
        is_acmg_sf=False, is_disease_gene=True
    )


def test_constraints_all_missing_become_zero():
    assert Constraints.with_constraints_record(GnomadConstraints()) == Constraints()


def test_constraints_copy_values():
    constraints = Constraints.with_constraints_record(
        GnomadConstraints(oe_mis_upper=1.25, syn_z=-0.5)
    )
    assert constraints.gnomad_oe_mis_upper == 1.25
    assert constraints.gnomad_syn_z == -0.5
    assert constraints.gnomad_mis_z == 0.0