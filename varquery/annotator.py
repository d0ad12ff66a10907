"""Read access to the annotation databases (genes, ClinVar, dbSNP, CADD, dbNSFP).

Each database is an SQLite file holding a ``meta`` table and a data table,
both with ``key`` and ``value`` text columns.  Data values are JSON documents
keyed by HGNC ID (genes) or by :func:`variant_key` (all others).  The layout
below the base path is::

    annonars/genes/
    annonars/<release>/clinvar-minimal/
    annonars/<release>/dbsnp/
    annonars/<release>/cadd/
    annonars/<release>/dbnsfp/
"""

from __future__ import annotations

import enum
import json
import sqlite3
from collections.abc import Callable
from contextlib import ExitStack
from dataclasses import dataclass
from pathlib import Path
from typing import Any, TypeVar

from varquery.schema import SequenceVariant, canonicalize

DB_FILE_NAME = "data.sqlite3"

_T = TypeVar("_T")


class GenomeRelease(str, enum.Enum):
    """Genome release; the value is the directory name of its databases."""

    GRCH37 = "grch37"
    GRCH38 = "grch38"


class ClinicalSignificance(str, enum.Enum):
    """Clinical significance of a ClinVar assertion."""

    UNKNOWN = "UNKNOWN"
    PATHOGENIC = "Pathogenic"
    LIKELY_PATHOGENIC = "Likely pathogenic"
    UNCERTAIN_SIGNIFICANCE = "Uncertain significance"
    LIKELY_BENIGN = "Likely benign"
    BENIGN = "Benign"


class ReviewStatus(str, enum.Enum):
    """Review status of a ClinVar assertion."""

    PRACTICE_UNKNOWN = "UNKNOWN"
    PRACTICE_GUIDELINE = "practice guideline"
    REVIEWED_BY_EXPERT_PANEL = "reviewed by expert panel"
    CRITERIA_PROVIDED_MULTIPLE_SUBMITTERS_NO_CONFLICTS = (
        "criteria provided, multiple submitters, no conflicts"
    )
    CRITERIA_PROVIDED_SINGLE_SUBMITTER = "criteria provided, single submitter"
    CRITERIA_PROVIDED_CONFLICTING_INTERPRETATIONS = (
        "criteria provided, conflicting interpretations"
    )
    NO_ASSERTION_CRITERIA_PROVIDED = "no assertion criteria provided"
    NO_ASSERTION_PROVIDED = "no assertion provided"
    FLAGGED_SUBMISSION = "flagged submission"
    NO_CLASSIFICATIONS_FROM_UNFLAGGED_RECORDS = "no classifications from unflagged records"


@dataclass(frozen=True)
class ReferenceAssertion:
    """One ClinVar reference assertion (RCV)."""

    rcv: str
    clinical_significance: ClinicalSignificance
    review_status: ReviewStatus


@dataclass(frozen=True)
class ClinvarRecord:
    """Minimal ClinVar record of a variant."""

    vcv: str
    reference_assertions: tuple[ReferenceAssertion, ...] = ()


@dataclass(frozen=True)
class GnomadConstraints:
    """gnomAD gene constraint scores."""

    mis_z: float | None = None
    oe_lof: float | None = None
    oe_lof_lower: float | None = None
    oe_lof_upper: float | None = None
    oe_mis: float | None = None
    oe_mis_lower: float | None = None
    oe_mis_upper: float | None = None
    pli: float | None = None
    syn_z: float | None = None


@dataclass(frozen=True)
class GeneRecord:
    """Gene information from the genes database."""

    hgnc_id: str
    acmg_sf: dict[str, Any] | None = None
    omim: dict[str, Any] | None = None
    orpha: dict[str, Any] | None = None
    gnomad_constraints: GnomadConstraints | None = None


@dataclass(frozen=True)
class DbsnpRecord:
    """dbSNP record of a variant."""

    rs_id: int


def variant_key(seqvar: SequenceVariant) -> str:
    """Return the database key of a variant, using the canonical chromosome name."""
    return (
        f"{canonicalize(seqvar.chrom)}:{seqvar.pos}:"
        f"{seqvar.reference}:{seqvar.alternative}"
    )


def _optional_number(value: Any, name: str) -> float | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{name}: expected number, got {value!r}")
    return float(value)


def _optional_object(value: Any, name: str) -> dict[str, Any] | None:
    if value is None:
        return None
    if not isinstance(value, dict):
        raise ValueError(f"{name}: expected object, got {value!r}")
    return value


def _decode_gene(data: dict[str, Any]) -> GeneRecord:
    raw_constraints = _optional_object(data.get("gnomad_constraints"), "gnomad_constraints")
    constraints = None
    if raw_constraints is not None:
        constraints = GnomadConstraints(
            **{
                name: _optional_number(raw_constraints.get(name), name)
                for name in GnomadConstraints.__dataclass_fields__
            }
        )
    return GeneRecord(
        hgnc_id=str(data["hgnc_id"]),
        acmg_sf=_optional_object(data.get("acmg_sf"), "acmg_sf"),
        omim=_optional_object(data.get("omim"), "omim"),
        orpha=_optional_object(data.get("orpha"), "orpha"),
        gnomad_constraints=constraints,
    )


def _decode_assertion(data: dict[str, Any]) -> ReferenceAssertion:
    raw_significance = data["clinical_significance"]
    try:
        significance = ClinicalSignificance(raw_significance)
    except ValueError:
        raise ValueError(
            f"could not convert clinical significance: {raw_significance!r}"
        ) from None
    raw_status = data["review_status"]
    try:
        status = ReviewStatus(raw_status)
    except ValueError:
        raise ValueError(f"could not convert review status: {raw_status!r}") from None
    return ReferenceAssertion(
        rcv=str(data["rcv"]), clinical_significance=significance, review_status=status
    )


def _decode_clinvar(data: dict[str, Any]) -> ClinvarRecord:
    return ClinvarRecord(
        vcv=str(data["vcv"]),
        reference_assertions=tuple(
            _decode_assertion(item) for item in data.get("reference_assertions", [])
        ),
    )


def _decode_dbsnp(data: dict[str, Any]) -> DbsnpRecord:
    rs_id = data["rs_id"]
    if isinstance(rs_id, bool) or not isinstance(rs_id, int):
        raise ValueError(f"rs_id: expected integer, got {rs_id!r}")
    return DbsnpRecord(rs_id=rs_id)


def _decode_object(raw: str, decoder: Callable[[dict[str, Any]], _T]) -> _T:
    data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError(f"expected a JSON object, got {type(data).__name__}")
    return decoder(data)


def _decode_values(raw: str) -> list[Any]:
    values = json.loads(raw)
    if not isinstance(values, list):
        raise ValueError(f"expected a JSON array, got {type(values).__name__}")
    return values


class _Database:
    """A read-only key/value table with its metadata."""

    def __init__(self, directory: Path, table: str) -> None:
        self.path = directory / DB_FILE_NAME
        self.table = table
        try:
            self._conn = sqlite3.connect(
                f"{self.path.resolve().as_uri()}?mode=ro",
                uri=True,
                check_same_thread=False,
            )
        except sqlite3.Error as err:
            raise OSError(f"problem opening {table} metadata at {self.path}: {err}") from err
        try:
            self.meta: dict[str, str] = dict(
                self._conn.execute("SELECT key, value FROM meta").fetchall()
            )
            self._conn.execute(f"SELECT key, value FROM {table} LIMIT 0").fetchall()
        except sqlite3.Error as err:
            self._conn.close()
            raise OSError(f"problem opening {table} metadata at {self.path}: {err}") from err

    def get(self, key: str) -> str | None:
        row = self._conn.execute(
            f"SELECT value FROM {self.table} WHERE key = ?", (key,)
        ).fetchone()
        return None if row is None else row[0]

    def columns(self) -> tuple[str, ...]:
        raw = self.meta.get("columns")
        try:
            columns = json.loads(raw) if raw is not None else None
        except ValueError:
            columns = None
        if not isinstance(columns, list) or not all(isinstance(c, str) for c in columns):
            raise OSError(
                f"problem opening {self.table} metadata at {self.path}: "
                "missing or invalid column schema"
            )
        return tuple(columns)

    def close(self) -> None:
        self._conn.close()


class Annotator:
    """Queries the annotation databases; open it with :meth:`with_path`."""

    def __init__(
        self,
        genes: _Database,
        clinvar: _Database,
        dbsnp: _Database,
        cadd: _Database,
        dbnsfp: _Database,
    ) -> None:
        self._genes = genes
        self._clinvar = clinvar
        self._dbsnp = dbsnp
        self._cadd = cadd
        self._dbnsfp = dbnsfp
        self.clinvar_meta = dict(clinvar.meta)
        self.dbsnp_meta = dict(dbsnp.meta)
        self.cadd_columns = cadd.columns()
        self.dbnsfp_columns = dbnsfp.columns()

    @classmethod
    def with_path(cls, path: str | Path, genome_release: GenomeRelease | str) -> Annotator:
        """Open all databases below ``path`` for the given genome release.

        Raises ``OSError`` if any database cannot be opened.
        """
        root = Path(path)
        release = GenomeRelease(genome_release)
        try:
            return cls._open(root, release)
        except OSError as err:
            raise OSError(f"problem opening annonars databases at {root}: {err}") from err

    @classmethod
    def _open(cls, root: Path, release: GenomeRelease) -> Annotator:
        base = root / "annonars"
        release_dir = base / release.value
        with ExitStack() as stack:

            def open_db(directory: Path, table: str) -> _Database:
                db = _Database(directory, table)
                stack.callback(db.close)
                return db

            clinvar = open_db(release_dir / "clinvar-minimal", "clinvar")
            cadd = open_db(release_dir / "cadd", "tsv_data")
            dbnsfp = open_db(release_dir / "dbnsfp", "tsv_data")
            dbsnp = open_db(release_dir / "dbsnp", "dbsnp_data")
            genes = open_db(base / "genes", "genes")
            annotator = cls(
                genes=genes, clinvar=clinvar, dbsnp=dbsnp, cadd=cadd, dbnsfp=dbnsfp
            )
            stack.pop_all()
        return annotator

    def close(self) -> None:
        for db in (self._genes, self._clinvar, self._dbsnp, self._cadd, self._dbnsfp):
            db.close()

    def __enter__(self) -> Annotator:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @staticmethod
    def _lookup(db: _Database, key: str, context: str) -> str | None:
        try:
            return db.get(key)
        except sqlite3.Error as err:
            raise OSError(f"{context}: {err}") from err

    @staticmethod
    def _decode(raw: str | None, decoder: Callable[[str], _T], context: str) -> _T | None:
        if raw is None:
            return None
        try:
            return decoder(raw)
        except (ValueError, TypeError, KeyError) as err:
            raise ValueError(f"{context}: {err}") from err

    def query_genes(self, hgnc_id: str) -> GeneRecord | None:
        """Return the gene record for an HGNC ID, or ``None`` if there is none."""
        raw = self._lookup(
            self._genes, hgnc_id, f"problem querying genes database for HGNC ID {hgnc_id}"
        )
        return self._decode(
            raw,
            lambda text: _decode_object(text, _decode_gene),
            f"problem decoding record from genes database for HGNC ID {hgnc_id}",
        )

    def query_clinvar_minimal(self, seqvar: SequenceVariant) -> ClinvarRecord | None:
        """Return the ClinVar record of the variant, if any."""
        context = "problem querying clinvar-minimal database"
        raw = self._lookup(self._clinvar, variant_key(seqvar), context)
        return self._decode(raw, lambda text: _decode_object(text, _decode_clinvar), context)

    def query_dbsnp(self, seqvar: SequenceVariant) -> DbsnpRecord | None:
        """Return the dbSNP record of the variant, if any."""
        context = "problem querying dbsnp database"
        raw = self._lookup(self._dbsnp, variant_key(seqvar), context)
        return self._decode(raw, lambda text: _decode_object(text, _decode_dbsnp), context)

    def query_cadd(self, seqvar: SequenceVariant) -> list[Any] | None:
        """Return the CADD row of the variant, in the order of ``cadd_columns``."""
        context = "problem querying CADD database"
        raw = self._lookup(self._cadd, variant_key(seqvar), context)
        return self._decode(raw, _decode_values, context)

    def query_dbnsfp(self, seqvar: SequenceVariant) -> list[Any] | None:
        """Return the dbNSFP row of the variant, in the order of ``dbnsfp_columns``."""
        context = "problem querying dbNSFP database"
        raw = self._lookup(self._dbnsfp, variant_key(seqvar), context)
        return self._decode(raw, _decode_values, context)