"""Query definition and sequence variant records."""

from __future__ import annotations

import dataclasses
import enum
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator


class Consequence(str, enum.Enum):
    """Sequence Ontology terms for predicted variant consequences."""

    TRANSCRIPT_ABLATION = "transcript_ablation"
    EXON_LOSS_VARIANT = "exon_loss_variant"
    SPLICE_ACCEPTOR_VARIANT = "splice_acceptor_variant"
    SPLICE_DONOR_VARIANT = "splice_donor_variant"
    STOP_GAINED = "stop_gained"
    FRAMESHIFT_VARIANT = "frameshift_variant"
    STOP_LOST = "stop_lost"
    START_LOST = "start_lost"
    TRANSCRIPT_AMPLIFICATION = "transcript_amplification"
    DISRUPTIVE_INFRAME_INSERTION = "disruptive_inframe_insertion"
    DISRUPTIVE_INFRAME_DELETION = "disruptive_inframe_deletion"
    CONSERVATIVE_INFRAME_INSERTION = "conservative_inframe_insertion"
    CONSERVATIVE_INFRAME_DELETION = "conservative_inframe_deletion"
    MISSENSE_VARIANT = "missense_variant"
    SPLICE_DONOR_5TH_BASE_VARIANT = "splice_donor_5th_base_variant"
    SPLICE_REGION_VARIANT = "splice_region_variant"
    SPLICE_DONOR_REGION_VARIANT = "splice_donor_region_variant"
    SPLICE_POLYPYRIMIDINE_TRACT_VARIANT = "splice_polypyrimidine_tract_variant"
    START_RETAINED_VARIANT = "start_retained_variant"
    STOP_RETAINED_VARIANT = "stop_retained_variant"
    SYNONYMOUS_VARIANT = "synonymous_variant"
    CODING_SEQUENCE_VARIANT = "coding_sequence_variant"
    FIVE_PRIME_UTR_EXON_VARIANT = "5_prime_UTR_exon_variant"
    FIVE_PRIME_UTR_INTRON_VARIANT = "5_prime_UTR_intron_variant"
    THREE_PRIME_UTR_EXON_VARIANT = "3_prime_UTR_exon_variant"
    THREE_PRIME_UTR_INTRON_VARIANT = "3_prime_UTR_intron_variant"
    NON_CODING_TRANSCRIPT_EXON_VARIANT = "non_coding_transcript_exon_variant"
    NON_CODING_TRANSCRIPT_INTRON_VARIANT = "non_coding_transcript_intron_variant"
    UPSTREAM_GENE_VARIANT = "upstream_gene_variant"
    DOWNSTREAM_GENE_VARIANT = "downstream_gene_variant"
    INTERGENIC_VARIANT = "intergenic_variant"
    INTRON_VARIANT = "intron_variant"
    GENE_VARIANT = "gene_variant"


class RecessiveMode(str, enum.Enum):
    """Recessive mode of a query."""

    RECESSIVE = "recessive"
    COMPOUND_RECESSIVE = "compound-recessive"


class FailChoice(str, enum.Enum):
    """What to do when a genotype fails the quality thresholds."""

    IGNORE = "ignore"
    DROP = "drop-variant"
    NO_CALL = "no-call"


_REF_GTS = frozenset({"0", "0|0", "0/0"})
_HET_GTS = frozenset({"0/1", "0|1", "1/0", "1|0"})
_HOM_GTS = frozenset({"1", "1/1", "1|1"})
_VARIANT_GTS = _HET_GTS | _HOM_GTS


class GenotypeChoice(str, enum.Enum):
    """Genotype selection for one sample."""

    ANY = "any"
    REF = "ref"
    HET = "het"
    HOM = "hom"
    NON_HOM = "non-hom"
    VARIANT = "variant"
    COMPHET_INDEX = "comphet-index"
    RECESSIVE_INDEX = "recessive-index"
    RECESSIVE_PARENT = "recessive-parent"

    @property
    def is_recessive_marker(self) -> bool:
        return self in (
            GenotypeChoice.COMPHET_INDEX,
            GenotypeChoice.RECESSIVE_INDEX,
            GenotypeChoice.RECESSIVE_PARENT,
        )

    def matches(self, gt_str: str) -> bool:
        """Return whether the genotype string matches this choice.

        Genotype strings are assumed to come from ingested files with a single
        alternate allele.  Raises ``ValueError`` for recessive markers.
        """
        if self is GenotypeChoice.ANY:
            return True
        if self is GenotypeChoice.REF:
            return gt_str in _REF_GTS
        if self is GenotypeChoice.HET:
            return gt_str in _HET_GTS
        if self is GenotypeChoice.HOM:
            return gt_str in _HOM_GTS
        if self is GenotypeChoice.NON_HOM:
            return gt_str not in _HOM_GTS
        if self is GenotypeChoice.VARIANT:
            return gt_str in _VARIANT_GTS
        raise ValueError("recessive marker is not a genotype choice")


def canonicalize(chrom: str) -> str:
    """Strip a ``chr`` prefix and map ``M`` to ``MT``."""
    name = chrom[3:] if chrom.startswith("chr") else chrom
    return "MT" if name == "M" else name


def _opt_int(value: Any, name: str) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name}: expected integer, got {value!r}")
    return value


def _opt_float(value: Any, name: str) -> float | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{name}: expected number, got {value!r}")
    return float(value)


def _bool(value: Any, name: str) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f"{name}: expected boolean, got {value!r}")
    return value


def _enum(kind: type[enum.Enum], value: Any, name: str) -> Any:
    try:
        return kind(value)
    except ValueError:
        raise ValueError(f"{name}: invalid value {value!r}") from None


@dataclass
class QualitySettings:
    """Quality thresholds for one sample."""

    dp_het: int | None = None
    dp_hom: int | None = None
    gq: int | None = None
    ab: float | None = None
    ad: int | None = None
    ad_max: int | None = None
    fail: FailChoice = FailChoice.IGNORE

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> QualitySettings:
        if "fail" not in data:
            raise ValueError("quality settings: missing field 'fail'")
        return cls(
            dp_het=_opt_int(data.get("dp_het"), "dp_het"),
            dp_hom=_opt_int(data.get("dp_hom"), "dp_hom"),
            gq=_opt_int(data.get("gq"), "gq"),
            ab=_opt_float(data.get("ab"), "ab"),
            ad=_opt_int(data.get("ad"), "ad"),
            ad_max=_opt_int(data.get("ad_max"), "ad_max"),
            fail=_enum(FailChoice, data["fail"], "fail"),
        )

    def to_dict(self) -> dict[str, Any]:
        result = dataclasses.asdict(self)
        result["fail"] = self.fail.value
        return result


@dataclass(frozen=True, order=True)
class Range:
    """A closed range of positions."""

    start: int
    end: int


@dataclass(frozen=True, order=True)
class GenomicRegion:
    """A chromosome, optionally restricted to a range."""

    chrom: str
    range: Range | None = None


def _region_from_dict(data: dict[str, Any]) -> GenomicRegion:
    if "chrom" not in data:
        raise ValueError("genomic region: missing field 'chrom'")
    raw_range = data.get("range")
    region_range = None
    if raw_range is not None:
        try:
            region_range = Range(
                start=_opt_int(raw_range["start"], "start"),
                end=_opt_int(raw_range["end"], "end"),
            )
        except KeyError as err:
            raise ValueError(f"range: missing field {err}") from None
    return GenomicRegion(chrom=str(data["chrom"]), range=region_range)


def _region_to_dict(region: GenomicRegion) -> dict[str, Any]:
    return {
        "chrom": region.chrom,
        "range": None
        if region.range is None
        else {"start": region.range.start, "end": region.range.end},
    }


_BOOL_FIELDS = (
    "transcripts_coding",
    "transcripts_noncoding",
    "var_type_snv",
    "var_type_indel",
    "var_type_mnv",
    "require_in_clinvar",
    "clinvar_include_benign",
    "clinvar_include_pathogenic",
    "clinvar_include_likely_benign",
    "clinvar_include_likely_pathogenic",
    "clinvar_include_uncertain_significance",
    "gnomad_exomes_enabled",
    "gnomad_genomes_enabled",
    "inhouse_enabled",
    "helixmtdb_enabled",
)

_INT_FIELDS = (
    "max_exon_dist",
    "gnomad_exomes_heterozygous",
    "gnomad_exomes_homozygous",
    "gnomad_exomes_hemizygous",
    "gnomad_genomes_heterozygous",
    "gnomad_genomes_homozygous",
    "gnomad_genomes_hemizygous",
    "inhouse_carriers",
    "inhouse_heterozygous",
    "inhouse_homozygous",
    "inhouse_hemizygous",
    "helixmtdb_heteroplasmic",
    "helixmtdb_homoplasmic",
)

_FLOAT_FIELDS = (
    "gnomad_exomes_frequency",
    "gnomad_genomes_frequency",
    "helixmtdb_frequency",
)


@dataclass
class CaseQuery:
    """Settings of one query; the defaults let every variant pass."""

    consequences: list[Consequence] = field(default_factory=lambda: list(Consequence))
    quality: dict[str, QualitySettings] = field(default_factory=dict)
    genotype: dict[str, GenotypeChoice | None] = field(default_factory=dict)

    transcripts_coding: bool = True
    transcripts_noncoding: bool = True

    var_type_snv: bool = True
    var_type_indel: bool = True
    var_type_mnv: bool = True

    max_exon_dist: int | None = None

    gene_allowlist: list[str] | None = None
    genomic_regions: list[GenomicRegion] | None = None

    require_in_clinvar: bool = False
    clinvar_include_benign: bool = True
    clinvar_include_pathogenic: bool = True
    clinvar_include_likely_benign: bool = True
    clinvar_include_likely_pathogenic: bool = True
    clinvar_include_uncertain_significance: bool = True

    gnomad_exomes_enabled: bool = False
    gnomad_genomes_enabled: bool = False
    inhouse_enabled: bool = False
    helixmtdb_enabled: bool = False

    gnomad_exomes_frequency: float | None = None
    gnomad_exomes_heterozygous: int | None = None
    gnomad_exomes_homozygous: int | None = None
    gnomad_exomes_hemizygous: int | None = None

    gnomad_genomes_frequency: float | None = None
    gnomad_genomes_heterozygous: int | None = None
    gnomad_genomes_homozygous: int | None = None
    gnomad_genomes_hemizygous: int | None = None

    inhouse_carriers: int | None = None
    inhouse_heterozygous: int | None = None
    inhouse_homozygous: int | None = None
    inhouse_hemizygous: int | None = None

    helixmtdb_frequency: float | None = None
    helixmtdb_heteroplasmic: int | None = None
    helixmtdb_homoplasmic: int | None = None

    def recessive_mode(self) -> bool:
        """Return whether any sample carries a recessive marker."""
        return any(
            choice is not None and choice.is_recessive_marker
            for choice in self.genotype.values()
        )

    def index_sample(self) -> str | None:
        """Return the name of the recessive index sample, if any."""
        return next(
            (
                name
                for name, choice in self.genotype.items()
                if choice in (GenotypeChoice.COMPHET_INDEX, GenotypeChoice.RECESSIVE_INDEX)
            ),
            None,
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CaseQuery:
        """Build from decoded JSON; missing keys take defaults, unknown keys are ignored."""
        kwargs: dict[str, Any] = {}
        if "consequences" in data:
            kwargs["consequences"] = [
                _enum(Consequence, value, "consequences") for value in data["consequences"]
            ]
        if "quality" in data:
            kwargs["quality"] = {
                name: QualitySettings.from_dict(settings)
                for name, settings in data["quality"].items()
            }
        if "genotype" in data:
            kwargs["genotype"] = {
                name: None if choice is None else _enum(GenotypeChoice, choice, "genotype")
                for name, choice in data["genotype"].items()
            }
        if data.get("gene_allowlist") is not None:
            kwargs["gene_allowlist"] = [str(gene) for gene in data["gene_allowlist"]]
        if data.get("genomic_regions") is not None:
            kwargs["genomic_regions"] = [
                _region_from_dict(region) for region in data["genomic_regions"]
            ]
        for name in _BOOL_FIELDS:
            if name in data:
                kwargs[name] = _bool(data[name], name)
        for name in _INT_FIELDS:
            if name in data:
                kwargs[name] = _opt_int(data[name], name)
        for name in _FLOAT_FIELDS:
            if name in data:
                kwargs[name] = _opt_float(data[name], name)
        return cls(**kwargs)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "consequences": [csq.value for csq in self.consequences],
            "quality": {name: qs.to_dict() for name, qs in self.quality.items()},
            "genotype": {
                name: None if choice is None else choice.value
                for name, choice in self.genotype.items()
            },
            "gene_allowlist": None
            if self.gene_allowlist is None
            else list(self.gene_allowlist),
            "genomic_regions": None
            if self.genomic_regions is None
            else [_region_to_dict(region) for region in self.genomic_regions],
        }
        for name in (*_BOOL_FIELDS, *_INT_FIELDS, *_FLOAT_FIELDS):
            result[name] = getattr(self, name)
        return result


_ANN_FIELD_COUNT = 16


def _split_multi(text: str) -> list[str]:
    return [part for part in text.split("&") if part] if text else []


@dataclass
class AnnField:
    """One entry of the ``INFO/ANN`` annotation."""

    allele: str = ""
    consequences: list[Consequence] = field(default_factory=list)
    putative_impact: str = ""
    gene_symbol: str = ""
    gene_id: str = ""
    feature_type: str = ""
    feature_id: str = ""
    feature_biotype: list[str] = field(default_factory=list)
    rank: str | None = None
    hgvs_t: str | None = None
    hgvs_p: str | None = None
    tx_pos: str | None = None
    cds_pos: str | None = None
    protein_pos: str | None = None
    distance: int | None = None
    messages: list[str] = field(default_factory=list)

    @classmethod
    def parse(cls, text: str) -> AnnField:
        """Parse a pipe-separated ``ANN`` entry."""
        parts = text.split("|")
        if len(parts) != _ANN_FIELD_COUNT:
            raise ValueError(
                f"ANN entry must have {_ANN_FIELD_COUNT} fields, got {len(parts)}: {text!r}"
            )
        (
            allele,
            consequences,
            impact,
            gene_symbol,
            gene_id,
            feature_type,
            feature_id,
            biotype,
            rank,
            hgvs_t,
            hgvs_p,
            tx_pos,
            cds_pos,
            protein_pos,
            distance,
            messages,
        ) = parts
        if distance:
            try:
                parsed_distance: int | None = int(distance)
            except ValueError:
                raise ValueError(f"invalid ANN distance: {distance!r}") from None
        else:
            parsed_distance = None
        return cls(
            allele=allele,
            consequences=[
                _enum(Consequence, csq, "ANN consequence") for csq in _split_multi(consequences)
            ],
            putative_impact=impact,
            gene_symbol=gene_symbol,
            gene_id=gene_id,
            feature_type=feature_type,
            feature_id=feature_id,
            feature_biotype=_split_multi(biotype),
            rank=rank or None,
            hgvs_t=hgvs_t or None,
            hgvs_p=hgvs_p or None,
            tx_pos=tx_pos or None,
            cds_pos=cds_pos or None,
            protein_pos=protein_pos or None,
            distance=parsed_distance,
            messages=_split_multi(messages),
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AnnField:
        values = {f.name: data[f.name] for f in dataclasses.fields(cls) if f.name in data}
        values["consequences"] = [
            _enum(Consequence, csq, "consequences") for csq in data.get("consequences", [])
        ]
        values["feature_biotype"] = list(data.get("feature_biotype", []))
        values["messages"] = list(data.get("messages", []))
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        result = dataclasses.asdict(self)
        result["consequences"] = [csq.value for csq in self.consequences]
        return result


@dataclass
class CallInfo:
    """Per-sample call information as written by ingest."""

    genotype: str | None = None
    quality: float | None = None
    dp: int | None = None
    ad: int | None = None
    phasing_id: int | None = None


_FREQ_KEYS = (
    "gnomad_exomes_an",
    "gnomad_exomes_hom",
    "gnomad_exomes_het",
    "gnomad_exomes_hemi",
    "gnomad_genomes_an",
    "gnomad_genomes_hom",
    "gnomad_genomes_het",
    "gnomad_genomes_hemi",
    "helix_an",
    "helix_hom",
    "helix_het",
)

_COUNT_FIELDS = _FREQ_KEYS + (
    "inhouse_an",
    "inhouse_hom",
    "inhouse_het",
    "inhouse_hemi",
)


def _parse_int(text: str | None) -> int | None:
    if text is None or text in ("", "."):
        return None
    try:
        return int(text)
    except ValueError:
        return None


def _parse_info(text: str) -> dict[str, str | None]:
    if text in ("", "."):
        return {}
    info: dict[str, str | None] = {}
    for entry in text.split(";"):
        if not entry:
            continue
        key, sep, value = entry.partition("=")
        info[key] = value if sep else None
    return info


def _parse_call(keys: list[str], raw: str) -> CallInfo:
    values = dict(zip(keys, raw.split(":")))
    genotype = values.get("GT")
    if genotype == "":
        genotype = None
    gq = _parse_int(values.get("GQ"))
    ad: int | None = None
    raw_ad = values.get("AD")
    if raw_ad not in (None, "", "."):
        depths = raw_ad.split(",")
        if len(depths) < 2:
            raise ValueError(f"AD has no alternate allele depth: {raw_ad!r}")
        ad = _parse_int(depths[1])
        if ad is None:
            raise ValueError(f"empty AD? {raw_ad!r}")
    return CallInfo(
        genotype=genotype,
        quality=None if gq is None else float(gq),
        dp=_parse_int(values.get("DP")),
        ad=ad,
        phasing_id=_parse_int(values.get("PS")),
    )


@dataclass
class SequenceVariant:
    """A sequence variant with per-sample genotype calls."""

    chrom: str = ""
    pos: int = 0
    reference: str = ""
    alternative: str = ""

    ann_fields: list[AnnField] = field(default_factory=list)

    gnomad_exomes_an: int = 0
    gnomad_exomes_hom: int = 0
    gnomad_exomes_het: int = 0
    gnomad_exomes_hemi: int = 0

    gnomad_genomes_an: int = 0
    gnomad_genomes_hom: int = 0
    gnomad_genomes_het: int = 0
    gnomad_genomes_hemi: int = 0

    helix_an: int = 0
    helix_hom: int = 0
    helix_het: int = 0

    inhouse_an: int = 0
    inhouse_hom: int = 0
    inhouse_het: int = 0
    inhouse_hemi: int = 0

    call_info: dict[str, CallInfo] = field(default_factory=dict)

    @classmethod
    def from_vcf_line(cls, line: str, sample_names: list[str]) -> SequenceVariant:
        """Build from one tab-separated VCF data line."""
        columns = line.rstrip("\r\n").split("\t")
        if len(columns) < 8:
            raise ValueError(f"VCF line has too few columns: {line!r}")
        chrom, raw_pos, _id, reference, alternative, _qual, _filter, raw_info = columns[:8]
        try:
            pos = int(raw_pos)
        except ValueError:
            raise ValueError(f"invalid VCF position: {raw_pos!r}") from None

        info = _parse_info(raw_info)
        ann_value = info.get("ANN")
        if "ANN" in info and ann_value is None:
            raise ValueError("invalid type of INFO/ANN")
        try:
            ann_fields = (
                [AnnField.parse(entry) for entry in ann_value.split(",") if entry]
                if ann_value
                else []
            )
        except ValueError as err:
            raise ValueError(f"problem parsing ANN: {err}") from err

        call_info: dict[str, CallInfo] = {}
        if len(columns) > 9:
            keys = columns[8].split(":")
            for name, raw_sample in zip(sample_names, columns[9:]):
                call_info[name] = _parse_call(keys, raw_sample)

        counts = {key: _parse_int(info.get(key)) or 0 for key in _FREQ_KEYS}
        return cls(
            chrom=chrom,
            pos=pos,
            reference=reference,
            alternative=alternative.split(",")[0],
            ann_fields=ann_fields,
            call_info=call_info,
            **counts,
        )

    def gnomad_exomes_af(self) -> float:
        """Allele frequency in gnomAD exomes."""
        if self.gnomad_exomes_an == 0:
            return 0.0
        carriers = 2 * self.gnomad_exomes_hom + self.gnomad_exomes_het + self.gnomad_exomes_hemi
        return carriers / self.gnomad_exomes_an

    def gnomad_genomes_af(self) -> float:
        """Allele frequency in gnomAD genomes."""
        if self.gnomad_genomes_an == 0:
            return 0.0
        carriers = (
            2 * self.gnomad_genomes_hom + self.gnomad_genomes_het + self.gnomad_genomes_hemi
        )
        return carriers / self.gnomad_genomes_an

    def helixmtdb_af(self) -> float:
        """Allele frequency in HelixMtDb."""
        if self.helix_an == 0:
            return 0.0
        return (2 * self.helix_hom + self.helix_het) / self.helix_an

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SequenceVariant:
        counts = {key: int(data.get(key, 0)) for key in _COUNT_FIELDS}
        return cls(
            chrom=data.get("chrom", ""),
            pos=int(data.get("pos", 0)),
            reference=data.get("reference", ""),
            alternative=data.get("alternative", ""),
            ann_fields=[AnnField.from_dict(ann) for ann in data.get("ann_fields", [])],
            call_info={
                name: CallInfo(**call) for name, call in data.get("call_info", {}).items()
            },
            **counts,
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "chrom": self.chrom,
            "pos": self.pos,
            "reference": self.reference,
            "alternative": self.alternative,
            "ann_fields": [ann.to_dict() for ann in self.ann_fields],
        }
        for key in _COUNT_FIELDS:
            result[key] = getattr(self, key)
        result["call_info"] = {
            name: dataclasses.asdict(call) for name, call in self.call_info.items()
        }
        return result


def read_vcf(lines: Iterable[str]) -> Iterator[SequenceVariant]:
    """Yield sequence variants from the lines of a VCF file."""
    sample_names: list[str] | None = None
    for line in lines:
        stripped = line.rstrip("\r\n")
        if not stripped or stripped.startswith("##"):
            continue
        if stripped.startswith("#"):
            sample_names = stripped.split("\t")[9:]
            continue
        if sample_names is None:
            raise ValueError("VCF data line before header line")
        yield SequenceVariant.from_vcf_line(stripped, sample_names)