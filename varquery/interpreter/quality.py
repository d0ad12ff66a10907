"""Per-sample genotype quality filter."""

from __future__ import annotations

import enum
import logging
import math
from dataclasses import dataclass, field

from varquery.schema import (
    CallInfo,
    CaseQuery,
    FailChoice,
    QualitySettings,
    SequenceVariant,
)

logger = logging.getLogger(__name__)

_AB_EPSILON = 1e-6


@dataclass
class PassOrNoCall:
    """Outcome of the quality filter for one variant."""

    passed: bool = True
    no_call_samples: list[str] = field(default_factory=list)


class _Genotype(enum.Enum):
    HET = "het"
    HOM = "hom"
    REF = "ref"
    NO_CALL = "no-call"


_GENOTYPE_CLASSES = {
    **dict.fromkeys(("0/1", "1/0", "0|1", "1|0"), _Genotype.HET),
    **dict.fromkeys(("1/1", "1|1", "1"), _Genotype.HOM),
    **dict.fromkeys(("0/0", "0|0", "0"), _Genotype.REF),
}


def _classify(genotype: str | None) -> _Genotype:
    if genotype is None:
        return _Genotype.NO_CALL
    return _GENOTYPE_CLASSES.get(genotype, _Genotype.NO_CALL)


def _ratio(numerator: int, denominator: int) -> float:
    if denominator != 0:
        return numerator / denominator
    if numerator > 0:
        return math.inf
    if numerator < 0:
        return -math.inf
    return math.nan


def passes(query: CaseQuery, seqvar: SequenceVariant) -> PassOrNoCall:
    """Apply the quality settings of every configured sample to the variant.

    Raises ``ValueError`` if a configured sample has no call information.
    """
    result = PassOrNoCall()
    for sample_name, settings in query.quality.items():
        call_info = seqvar.call_info.get(sample_name)
        if call_info is None:
            raise ValueError(f"sample {sample_name} not found in call info")
        fail = passes_for_sample(settings, call_info)
        if fail is None or fail is FailChoice.IGNORE:
            continue
        if fail is FailChoice.DROP:
            logger.debug(
                "sample %s in variant %r fails quality filter %r",
                sample_name,
                seqvar,
                settings,
            )
            result.passed = False
            break
        result.no_call_samples.append(sample_name)

    logger.debug("variant %r has result %r for quality filter", seqvar, result)
    return result


def passes_for_sample(
    quality_settings: QualitySettings, call_info: CallInfo
) -> FailChoice | None:
    """Return the failure choice if the call fails a threshold, else ``None``."""
    fail = quality_settings.fail
    genotype = _classify(call_info.genotype)

    if genotype is _Genotype.HET:
        if (
            quality_settings.dp_het is not None
            and call_info.dp is not None
            and call_info.dp < quality_settings.dp_het
        ):
            return fail
        if (
            quality_settings.ab is not None
            and call_info.dp is not None
            and call_info.ad is not None
        ):
            ab_raw = _ratio(call_info.ad, call_info.dp)
            ab = 1.0 - ab_raw if ab_raw > 0.5 else ab_raw
            if ab + _AB_EPSILON < quality_settings.ab:
                return fail
    elif genotype is _Genotype.HOM:
        if (
            quality_settings.dp_hom is not None
            and call_info.dp is not None
            and call_info.dp < quality_settings.dp_hom
        ):
            return fail

    if (
        quality_settings.gq is not None
        and call_info.quality is not None
        and call_info.quality < float(quality_settings.gq)
    ):
        return fail

    if genotype is not _Genotype.REF and call_info.ad is not None:
        if quality_settings.ad is not None and call_info.ad < quality_settings.ad:
            return fail
        if quality_settings.ad_max is not None and call_info.ad > quality_settings.ad_max:
            return fail

    return None