"""
CVSS v2 and v3.x vector parsing and base score calculation.

The schema version is inferred from the vector header: ``CVSS:3.0/`` and
``CVSS:3.1/`` select v3, a bare metric list starting with ``AV:`` selects v2.
Scores follow the published formulas of each version:

- v2: https://www.first.org/cvss/v2/guide (section 3.2.1)
- v3.0 / v3.1: https://www.first.org/cvss/v3.1/specification-document (section 7)

Only base metrics are scored; temporal and environmental metrics in a v2
vector are accepted and ignored.
"""
import logging
import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Dict, Optional

logger = logging.getLogger(__name__)

ONE_DECIMAL = Decimal("0.1")


class SchemaVersion(Enum):
    """CVSS schema version."""
    V2 = "2.0"
    V3 = "3"


class CvssParseError(ValueError):
    """Raised when a vector cannot be parsed."""


@dataclass(frozen=True)
class CvssResult:
    """Scored CVSS vector. Consumers select on ``schema_version``."""
    schema_version: SchemaVersion
    vector: str
    base_score: Decimal
    impact_subscore: Decimal
    exploitability_subscore: Decimal


# v2 base metric weights
V2_WEIGHTS: Dict[str, Dict[str, float]] = {
    "AV": {"L": 0.395, "A": 0.646, "N": 1.0},
    "AC": {"H": 0.35, "M": 0.61, "L": 0.71},
    "Au": {"M": 0.45, "S": 0.56, "N": 0.704},
    "C": {"N": 0.0, "P": 0.275, "C": 0.660},
    "I": {"N": 0.0, "P": 0.275, "C": 0.660},
    "A": {"N": 0.0, "P": 0.275, "C": 0.660},
}
V2_OPTIONAL_METRICS = {"E", "RL", "RC", "CDP", "TD", "CR", "IR", "AR"}

# v3 base metric weights; PR depends on scope
V3_WEIGHTS: Dict[str, Dict[str, float]] = {
    "AV": {"N": 0.85, "A": 0.62, "L": 0.55, "P": 0.2},
    "AC": {"L": 0.77, "H": 0.44},
    "UI": {"N": 0.85, "R": 0.62},
    "C": {"H": 0.56, "L": 0.22, "N": 0.0},
    "I": {"H": 0.56, "L": 0.22, "N": 0.0},
    "A": {"H": 0.56, "L": 0.22, "N": 0.0},
}
V3_PR_UNCHANGED = {"N": 0.85, "L": 0.62, "H": 0.27}
V3_PR_CHANGED = {"N": 0.85, "L": 0.68, "H": 0.5}
V3_SCOPES = {"U", "C"}
V3_OPTIONAL_METRICS = {
    "E", "RL", "RC", "CR", "IR", "AR",
    "MAV", "MAC", "MPR", "MUI", "MS", "MC", "MI", "MA",
}


def _round_one_decimal(value: float) -> Decimal:
    return Decimal(repr(round(value, 10))).quantize(ONE_DECIMAL, rounding=ROUND_HALF_UP)


def _roundup_v30(value: float) -> Decimal:
    return _round_one_decimal(math.ceil(round(value * 10, 10)) / 10.0)


def _roundup_v31(value: float) -> Decimal:
    int_input = int(round(value * 100000))
    if int_input % 10000 == 0:
        return _round_one_decimal(int_input / 100000.0)
    return _round_one_decimal((math.floor(int_input / 10000) + 1) / 10.0)


def _split_metrics(parts) -> Dict[str, str]:
    metrics: Dict[str, str] = {}
    for part in parts:
        key, sep, value = part.partition(":")
        if not sep or not key or not value:
            raise CvssParseError(f"malformed metric {part!r}")
        if key in metrics:
            raise CvssParseError(f"duplicate metric {key}")
        metrics[key] = value
    return metrics


def _check_base(metrics: Dict[str, str], weights: Dict[str, Dict[str, float]], extra_base, optional) -> None:
    required = set(weights) | set(extra_base)
    missing = required - set(metrics)
    if missing:
        raise CvssParseError(f"missing base metrics {sorted(missing)}")
    unknown = set(metrics) - required - optional
    if unknown:
        raise CvssParseError(f"unknown metrics {sorted(unknown)}")
    for key, table in weights.items():
        if metrics[key] not in table:
            raise CvssParseError(f"invalid value {metrics[key]!r} for {key}")


def score_v2(vector: str) -> CvssResult:
    body = vector.strip()
    if body.startswith("(") and body.endswith(")"):
        body = body[1:-1]
    if body.startswith("CVSS:2.0/"):
        body = body[len("CVSS:2.0/"):]

    metrics = _split_metrics(body.split("/"))
    _check_base(metrics, V2_WEIGHTS, (), V2_OPTIONAL_METRICS)
    w = {key: V2_WEIGHTS[key][metrics[key]] for key in V2_WEIGHTS}

    impact = 10.41 * (1 - (1 - w["C"]) * (1 - w["I"]) * (1 - w["A"]))
    exploitability = 20 * w["AV"] * w["AC"] * w["Au"]
    f_impact = 0.0 if impact == 0 else 1.176
    base = ((0.6 * impact) + (0.4 * exploitability) - 1.5) * f_impact

    return CvssResult(
        schema_version=SchemaVersion.V2,
        vector=vector,
        base_score=_round_one_decimal(base if base > 0 else 0.0),
        impact_subscore=_round_one_decimal(impact),
        exploitability_subscore=_round_one_decimal(exploitability),
    )


def score_v3(vector: str) -> CvssResult:
    header, _, body = vector.strip().partition("/")
    minor = header[len("CVSS:"):]
    if minor not in ("3.0", "3.1"):
        raise CvssParseError(f"unsupported CVSS version {minor!r}")

    metrics = _split_metrics(body.split("/"))
    _check_base(metrics, V3_WEIGHTS, ("PR", "S"), V3_OPTIONAL_METRICS)
    if metrics["S"] not in V3_SCOPES:
        raise CvssParseError(f"invalid value {metrics['S']!r} for S")

    changed = metrics["S"] == "C"
    pr_table = V3_PR_CHANGED if changed else V3_PR_UNCHANGED
    if metrics["PR"] not in pr_table:
        raise CvssParseError(f"invalid value {metrics['PR']!r} for PR")
    w = {key: V3_WEIGHTS[key][metrics[key]] for key in V3_WEIGHTS}

    iss = 1 - (1 - w["C"]) * (1 - w["I"]) * (1 - w["A"])
    if changed:
        impact = 7.52 * (iss - 0.029) - 3.25 * (iss - 0.02) ** 15
    else:
        impact = 6.42 * iss
    exploitability = 8.22 * w["AV"] * w["AC"] * pr_table[metrics["PR"]] * w["UI"]

    roundup = _roundup_v31 if minor == "3.1" else _roundup_v30
    if impact <= 0:
        base = Decimal("0.0")
    elif changed:
        base = roundup(min(1.08 * (impact + exploitability), 10))
    else:
        base = roundup(min(impact + exploitability, 10))

    return CvssResult(
        schema_version=SchemaVersion.V3,
        vector=vector,
        base_score=base,
        impact_subscore=_round_one_decimal(impact if impact > 0 else 0.0),
        exploitability_subscore=_round_one_decimal(exploitability),
    )


class CvssScorer:
    """Parses a CVSS vector and computes its base, impact and exploitability scores."""

    def score(self, vector: Optional[str]) -> Optional[CvssResult]:
        """
        Score a vector of either schema version.

        Returns:
            CvssResult, or None for a blank or unparseable vector
        """
        if vector is None or not vector.strip():
            return None
        vector = vector.strip()

        try:
            if vector.startswith("CVSS:3"):
                return score_v3(vector)
            if vector.lstrip("(").startswith(("AV:", "CVSS:2.0/")):
                return score_v2(vector)
            raise CvssParseError("unrecognised vector header")
        except CvssParseError as exc:
            logger.warning("Unable to parse CVSS vector %r: %s", vector, exc)
            return None
