"""Weighted multi-factor sepsis risk scorer.

Evidence from each clinical channel accumulates additively into a raw risk
score, while missing SIRS inputs and missing lactate erode confidence. The
scorer is deterministic: the same record always yields the same
``Prediction``.

Two kinds of weight bands are used:

* layered bands (temperature, heart rate, respiratory rate, WBC): the base
  SIRS criterion contributes a weight and every more extreme band that is
  also met adds its own weight on top;
* exclusive bands (everything else): only the most extreme band met
  contributes.
"""

import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, NamedTuple, Optional, Tuple

from models.patient import PatientRecord

logger = logging.getLogger(__name__)

BASE_CONFIDENCE = 0.88
PENALTY_FACTOR = 0.7
MIN_CONFIDENCE = 0.3
MAX_CONFIDENCE = 0.96
PROBABILITY_SCALE = 1.05

UNCERTAIN_CONFIDENCE = 0.55
UNCERTAIN_COMPLETENESS = 0.35
LOW_CUTOFF = 0.18
MODERATE_CUTOFF = 0.42
HIGH_CUTOFF = 0.68

MISSING_LACTATE_PENALTY = 0.12


class RiskLevel(str, Enum):
    LOW = "LOW"
    MODERATE = "MODERATE"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"
    UNCERTAIN = "UNCERTAIN"


@dataclass(frozen=True)
class Prediction:
    probability: float
    confidence: float
    risk_level: RiskLevel


class Band(NamedTuple):
    upper: Optional[float]  # fires when value > upper
    lower: Optional[float]  # fires when value < lower
    weight: float

    def matches(self, value: float) -> bool:
        return ((self.upper is not None and value > self.upper) or
                (self.lower is not None and value < self.lower))


class LayeredChannel(NamedTuple):
    name: str
    source: str
    penalty: float
    layers: Tuple[Band, ...]  # layers[0] is the SIRS criterion
    extras: Tuple[Band, ...] = ()  # independent bands outside the ladder


class ExclusiveChannel(NamedTuple):
    name: str
    source: Optional[str]
    tiers: Tuple[Band, ...]  # most extreme first


def above(limit, weight) -> Band:
    return Band(limit, None, weight)


def below(limit, weight) -> Band:
    return Band(None, limit, weight)


SIRS_CHANNELS = (
    LayeredChannel('Temp', 'vitals', 0.06, (
        Band(38, 36, 0.24),
        Band(39.5, 35, 0.18),
        Band(40, 34, 0.12),
    )),
    LayeredChannel('HR', 'vitals', 0.06, (
        above(90, 0.21),
        above(120, 0.15),
        above(150, 0.10),
    ), extras=(below(60, 0.18),)),
    LayeredChannel('Resp', 'vitals', 0.05, (
        above(20, 0.18),
        above(28, 0.12),
        above(35, 0.08),
    )),
    LayeredChannel('WBC', 'labs', 0.10, (
        Band(12, 4, 0.28),
        Band(20, 2, 0.20),
        Band(30, 1, 0.15),
    )),
)

MAP_CHANNEL = ExclusiveChannel('MAP', 'vitals', (below(65, 0.35), below(70, 0.22), below(75, 0.12)))

# (band, confidence bonus)
LACTATE_TIERS = (
    (above(4.0, 0.42), 0.10),
    (above(2.5, 0.28), 0.06),
    (above(2.0, 0.18), 0.03),
    (above(1.5, 0.08), 0.0),
)

ORGAN_CHANNELS = (
    ExclusiveChannel('Creatinine', 'labs', (above(3.0, 0.25), above(2.0, 0.18), above(1.5, 0.10))),
    ExclusiveChannel('Platelets', 'labs', (below(50, 0.28), below(100, 0.20), below(150, 0.12))),
    ExclusiveChannel('O2Sat', 'vitals', (below(85, 0.30), below(90, 0.22), below(95, 0.12))),
    ExclusiveChannel('pH', 'labs', (below(7.20, 0.25), below(7.30, 0.15), below(7.35, 0.08))),
    ExclusiveChannel('Bilirubin_total', 'labs', (above(4.0, 0.20), above(2.0, 0.12))),
    ExclusiveChannel('PTT', 'labs', (above(60, 0.15), above(45, 0.08))),
    ExclusiveChannel('ICULOS', None, (above(72, 0.12), above(48, 0.08), above(24, 0.05))),
    ExclusiveChannel('Age', None, (above(75, 0.08), above(65, 0.05))),
    ExclusiveChannel('HospAdmTime', None, (above(168, 0.08), above(72, 0.05))),
)


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def channel_value(record: PatientRecord, source: Optional[str], name: str) -> Optional[float]:
    if source is None:
        return getattr(record, name)
    return getattr(record, source).get(name)


@dataclass
class ScoreBreakdown:
    """Intermediate evidence gathered while scoring one record"""
    contributions: Dict[str, float] = field(default_factory=OrderedDict)
    risk_score: float = 0.0
    sirs_count: int = 0
    data_completeness: int = 0
    total_checks: int = 0
    uncertainty_penalty: float = 0.0
    confidence_bonus: float = 0.0
    missing_channels: List[str] = field(default_factory=list)

    @property
    def completeness_ratio(self) -> float:
        return self.data_completeness / self.total_checks if self.total_checks > 0 else 0.0

    def add(self, channel: str, weight: float):
        self.risk_score += weight
        self.contributions[channel] = self.contributions.get(channel, 0.0) + weight


class RiskScorer:
    """Deterministic sepsis risk scorer with a completeness-aware confidence model"""

    def score(self, record: PatientRecord) -> Prediction:
        return self.score_with_breakdown(record)[0]

    def score_with_breakdown(self, record: PatientRecord) -> Tuple[Prediction, ScoreBreakdown]:
        breakdown = ScoreBreakdown()

        for channel in SIRS_CHANNELS:
            self._score_layered(record, channel, breakdown)

        map_value = channel_value(record, MAP_CHANNEL.source, MAP_CHANNEL.name)
        if map_value is not None:
            self._score_exclusive(MAP_CHANNEL, map_value, breakdown)

        self._score_lactate(record.labs.Lactate, breakdown)

        for channel in ORGAN_CHANNELS:
            value = channel_value(record, channel.source, channel.name)
            if value is not None:
                self._score_exclusive(channel, value, breakdown)

        completeness = breakdown.completeness_ratio
        confidence = BASE_CONFIDENCE + breakdown.confidence_bonus
        confidence -= breakdown.uncertainty_penalty * PENALTY_FACTOR
        confidence = clamp(confidence * (0.75 + 0.25 * completeness), MIN_CONFIDENCE, MAX_CONFIDENCE)

        probability = clamp(breakdown.risk_score * PROBABILITY_SCALE, 0.0, 1.0)
        risk_level = self.classify(probability, confidence, completeness)

        logger.debug(
            f"Scored record: probability={probability:.3f}, confidence={confidence:.3f}, "
            f"completeness={completeness:.2f}, sirs={breakdown.sirs_count}, level={risk_level.value}"
        )
        return Prediction(probability, confidence, risk_level), breakdown

    @staticmethod
    def classify(probability: float, confidence: float, completeness: float) -> RiskLevel:
        """Map a scored record to a risk level; the two global gates come first"""
        if confidence < UNCERTAIN_CONFIDENCE or completeness < UNCERTAIN_COMPLETENESS:
            return RiskLevel.UNCERTAIN
        if probability < LOW_CUTOFF:
            return RiskLevel.LOW
        if probability < MODERATE_CUTOFF:
            return RiskLevel.MODERATE
        if probability < HIGH_CUTOFF:
            return RiskLevel.HIGH
        return RiskLevel.CRITICAL

    def _score_layered(self, record: PatientRecord, channel: LayeredChannel, breakdown: ScoreBreakdown):
        value = channel_value(record, channel.source, channel.name)
        if value is None:
            breakdown.uncertainty_penalty += channel.penalty
            breakdown.missing_channels.append(channel.name)
            return

        breakdown.total_checks += 1
        breakdown.data_completeness += 1

        sirs_criterion = channel.layers[0]
        if sirs_criterion.matches(value):
            breakdown.sirs_count += 1
            breakdown.add(channel.name, sirs_criterion.weight)
        for band in channel.layers[1:] + channel.extras:
            if band.matches(value):
                breakdown.add(channel.name, band.weight)

    def _score_exclusive(self, channel: ExclusiveChannel, value: float, breakdown: ScoreBreakdown):
        for band in channel.tiers:
            if band.matches(value):
                breakdown.add(channel.name, band.weight)
                return

    def _score_lactate(self, value: Optional[float], breakdown: ScoreBreakdown):
        if value is None:
            breakdown.uncertainty_penalty += MISSING_LACTATE_PENALTY
            breakdown.missing_channels.append('Lactate')
            return

        for band, bonus in LACTATE_TIERS:
            if band.matches(value):
                breakdown.add('Lactate', band.weight)
                breakdown.confidence_bonus += bonus
                return
