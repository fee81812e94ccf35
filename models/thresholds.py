import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, Mapping, Optional, Union

from config.settings import config

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class ParameterThreshold:
    """Normal range and critical limit for one monitored parameter"""
    min: Optional[float] = None
    max: Optional[float] = None
    critical: Optional[float] = None
    enabled: bool = True

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ParameterThreshold":
        enabled = data.get('enabled', True)
        if not isinstance(enabled, bool):
            raise ValueError(f"'enabled' must be a boolean, got {enabled!r}")
        # Fields absent from the mapping are unset, not inherited
        return cls(
            min=data.get('min'),
            max=data.get('max'),
            critical=data.get('critical'),
            enabled=enabled,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


ThresholdTable = Dict[str, ParameterThreshold]
ThresholdLike = Union[ParameterThreshold, Mapping[str, Any]]


def is_lower_bound_critical(parameter: str) -> bool:
    """True when falling below the critical value is the dangerous direction"""
    return parameter in config.LOWER_CRITICAL_PARAMS


def default_thresholds() -> ThresholdTable:
    return {
        name: ParameterThreshold(min=low, max=high, critical=critical, enabled=True)
        for name, (low, high, critical) in config.DEFAULT_THRESHOLDS.items()
    }


class ThresholdRegistry:
    """Owns the live per-parameter threshold table.

    Not safe for concurrent writers; callers serialize ``update`` calls.
    """

    def __init__(self, table: Optional[Mapping[str, ThresholdLike]] = None):
        self._table: ThresholdTable = default_thresholds()
        if table is not None:
            self._table = {}
            self.update(table)

    def get(self) -> ThresholdTable:
        """Return the current table (entries are immutable, the dict is a copy)"""
        return dict(self._table)

    def update(self, partial: Mapping[str, ThresholdLike]):
        """Replace each given entry wholesale; other entries are untouched"""
        for parameter, threshold in partial.items():
            if not isinstance(threshold, ParameterThreshold):
                threshold = ParameterThreshold.from_dict(threshold)
            self._table[parameter] = threshold

        if partial:
            logger.info(f"Thresholds updated for: {list(partial.keys())}")

    def __len__(self) -> int:
        return len(self._table)

    def __contains__(self, parameter: str) -> bool:
        return parameter in self._table
