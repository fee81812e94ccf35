"""Typed patient records consumed by the scoring engine.

Every clinical value is optional. ``None`` means the measurement was not
taken; it is never replaced by 0 or any other sentinel, because the
uncertainty model treats absence as evidence of its own.
"""

import logging
import math
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Mapping, Optional

logger = logging.getLogger(__name__)


def _to_number(value: Any) -> Optional[float]:
    """Coerce a raw payload value to float, mapping blanks and NaN to None"""
    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        logger.warning(f"Ignoring non-numeric clinical value: {value!r}")
        return None
    if math.isnan(number):
        return None
    return number


class _ChannelGroup:
    """Shared lookup helpers for the vitals and labs groups.

    Typed channels are dataclass fields. Any other numeric entry of the input
    is kept in ``extra`` so thresholds added at runtime can still resolve it.
    """

    def get(self, name: str) -> Optional[float]:
        if name in self.names():
            return getattr(self, name)
        return self.extra.get(name)

    @classmethod
    def names(cls) -> List[str]:
        return [f.name for f in fields(cls) if f.name != "extra"]

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]):
        data = data or {}
        names = cls.names()
        extra = {}
        for key, raw in data.items():
            if key in names:
                continue
            value = _to_number(raw)
            if value is not None:
                extra[str(key)] = value
        return cls(extra=extra, **{name: _to_number(data.get(name)) for name in names})

    def to_dict(self) -> Dict[str, float]:
        values = {name: getattr(self, name) for name in self.names() if getattr(self, name) is not None}
        values.update(self.extra)
        return values


@dataclass(frozen=True)
class Vitals(_ChannelGroup):
    HR: Optional[float] = None
    Temp: Optional[float] = None
    SBP: Optional[float] = None
    DBP: Optional[float] = None
    Resp: Optional[float] = None
    O2Sat: Optional[float] = None
    MAP: Optional[float] = None
    extra: Dict[str, float] = field(default_factory=dict, hash=False)


@dataclass(frozen=True)
class Labs(_ChannelGroup):
    WBC: Optional[float] = None
    Lactate: Optional[float] = None
    Creatinine: Optional[float] = None
    Platelets: Optional[float] = None
    pH: Optional[float] = None
    Bilirubin_total: Optional[float] = None
    PTT: Optional[float] = None
    extra: Dict[str, float] = field(default_factory=dict, hash=False)


@dataclass(frozen=True)
class PatientRecord:
    """Read-only snapshot of one patient's vitals, labs and demographics"""
    vitals: Vitals = field(default_factory=Vitals)
    labs: Labs = field(default_factory=Labs)
    Age: Optional[float] = None
    ICULOS: Optional[float] = None
    HospAdmTime: Optional[float] = None

    def value_for(self, parameter: str) -> Optional[float]:
        """Resolve a parameter by name, checking vitals before labs"""
        value = self.vitals.get(parameter)
        if value is None:
            value = self.labs.get(parameter)
        return value

    @classmethod
    def from_dict(cls, payload: Optional[Mapping[str, Any]]) -> "PatientRecord":
        """Build a record from a nested ``{"vitals": ..., "labs": ...}`` payload"""
        payload = payload or {}
        return cls(
            vitals=Vitals.from_mapping(payload.get("vitals")),
            labs=Labs.from_mapping(payload.get("labs")),
            Age=_to_number(payload.get("Age")),
            ICULOS=_to_number(payload.get("ICULOS")),
            HospAdmTime=_to_number(payload.get("HospAdmTime")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "vitals": self.vitals.to_dict(),
            "labs": self.labs.to_dict(),
            "Age": self.Age,
            "ICULOS": self.ICULOS,
            "HospAdmTime": self.HospAdmTime,
        }
