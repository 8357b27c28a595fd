"""Load and expose per-project SLA configuration from YAML/JSON (with fallbacks)."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any

import yaml

from jira_sla.analytics.sla.holidays import HolidayCalendar

from .config import (
    DEFAULT_CONTINUOUS_CUTOVER,
    DEFAULT_PRIORITY_TIERS,
    DEFAULT_REACTION_MINUTES,
    DEFAULT_REACTION_TOLERANCES,
    DEFAULT_RESOLUTION_MINUTES,
    DEFAULT_RESOLUTION_TOLERANCES,
    DEFAULT_TIERS,
)

logger = logging.getLogger(__name__)

_CACHE: dict[str, SLAConfig] = {}


class SLAConfigError(ValueError):
    """Raised when a configuration value has the wrong shape or type."""


@dataclass(slots=True)
class ToleranceGroup:
    id: str
    name: str
    tiers: list[str]
    tolerance: float


@dataclass(slots=True)
class SLAConfig:
    tiers: list[str] = field(default_factory=lambda: list(DEFAULT_TIERS))
    priorities: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_PRIORITY_TIERS))
    reaction_flat: float | None = DEFAULT_REACTION_MINUTES
    reaction_by_tier: dict[str, float] = field(default_factory=dict)
    resolution_by_tier: dict[str, float] = field(default_factory=lambda: dict(DEFAULT_RESOLUTION_MINUTES))
    reaction_tolerances: dict[str, float] = field(default_factory=lambda: dict(DEFAULT_REACTION_TOLERANCES))
    resolution_tolerances: dict[str, float] = field(
        default_factory=lambda: dict(DEFAULT_RESOLUTION_TOLERANCES)
    )
    reaction_groups: list[ToleranceGroup] = field(default_factory=list)
    resolution_groups: list[ToleranceGroup] = field(default_factory=list)
    exclude_lunch: bool = False
    issue_types: list[str] = field(default_factory=list)
    continuous_cutover: date | None = DEFAULT_CONTINUOUS_CUTOVER
    holidays: HolidayCalendar = field(default_factory=HolidayCalendar)

    @property
    def highest_tier(self) -> str | None:
        return self.tiers[0] if self.tiers else None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> SLAConfig:
        """Build a configuration from the project-configuration mapping.

        Recognized keys: ``tiers``, ``priorities``, ``issueTypes``,
        ``holidays``, ``continuousCutover`` and the ``sla`` block
        (``reactionTime``, ``resolution``, ``excludeLunchBreak``,
        ``tolerances``, ``aggregation``). Missing keys keep their defaults.
        """
        cfg = cls()
        if not data:
            return cfg
        if data.get("tiers"):
            cfg.tiers = [str(t) for t in data["tiers"]]
        if data.get("priorities"):
            cfg.priorities = {str(k).strip().lower(): str(v) for k, v in data["priorities"].items()}
        cfg.issue_types = [_issue_type_raw(t) for t in data.get("issueTypes") or []]
        if "continuousCutover" in data:
            cfg.continuous_cutover = _parse_date(data["continuousCutover"])
        if data.get("holidays") is not None:
            cfg.holidays = HolidayCalendar.from_config(data["holidays"])

        sla = data.get("sla") or {}
        reaction = sla.get("reactionTime")
        if isinstance(reaction, Mapping):
            cfg.reaction_by_tier = _number_map(reaction, "sla.reactionTime")
        elif reaction is not None:
            cfg.reaction_flat = _to_number(reaction, "sla.reactionTime")
        if sla.get("resolution") is not None:
            cfg.resolution_by_tier = _number_map(sla["resolution"], "sla.resolution")
        cfg.exclude_lunch = bool(sla.get("excludeLunchBreak", False))

        tolerances = sla.get("tolerances") or {}
        if tolerances.get("reaction") is not None:
            cfg.reaction_tolerances = _number_map(tolerances["reaction"], "sla.tolerances.reaction")
        if tolerances.get("resolution") is not None:
            cfg.resolution_tolerances = _number_map(tolerances["resolution"], "sla.tolerances.resolution")

        aggregation = sla.get("aggregation") or {}
        cfg.reaction_groups = [_group(g) for g in aggregation.get("reaction") or []]
        cfg.resolution_groups = [_group(g) for g in aggregation.get("resolution") or []]
        return cfg


def _to_number(value: Any, where: str) -> float:
    if isinstance(value, bool):
        raise SLAConfigError(f"{where}: expected a number, got {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise SLAConfigError(f"{where}: expected a number, got {value!r}") from exc


def _number_map(value: Any, where: str) -> dict[str, float]:
    if not isinstance(value, Mapping):
        raise SLAConfigError(f"{where}: expected a mapping of tier -> number")
    return {str(k): _to_number(v, f"{where}.{k}") for k, v in value.items()}


def _group(raw: Any) -> ToleranceGroup:
    if not isinstance(raw, Mapping):
        raise SLAConfigError(f"sla.aggregation: expected a group mapping, got {raw!r}")
    name = str(raw.get("name") or raw.get("id") or "")
    return ToleranceGroup(
        id=str(raw.get("id") or name),
        name=name,
        tiers=[str(t) for t in raw.get("tiers") or []],
        tolerance=_to_number(raw.get("tolerance", 0), f"sla.aggregation.{name}.tolerance"),
    )


def _issue_type_raw(raw: Any) -> str:
    if isinstance(raw, Mapping):
        return str(raw.get("raw") or "")
    return str(raw)


def _parse_date(value: Any) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError as exc:
        raise SLAConfigError(f"continuousCutover: expected YYYY-MM-DD, got {value!r}") from exc


def load_sla_config(path: str | Path | None = None) -> SLAConfig:
    """Read a project SLA configuration file, caching by resolved path.

    JSON files parse as YAML, so one loader covers both. A missing or
    unreadable file yields the default configuration.
    """
    if path is None:
        return SLAConfig()
    cache_key = str(Path(path).resolve())
    if cache_key in _CACHE:
        return _CACHE[cache_key]
    config_path = Path(path)
    if not config_path.exists():
        logger.warning("SLA config %s not found; using defaults", config_path)
        _CACHE[cache_key] = SLAConfig()
        return _CACHE[cache_key]
    try:
        data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
        _CACHE[cache_key] = SLAConfig.from_dict(data)
    except (yaml.YAMLError, SLAConfigError, AttributeError) as exc:
        logger.warning("Failed to load SLA config %s (%s); using defaults", config_path, exc)
        _CACHE[cache_key] = SLAConfig()
    return _CACHE[cache_key]


def clear_cache() -> None:
    _CACHE.clear()
