"""
Configuration Loader (``studio_config.loader``).

Responsibility
--------------
Loads YAML configuration files and parses them into the typed
``studio_config.schema`` dataclasses, the office profile, the package
fees and service template records.  The single public entry point for
runtime config is ``studio_config.get_active_config()``.

Invariants enforced
-------------------
* Every parsed object is a frozen dataclass.
* Missing optional keys fall back to the documented defaults of the
  target dataclass; required keys (phase ids, step names, fixed-cost
  labels) raise instead.
* ``compute_checksum`` produces a deterministic SHA-256 hash of the raw
  document for configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Wrong shape, malformed values or missing required keys  -> ``ValueError``
  naming the section.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from types import MappingProxyType
from typing import Any

import yaml

from studio_kernel.domain.office import FixedCost, OfficeProfile, ROLE_DEFAULTS, TeamMember
from studio_kernel.domain.templates import BaseReference, Phase, ServiceTemplate, Step
from studio_kernel.domain.values import to_decimal
from studio_engines.multipliers import MultiplierTables
from studio_engines.packages import Modality, PackageFees, PackageTier
from studio_engines.schedule import DayCountRule
from studio_config.schema import EngineConfig, StudioConfiguration

_MULTIPLIER_TABLES = ("complexity", "finish", "room_size", "environment_type", "room_prices")


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the document is not a mapping.
    """
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping at the top level")
    return data


def _mapping(data: Any, section: str) -> dict[str, Any]:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{section}: expected a mapping, got {type(data).__name__}")
    return data


def _required(data: dict[str, Any], key: str, section: str) -> Any:
    value = data.get(key)
    if value is None or value == "":
        raise ValueError(f"{section}: missing required key {key!r}")
    return value


def _as_int(value: Any, name: str) -> int:
    if isinstance(value, bool):
        raise ValueError(f"{name}: expected an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"{name}: expected an integer, got {value!r}") from e


def parse_engine_config(data: dict[str, Any] | None) -> EngineConfig:
    data = _mapping(data, "engine")
    defaults = EngineConfig()
    rule = data.get("day_count_rule", defaults.day_count_rule.value)
    try:
        day_count_rule = DayCountRule(rule)
    except ValueError as e:
        raise ValueError(f"engine.day_count_rule: unknown rule {rule!r}") from e
    apply_env = data.get("apply_environment_multipliers", defaults.apply_environment_multipliers)
    if not isinstance(apply_env, bool):
        raise ValueError(f"engine.apply_environment_multipliers: expected a boolean, got {apply_env!r}")
    return EngineConfig(
        hours_per_day=_as_int(data.get("hours_per_day", defaults.hours_per_day), "engine.hours_per_day"),
        installment_interval_days=_as_int(
            data.get("installment_interval_days", defaults.installment_interval_days),
            "engine.installment_interval_days",
        ),
        default_payment_terms=str(data.get("default_payment_terms", defaults.default_payment_terms)),
        budget_validity_days=_as_int(
            data.get("budget_validity_days", defaults.budget_validity_days),
            "engine.budget_validity_days",
        ),
        day_count_rule=day_count_rule,
        apply_environment_multipliers=apply_env,
        currency=str(data.get("currency", defaults.currency)),
    )


def parse_multipliers(data: dict[str, Any] | None) -> MultiplierTables:
    """Built-in tables with any table named in ``data`` replaced wholesale."""
    data = _mapping(data, "multipliers")
    unknown = sorted(set(data) - set(_MULTIPLIER_TABLES))
    if unknown:
        raise ValueError(f"multipliers: unknown tables {unknown}")
    overrides: dict[str, Any] = {}
    for name, table in data.items():
        table = _mapping(table, f"multipliers.{name}")
        if name == "room_prices":
            overrides[name] = {
                svc: _decimal_table(_mapping(prices, f"multipliers.room_prices.{svc}"),
                                    f"multipliers.room_prices.{svc}")
                for svc, prices in table.items()
            }
        else:
            overrides[name] = _decimal_table(table, f"multipliers.{name}")
    return MultiplierTables().with_overrides(**overrides)


def _decimal_table(table: dict[str, Any], section: str) -> dict[str, Any]:
    try:
        return {str(k): to_decimal(v) for k, v in table.items()}
    except ValueError as e:
        raise ValueError(f"{section}: {e}") from e


def _parse_fee(data: Any, section: str, default: PackageTier) -> PackageTier:
    data = _mapping(data, section)
    try:
        return PackageTier(
            to_decimal(data.get("price", default.price)),
            to_decimal(data.get("hours", default.hours)),
        )
    except ValueError as e:
        raise ValueError(f"{section}: {e}") from e


def parse_package_fees(data: dict[str, Any] | None) -> PackageFees:
    """Fees shared by package services; omitted entries keep the defaults."""
    data = _mapping(data, "packages")
    defaults = PackageFees()
    survey = dict(defaults.survey)
    for modality, fee in _mapping(data.get("survey"), "packages.survey").items():
        try:
            key = Modality(modality)
        except ValueError as e:
            raise ValueError(f"packages.survey: unknown modality {modality!r}") from e
        survey[key] = _parse_fee(fee, f"packages.survey.{modality}", survey[key])
    try:
        cash_discount = to_decimal(data.get("cash_discount_percent", defaults.cash_discount_percent))
        reference_rate = to_decimal(data.get("reference_hour_rate", defaults.reference_hour_rate))
    except ValueError as e:
        raise ValueError(f"packages: {e}") from e
    return PackageFees(
        survey=MappingProxyType(survey),
        extra_environment=_parse_fee(
            data.get("extra_environment"), "packages.extra_environment", defaults.extra_environment,
        ),
        management=_parse_fee(data.get("management"), "packages.management", defaults.management),
        cash_discount_percent=cash_discount,
        reference_hour_rate=reference_rate,
    )


def parse_team_member(data: dict[str, Any]) -> TeamMember:
    data = _mapping(data, "office.team[]")
    role = data.get("role", "freelancer")
    default = ROLE_DEFAULTS.get(role)
    if default is None:
        raise ValueError(f"office.team: unknown role {role!r}")
    return TeamMember(
        name=str(data.get("name", default.name)),
        role=role,
        salary=to_decimal(data.get("salary", default.salary)),
        hours=_as_int(data.get("hours", default.hours), "office.team.hours"),
    )


def _parse_fixed_cost(item: dict[str, Any]) -> FixedCost:
    return FixedCost(
        str(_required(item, "label", "office.fixed_costs[]")),
        to_decimal(item.get("amount", 0)),
    )


def parse_office(data: dict[str, Any] | None) -> OfficeProfile | None:
    if data is None:
        return None
    data = _mapping(data, "office")
    costs = data.get("fixed_costs") or {}
    if isinstance(costs, dict):
        fixed_costs = tuple(FixedCost(str(k), to_decimal(v)) for k, v in costs.items())
    else:
        fixed_costs = tuple(
            _parse_fixed_cost(_mapping(item, "office.fixed_costs[]")) for item in costs
        )
    return OfficeProfile(
        name=str(data.get("name", "")),
        size=str(data.get("size", "")),
        team=tuple(parse_team_member(m) for m in data.get("team") or ()),
        fixed_costs=fixed_costs,
        services=tuple(str(s) for s in data.get("services") or ()),
        margin=to_decimal(data.get("margin", "30")),
    )


def parse_step(data: dict[str, Any]) -> Step:
    data = _mapping(data, "step")
    return Step(
        name=str(_required(data, "name", "step")),
        exec_time=str(data.get("exec_time", "")),
        deliverable=str(data.get("deliverable", "")),
        deadline=data.get("deadline"),
    )


def parse_phase(data: dict[str, Any]) -> Phase:
    data = _mapping(data, "phase")
    phase_id = str(_required(data, "id", "phase"))
    return Phase(
        id=phase_id,
        name=str(data.get("name", phase_id)),
        color=str(data.get("color", "#6B7280")),
        duration=data.get("duration"),
        steps=tuple(parse_step(s) for s in data.get("steps") or ()),
    )


def parse_template(data: dict[str, Any]) -> ServiceTemplate:
    data = _mapping(data, "template")
    ref = _mapping(data.get("base_ref"), "template.base_ref")
    phases = tuple(parse_phase(p) for p in data.get("phases") or ())
    ids = [p.id for p in phases]
    if len(ids) != len(set(ids)):
        raise ValueError(f"template {data.get('name', '')!r}: duplicate phase ids")
    return ServiceTemplate(
        name=str(data.get("name", "")),
        base_ref=BaseReference(
            area=_as_int(ref.get("area", 100), "template.base_ref.area"),
            rooms=_as_int(ref.get("rooms", 1), "template.base_ref.rooms"),
            typology=str(ref.get("typology", "")),
            description=str(ref.get("description", "")),
        ),
        phases=phases,
    )


def parse_configuration(data: dict[str, Any]) -> StudioConfiguration:
    """Parse a whole configuration document."""
    templates = _mapping(data.get("templates"), "templates")
    return StudioConfiguration(
        config_id=str(data.get("config_id", "studio")),
        version=_as_int(data.get("version", 1), "version"),
        checksum=compute_checksum(data),
        engine=parse_engine_config(data.get("engine")),
        multipliers=parse_multipliers(data.get("multipliers")),
        package_fees=parse_package_fees(data.get("packages")),
        office=parse_office(data.get("office")),
        templates=tuple(
            (str(service_id), parse_template(t)) for service_id, t in templates.items()
        ),
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization; stable across key order."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
