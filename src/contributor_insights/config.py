from __future__ import annotations

import json
from pathlib import Path
from types import MappingProxyType

import yaml

from .identity import VendorClassifier, VendorRules

RULE_FIELDS = ("domains", "github_companies", "organizations", "usernames")


class ConfigError(ValueError):
    pass


def load_config(config_path: Path) -> dict:
    """
    Read a vendor config file. `.yaml`/`.yml` files go through PyYAML, everything
    else is parsed as JSON. An empty document is an empty config.
    """
    try:
        text = config_path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read config {config_path}: {e}") from e

    try:
        if config_path.suffix.lower() in (".yaml", ".yml"):
            data = yaml.safe_load(text)
        else:
            data = json.loads(text) if text.strip() else None
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise ConfigError(f"Cannot parse config {config_path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config {config_path} must be a mapping at the top level")
    return data


def _string_list(vendor: str, field: str, value: object) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigError(f"vendors.{vendor}.{field} must be a list")
    out: list[str] = []
    for item in value:
        if not isinstance(item, str):
            raise ConfigError(f"vendors.{vendor}.{field} entries must be strings, got {item!r}")
        out.append(item)
    return out


def classifier_from_config(config: dict) -> VendorClassifier:
    vendors_raw = config.get("vendors")
    if vendors_raw is None:
        return VendorClassifier()
    if not isinstance(vendors_raw, dict):
        raise ConfigError("'vendors' must be a mapping of vendor name -> rules")

    vendors: dict[str, VendorRules] = {}
    for raw_name, rules_raw in vendors_raw.items():
        name = str(raw_name).strip()
        if not name:
            raise ConfigError("Vendor names must not be blank")
        if name in vendors:
            raise ConfigError(f"Duplicate vendor name: {name!r}")
        if rules_raw is None:
            rules_raw = {}
        if not isinstance(rules_raw, dict):
            raise ConfigError(f"vendors.{name} must be a mapping")
        unknown = sorted(str(k) for k in rules_raw if k not in RULE_FIELDS)
        if unknown:
            raise ConfigError(f"vendors.{name}: unknown field(s) {', '.join(unknown)}")
        vendors[name] = VendorRules.build(
            domains=_string_list(name, "domains", rules_raw.get("domains")),
            organizations=[
                *_string_list(name, "github_companies", rules_raw.get("github_companies")),
                *_string_list(name, "organizations", rules_raw.get("organizations")),
            ],
            usernames=_string_list(name, "usernames", rules_raw.get("usernames")),
        )
    return VendorClassifier(MappingProxyType(vendors))


def load_classifier(config_path: Path | None) -> VendorClassifier:
    if config_path is None:
        return VendorClassifier()
    return classifier_from_config(load_config(config_path))
