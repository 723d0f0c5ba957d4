"""3-layer configuration system for Compliance Vantage.

Loads and merges configuration from:
1. Default settings (built-in)
2. Project config (.vantage/config.yaml)
3. CLI parameters (override)
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_CONFIG: dict = {
    "project": {
        "name": "",
    },
    "scope": {
        "framework": "",
        "range_days": 90,
        "min_range_days": 30,
        "max_range_days": 365,
        "comparison_months": 6,
    },
    "scoring": {
        "partial_weight": 0.6,
    },
    "risk": {
        "fresh_days": 14,
        "stale_days": 90,
        "high_score": 5,
        "medium_score": 4,
    },
    "evidence": {
        "high_keywords": ["log", "logs", "config", "configuration", "ticket", "record", "records"],
        "medium_keywords": ["policy", "procedure", "process", "guideline", "standard", "plan"],
        "governance_markers": ["governance", "risk management"],
        "outdated_days": 180,
        "expiring_days": 335,
        "expired_days": 365,
    },
    "gaps": {
        "outdated_policy_days": 180,
        "policy_keywords": ["policy"],
        "top_gaps": 5,
        "top_drivers": 3,
    },
    "kpis": {
        "high_below": 60,
        "medium_below": 80,
        "mttr_warn_days": 30,
    },
    "review": {
        "overdue_days": 14,
    },
    "source": {
        "type": "file",
        "path": "snapshot.json",
        "endpoint": "",
        "api_key_env": "VANTAGE_API_TOKEN",
        "batch_size": 500,
        "timeout_seconds": 30,
        "retry_attempts": 3,
        "retry_delay_seconds": 2,
    },
    "output": {
        "format": "json",
    },
}


def deep_merge(base: dict, override: dict) -> dict:
    """Deep merge two dicts. Arrays are replaced, not merged."""
    result = {}
    for key in base:
        result[key] = base[key]
    for key, value in override.items():
        base_value = result.get(key)
        if isinstance(base_value, dict) and isinstance(value, dict):
            result[key] = deep_merge(base_value, value)
        else:
            result[key] = value
    return result


def load_project_config(project_path: Path) -> dict:
    """Load project configuration from .vantage/config.yaml."""
    config_path = project_path / ".vantage" / "config.yaml"
    if not config_path.exists():
        return {}
    try:
        content = config_path.read_text(encoding="utf-8-sig")  # utf-8-sig strips BOM
        data = yaml.safe_load(content) or {}
    except (OSError, yaml.YAMLError):
        return {}
    return data if isinstance(data, dict) else {}


def get_effective_config(
    project_path: Optional[Path] = None,
    cli_overrides: Optional[dict] = None,
) -> dict:
    """Get the fully resolved configuration for a dashboard run."""
    config = copy.deepcopy(DEFAULT_CONFIG)

    if project_path is not None:
        project_config = load_project_config(project_path)
        if project_config:
            config = deep_merge(config, project_config)
        config["_project_path"] = str(project_path)

    if cli_overrides:
        config = deep_merge(config, cli_overrides)

    return config
