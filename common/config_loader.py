from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List
import yaml

def load_yaml(path: str | Path) -> Dict[str, Any]:
    p = Path(path)
    with p.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}

def load_optional_yaml(path: str | Path | None) -> Dict[str, Any]:
    """Like load_yaml, but a missing or unset path yields an empty mapping."""
    if path is None or not Path(path).exists():
        return {}
    return load_yaml(path)

@dataclass(frozen=True)
class LoadedConfig:
    policy: Dict[str, Any]
    assets: List[Dict[str, Any]]

def load_all(
    policy_path: str | None = "config/rebalance_policy.yaml",
    assets_path: str = "config/assets.yaml",
) -> LoadedConfig:
    return LoadedConfig(
        policy=load_optional_yaml(policy_path),
        assets=list(load_yaml(assets_path).get("assets") or []),
    )
