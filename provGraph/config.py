from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any

CONFIG_ENV = "PROVGRAPH_CONFIG"
ENDPOINT_ENV = "PROVGRAPH_ENDPOINT"


def config_path() -> Path:
    env = os.getenv(CONFIG_ENV)
    if env:
        return Path(env)
    return Path.home() / ".provgraph" / "config.json"


@dataclass
class ProvConfig:
    endpoint: str = "http://localhost:3030/prov/sparql"
    update_endpoint: str | None = None
    timeout: int = 15
    # None follows links only when the starting context has any
    follow_links: bool | None = None
    input_format: str | None = None


def load_config() -> ProvConfig:
    path = config_path()
    cfg = ProvConfig()
    if path.exists():
        with path.open("r", encoding="utf-8") as fh:
            data: dict[str, Any] = json.load(fh)
        known = {f.name for f in fields(ProvConfig)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown settings in {path}: {', '.join(unknown)}")
        cfg = ProvConfig(**data)
    endpoint = os.getenv(ENDPOINT_ENV)
    if endpoint:
        cfg.endpoint = endpoint
    return cfg


def save_config(cfg: ProvConfig) -> Path:
    path = config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as fh:
        json.dump(asdict(cfg), fh, indent=2)
    return path


__all__ = ["CONFIG_ENV", "ENDPOINT_ENV", "ProvConfig", "config_path", "load_config", "save_config"]
