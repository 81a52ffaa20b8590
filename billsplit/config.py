from __future__ import annotations

import json
import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from .formats import DEFAULT_FORMAT, resolve_format
from .logging import get_logger

log = get_logger(__name__)

CONFIG_FILENAME = "billconfig.json"

ENV_KEYS: Dict[str, str] = {
    "BILL_DEFAULT_FORMAT": "default_format",
    "BILL_DEFAULT_TIP": "default_tip_percent",
    "BILL_WORKERS": "workers",
    "BILL_RESULT_SUFFIX": "result_suffix",
    "BILL_LOG_LEVEL": "log_level",
}


@dataclass
class AppConfig:
    default_format: str = DEFAULT_FORMAT
    default_tip_percent: Decimal = Decimal("0")
    workers: int = 4
    result_suffix: str = "-result"
    log_level: str = "INFO"


def _apply(cfg: AppConfig, values: Mapping[str, object]) -> None:
    if "default_format" in values:
        cfg.default_format = resolve_format(str(values["default_format"]))
    if "default_tip_percent" in values:
        tip = Decimal(str(values["default_tip_percent"]).replace("%", "").strip())
        if tip < Decimal("0"):
            raise ValueError("default_tip_percent cannot be negative")
        cfg.default_tip_percent = tip
    if "workers" in values:
        cfg.workers = max(1, int(str(values["workers"])))
    if "result_suffix" in values:
        cfg.result_suffix = str(values["result_suffix"])
    if "log_level" in values:
        cfg.log_level = str(values["log_level"]).upper()


def _read_env_file(path: Path) -> Dict[str, str]:
    values: Dict[str, str] = {}
    for line in path.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        k, v = line.split("=", 1)
        k = k.strip().upper()
        if k in ENV_KEYS:
            values[ENV_KEYS[k]] = v.strip().strip('"').strip("'")
    return values


def load_config(path: Optional[str] = None) -> AppConfig:
    """Build the configuration from defaults, files and the environment.

    The first ``billconfig.json`` found (explicit ``path`` first) is applied,
    then the first ``.env`` file, then ``BILL_*`` environment variables.
    Sources that cannot be parsed are skipped.
    """
    cfg = AppConfig()

    json_candidates: List[Path] = []
    if path:
        json_candidates.append(Path(path).expanduser())
    json_candidates.append(Path.cwd() / CONFIG_FILENAME)
    json_candidates.append(Path(__file__).with_name(CONFIG_FILENAME))
    for p in json_candidates:
        if not p.is_file():
            continue
        try:
            data = json.loads(p.read_text())
            if not isinstance(data, dict):
                raise ValueError("config file must contain a JSON object")
            _apply(cfg, data)
        except (OSError, ValueError, InvalidOperation) as exc:
            log.warning("config.source_skipped", source=str(p), error=str(exc))
            continue
        break

    env_candidates: List[Path] = [Path.cwd() / ".env", Path(__file__).with_name(".env")]
    for p in env_candidates:
        if not p.is_file():
            continue
        try:
            _apply(cfg, _read_env_file(p))
        except (OSError, ValueError, InvalidOperation) as exc:
            log.warning("config.source_skipped", source=str(p), error=str(exc))
            continue
        break

    overrides = {field: os.environ[key] for key, field in ENV_KEYS.items() if os.environ.get(key)}
    try:
        _apply(cfg, overrides)
    except (ValueError, InvalidOperation) as exc:
        log.warning("config.source_skipped", source="environment", error=str(exc))

    return cfg
