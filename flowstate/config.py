from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field

from flowstate import CONFIG_PATH, DB_PATH

logger = logging.getLogger(__name__)


# =============================================================================
# FlowStateConfig (args/flowstate.yaml)
# =============================================================================

class FocusDetectionConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    idle_threshold: int = Field(default=30, ge=0, le=100)
    idle_trigger_duration: float = Field(default=10.0, gt=0)
    recovery_duration: float = Field(default=5.0, gt=0)


class SessionConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    focus_threshold: int = Field(default=50, ge=0, le=100)
    start_duration: float = Field(default=30.0, gt=0)


class BreakConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    break_prediction_enabled: bool = Field(default=True)
    default_session_length: float = Field(default=50.0, gt=0)  # minutes
    prediction_interval: float = Field(default=60.0, ge=0)


class StorageConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    db_path: Optional[str] = None
    sample_retention_days: int = Field(default=7, ge=1)
    prune_every: int = Field(default=100, ge=1)

    def resolved_db_path(self) -> Path:
        return Path(self.db_path).expanduser() if self.db_path else DB_PATH


class MonitorConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    sample_interval: float = Field(default=1.0, gt=0)


class FlowStateConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    focus: FocusDetectionConfig = Field(default_factory=FocusDetectionConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)
    breaks: BreakConfig = Field(default_factory=BreakConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    monitor: MonitorConfig = Field(default_factory=MonitorConfig)


# =============================================================================
# load_config
# =============================================================================

def load_config(path: Path | str | None = None) -> FlowStateConfig:
    yaml_path = Path(path) if path else CONFIG_PATH

    try:
        if yaml_path.exists():
            with open(yaml_path) as f:
                raw = yaml.safe_load(f) or {}
        else:
            raw = {}

        return FlowStateConfig.model_validate(raw.get("flowstate", raw))
    except Exception as e:
        logger.warning(f"Config validation failed for {yaml_path}: {e}, using defaults")
        return FlowStateConfig()
