from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field

from gworkspace import CONFIG_PATH

logger = logging.getLogger(__name__)


# =============================================================================
# WorkspaceConfig (args/workspace.yaml)
# =============================================================================

class McpServerConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    command: str = Field(default="uvx", min_length=1)
    args: list[str] = Field(default_factory=lambda: ["workspace-mcp"])
    env: dict[str, str] = Field(default_factory=dict)
    timeout_seconds: Optional[float] = Field(default=120.0, gt=0)


class CacheConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    namespace: str = Field(default="google-workspace-manager", min_length=1, pattern=r"^[^:]+$")
    enabled: bool = Field(default=True)
    default_ttl: int = Field(default=300, ge=1)


class WorkspaceConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    mcp_server: McpServerConfig = Field(default_factory=McpServerConfig)
    user_email: Optional[str] = None
    cache: CacheConfig = Field(default_factory=CacheConfig)


def resolve_config_path() -> Path:
    """
    Path of the YAML config: GWORKSPACE_CONFIG, else args/workspace.yaml in
    the source checkout. Wheels do not ship args/, so installed copies use
    GWORKSPACE_CONFIG or the model defaults, which mirror that file.
    """
    override = os.environ.get("GWORKSPACE_CONFIG")
    return Path(override) if override else CONFIG_PATH


def load_and_validate(path: Path | None = None) -> WorkspaceConfig:
    yaml_path = path or resolve_config_path()

    try:
        if yaml_path.exists():
            with open(yaml_path) as f:
                raw = yaml.safe_load(f) or {}
        else:
            raw = {}

        config = WorkspaceConfig.model_validate(raw)
    except Exception as e:
        logger.warning(f"Config validation failed for {yaml_path}: {e}, using defaults")
        config = WorkspaceConfig()

    email_override = os.environ.get("GWORKSPACE_USER_EMAIL")
    if email_override:
        config.user_email = email_override
    return config
