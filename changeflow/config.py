from __future__ import annotations

import os
from typing import Optional

import yaml
from pydantic import BaseModel, Field

from .constants import DEFAULT_CONFIG_FILE

_TRUTHY = {"1", "true", "yes", "on"}


class WorkflowConfig(BaseModel):
    """Workflow definition and prompt handling settings."""

    definition_file: Optional[str] = None
    strict_prompts: bool = False


class ChangeflowConfig(BaseModel):
    """Top-level configuration model."""

    workflow: WorkflowConfig = Field(default_factory=WorkflowConfig)
    log_level: str = "WARNING"


def load_config(path: Optional[str] = None) -> ChangeflowConfig:
    """Load configuration from YAML file.

    Args:
        path: Optional path to config file. Falls back to CHANGEFLOW_CONFIG env
            variable or 'changeflow.yaml' in the current directory.
    """

    config_path = path or os.getenv("CHANGEFLOW_CONFIG", DEFAULT_CONFIG_FILE)
    if os.path.exists(config_path):
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        config = ChangeflowConfig(**data)
    else:
        config = ChangeflowConfig()

    env_definition = os.getenv("CHANGEFLOW_DEFINITION_FILE")
    if env_definition:
        config.workflow.definition_file = env_definition
    env_strict = os.getenv("CHANGEFLOW_STRICT_PROMPTS")
    if env_strict:
        config.workflow.strict_prompts = env_strict.strip().lower() in _TRUTHY
    env_level = os.getenv("CHANGEFLOW_LOG_LEVEL")
    if env_level:
        config.log_level = env_level
    return config
