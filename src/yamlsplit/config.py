"""Application configuration: settings schema and yamlsplit.yaml loader"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from yamlsplit.core.export import DEFAULT_NAME_TEMPLATE
from yamlsplit.core.source import DEFAULT_CHUNK_SIZE


CONFIG_FILE = "yamlsplit.yaml"


class Settings(BaseModel):
    app_name:        str  = "yaml-split"
    output_mode:     str  = Field(default="stream", pattern="^(stream|files|chunks)$", description="stream, files or chunks")
    output_dir:      str  = Field(default="split", description="Directory for one-file-per-document output")
    name_template:   str  = Field(default=DEFAULT_NAME_TEMPLATE, description="File name template; fields: stem, index, number")
    max_documents:   int  = Field(default=0, ge=0, description="Stop after this many documents; 0 = unlimited")
    skip_empty:      bool = Field(default=False, description="Drop documents with no content besides markers and comments")
    detect_encoding: bool = Field(default=True, description="Detect UTF-16/UTF-32 input; otherwise assume UTF-8")
    chunk_size:      int  = Field(default=DEFAULT_CHUNK_SIZE, ge=1, description="Bytes per read from the input")
    log_level:       str  = Field(default="WARNING", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$", description="Logging level")


def load_config(overrides: dict[str, Any] = None) -> Settings:
    """Load Settings from yamlsplit.yaml, then YAMLSPLIT_<FIELD> env vars, then non-None CLI overrides."""
    data: dict[str, Any] = {}
    if Path(CONFIG_FILE).exists():
        try:
            data = yaml.safe_load(Path(CONFIG_FILE).read_text()) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid {CONFIG_FILE}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Invalid {CONFIG_FILE}: expected a mapping, got {type(data).__name__}")

    for name in Settings.model_fields:
        if val := os.getenv(f"YAMLSPLIT_{name.upper()}"):
            data[name] = val

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**data)
