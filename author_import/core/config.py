"""
Importer configuration.

Settings resolve from explicit overrides, then a YAML file, then
IMPORT_* environment variables, then model defaults.

Expected YAML format:
```yaml
importer:
  batch_size: 1000
  report_interval_seconds: 30
  retry_failed_batch_per_record: false
```
"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

from author_import.utils.validation import MAX_BATCH_SIZE

ENV_PREFIX = "IMPORT_"


class ImporterConfig(BaseModel):
    """
    Tunables for one import run.

    Attributes:
        batch_size: Authors per bulk insert
        report_interval_seconds: Wall-clock interval between progress reports
        read_buffer_bytes: Read-ahead buffer of the line source
        author_type: Record type marker of author rows
        key_prefix: Path prefix removed from keys to form the olid
        link_origin: Origin prepended to author paths
        image_url_template: Cover URL, formatted with photo_id
        collect_garbage: Run gc.collect() after every flush (advisory)
        retry_failed_batch_per_record: Resubmit failed batches one author at a time
        source_id: Label for logs and metrics
    """

    batch_size: int = Field(50, ge=1, le=MAX_BATCH_SIZE)
    report_interval_seconds: float = Field(30.0, gt=0)
    read_buffer_bytes: int = Field(256 * 1024, ge=1024)
    author_type: str = "/type/author"
    key_prefix: str = "/authors/"
    link_origin: str = "https://openlibrary.org"
    image_url_template: str = "https://covers.openlibrary.org/a/id/{photo_id}-L.jpg"
    collect_garbage: bool = True
    retry_failed_batch_per_record: bool = False
    source_id: str = "openlibrary_authors"

    @field_validator("image_url_template")
    @classmethod
    def check_photo_placeholder(cls, v):
        """The template must contain the {photo_id} placeholder."""
        if "{photo_id}" not in v:
            raise ValueError("image_url_template must contain '{photo_id}'")
        return v

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "ImporterConfig":
        """Build a config from IMPORT_* environment variables."""
        return cls(**_env_values(environ if environ is not None else os.environ))

    @classmethod
    def from_yaml(cls, config_path: str | Path) -> "ImporterConfig":
        """
        Build a config from the importer section of a YAML file.

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the file has no importer section
        """
        return cls(**_yaml_values(config_path))


def load_config(config_path: str | Path | None = None, **overrides: Any) -> ImporterConfig:
    """
    Resolve the effective configuration.

    Args:
        config_path: Optional YAML file
        **overrides: Explicit values; None entries are ignored

    Returns:
        ImporterConfig with all layers applied
    """
    values: dict[str, Any] = _env_values(os.environ)
    if config_path is not None:
        values.update(_yaml_values(config_path))
    values.update({k: v for k, v in overrides.items() if v is not None})
    return ImporterConfig(**values)


def _env_values(environ) -> dict[str, Any]:
    values = {}
    for name in ImporterConfig.model_fields:
        raw = environ.get(f"{ENV_PREFIX}{name.upper()}")
        if raw is not None and raw != "":
            values[name] = raw
    return values


def _yaml_values(config_path: str | Path) -> dict[str, Any]:
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Importer configuration file not found: {config_path}")

    with open(path) as f:
        config = yaml.safe_load(f)

    if not config or "importer" not in config:
        raise ValueError("Configuration file must contain 'importer' section")

    section = config["importer"] or {}
    if not isinstance(section, dict):
        raise ValueError("'importer' section must be a mapping")

    unknown = set(section) - set(ImporterConfig.model_fields)
    if unknown:
        raise ValueError(f"Unknown importer settings: {sorted(unknown)}")

    return section
