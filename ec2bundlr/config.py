"""Bundle configuration and its on-disk store."""

from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError
from .naming import validate_image_name

logger = logging.getLogger(__name__)

CONFIG_FILE = "config.yaml"
OPTIONAL_FIELDS = ("ssh_keypair",)


@dataclass
class BundleConfig:
    """Everything needed to bundle one instance into an image."""

    ec2_hostname: str = ""
    image_name: str = ""
    s3_bucket_name: str = ""
    ssh_user: str = "root"
    ssh_keypair: str = ""
    amazon_account_id: str = ""
    amazon_access_key: str = ""
    amazon_secret_key: str = ""
    ec2_cert: str = ""
    ec2_private_key: str = ""

    @classmethod
    def field_names(cls) -> tuple[str, ...]:
        return tuple(f.name for f in fields(cls))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BundleConfig:
        known = set(cls.field_names())
        values = {}
        for key, value in data.items():
            if key not in known:
                logger.warning("Ignoring unknown configuration key: %s", key)
                continue
            values[key] = "" if value is None else str(value)
        return cls(**values)

    def to_dict(self) -> dict[str, str]:
        return asdict(self)

    def missing_fields(self) -> list[str]:
        return [
            name
            for name in self.field_names()
            if name not in OPTIONAL_FIELDS and not getattr(self, name).strip()
        ]

    def validate(self) -> None:
        missing = self.missing_fields()
        if missing:
            raise ConfigError(f"Missing configuration values: {', '.join(missing)}")
        error = validate_image_name(self.image_name)
        if error:
            raise ConfigError(error)


REQUIRED_FIELDS = tuple(name for name in BundleConfig.field_names() if name not in OPTIONAL_FIELDS)


class ConfigStore:
    """YAML file holding a BundleConfig, rewritten after every change."""

    def __init__(self, path: str | os.PathLike = CONFIG_FILE) -> None:
        self.path = Path(path)

    def load(self) -> BundleConfig:
        if not self.path.exists():
            logger.debug("No configuration at %s, starting empty", self.path)
            return BundleConfig()
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigError(f"Could not read {self.path}: {exc}") from exc
        if data is None:
            return BundleConfig()
        if not isinstance(data, dict):
            raise ConfigError(f"{self.path} does not contain a mapping")
        return BundleConfig.from_dict(data)

    def save(self, config: BundleConfig) -> None:
        with self.path.open("w", encoding="utf-8") as out:
            yaml.safe_dump(config.to_dict(), out, default_flow_style=False, sort_keys=False)
        # Holds the secret access key.
        self.path.chmod(0o600)

    def update(self, config: BundleConfig, name: str, value: str) -> None:
        if name not in BundleConfig.field_names():
            raise ConfigError(f"Unknown configuration field: {name}")
        setattr(config, name, value)
        self.save(config)
