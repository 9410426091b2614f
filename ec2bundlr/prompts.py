"""Interactive collection of bundle settings."""

from __future__ import annotations

import logging
import readline  # noqa: F401  line editing for input()
from typing import Callable

from .config import BundleConfig, ConfigStore
from .errors import ConfigError
from .naming import validate_image_name

logger = logging.getLogger(__name__)

InputFunc = Callable[[str], str]


def prompt(message: str, default: str = "", allow_empty: bool = False, input_func: InputFunc = input) -> str:
    """Ask until a non-empty answer is given, falling back to the default."""
    default = default or ""
    if default:
        message += f" [{default}]"
    message += ": "

    while True:
        try:
            value = input_func(message).strip()
        except EOFError:
            value = ""
            eof = True
        else:
            eof = False

        if not value and default:
            value = default
        if value or allow_empty:
            return value
        if eof:
            raise ConfigError(f"No answer given for '{message.rstrip(': ')}'")


def _ask(
    store: ConfigStore,
    config: BundleConfig,
    name: str,
    message: str,
    input_func: InputFunc,
    default: str | None = None,
    allow_empty: bool = False,
) -> str:
    current = getattr(config, name) if default is None else default
    value = prompt(message, current, allow_empty=allow_empty, input_func=input_func)
    store.update(config, name, value)
    return value


def collect_config(store: ConfigStore, config: BundleConfig, input_func: InputFunc = input) -> BundleConfig:
    """Walk through every setting, saving after each answer so a run can resume."""
    _ask(store, config, "ec2_hostname", "EC2 hostname to bundle", input_func)

    while True:
        image_name = _ask(store, config, "image_name", "AMI name", input_func)
        error = validate_image_name(image_name)
        if error is None:
            break
        logger.error(error)
        # A rejected name must not be offered back as the default.
        store.update(config, "image_name", "")

    _ask(store, config, "s3_bucket_name", "S3 bucket name", input_func)

    logger.info("\nHow should I connect to '%s'?\n", config.ec2_hostname)
    _ask(store, config, "ssh_user", "SSH username", input_func, default=config.ssh_user or "root")
    _ask(store, config, "ssh_keypair", "SSH keypair path (optional)", input_func, allow_empty=True)

    logger.info("\nAWS Credentials\n")
    _ask(store, config, "amazon_account_id", "Amazon Account ID (xxxx-xxxx-xxxx)", input_func)
    _ask(store, config, "amazon_access_key", "Amazon Access Key ID", input_func)
    _ask(store, config, "amazon_secret_key", "Amazon Secret Access Key", input_func)
    _ask(store, config, "ec2_cert", "EC2 certificate path", input_func)
    _ask(store, config, "ec2_private_key", "EC2 private key path", input_func)

    logger.info("Configuration completed.\n")
    return config
