"""Remote bundling tool families.

Both families run the same pipeline; they only differ in the commands they
expose and the flags those commands take. Templates are filled by
``BundleOrchestrator`` with values that are already shell-quoted:

* bundle: ``arch``, ``bundle_dir``, ``prefix``, ``account_id``,
  ``private_key``, ``cert``, ``max_size``, ``excludes``, ``kernel``
* upload: ``bucket_path``, ``manifest``, ``access_key``, ``secret_key``
* register: ``arch``, ``image_name``, ``private_key``, ``cert``,
  ``access_key``, ``secret_key``, ``manifest_path``
"""

from __future__ import annotations

from dataclasses import dataclass

from .errors import ConfigError


@dataclass(frozen=True)
class VersionCheck:
    label: str
    command: str
    expected: str


@dataclass(frozen=True)
class Toolchain:
    name: str
    version_checks: tuple[VersionCheck, ...]
    bundle_command: str
    upload_command: str
    register_command: str
    image_id_pattern: str


EC2_TOOLS = Toolchain(
    name="ec2-tools",
    version_checks=(
        VersionCheck("EC2 API Tools", "ec2-version", "1.3-57419 2010-08-31"),
        VersionCheck("EC2 AMI Tools", "ec2-ami-tools-version", "1.3-49953 20071010"),
    ),
    bundle_command=(
        "ec2-bundle-vol -r {arch} -d {bundle_dir} -p {prefix} -u {account_id} "
        "-k {private_key} -c {cert} -s {max_size} -e {excludes} --kernel {kernel}"
    ),
    upload_command="ec2-upload-bundle -b {bucket_path} -m {manifest} -a {access_key} -s {secret_key}",
    register_command="ec2-register -a {arch} -n {image_name} -K {private_key} -C {cert} {manifest_path}",
    image_id_pattern=r"ami-[a-z0-9]+",
)

EUCA2OOLS = Toolchain(
    name="euca2ools",
    version_checks=(
        VersionCheck("euca2ools", "euca-version", "euca2ools 1.3.1"),
    ),
    bundle_command=(
        "euca-bundle-vol -r {arch} -d {bundle_dir} -p {prefix} -u {account_id} "
        "-k {private_key} -c {cert} -s {max_size} -e {excludes} --kernel {kernel}"
    ),
    upload_command="euca-upload-bundle -b {bucket_path} -m {manifest} -a {access_key} -s {secret_key}",
    register_command="euca-register -a {access_key} -s {secret_key} -n {image_name} {manifest_path}",
    image_id_pattern=r"[ae]mi-[a-z0-9]+",
)

TOOLCHAINS = {toolchain.name: toolchain for toolchain in (EC2_TOOLS, EUCA2OOLS)}


def get_toolchain(name: str) -> Toolchain:
    try:
        return TOOLCHAINS[name]
    except KeyError:
        raise ConfigError(
            f"Unknown toolchain '{name}'. Choose one of: {', '.join(sorted(TOOLCHAINS))}"
        ) from None
