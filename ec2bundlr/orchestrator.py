"""Bundle orchestrator."""

from __future__ import annotations

import logging
import os
import posixpath
import re
import shlex
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Sequence

from tqdm import tqdm

from .errors import BundleError, ToolchainMissing
from .naming import bucket_name_for, image_prefix_for
from .toolchain import EC2_TOOLS, Toolchain

if TYPE_CHECKING:
    from .config import BundleConfig
    from .ssh_client import SSHClient

logger = logging.getLogger(__name__)

ARCH_64 = "x86_64"
ARCH_32 = "i386"
STAGING_DIR = "/tmp"
DEFAULT_WORK_DIR = "/mnt"
DEFAULT_EXCLUDE_PATHS = ("/mnt", "/home/ubuntu/.ssh", "/dev")
DEFAULT_MAX_SIZE_MB = 10240
KERNEL_ID_URL = "http://169.254.169.254/latest/meta-data/kernel-id"
TOTAL_STEPS = 8
MASK = "****"


def classify_architecture(value: str) -> str:
    """Anything the host reports other than x86_64 is bundled as i386."""
    return ARCH_64 if value == ARCH_64 else ARCH_32


def extract_image_id(output: str, pattern: str) -> str | None:
    """Return the first image id found in the registration output."""
    regex = re.compile(pattern, re.IGNORECASE)
    for line in output.splitlines():
        match = regex.search(line)
        if match:
            return match.group(0)
    return None


def format_elapsed(seconds: float) -> str:
    minutes, secs = divmod(round(seconds, 1), 60)
    return f"{int(minutes)} minutes and {secs:.1f} seconds"


@dataclass
class BundleResult:
    image_id: str
    architecture: str
    elapsed_seconds: float
    manifest_path: str

    def summary(self, image_name: str) -> str:
        return (
            f"Done! Took {format_elapsed(self.elapsed_seconds)}.\n\n"
            f"Your new image '{image_name}' has been registered as {self.image_id}."
        )


class BundleOrchestrator:
    """Bundle, upload and register the image of one connected host.

    Steps run strictly in order over the given SSH session. Any failing
    remote command raises and stops the remaining steps; nothing is retried.
    """

    def __init__(
        self,
        ssh: SSHClient,
        config: BundleConfig,
        toolchain: Toolchain = EC2_TOOLS,
        work_dir: str = DEFAULT_WORK_DIR,
        exclude_paths: Sequence[str] = DEFAULT_EXCLUDE_PATHS,
        max_size_mb: int = DEFAULT_MAX_SIZE_MB,
        show_progress: bool = True,
    ) -> None:
        self.ssh = ssh
        self.config = config
        self.toolchain = toolchain
        self.work_dir = work_dir
        self.exclude_paths = tuple(exclude_paths)
        self.max_size_mb = max_size_mb
        self.show_progress = show_progress

    @property
    def bundle_dir(self) -> str:
        return posixpath.join(self.work_dir, "image")

    @property
    def remote_private_key(self) -> str:
        return posixpath.join(self.work_dir, os.path.basename(self.config.ec2_private_key))

    @property
    def remote_cert(self) -> str:
        return posixpath.join(self.work_dir, os.path.basename(self.config.ec2_cert))

    @property
    def manifest_name(self) -> str:
        return f"{image_prefix_for(self.config.image_name)}.manifest.xml"

    @property
    def manifest_path(self) -> str:
        return posixpath.join(self.bundle_dir, self.manifest_name)

    @property
    def bucket_path(self) -> str:
        return f"{self.config.s3_bucket_name}/image_bundles/{bucket_name_for(self.config.image_name)}"

    def run(self) -> BundleResult:
        """Execute the whole pipeline and return the registered image."""
        self.config.validate()
        started = time.perf_counter()
        progress = tqdm(total=TOTAL_STEPS, desc="Bundling", unit="step", disable=not self.show_progress)

        def advance(label: str) -> None:
            progress.set_postfix_str(label)
            progress.update(1)

        try:
            self.detect_toolchain()
            advance("Toolchain detected")
            self.stage_credentials()
            advance("Credentials staged")
            self.clean_history()
            advance("Host cleaned")
            arch = self.detect_architecture()
            advance("Architecture detected")
            manifest_path = self.create_bundle(arch)
            advance("Bundle created")
            self.upload_bundle()
            advance("Bundle uploaded")
            image_id = self.register_image(arch)
            advance("Image registered")
            logger.info("Cleaning up after myself...")
            self.clean_history()
            advance("Host cleaned")
        finally:
            progress.close()

        return BundleResult(
            image_id=image_id,
            architecture=arch,
            elapsed_seconds=time.perf_counter() - started,
            manifest_path=manifest_path,
        )

    def detect_toolchain(self) -> None:
        """Check every tool version; abort if a tool is missing, warn if it differs."""
        logger.info("Detecting if %s are installed...", self.toolchain.name)
        for check in self.toolchain.version_checks:
            _, output = self.ssh.run_status(check.command)
            lines = output.strip().splitlines()
            version = lines[0].strip() if lines else ""

            if version == check.expected:
                logger.info("Detected %s %s. OK.", check.label, version)
            elif not version:
                raise ToolchainMissing(f"Couldn't find {check.label}. Exiting.")
            else:
                logger.warning(
                    "Detected %s %s. Expected %s. Use at your own risks!",
                    check.label,
                    version,
                    check.expected,
                )

    def stage_credentials(self) -> None:
        # The SSH user may lack write access to the work dir.
        logger.info("Copying the certificate and private key to %s...", self.config.ec2_hostname)
        staged = [
            self.ssh.upload(self.config.ec2_private_key, STAGING_DIR),
            self.ssh.upload(self.config.ec2_cert, STAGING_DIR),
        ]
        for remote_path in staged:
            self.ssh.run(f"mv {shlex.quote(remote_path)} {shlex.quote(self.work_dir)}/", sudo=True)

    def clean_history(self) -> None:
        """Remove bundle output, shell history and rotated logs; truncate the remaining logs."""
        bundle_dir = shlex.quote(self.bundle_dir)
        self.ssh.run(f"rm -fr {bundle_dir}", sudo=True)
        self.ssh.run(f"rm -f {bundle_dir}.*", sudo=True)
        self.ssh.run("rm -f ~/.*hist*")
        self.ssh.run("rm -f /root/.*hist*", sudo=True)
        self.ssh.run("rm -f /var/log/*.gz", sudo=True)
        # Truncate in place so inode and permissions survive.
        self.ssh.run(r"find /var/log -name mysql -prune -o -type f -exec cp /dev/null {} \;", sudo=True)

    def detect_architecture(self) -> str:
        arch = classify_architecture(self.ssh.run("uname -m").strip())
        logger.info("Detected instance architecture: %s.", arch)
        return arch

    def create_bundle(self, arch: str) -> str:
        logger.info("Creating the bundle...")
        self.ssh.run(f"mkdir -p {shlex.quote(self.bundle_dir)}", sudo=True)
        command = self.toolchain.bundle_command.format(
            arch=shlex.quote(arch),
            bundle_dir=shlex.quote(self.bundle_dir),
            prefix=shlex.quote(image_prefix_for(self.config.image_name)),
            account_id=shlex.quote(self.config.amazon_account_id),
            private_key=shlex.quote(self.remote_private_key),
            cert=shlex.quote(self.remote_cert),
            max_size=self.max_size_mb,
            excludes=shlex.quote(",".join(self.exclude_paths)),
            kernel=f"$(curl -s {KERNEL_ID_URL})",
        )
        self.ssh.run(command, sudo=True)
        return self.manifest_path

    def _run_with_credentials(self, template: str, **values: str) -> str:
        """Run a command carrying the AWS keys; failures report them masked."""
        command = template.format(
            access_key=shlex.quote(self.config.amazon_access_key),
            secret_key=shlex.quote(self.config.amazon_secret_key),
            **values,
        )
        display = template.format(access_key=MASK, secret_key=MASK, **values)
        return self.ssh.run(command, sudo=True, display=display)

    def upload_bundle(self) -> str:
        logger.info("Uploading the bundle to S3...")
        bucket_path = self.bucket_path
        self._run_with_credentials(
            self.toolchain.upload_command,
            bucket_path=shlex.quote(bucket_path),
            manifest=shlex.quote(self.manifest_path),
        )
        return bucket_path

    def register_image(self, arch: str) -> str:
        logger.info("Registering the image...")
        output = self._run_with_credentials(
            self.toolchain.register_command,
            arch=shlex.quote(arch),
            image_name=shlex.quote(self.config.image_name),
            private_key=shlex.quote(self.remote_private_key),
            cert=shlex.quote(self.remote_cert),
            manifest_path=shlex.quote(f"{self.bucket_path}/{self.manifest_name}"),
        )
        image_id = extract_image_id(output, self.toolchain.image_id_pattern)
        if not image_id:
            raise BundleError("Registration did not report an image id.")
        logger.info("Registered image %s.", image_id)
        return image_id
