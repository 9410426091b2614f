"""Command-line entry point."""

from __future__ import annotations

import argparse
import logging
import sys

import paramiko

from .aws_images import ImageInspector
from .config import CONFIG_FILE, ConfigStore
from .console import configure_logging
from .errors import BundleError
from .orchestrator import BundleOrchestrator
from .prompts import collect_config
from .ssh_client import SSHClient
from .toolchain import TOOLCHAINS, get_toolchain

logger = logging.getLogger("ec2bundlr.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ec2bundlr",
        description="Bundle a running EC2 instance into a registered AMI.",
    )
    parser.add_argument("--config", default=CONFIG_FILE, help="Settings file (default: %(default)s)")
    parser.add_argument(
        "--toolchain",
        choices=sorted(TOOLCHAINS),
        default="ec2-tools",
        help="Bundling tools installed on the instance (default: %(default)s)",
    )
    parser.add_argument(
        "--non-interactive",
        action="store_true",
        help="Use the saved settings without prompting",
    )
    parser.add_argument(
        "--verify-image",
        action="store_true",
        help="Look the registered image up through the EC2 API",
    )
    parser.add_argument("--wait", action="store_true", help="With --verify-image, wait until the image is available")
    parser.add_argument("--region", default="us-east-1", help="Region used by --verify-image (default: %(default)s)")
    parser.add_argument("--log-file", help="Also write a plain-text log here")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show remote command output")
    return parser


def _verify_image(args: argparse.Namespace, config, image_id: str) -> None:
    inspector = ImageInspector(
        args.region,
        aws_access_key_id=config.amazon_access_key,
        aws_secret_access_key=config.amazon_secret_key,
    )
    image = inspector.wait_until_available(image_id) if args.wait else inspector.describe(image_id)
    logger.info("Image %s (%s) is %s.", image["id"], image["architecture"], image["state"])


def main(argv: list[str] | None = None, input_func=input) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(verbose=args.verbose, log_file=args.log_file)
    logger.info("\nWelcome to EC2Bundlr!\n=====================\n")

    try:
        toolchain = get_toolchain(args.toolchain)
        store = ConfigStore(args.config)
        config = store.load()
        if not args.non_interactive:
            collect_config(store, config, input_func=input_func)
        config.validate()

        with SSHClient(
            config.ec2_hostname,
            config.ssh_user,
            ssh_key_path=config.ssh_keypair,
        ) as ssh:
            result = BundleOrchestrator(ssh, config, toolchain=toolchain).run()

        logger.info("\n%s", result.summary(config.image_name))

        if args.verify_image:
            _verify_image(args, config, result.image_id)
    except BundleError as exc:
        logger.error(str(exc))
        return 1
    except paramiko.SSHException as exc:
        logger.error("SSH session failed: %s", exc)
        return 1
    except OSError as exc:
        logger.error(str(exc))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
