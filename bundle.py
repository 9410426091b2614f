#!/usr/bin/env python3
"""EC2Bundlr launcher."""

import sys

from ec2bundlr.cli import main

if __name__ == "__main__":
    sys.exit(main())
