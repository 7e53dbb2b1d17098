#!/usr/bin/env python3
"""
MetalLB Health Bridge - Entry Point

Scrapes the local MetalLB metrics endpoint every interval and publishes the
configuration health gauges into the metallb-system/health ConfigMap.
"""

import sys
from pathlib import Path

# Add app directory to path for imports when running directly
APP_DIR = Path(__file__).parent
if str(APP_DIR) not in sys.path:
    sys.path.insert(0, str(APP_DIR))

from metallb_health.cli import main


if __name__ == "__main__":
    sys.exit(main())
