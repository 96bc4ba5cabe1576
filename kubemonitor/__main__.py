"""Entry point for `python -m kubemonitor`.

Usage:
    python -m kubemonitor
    KUBEMONITOR_CONFIG_FILE=config.json python -m kubemonitor
"""

from __future__ import annotations

import asyncio

from kubemonitor.app import main

asyncio.run(main())
