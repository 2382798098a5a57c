from __future__ import annotations

import logging

from wavelength.application import app

logging.basicConfig(level=logging.INFO)

__all__ = ["app"]
