"""Pytest setup: keep the advisor off the network."""
from __future__ import annotations

import os

os.environ["NEON_ADVISOR_ENABLED"] = "0"
os.environ.pop("NEON_ADVISOR_API_KEY", None)
os.environ.pop("OPENAI_API_KEY", None)
