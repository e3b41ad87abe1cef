"""
chartkit - Configuration
Settings loaded from environment variables (and an optional ``.env`` file)
with sensible defaults.

Parsing itself is not configurable: the chart grammar, the default tempo and
time signature, and the HOPO threshold are fixed conventions of the format.
Only the ambient behaviour (logging, export formatting) can be tuned here.
"""

import os

from dotenv import load_dotenv

# Load environment variables from .env file
_ = load_dotenv()

# ---------------------------------------------------------------------------
# Logging — stderr only, configured by the CLI
# ---------------------------------------------------------------------------
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
DEBUG = os.getenv("DEBUG", "false").lower() == "true"

# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------
JSON_INDENT = int(os.getenv("CHARTKIT_JSON_INDENT", "2"))
# Decimal places kept for assigned times in JSON exports
TIME_PRECISION = int(os.getenv("CHARTKIT_TIME_PRECISION", "4"))
