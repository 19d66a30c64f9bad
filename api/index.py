"""Serverless entry point for the wholesale lead API."""

import sys
from pathlib import Path

# The app package lives under backend/, which is not installed on the
# serverless runtime.
BACKEND_DIR = Path(__file__).resolve().parent.parent / "backend"
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from app.main import app  # noqa: E402, F401
