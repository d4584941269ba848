"""ASGI entry point.

Usage:
    uvicorn app:app --host 0.0.0.0 --port 8000
"""

import sys
from pathlib import Path

# Add src to Python path for imports (MUST be before importing fleetshare)
src_path = Path(__file__).parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from fleetshare.main import create_app

app = create_app()
