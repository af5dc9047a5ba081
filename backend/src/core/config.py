"""
Environment-driven settings for the scheduling backend.

Values come from os.environ, optionally populated from a .env file via
python-dotenv. See backend/.env.example for the recognised variables.
"""

import os
import pathlib
from dotenv import load_dotenv


# Tests must see the defaults, so the .env file is skipped under pytest
is_testing = os.getenv("PYTEST_VERSION") is not None or any("pytest" in str(frame) for frame in __import__('inspect').stack(0))

if not is_testing:
    _backend_dir = pathlib.Path(__file__).parent.parent.parent
    _env_candidates = [
        _backend_dir / ".env",
        _backend_dir.parent / ".env",
        pathlib.Path.cwd() / ".env",
    ]

    # First match wins
    for env_path in _env_candidates:
        if env_path.exists():
            load_dotenv(env_path)
            break


def get_database_url():
    """Database URL, falling back to a local SQLite file."""
    return os.getenv("DATABASE_URL", "sqlite:///./practice_scheduling.db")


DATABASE_URL = get_database_url()
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Fixed UTC offset of the practice; "today" and stored timestamps use it
PRACTICE_UTC_OFFSET_HOURS = int(os.getenv("PRACTICE_UTC_OFFSET_HOURS", "1"))
