import os
from pathlib import Path

class Config:

    DEFAULT_DB_PATH = Path.cwd() / "data" / "jobs.db"

    DB_PATH = Path(
        os.getenv("JOBBOARD_DB_PATH", DEFAULT_DB_PATH)
    ).expanduser()

    HOST = os.getenv("JOBBOARD_HOST", "127.0.0.1")
    PORT = int(os.getenv("JOBBOARD_PORT", "3000"))
    LOG_LEVEL = os.getenv("JOBBOARD_LOG_LEVEL", "info")

    ALLOWED_ORIGINS = [
        o.strip()
        for o in os.getenv("ALLOWED_ORIGINS", "*").split(",")
        if o.strip()
    ]

    # applied jobs older than this many whole days need a follow-up
    FOLLOW_UP_AFTER_DAYS = 3
