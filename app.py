import logging
from typing import Optional

import uvicorn

from api.main import create_app
from core.config import Config
from infra.sqlite_job_store import SQLiteJobStore


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="[JOBBOARD] %(asctime)s | %(levelname)s | %(message)s",
    )


def serve(
    host: str,
    port: int,
    log_level: str = Config.LOG_LEVEL,
    db_path: Optional[str] = None,
) -> None:
    configure_logging(log_level)

    db_path = db_path or str(Config.DB_PATH)
    app = create_app(store=SQLiteJobStore(db_path))

    logging.info(f"Starting JobBoard API on http://{host}:{port} (db={db_path})")
    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level=log_level,
        access_log=False,
    )


def main() -> None:
    """
    Canonical entrypoint for the JobBoard API.

    Responsibilities:
    - load runtime config from env
    - open the job store
    - start ASGI server
    """
    serve(Config.HOST, Config.PORT, Config.LOG_LEVEL)


if __name__ == "__main__":
    main()
