from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler

import uvicorn

from creations_core.app import create_app
from creations_core.config import load_core_config
from creations_core.home import ensure_creations_layout, resolve_creations_home


def main() -> None:
    home = resolve_creations_home()
    paths = ensure_creations_layout(home)
    config = load_core_config(paths)

    log_file = paths.logs_dir / "core.log"
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            RotatingFileHandler(
                log_file,
                maxBytes=config.logging.max_size_mb * 1024 * 1024,
                backupCount=config.logging.backup_count,
            ),
            logging.StreamHandler(),
        ],
    )

    host = os.environ.get("CREATIONS_BIND") or config.network.bind_host

    env_port = os.environ.get("CREATIONS_PORT")
    port = int(env_port) if env_port else config.network.port

    uvicorn.run(create_app(), host=host, port=port)


if __name__ == "__main__":
    main()
