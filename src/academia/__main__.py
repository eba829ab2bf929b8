"""Run the API with uvicorn: ``python -m academia``."""

import logging

import uvicorn

from .config import settings


logger = logging.getLogger("academia")


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("Sistema academia online na porta %s", settings.port)
    logger.info("Login admin: %s", settings.default_admin_username)
    uvicorn.run("academia.api:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
