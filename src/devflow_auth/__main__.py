"""Run the gateway with uvicorn: ``python -m devflow_auth``.

Host and port come from API_HOST/API_PORT; DEBUG turns on auto-reload.
"""

import uvicorn

from devflow_auth.core.config.settings import settings


def main() -> None:
    uvicorn.run(
        "devflow_auth.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
