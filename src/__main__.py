"""Serve the API with uvicorn on the uvloop event loop."""

import uvicorn

from config.settings import settings


def main() -> None:
    uvicorn.run(
        "src.main:app",
        host="0.0.0.0",
        port=settings.PORT,
        loop="uvloop",
        log_config=None,  # lifespan installs our own logging config
        reload=settings.is_dev and settings.DEBUG,
    )


if __name__ == "__main__":
    main()
