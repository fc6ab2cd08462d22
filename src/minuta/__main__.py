"""Process entry point: ``python -m minuta`` or the ``minuta`` script."""

import uvicorn
from ddtrace import patch_all

from minuta.config import load_config
from minuta.main import create_app


def main() -> None:
    patch_all()
    config = load_config()
    uvicorn.run(
        create_app(config),
        host=config.api.host,
        port=config.api.port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
