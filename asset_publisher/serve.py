"""Service entrypoint: ``python -m asset_publisher.serve [--port N]``."""

from __future__ import annotations

import logging
import sys

from asset_publisher.api import create_app

app = create_app()


def main() -> None:
    import uvicorn

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    port = 8080
    for i, arg in enumerate(sys.argv):
        if arg == "--port" and i + 1 < len(sys.argv):
            port = int(sys.argv[i + 1])
    uvicorn.run("asset_publisher.serve:app", host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
