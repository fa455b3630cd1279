import logging
import os
import sys

import uvicorn

from .config import get_bucket_name, get_port, get_storage_timeout
from .errors import BootstrapError
from .main import create_app
from .storage import connect


def main():
    logging.basicConfig(
        level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    logging.info("starting server...")

    try:
        store = connect(get_bucket_name(), get_storage_timeout())
    except BootstrapError as exc:
        logging.critical("%s", exc)
        sys.exit(1)

    app = create_app(store)

    port = get_port()
    if not os.getenv("PORT"):
        logging.info("defaulting to port %d", port)
    logging.info("listening on port %d", port)
    uvicorn.run(app, host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
