import logging

import uvicorn

from autotest.api.app import create_app
from autotest.utils.logging_config import setup_logging

setup_logging(level=logging.INFO)

app = create_app()

if __name__ == "__main__":
    uvicorn.run("main:app", host="127.0.0.1", port=8000, reload=True)
