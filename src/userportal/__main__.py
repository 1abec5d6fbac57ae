"""userportal entrypoint.

Run with:
  python -m userportal
"""

import uvicorn
from dotenv import load_dotenv

from userportal.config import reload_requested, server_address
from userportal.log import logger, setup_logging


def main() -> None:
    load_dotenv()
    setup_logging()
    host, port = server_address()
    logger.info("Server running on http://localhost:{}", port)
    uvicorn.run("userportal.app:app", host=host, port=port, reload=reload_requested(), log_config=None)

if __name__ == "__main__":
    main()
