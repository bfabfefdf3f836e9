"""Trading journal entrypoint.

Run with:
  python -m tradejournal
"""

import logging
import os

import uvicorn


def main() -> None:
    logging.basicConfig(
        level=os.getenv("TJ_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    host = os.getenv("TJ_HOST", "0.0.0.0")
    port = int(os.getenv("TJ_PORT", "8000"))
    reload = os.getenv("TJ_RELOAD", "false").lower() in {"1", "true", "yes", "y"}
    uvicorn.run("tradejournal.app:app", host=host, port=port, reload=reload, log_config=None)

if __name__ == "__main__":
    main()
