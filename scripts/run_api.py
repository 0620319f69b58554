
import sys
from pathlib import Path

import uvicorn

# Add src to path
sys.path.append(str(Path.cwd() / "src"))

from restroom_directory.config import settings
from restroom_directory.logging_config import setup_logging


def main():
    settings.setup()
    setup_logging()
    uvicorn.run(
        "restroom_directory.api.main:app",
        host=settings.api.host,
        port=settings.api.port,
        reload=settings.api.reload,
    )


if __name__ == "__main__":
    main()
