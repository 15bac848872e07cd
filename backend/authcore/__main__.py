"""authcore entrypoint.

Run with:
  python -m authcore
"""

import uvicorn

from authcore.core.config import settings
from authcore.main import create_app


def main() -> None:
    app = create_app(settings)
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    main()
