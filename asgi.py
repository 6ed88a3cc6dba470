"""
asgi.py -- Application entry point for Inkwell.

Run with:  uvicorn asgi:app --reload
           python asgi.py          (listens on Settings.port, default 3000)
"""

import uvicorn

from api.main import app
from core.config import get_settings

__all__ = ["app"]

if __name__ == "__main__":
    uvicorn.run("asgi:app", host="0.0.0.0", port=get_settings().port)  # nosec B104 -- container entry point
