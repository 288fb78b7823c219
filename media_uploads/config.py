"""
Configuration for the media upload service.
Values are read from the environment once, at import time.
"""

import os
from typing import Final

WEB_ROOT = os.getenv("UPLOAD_WEB_ROOT", "./wwwroot")
MAX_FILE_SIZE = int(os.getenv("UPLOAD_MAX_FILE_SIZE", "5000000"))  # 5 MB
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

UPLOAD_FOLDER: Final = "Uploads"
DEFAULT_EXTENSION: Final = "png"
ALLOWED_EXTENSIONS: Final = (".jpeg", ".jpg", ".png")
THUMBNAIL_SIZE: Final = (100, 100)
