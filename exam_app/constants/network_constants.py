"""Network configuration constants for the exam application."""

import os

DEFAULT_HOST: str = os.getenv("EXAM_HOST", "0.0.0.0")
DEFAULT_PORT: int = int(os.getenv("EXAM_PORT") or 8000)
USER_ID_HEADER: str = "X-User-Id"
USERNAME_HEADER: str = "X-Username"
DISPLAY_NAME_HEADER: str = "X-Display-Name"
