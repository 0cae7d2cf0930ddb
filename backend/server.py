# Entry point for `uvicorn server:app` from the backend directory.
from visionm.main import app  # noqa: F401
