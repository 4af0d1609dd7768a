# Entry point for running the engine from the repository root:
#   uvicorn main:app --host 0.0.0.0 --port 8001
# The application itself lives in app/main.py.

from app.main import app  # noqa: F401
