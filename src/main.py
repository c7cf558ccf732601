"""Main application entry point for the FastAPI application.

Initializes logging and configuration, then builds the application with the
factory. Run with ``uvicorn src.main:app``.
"""

from src.core.application import create_application
from src.core.initialization import initialize_application

initialize_application()

app = create_application()
