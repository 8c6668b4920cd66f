"""Main application entry point for the FastAPI application.

Serve with ``uvicorn devflow_auth.main:app``.
"""

from devflow_auth.core.application import create_application
from devflow_auth.core.initialization import initialize_application

# Initialize the application
initialize_application()

# Create the FastAPI application
app = create_application()
