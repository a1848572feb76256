"""Top-level package for the PDF Compressor web app.

This package contains:
- a FastAPI web application (upload page + ``/api/compress`` endpoint);
- the pikepdf-based compression step shared by server and client;
- an upload client (session model + command line) with an optional local pass.
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
