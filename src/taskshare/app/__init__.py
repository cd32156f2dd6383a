"""FastAPI application package for the taskshare service."""
