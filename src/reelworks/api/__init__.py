"""Reel-Works Video Studio: FastAPI REST API layer.

This package exposes the job lifecycle controller over HTTP.

Modules
-------
main
    FastAPI application with all route handlers and the ``main()`` CLI
    entry point.
models
    Pydantic models for API request validation.
gallery_store
    Filtering and pagination helpers for the in-memory gallery.
"""
