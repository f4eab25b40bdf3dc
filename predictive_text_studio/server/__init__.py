"""HTTP front end for the worker (FastAPI).

HOW: app.py holds the FastAPI app and the module-level worker;
models.py holds the pydantic request/response schemas.
"""
