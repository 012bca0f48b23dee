"""HTTP surface - FastAPI application, models and dependency wiring."""
