"""Blog platform backend: FastAPI + async SQLAlchemy."""
