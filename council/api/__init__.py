"""FastAPI surface for the cascade and the decision pipeline."""
