"""API package: FastAPI app for starting and polling runs."""
