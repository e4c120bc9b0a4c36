# ridehail/main.py
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ridehail.api import rating
from ridehail.config import settings

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

# Initialize FastAPI app
app = FastAPI(title="Ridehail Ratings API", version="1.0.0")

# CORS Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# API routers
app.include_router(rating.router)  # /ratings/*


@app.get("/health")
def health_check():
    return {
        "status": "healthy",
        "message": "Ridehail API is running",
        "version": "1.0.0",
    }
