import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.routes import chat, health

logger = logging.getLogger(__name__)


app = FastAPI(
    title="Proxy Service API",
    description="Chat-completion proxy relaying upstream SSE streams with reasoning split out",
    version="0.1.0",
)

# CORS middleware (useful for dev when called from a browser)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router, prefix="/api", tags=["health"])
app.include_router(chat.router, prefix="/api", tags=["chat"])

logger.info("Proxy service routes registered")
