from fastapi import APIRouter

from app.config import settings


router = APIRouter()


@router.get("/health")
def health():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "providers": {
            "openai": settings.openai_base_url,
            "perplexity": settings.perplexity_base_url,
        },
    }
