"""
nutrimatch FastAPI application.

Endpoints:
    GET  /                         Health check
    GET  /health                   Health check
    POST /api/v1/nutrition/search  Product description -> nutrition facts
"""
import logging
import threading
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

# Load env vars
load_dotenv(Path(__file__).parent / ".env")

from nutrimatch.config import build_lookup_service, get_allowed_origins, log_config
from nutrimatch.errors import (
    ExternalServiceError,
    InvalidRequestError,
    LowConfidenceError,
    NotFoundError,
    RateLimitedError,
)
from nutrimatch.lookup_service import NutritionLookupService
from nutrimatch.models.nutrition import LookupRequest

# Logger
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

LOW_CONFIDENCE_WARNING = "Low confidence match - verify the product manually"

# Initialize App
app = FastAPI(title="nutrimatch API")

log_config()

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_lookup_service: Optional[NutritionLookupService] = None
_lookup_service_lock = threading.Lock()


def get_lookup_service() -> NutritionLookupService:
    """One shared service per process (shared cache and rate limiter)."""
    global _lookup_service
    if _lookup_service is None:
        with _lookup_service_lock:
            if _lookup_service is None:
                _lookup_service = build_lookup_service()
    return _lookup_service


# --- Request Models ---
class SearchRequest(BaseModel):
    productName: str
    brand: Optional[str] = None
    size: Optional[str] = None


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@app.exception_handler(RequestValidationError)
async def _validation_error(request: Request, exc: RequestValidationError):
    return _error(400, f"Invalid request: {exc.errors()}")


# --- Endpoints ---

@app.get("/")
@app.get("/health")
def health_check():
    return {"status": "ok", "service": "nutrimatch"}


@app.post("/api/v1/nutrition/search")
def search_nutrition(
    body: SearchRequest,
    service: NutritionLookupService = Depends(get_lookup_service),
):
    """Blocking lookup; FastAPI runs it in the threadpool."""
    request = LookupRequest(product_name=body.productName, brand=body.brand, size=body.size)
    logger.info("SEARCH product=%r brand=%r", request.product_name, request.brand)
    try:
        facts = service.lookup(request)
    except InvalidRequestError as e:
        return _error(400, str(e))
    except NotFoundError as e:
        logger.info("SEARCH not found product=%r error=%s", request.product_name, e)
        return _error(404, "No matching product found in food database")
    except LowConfidenceError as e:
        data = e.facts.to_dict() if e.facts is not None else None
        return {"data": data, "warning": LOW_CONFIDENCE_WARNING}
    except RateLimitedError as e:
        logger.warning("SEARCH rate limited product=%r error=%s", request.product_name, e)
        return _error(429, "Rate limit exceeded, please try again later")
    except ExternalServiceError as e:
        logger.error("SEARCH external failure product=%r error=%s", request.product_name, e)
        return _error(502, "Food database temporarily unavailable")
    except Exception as e:
        logger.error("SEARCH failed product=%r error=%s", request.product_name, e, exc_info=True)
        return _error(500, "An unexpected error occurred")
    return facts.to_dict()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app:app", host="0.0.0.0", port=8000, reload=True)
