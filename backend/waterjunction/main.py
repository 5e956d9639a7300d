"""
WaterJunction - Backend API
Storefront for water purifiers: catalog, cart, checkout, orders and admin

Run:
    uvicorn waterjunction.main:app --reload --port 5000
"""
import logging
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables before settings are read
env_path = Path(__file__).parent.parent / '.env'
load_dotenv(env_path)

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from waterjunction.api import (
    admin, auth, cart, categories, contact, coupons,
    flash_sales, orders, products, reviews, users, wishlist,
)
from waterjunction.core.config import settings
from waterjunction.core.exceptions import ServiceError
from waterjunction.core.rate_limit import RateLimitMiddleware


logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


configure_logging()

app = FastAPI(
    title=settings.API_TITLE,
    version=settings.API_VERSION,
    description=settings.API_DESCRIPTION
)

app.add_middleware(RateLimitMiddleware)

# Added last so it wraps the limiter and 429 responses still carry CORS headers
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
    expose_headers=["X-RateLimit-Limit", "X-RateLimit-Remaining", "X-RateLimit-Reset", "Retry-After"],
)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# Include API routers
app.include_router(auth.router, prefix="/api/auth", tags=["Auth"])
app.include_router(users.router, prefix="/api/users", tags=["Users"])
app.include_router(categories.router, prefix="/api/categories", tags=["Categories"])
app.include_router(products.router, prefix="/api/products", tags=["Products"])
app.include_router(cart.router, prefix="/api/cart", tags=["Cart"])
app.include_router(wishlist.router, prefix="/api/wishlist", tags=["Wishlist"])
app.include_router(orders.router, prefix="/api/orders", tags=["Orders"])
app.include_router(coupons.router, prefix="/api/coupons", tags=["Coupons"])
app.include_router(flash_sales.router, prefix="/api/flash-sales", tags=["Flash Sales"])
app.include_router(reviews.router, prefix="/api/reviews", tags=["Reviews"])
app.include_router(contact.router, prefix="/api/contact", tags=["Contact"])
app.include_router(admin.router, prefix="/api/admin", tags=["Admin"])


@app.get("/")
async def root():
    """Status banner"""
    return {
        "message": "WaterJunction API",
        "status": "online",
        "version": settings.API_VERSION,
    }


@app.get("/api/health")
async def health():
    """Liveness check, exempt from rate limiting"""
    return {"status": "OK", "message": "WaterJunction API is running"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("waterjunction.main:app", host=settings.API_HOST, port=settings.API_PORT, reload=True)
