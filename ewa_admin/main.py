"""Main FastAPI application."""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ewa_admin.config import settings
from ewa_admin.penny import routes as penny_routes

# Create FastAPI app
app = FastAPI(
    title="EWA Admin API",
    description="Admin portal backend for the Earned Wage Access program, with the Penny assistant",
    version="0.1.0",
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(penny_routes.router, prefix=f"{settings.API_V1_PREFIX}/penny", tags=["Penny"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "EWA Admin API",
        "version": "0.1.0",
        "docs": "/docs",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "ewa_admin.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
