from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from userservice.base_microservice import BaseMicroservice
from userservice.auth.errors import AuthServiceError, InvalidToken
from userservice.auth.router import router as auth_router, start_auth_service
from userservice.users.router import router as users_router
from userservice.dashboard.router import router as dashboard_router

# Create shared base microservice instance
base_service = BaseMicroservice()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for FastAPI.
    Handles startup and shutdown events.
    """
    base_service.log_event("service.startup", {"service": "main"})
    await start_auth_service()
    yield
    base_service.log_event("service.shutdown", {"service": "main"})


# Create main FastAPI app with lifespan
app = FastAPI(
    title="User Service API",
    description="Identity and access control: login, registration, roles and permissions",
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, replace with specific origins
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AuthServiceError)
async def auth_service_error_handler(request: Request, exc: AuthServiceError):
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, InvalidToken) else None
    return base_service.mcp_response(
        message=exc.message,
        status="error",
        data={"error": exc.code},
        status_code=exc.status_code,
        headers=headers,
    )


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    base_service.log_error(exc, context=f"{request.method} {request.url.path}")
    return base_service.mcp_response(
        message="Internal server error",
        status="error",
        data={"error": "internal"},
        status_code=500,
    )


# Include routers with prefixes
app.include_router(auth_router, prefix="/auth", tags=["auth"])
app.include_router(users_router, prefix="/users", tags=["users"])
app.include_router(dashboard_router)


@app.get("/", tags=["root"])
async def root():
    """Root endpoint returning API information."""
    return {
        "name": "User Service API",
        "version": "0.1.0",
        "services": ["auth", "users", "dashboard"],
    }


@app.get("/health", tags=["health"])
async def health_check():
    """Overall system health check."""
    return {
        "status": "ok",
        "services": {
            "auth": "online",
            "users": "online"
        }
    }


# For running directly with uvicorn
if __name__ == "__main__":
    import uvicorn
    uvicorn.run("userservice.main:app", host="0.0.0.0", port=8000, reload=True)
