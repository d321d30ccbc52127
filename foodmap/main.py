"""Main application entry point: FastAPI surface over the FoodMap client core.

Each endpoint corresponds to a user action. Errors from the services are
turned into JSON bodies carrying the user-facing message.
"""

import logging
import sys
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from .config import Settings, get_settings
from .environment import AppEnvironment
from .errors import (
    AccessDeniedError,
    AttestationError,
    AuthenticationRequiredError,
    AuthError,
    AuthErrorKind,
    NetworkError,
    NoSuggestionsError,
    TokenExpiredError,
)
from .schemas import (
    ChatCompletionRequest,
    ChatCompletionResponse,
    DirectionsRequest,
    DirectionsResponse,
    DisplayNameRequest,
    LoginRequest,
    PasswordResetRequest,
    PhotoUrlResponse,
    PlaceDetailsRequest,
    PlaceDetailsResult,
    PlaceSearchRequest,
    PlaceSearchResponse,
    RestaurantPreferences,
    SignUpRequest,
    SuggestedRestaurant,
    User,
    VerificationResponse,
    VerificationStatusResponse,
)
from .suggestion_service import default_preferences

logger = logging.getLogger(__name__)

VERSION = "1.0.0"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def validate_environment() -> Settings:
    """Validate all environment variables on startup."""
    try:
        settings = get_settings()
        logger.info("Environment variables validated successfully")
        return settings
    except ValidationError as e:
        logger.error("ERROR: Missing or invalid environment variables:")
        logger.error(str(e))
        sys.exit(1)


# =============================================================================
# Error mapping
# =============================================================================

UNAUTHORIZED_ERRORS = (TokenExpiredError, AuthenticationRequiredError)
FORBIDDEN_ERRORS = (AccessDeniedError, AttestationError)


async def network_error_handler(request: Request, exc: NetworkError) -> JSONResponse:
    if isinstance(exc, UNAUTHORIZED_ERRORS):
        status_code = 401
    elif isinstance(exc, FORBIDDEN_ERRORS):
        status_code = 403
    else:
        status_code = 502
    logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(status_code=status_code, content={"error": exc.user_message})


async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    if exc.kind in (AuthErrorKind.USER_NOT_FOUND, AuthErrorKind.TOKEN, AuthErrorKind.SIGN_IN):
        status_code = 401
    elif exc.kind is AuthErrorKind.NETWORK:
        status_code = 502
    else:
        status_code = 400
    logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(status_code=status_code, content={"error": exc.user_message})


async def no_suggestions_handler(request: Request, exc: NoSuggestionsError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"error": str(exc)})


# =============================================================================
# Application
# =============================================================================


def get_env(request: Request) -> AppEnvironment:
    return request.app.state.env


def create_app(settings: Settings | None = None, **environment_options) -> FastAPI:
    """Create the FastAPI app.

    Args:
        settings: Settings to use; loaded from the environment at startup when omitted.
        **environment_options: Passed to ``AppEnvironment.from_settings``.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager for startup and shutdown."""
        app_settings = settings or validate_environment()
        configure_logging(app_settings.log_level)
        logger.info(f"Starting FoodMap ({app_settings.environment.value})...")

        env = AppEnvironment.from_settings(app_settings, **environment_options)
        app.state.env = env
        logger.info(f"=== Tables in database: {env.database.list_tables()} ===")

        user = await env.auth.auto_login()
        if user:
            logger.info(f"Auto-login succeeded for {user.id}")

        logger.info("FoodMap started successfully")

        yield

        logger.info("Shutting down FoodMap...")
        env.close()
        logger.info("FoodMap shutdown complete")

    app = FastAPI(
        title="FoodMap",
        description="Restaurant discovery: suggestions, place search and directions",
        version=VERSION,
        lifespan=lifespan,
    )
    app.add_exception_handler(NetworkError, network_error_handler)
    app.add_exception_handler(AuthError, auth_error_handler)
    app.add_exception_handler(NoSuggestionsError, no_suggestions_handler)

    # =========================================================================
    # Status
    # =========================================================================

    @app.get("/health")
    async def health_check(env: AppEnvironment = Depends(get_env)):
        """Health check endpoint.

        Verifies the local database and reports whether a user is signed in.
        """
        db_healthy = env.database.check_health()
        return {
            "status": "healthy" if db_healthy else "unhealthy",
            "database": "connected" if db_healthy else "disconnected",
            "signed_in": env.auth.get_current_user() is not None,
        }

    @app.get("/")
    async def root():
        return {"name": "FoodMap", "status": "running", "version": VERSION}

    # =========================================================================
    # Authentication
    # =========================================================================

    @app.post("/auth/signup", response_model=User)
    async def sign_up(body: SignUpRequest, env: AppEnvironment = Depends(get_env)):
        return await env.auth.sign_up(body.email, body.password, body.display_name)

    @app.post("/auth/login", response_model=User)
    async def login(body: LoginRequest, env: AppEnvironment = Depends(get_env)):
        return await env.auth.login(body.email, body.password)

    @app.post("/auth/logout")
    async def logout(env: AppEnvironment = Depends(get_env)):
        env.auth.sign_out()
        return {"status": "signed_out"}

    @app.post("/auth/password-reset")
    async def password_reset(body: PasswordResetRequest, env: AppEnvironment = Depends(get_env)):
        await env.auth.reset_password(body.email)
        return {"status": "sent"}

    @app.post("/auth/verification", response_model=VerificationResponse)
    async def send_verification(env: AppEnvironment = Depends(get_env)):
        await env.auth.send_email_verification()
        return VerificationResponse(success=True)

    @app.get("/auth/verification", response_model=VerificationStatusResponse)
    async def verification_status(env: AppEnvironment = Depends(get_env)):
        is_verified = await env.auth.check_email_verification_status()
        return VerificationStatusResponse(is_verified=is_verified)

    @app.get("/me", response_model=User)
    async def me(env: AppEnvironment = Depends(get_env)):
        user = env.auth.get_current_user()
        if user is None:
            raise HTTPException(status_code=401, detail="Authentication is required")
        return user

    @app.put("/me/display-name", response_model=User)
    async def update_display_name(body: DisplayNameRequest, env: AppEnvironment = Depends(get_env)):
        return await env.auth.update_display_name(body.display_name)

    # =========================================================================
    # Onboarding
    # =========================================================================

    @app.get("/onboarding")
    async def onboarding_status(env: AppEnvironment = Depends(get_env)):
        return {"completed": env.store.has_completed_onboarding()}

    @app.post("/onboarding/complete")
    async def complete_onboarding(env: AppEnvironment = Depends(get_env)):
        env.store.set_onboarding_completed(True)
        return {"completed": True}

    # =========================================================================
    # Suggestions
    # =========================================================================

    @app.post("/suggestions", response_model=list[SuggestedRestaurant])
    async def suggestions(body: RestaurantPreferences, env: AppEnvironment = Depends(get_env)):
        return await env.suggestions.suggest_restaurants(body)

    @app.get("/suggestions/default", response_model=list[SuggestedRestaurant])
    async def default_suggestions(env: AppEnvironment = Depends(get_env)):
        return await env.suggestions.suggest_restaurants(default_preferences())

    @app.post("/chat", response_model=ChatCompletionResponse)
    async def chat(body: ChatCompletionRequest, env: AppEnvironment = Depends(get_env)):
        return await env.suggestions.get_chat_completion(body)

    # =========================================================================
    # Maps
    # =========================================================================

    @app.post("/places/search", response_model=PlaceSearchResponse)
    async def search_places(body: PlaceSearchRequest, env: AppEnvironment = Depends(get_env)):
        return await env.maps.search_places(body)

    @app.get("/places/nearby", response_model=PlaceSearchResponse)
    async def nearby_restaurants(
        lat: float,
        lng: float,
        radius: int = Query(default=5000, gt=0),
        env: AppEnvironment = Depends(get_env),
    ):
        return await env.maps.search_nearby_restaurants(lat, lng, radius)

    @app.get("/places/photo", response_model=PhotoUrlResponse)
    async def photo_url(
        photo_reference: str,
        max_width: int = Query(default=400, gt=0),
        env: AppEnvironment = Depends(get_env),
    ):
        return await env.maps.get_photo_url(photo_reference, max_width)

    @app.get("/places/{place_id}", response_model=PlaceDetailsResult)
    async def place_details(place_id: str, env: AppEnvironment = Depends(get_env)):
        return await env.maps.get_place_details(PlaceDetailsRequest(place_id=place_id))

    @app.post("/directions", response_model=DirectionsResponse)
    async def directions(body: DirectionsRequest, env: AppEnvironment = Depends(get_env)):
        return await env.maps.get_directions(body)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("foodmap.main:app", host="0.0.0.0", port=8000)
