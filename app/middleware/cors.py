"""
CORS Middleware - Cross-Origin Resource Sharing configuration.

The freeze dashboard is a browser client served from a different origin,
so the data routes need CORS headers and preflight handling.

Usage:
    from app.middleware.cors import CORSMiddleware

    app.add_middleware(
        CORSMiddleware,
        allowed_origins=["http://localhost:3000"],
    )

An allowed_origins entry of "*" accepts any origin. Credentials are never
advertised for the wildcard since browsers reject that combination.
"""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

WILDCARD = "*"


class CORSMiddleware(BaseHTTPMiddleware):
    """
    CORS (Cross-Origin Resource Sharing) middleware.

    Handles preflight OPTIONS requests and adds CORS headers to responses.
    """

    def __init__(
        self,
        app,
        allowed_origins: list[str] | None = None,
        allow_credentials: bool = False,
        allow_methods: list[str] | None = None,
        allow_headers: list[str] | None = None,
        max_age: int = 600,
    ):
        """
        Initialize CORS middleware.

        Args:
            app: FastAPI application
            allowed_origins: List of allowed origins, or ["*"]
            allow_credentials: Whether to allow credentials (cookies, auth headers)
            allow_methods: Allowed HTTP methods (default: GET, POST, OPTIONS)
            allow_headers: Allowed request headers (default: Content-Type)
            max_age: How long (seconds) to cache preflight responses
        """
        super().__init__(app)
        self.allowed_origins = allowed_origins or []
        self.allow_any_origin = WILDCARD in self.allowed_origins
        self.allow_credentials = allow_credentials and not self.allow_any_origin
        self.allow_methods = allow_methods or ["GET", "POST", "OPTIONS"]
        self.allow_headers = allow_headers or ["Content-Type"]
        self.max_age = max_age

        logger.info(
            "CORS middleware initialized",
            allowed_origins=self.allowed_origins,
            allow_credentials=self.allow_credentials,
        )

    def _is_allowed(self, origin: str | None) -> bool:
        if not origin:
            return False
        return self.allow_any_origin or origin in self.allowed_origins

    def _allow_origin_value(self, origin: str) -> str:
        return WILDCARD if self.allow_any_origin else origin

    async def dispatch(self, request, call_next):
        """
        Process request and add CORS headers.

        Handles:
        1. Preflight OPTIONS requests (return immediately)
        2. Regular requests (add CORS headers to response)
        """
        origin = request.headers.get("origin")
        is_allowed_origin = self._is_allowed(origin)

        if request.method == "OPTIONS" and request.headers.get("access-control-request-method"):
            if is_allowed_origin:
                return self._preflight_response(origin)
            logger.warning(
                "CORS preflight rejected - origin not allowed",
                origin=origin,
                allowed_origins=self.allowed_origins,
            )
            return Response(status_code=403, content="Origin not allowed")

        response = await call_next(request)

        if is_allowed_origin:
            response.headers["Access-Control-Allow-Origin"] = self._allow_origin_value(origin)
            if self.allow_credentials:
                response.headers["Access-Control-Allow-Credentials"] = "true"
        elif origin:
            logger.warning(
                "CORS request from disallowed origin",
                origin=origin,
                path=request.url.path,
                allowed_origins=self.allowed_origins,
            )

        return response

    def _preflight_response(self, origin: str) -> Response:
        headers = {
            "Access-Control-Allow-Origin": self._allow_origin_value(origin),
            "Access-Control-Allow-Methods": ", ".join(self.allow_methods),
            "Access-Control-Allow-Headers": ", ".join(self.allow_headers),
            "Access-Control-Max-Age": str(self.max_age),
        }

        if self.allow_credentials:
            headers["Access-Control-Allow-Credentials"] = "true"

        logger.debug("CORS preflight request handled", origin=origin, methods=self.allow_methods)
        return Response(status_code=204, headers=headers)
