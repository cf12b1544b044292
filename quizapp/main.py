"""
Quiz App API - Main Application
Quiz authoring, timed quiz sessions and results
FILE: quizapp/main.py
"""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from typing import Optional
import logging
import time

from quizapp.core.config import Settings
from quizapp.core.identity import IdentityProvider
from quizapp.db.document_store import DocumentStore
from quizapp.db.mongodb import MongoDB
from quizapp.services.quiz_service import QuizService
from quizapp.services.results_service import ResultsService
from quizapp.services.session_service import QuizSessionManager
from quizapp.api.quiz import router as quiz_router
from quizapp.api.session import router as session_router
from quizapp.api.results import router as results_router

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[DocumentStore] = None
) -> FastAPI:
    """
    Build the application

    Args:
        settings: Configuration; read from the environment when omitted
        store: Pre-built document store; when omitted a MongoDB-backed
            store is created on startup
    """
    settings = settings or Settings()

    # Configure logging
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown events"""
        # Startup
        logger.info("🚀 Starting Quiz App API...")

        mongodb = None
        document_store = store
        try:
            if document_store is None:
                mongodb = MongoDB(settings)
                db = await mongodb.connect()
                document_store = DocumentStore(db, poll_interval=settings.subscribe_poll_interval_seconds)
                logger.info("✓ MongoDB connected")

            quiz_service = QuizService(document_store, settings.app_id)
            app.state.settings = settings
            app.state.mongodb = mongodb
            app.state.store = document_store
            app.state.identity = IdentityProvider(settings)
            app.state.quiz_service = quiz_service
            app.state.results_service = ResultsService(document_store, settings.app_id)
            app.state.session_manager = QuizSessionManager(document_store, quiz_service, settings)

            logger.info("✓ All services initialized")

        except Exception as e:
            logger.error(f"❌ Startup error: {e}")
            raise

        yield

        # Shutdown
        logger.info("🛑 Shutting down Quiz App API...")

        try:
            await app.state.session_manager.shutdown()

            if mongodb is not None:
                await mongodb.close()
                logger.info("✓ MongoDB disconnected")

            logger.info("✓ Cleanup complete")

        except Exception as e:
            logger.error(f"❌ Shutdown error: {e}")

    app = FastAPI(
        title="Quiz App API",
        description="""
        Quiz App API for authoring quizzes, taking them with an optional countdown
        and reviewing scored results.

        ## Features
        - **Quizzes**: Multiple-choice, true/false and open-ended questions
        - **Sessions**: Answer, navigate and submit; timed quizzes submit themselves
        - **Results**: Latest attempt with a per-question breakdown

        ## Endpoints
        - **Quizzes**: `/api/quizzes/*`
        - **Sessions**: `/api/sessions/*`
        - **Results**: `/api/results/*`
        - **Health**: `/health`

        Requests are scoped to the user in the `X-User-Id` header, or to an
        anonymous user when the header is absent.
        """,
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc"
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-User-Id", "X-Process-Time-Ms"],
    )

    # Request timing middleware
    @app.middleware("http")
    async def add_process_time_header(request: Request, call_next):
        """Add processing time to response headers"""
        start_time = time.time()
        response = await call_next(request)
        process_time = (time.time() - start_time) * 1000  # Convert to ms
        response.headers["X-Process-Time-Ms"] = str(round(process_time, 2))
        return response

    # Request logging middleware
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log all incoming requests"""
        logger.info(f"📨 {request.method} {request.url.path}")
        response = await call_next(request)
        logger.info(
            f"📤 {request.method} {request.url.path} - "
            f"Status: {response.status_code}"
        )
        return response

    # ==================== INCLUDE ROUTERS ====================

    app.include_router(quiz_router, prefix="/api")
    app.include_router(session_router, prefix="/api")
    app.include_router(results_router, prefix="/api")

    # ==================== ROOT ENDPOINTS ====================

    @app.get("/", tags=["Root"])
    async def root():
        """Root endpoint with API information"""
        return {
            "message": "Quiz App API",
            "version": "1.0.0",
            "status": "operational",
            "endpoints": {
                "docs": "/docs",
                "redoc": "/redoc",
                "quizzes": "/api/quizzes",
                "sessions": "/api/sessions",
                "results": "/api/results/{quiz_id}/latest",
                "health": "/health"
            }
        }

    @app.get("/health", tags=["Health"])
    async def health_check(request: Request):
        """
        Health check for the API and its document store

        Returns:
            Health status per component; 503 when the store is unreachable
        """
        health_status = {
            "status": "healthy",
            "timestamp": time.time(),
            "components": {}
        }

        mongodb = request.app.state.mongodb
        if mongodb is None:
            health_status["components"]["store"] = {
                "status": "healthy",
                "message": "Using injected document store"
            }
        elif await mongodb.ping():
            health_status["components"]["mongodb"] = {
                "status": "healthy",
                "message": "Connected and responsive"
            }
        else:
            health_status["status"] = "degraded"
            health_status["components"]["mongodb"] = {
                "status": "unhealthy",
                "message": "Connection failed"
            }
            logger.error("❌ MongoDB health check failed")

        health_status["sessions"] = {"open": len(request.app.state.session_manager)}
        health_status["api"] = {
            "title": request.app.title,
            "version": request.app.version,
            "status": "operational"
        }

        status_code = 200 if health_status["status"] == "healthy" else 503
        return JSONResponse(status_code=status_code, content=health_status)

    return app


# ==================== RUN APPLICATION ====================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "quizapp.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=8080,
        reload=True,
        log_level="info"
    )
