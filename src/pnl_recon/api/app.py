"""FastAPI application for closed-PnL reconciliation."""

import logging
from functools import wraps
from typing import Callable

from fastapi import FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..exceptions import MalformedCandidateError, ReconciliationFetchError
from .models import MatchRequest, MatchResponse, ReconcileRequest, ReconcileResponse
from .service import MatchService, ReconcileService

logger = logging.getLogger(__name__)


def handle_api_errors(operation_name: str) -> Callable:
    """
    Decorator to handle common API exceptions with consistent error responses.

    Args:
        operation_name: Name of the operation for logging purposes

    Returns:
        Decorated function with standardized error handling
    """

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except ValueError as e:
                logger.warning(f"{operation_name} - Request validation error: {e}")
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)
                )
            except MalformedCandidateError as e:
                logger.warning(f"{operation_name} - Malformed closed-PnL record: {e}")
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)
                )
            except ReconciliationFetchError as e:
                logger.error(f"{operation_name} - Exchange unavailable: {e}")
                raise HTTPException(
                    status_code=status.HTTP_502_BAD_GATEWAY,
                    detail=f"Failed to fetch closed PnL after {e.attempts} attempts",
                )
            except FileNotFoundError as e:
                logger.error(f"{operation_name} - Configuration file not found: {e}")
                raise HTTPException(
                    status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                    detail="Configuration file not found",
                )
            except Exception as e:
                # Log the error internally but don't expose details for security
                logger.error(f"{operation_name} - Internal error: {e}", exc_info=True)
                raise HTTPException(
                    status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                    detail=f"Internal server error during {operation_name.lower()}",
                )

        return wrapper

    return decorator


# Create FastAPI app
app = FastAPI(
    title="Closed PnL Reconciliation API",
    description="Links local trades to exchange-reported closed positions",
    version=__version__,
    docs_url="/docs",  # Swagger UI
    redoc_url="/redoc",  # ReDoc UI
)

# Add CORS middleware for web clients
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Allow all origins for development
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

# Initialize services
match_service = MatchService()
reconcile_service = ReconcileService()


@app.get("/", tags=["Health"])
async def root():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "pnl-reconciliation-api",
        "version": __version__,
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """Detailed health check."""
    return {
        "status": "healthy",
        "rules": match_service.matcher.processing_order,
        "exchange": match_service.config_manager.matching.exchange_profile,
    }


@app.post(
    "/match",
    response_model=MatchResponse,
    status_code=status.HTTP_200_OK,
    tags=["Matching"],
)
@handle_api_errors("Matching")
async def match_trade(request: MatchRequest) -> MatchResponse:
    """
    Match one trade against supplied closed-PnL entries.

    Runs the rule chain (order id, symbol, closing side, quantity, time) and
    returns the selected entry or the reason none qualified. Nothing is
    fetched and nothing is stored.
    """
    return await match_service.process_match(request)


@app.post(
    "/reconcile",
    response_model=ReconcileResponse,
    status_code=status.HTTP_200_OK,
    tags=["Reconciliation"],
)
@handle_api_errors("Reconciliation")
async def reconcile_trade(request: ReconcileRequest) -> ReconcileResponse:
    """
    Fetch closed PnL for a trade, match it and derive the close update.

    The response carries the fields to write back to the trade. A trade with
    no qualifying entry is closed without PnL; a trade already closed is
    returned unchanged with status ``already_closed``.
    """
    return await reconcile_service.process_reconcile(request)
