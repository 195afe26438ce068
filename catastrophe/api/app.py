"""
FastAPI Application - REST API for the table companion.

Endpoints:
    GET    /api/v1/health                          Health check
    POST   /api/v1/decks/validate                  Validate deck definitions
    POST   /api/v1/sessions                        Create game session
    GET    /api/v1/sessions                        List sessions
    GET    /api/v1/sessions/{id}                   Get session status
    DELETE /api/v1/sessions/{id}                   End session
    GET    /api/v1/sessions/{id}/state             Get table state
    POST   /api/v1/sessions/{id}/actions           Apply any table event
    POST   /api/v1/sessions/{id}/decks/{deck}/{op} Draw, reveal or shuffle a deck
    POST   /api/v1/sessions/{id}/decks/{deck}/cards/{card_id}/{op}  Select or pin
    DELETE /api/v1/sessions/{id}/pins/{pinned_id}  Unpin a card
    GET    /api/v1/sessions/{id}/costs             Trait-adjusted costs
    POST   /api/v1/sessions/{id}/dice              Roll the die
    GET    /api/v1/sessions/{id}/snapshot          Export snapshot
    PUT    /api/v1/sessions/{id}/snapshot          Import snapshot

Deck path segments are deck titles ("Individual Traits").
All responses are JSON with explicit Pydantic schemas.
"""

from typing import Any, Optional, Union
import json
import logging
import os

from fastapi import Body, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..engine_core.action import Action
from ..engine_core.validation import DefinitionError, validate_definitions
from ..session import SessionManager, SnapshotError, load_deck_directory
from .service import (
    GameService,
    RequestError,
    SessionNotFoundError,
    cards_from_models,
    parse_deck,
)
from .schemas import (
    # Request models
    ActionRequest,
    CreateSessionRequest,
    RollRequest,
    ValidateDeckRequest,
    # Response models
    ActionResponse,
    CostsResponse,
    EndSessionResponse,
    ErrorResponse,
    GameStateResponse,
    HealthResponse,
    RollResponse,
    SessionListResponse,
    SessionResponse,
    ValidationResponse,
    # Enums
    ErrorCode,
)

# Environment configuration
CATASTROPHE_ENV = os.getenv("CATASTROPHE_ENV", "development")
CATASTROPHE_SAVE_DIR = os.getenv("CATASTROPHE_SAVE_DIR", None)
CATASTROPHE_DECK_DIR = os.getenv("CATASTROPHE_DECK_DIR", None)
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")

logger = logging.getLogger(__name__)

_DECK_OPS = {"draw": Action.draw, "reveal": Action.reveal, "shuffle": Action.shuffle}
_CARD_OPS = {"select": Action.select, "pin": Action.pin}


def create_app(service: Optional[GameService] = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        service: Optional GameService instance (creates new if not provided)

    Returns:
        FastAPI application instance
    """
    app = FastAPI(
        title="Catastrophe Cards API",
        description="""
Table companion for the Catastrophe card game: decks, pinned traits,
communities, counters and turns.

## Error Codes

| Code | Description |
|------|-------------|
| `SESSION_NOT_FOUND` | Session does not exist |
| `INVALID_ACTION` | The action was rejected; state is unchanged |
| `INVALID_SNAPSHOT` | Snapshot could not be parsed |
| `VALIDATION_ERROR` | Deck definitions or parameters are invalid |
        """,
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    # CORS for the table UI
    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Service instance
    if service is None:
        definitions = load_deck_directory(CATASTROPHE_DECK_DIR) if CATASTROPHE_DECK_DIR else {}
        service = GameService(
            session_manager=SessionManager(save_dir=CATASTROPHE_SAVE_DIR),
            definitions=definitions,
        )
    api_service = service
    logger.info("Catastrophe API starting (%s)", CATASTROPHE_ENV)

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Optional[dict] = None,
    ) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                error=message,
                error_code=error_code,
                details=details,
            ).model_dump(mode="json"),
        )

    def service_error_response(error: Exception) -> JSONResponse:
        """Map a service exception to its error response."""
        if isinstance(error, SessionNotFoundError):
            return make_error_response(ErrorCode.SESSION_NOT_FOUND, str(error), status_code=404)
        if isinstance(error, DefinitionError):
            return make_error_response(
                ErrorCode.VALIDATION_ERROR, str(error), details={"errors": error.errors}
            )
        if isinstance(error, SnapshotError):
            return make_error_response(ErrorCode.INVALID_SNAPSHOT, str(error))
        if isinstance(error, RequestError):
            return make_error_response(ErrorCode.VALIDATION_ERROR, str(error))
        logger.exception("Unexpected service error")
        return make_error_response(ErrorCode.INTERNAL_ERROR, str(error), status_code=500)

    def action_result(response: ActionResponse) -> Union[ActionResponse, JSONResponse]:
        if response.success:
            return response
        return make_error_response(
            ErrorCode.INVALID_ACTION,
            response.changes[0] if response.changes else "Action rejected",
            status_code=409,
        )

    service_errors = (SessionNotFoundError, DefinitionError, SnapshotError, RequestError)

    # =========================================================================
    # Health
    # =========================================================================

    @app.get(
        "/api/v1/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    async def health() -> HealthResponse:
        return HealthResponse(status="ok", service="catastrophe", version=__version__)

    # =========================================================================
    # Deck definitions
    # =========================================================================

    @app.post(
        "/api/v1/decks/validate",
        response_model=ValidationResponse,
        responses={400: {"model": ErrorResponse}},
        tags=["Decks"],
        summary="Validate one deck's card definitions",
    )
    async def validate_deck(request: ValidateDeckRequest) -> Union[ValidationResponse, JSONResponse]:
        try:
            deck = parse_deck(request.deck)
            cards = cards_from_models(request.cards)
        except RequestError as e:
            return service_error_response(e)
        result = validate_definitions(deck, cards)
        return ValidationResponse(
            valid=result.valid, errors=result.errors, warnings=result.warnings
        )

    # =========================================================================
    # Session Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions",
        response_model=SessionResponse,
        responses={400: {"model": ErrorResponse, "description": "Invalid deck definitions"}},
        tags=["Sessions"],
        summary="Create a new game session",
    )
    async def create_session(
        request: Optional[CreateSessionRequest] = None,
    ) -> Union[SessionResponse, JSONResponse]:
        """
        Create a new game session.

        Decks omitted from the request use the server's definitions.
        """
        try:
            return api_service.create_session(request or CreateSessionRequest())
        except service_errors as e:
            return service_error_response(e)

    @app.get(
        "/api/v1/sessions",
        response_model=SessionListResponse,
        tags=["Sessions"],
        summary="List active sessions",
    )
    async def list_sessions() -> SessionListResponse:
        sessions = api_service.list_sessions()
        return SessionListResponse(sessions=sessions, count=len(sessions))

    @app.get(
        "/api/v1/sessions/{session_id}",
        response_model=SessionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Sessions"],
        summary="Get session status",
    )
    async def get_session(session_id: str) -> Union[SessionResponse, JSONResponse]:
        try:
            return api_service.get_session(session_id)
        except service_errors as e:
            return service_error_response(e)

    @app.delete(
        "/api/v1/sessions/{session_id}",
        response_model=EndSessionResponse,
        tags=["Sessions"],
        summary="End a game session",
    )
    async def end_session(session_id: str) -> EndSessionResponse:
        """End a game session and release it from memory."""
        success = api_service.end_session(session_id)
        return EndSessionResponse(success=success, session_id=session_id)

    @app.get(
        "/api/v1/sessions/{session_id}/state",
        response_model=GameStateResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Sessions"],
        summary="Get the table state",
    )
    async def get_state(session_id: str) -> Union[GameStateResponse, JSONResponse]:
        try:
            return api_service.get_state(session_id)
        except service_errors as e:
            return service_error_response(e)

    # =========================================================================
    # Actions
    # =========================================================================

    @app.post(
        "/api/v1/sessions/{session_id}/actions",
        response_model=ActionResponse,
        responses={
            400: {"model": ErrorResponse, "description": "Unknown deck or counter"},
            404: {"model": ErrorResponse, "description": "Session not found"},
            409: {"model": ErrorResponse, "description": "Action rejected"},
        },
        tags=["Game"],
        summary="Apply a table event",
    )
    async def apply_action(
        session_id: str, request: ActionRequest
    ) -> Union[ActionResponse, JSONResponse]:
        """
        Apply any table event.

        Operations on stale cards succeed with `noop` set and no changes.
        """
        try:
            return action_result(api_service.apply_action(session_id, request))
        except service_errors as e:
            return service_error_response(e)

    @app.post(
        "/api/v1/sessions/{session_id}/decks/{deck_title}/{operation}",
        response_model=ActionResponse,
        responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Draw, reveal or shuffle a deck",
    )
    async def deck_operation(
        session_id: str, deck_title: str, operation: str
    ) -> Union[ActionResponse, JSONResponse]:
        factory = _DECK_OPS.get(operation)
        if factory is None:
            return make_error_response(
                ErrorCode.VALIDATION_ERROR, f"Unknown deck operation '{operation}'"
            )
        try:
            session = api_service.require_session(session_id)
            action = factory(parse_deck(deck_title))
            return action_result(api_service.apply(session, action))
        except service_errors as e:
            return service_error_response(e)

    @app.post(
        "/api/v1/sessions/{session_id}/decks/{deck_title}/cards/{card_id}/{operation}",
        response_model=ActionResponse,
        responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Select or pin a revealed card",
    )
    async def card_operation(
        session_id: str, deck_title: str, card_id: str, operation: str
    ) -> Union[ActionResponse, JSONResponse]:
        factory = _CARD_OPS.get(operation)
        if factory is None:
            return make_error_response(
                ErrorCode.VALIDATION_ERROR, f"Unknown card operation '{operation}'"
            )
        try:
            session = api_service.require_session(session_id)
            action = factory(parse_deck(deck_title), card_id)
            return action_result(api_service.apply(session, action))
        except service_errors as e:
            return service_error_response(e)

    @app.delete(
        "/api/v1/sessions/{session_id}/pins/{pinned_id}",
        response_model=ActionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Unpin a card back to its deck's discard pile",
    )
    async def unpin(session_id: str, pinned_id: str) -> Union[ActionResponse, JSONResponse]:
        try:
            session = api_service.require_session(session_id)
            return action_result(api_service.apply(session, Action.unpin(pinned_id)))
        except service_errors as e:
            return service_error_response(e)

    # =========================================================================
    # Derived values
    # =========================================================================

    @app.get(
        "/api/v1/sessions/{session_id}/costs",
        response_model=CostsResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Trait-adjusted costs for the current turn",
    )
    async def get_costs(session_id: str) -> Union[CostsResponse, JSONResponse]:
        try:
            return api_service.get_costs(session_id)
        except service_errors as e:
            return service_error_response(e)

    @app.post(
        "/api/v1/sessions/{session_id}/dice",
        response_model=RollResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Roll the 0/1/2 die",
    )
    async def roll_die(
        session_id: str,
        request: Optional[RollRequest] = None,
    ) -> Union[RollResponse, JSONResponse]:
        player_name = request.player_name if request else None
        try:
            return api_service.roll_die(session_id, player_name)
        except service_errors as e:
            return service_error_response(e)

    # =========================================================================
    # Snapshots
    # =========================================================================

    @app.get(
        "/api/v1/sessions/{session_id}/snapshot",
        responses={404: {"model": ErrorResponse}},
        tags=["Snapshots"],
        summary="Export the session snapshot",
    )
    async def export_snapshot(session_id: str) -> Any:
        try:
            return api_service.export_snapshot(session_id)
        except service_errors as e:
            return service_error_response(e)

    @app.put(
        "/api/v1/sessions/{session_id}/snapshot",
        response_model=GameStateResponse,
        responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
        tags=["Snapshots"],
        summary="Replace the session state with a snapshot",
    )
    async def import_snapshot(
        session_id: str, snapshot: dict[str, Any] = Body(...)
    ) -> Union[GameStateResponse, JSONResponse]:
        try:
            return api_service.import_snapshot(session_id, json.dumps(snapshot))
        except service_errors as e:
            return service_error_response(e)

    return app


# For running directly: uvicorn catastrophe.api.app:app
app = create_app()
