"""FastAPI application exposing gym enrollment and admin endpoints."""

from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Dict, List

import logging
from fastapi import Depends, FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from prometheus_client import Counter
from pydantic import BaseModel, ConfigDict, Field
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

from .auth import (
    current_session,
    get_sessions,
    get_store,
    require_admin,
    session_token,
    verify_password,
)
from .bootstrap import bootstrap
from .config import Settings, settings as default_settings
from .database import create_db_engine
from .errors import ApiError
from .services import MemberStore
from .sessions import SessionData, SessionManager


logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Usuário ou senha incorretos"
INVALID_REQUEST = "Requisição inválida"

# Prometheus counter to track API requests by method, endpoint and status code
REQUEST_COUNTER = Counter(
    "api_requests_total",
    "Total API requests",
    ["method", "endpoint", "status"],
)
LOGIN_COUNTER = Counter(
    "admin_logins_total",
    "Admin login attempts by outcome",
    ["outcome"],
)


class EnrollmentRequest(BaseModel):
    """Public enrollment form. Values are accepted as sent."""

    nome: Any = None
    cpf: Any = None
    email: Any = None
    telefone: Any = None
    data_nascimento: Any = Field(None, alias="dataNascimento")
    sexo: Any = None
    endereco: Any = None
    plano: Any = None
    data_matricula: Any = Field(None, alias="dataMatricula")
    objetivo: Any = None
    observacoes: Any = None


class EnrollmentResponse(BaseModel):
    sucesso: bool = True
    mensagem: str = "Aluno cadastrado com sucesso!"


class LoginRequest(BaseModel):
    usuario: Any = None
    senha: Any = None


class SuccessResponse(BaseModel):
    sucesso: bool = True


class SessionStatusResponse(BaseModel):
    logado: bool


class MemberResponse(BaseModel):
    """Serialized enrollment record."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    nome: Any
    cpf: Any
    email: Any
    telefone: Any
    data_nascimento: Any
    sexo: Any
    endereco: Any = None
    plano: Any
    data_matricula: Any
    objetivo: Any = None
    observacoes: Any = None
    data_cadastro: datetime


async def read_payload(request: Request) -> Dict[str, Any]:
    """Return the request body as a dict, from either JSON or form data.

    Bodies of any other content type are treated as empty.
    """
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(("application/x-www-form-urlencoded", "multipart/form-data")):
        form = await request.form()
        return dict(form)
    media_type = content_type.split(";")[0].strip().lower()
    if media_type != "application/json" and not media_type.endswith("+json"):
        return {}
    try:
        payload = await request.json()
    except ValueError as exc:
        raise ApiError(400, INVALID_REQUEST) from exc
    if not isinstance(payload, dict):
        raise ApiError(400, INVALID_REQUEST)
    return payload


def _set_session_cookie(response: Response, settings: Settings, value: str) -> None:
    response.set_cookie(
        settings.session_cookie_name,
        value,
        max_age=settings.session_max_age_seconds,
        httponly=True,
        samesite="lax",
        secure=settings.production,
    )


def create_app(
    settings: Settings | None = None,
    store: MemberStore | None = None,
    sessions: SessionManager | None = None,
) -> FastAPI:
    """Build the application around an explicit store and session manager.

    Both handles live on ``app.state``; the lifespan bootstraps the database
    on startup, then clears sessions and disposes the engine on shutdown.
    """
    settings = settings or default_settings
    if store is None:
        store = MemberStore(create_db_engine(settings.database_url, settings.database_ssl))
    if sessions is None:
        sessions = SessionManager(settings.session_secret, settings.session_max_age_seconds)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await run_in_threadpool(bootstrap, app.state.store, app.state.settings)
        yield
        app.state.sessions.clear()
        app.state.store.close()

    app = FastAPI(title=settings.api_title, lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store
    app.state.sessions = sessions

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"erro": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        logger.info("invalid request %s %s: %s", request.method, request.url.path, exc.errors())
        return JSONResponse(status_code=400, content={"erro": INVALID_REQUEST})

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log incoming requests and their outcomes while updating metrics."""
        logger.info("request %s %s", request.method, request.url.path)
        try:
            response = await call_next(request)
        except Exception:
            REQUEST_COUNTER.labels(
                method=request.method,
                endpoint=_endpoint_label(request),
                status="500",
            ).inc()
            logger.exception(
                "error handling %s %s", request.method, request.url.path
            )
            raise
        REQUEST_COUNTER.labels(
            method=request.method,
            endpoint=_endpoint_label(request),
            status=str(response.status_code),
        ).inc()
        logger.info(
            "response %s %s status %s",
            request.method,
            request.url.path,
            response.status_code,
        )
        return response

    @app.post("/api/alunos/cadastrar", response_model=EnrollmentResponse)
    async def enroll_member(request: Request, store: MemberStore = Depends(get_store)):
        """Store a public enrollment submission."""
        payload = EnrollmentRequest.model_validate(await read_payload(request))
        await run_in_threadpool(store.add_member, payload.model_dump())
        return EnrollmentResponse()

    @app.post("/api/login", response_model=SuccessResponse)
    async def login(
        request: Request,
        response: Response,
        store: MemberStore = Depends(get_store),
        sessions: SessionManager = Depends(get_sessions),
        token: str | None = Depends(session_token),
    ):
        """Authenticate the administrator and open a session.

        Unknown users, wrong passwords and lookup failures all produce the
        same 401 body.
        """
        credentials = LoginRequest.model_validate(await read_payload(request))
        admin = None
        if isinstance(credentials.usuario, str) and isinstance(credentials.senha, str):
            try:
                admin = await run_in_threadpool(store.get_admin, credentials.usuario)
            except Exception:
                logger.exception("admin lookup failed")
        valid = admin is not None and await run_in_threadpool(
            verify_password, credentials.senha, admin.senha
        )
        if not valid:
            LOGIN_COUNTER.labels(outcome="failure").inc()
            raise ApiError(401, INVALID_CREDENTIALS)

        LOGIN_COUNTER.labels(outcome="success").inc()
        sessions.destroy(token)
        new_token = sessions.create(admin.usuario)
        _set_session_cookie(response, request.app.state.settings, sessions.sign(new_token))
        return SuccessResponse()

    @app.post("/api/logout", response_model=SuccessResponse)
    async def logout(
        request: Request,
        response: Response,
        sessions: SessionManager = Depends(get_sessions),
        token: str | None = Depends(session_token),
    ):
        sessions.destroy(token)
        response.delete_cookie(request.app.state.settings.session_cookie_name)
        return SuccessResponse()

    @app.get("/api/verificar-login", response_model=SessionStatusResponse)
    async def check_login(session: SessionData | None = Depends(current_session)):
        return SessionStatusResponse(logado=bool(session and session.authenticated))

    @app.get(
        "/api/admin/alunos",
        response_model=List[MemberResponse],
        dependencies=[Depends(require_admin)],
    )
    async def list_members(store: MemberStore = Depends(get_store)):
        """Return every enrollment, newest first."""
        return await run_in_threadpool(store.list_members)

    @app.delete(
        "/api/admin/alunos/{member_id}",
        response_model=SuccessResponse,
        dependencies=[Depends(require_admin)],
    )
    async def delete_member(member_id: str, store: MemberStore = Depends(get_store)):
        """Delete an enrollment; unknown ids are not an error."""
        try:
            pk = int(member_id)
        except ValueError as exc:
            logger.warning("delete requested for invalid id %r", member_id)
            raise ApiError(500, "Erro ao excluir aluno") from exc
        await run_in_threadpool(store.delete_member, pk)
        return SuccessResponse()

    return app


def _endpoint_label(request: Request) -> str:
    route = request.scope.get("route")
    return getattr(route, "path", request.url.path)


app = create_app()
