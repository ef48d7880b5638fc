"""OAuth 2.0 端点路由

端点列表：
    GET  /authorize   - 授权端点（校验请求，渲染同意页面）
    POST /authorize   - 处理用户的同意/拒绝
    POST /token       - Token 端点

使用示例::

    from yoauth.api import create_oauth2_router

    router = create_oauth2_router(
        server,
        get_current_user=lambda request: request.state.user,
        login_url="/login",
    )
    app.include_router(router)
"""

from typing import Any, Callable, Dict, Optional
from urllib.parse import urlencode, urlparse
import inspect
import time

from fastapi import APIRouter, Form, Header, Query, Request
from fastapi.responses import JSONResponse, RedirectResponse, Response
from pydantic import BaseModel

from yoauth.exceptions import Err, NO_STORE_HEADERS, OAuth2Error, error_response
from yoauth.log import get_logger
from yoauth.oauth2.access_log import AccessLogRecord, AccessLogStatus, sanitize_params
from yoauth.oauth2.authorization import AuthorizationOutcome
from yoauth.oauth2.grants import extract_client_credentials
from yoauth.oauth2.scope import parse_scope
from yoauth.oauth2.server import OAuth2Server
from yoauth.utils.ip import get_client_ip

logger = get_logger()

ENDPOINT_AUTHORIZE = "authorize"
ENDPOINT_TOKEN = "token"

ConsentRenderer = Callable[[Request, AuthorizationOutcome, Any], Response]
ErrorRenderer = Callable[[Request, OAuth2Error], Response]


class TokenResponse(BaseModel):
    """Token 响应"""
    access_token: str
    token_type: str
    expires_in: int


class ErrorResponse(BaseModel):
    """错误响应"""
    error: str
    error_description: Optional[str] = None


def resolve_principal(user: Any) -> str:
    """从当前用户对象得到用户标识

    依次取 ``id`` 属性、``username`` 属性，否则使用 ``str(user)``。
    """
    for attr in ("id", "username"):
        value = getattr(user, attr, None)
        if value is not None:
            return str(value)
    return str(user)


def is_absolute_url(uri: Optional[str]) -> bool:
    """是否为带协议和主机的绝对 URL"""
    if not uri:
        return False
    parsed = urlparse(uri)
    return bool(parsed.scheme and parsed.netloc)


def append_query(uri: str, params: Dict[str, str]) -> str:
    """在 URL 后追加查询参数，已有查询串时用 & 连接"""
    separator = "&" if "?" in uri else "?"
    return f"{uri}{separator}{urlencode(params)}"


def default_consent_renderer(request: Request, outcome: AuthorizationOutcome, user: Any) -> Response:
    """默认同意页面：返回前端渲染所需的 JSON"""
    client = outcome.client
    return JSONResponse({
        "client_id": client.client_id,
        "client_name": client.name,
        "client_description": client.description,
        "redirect_uri": outcome.redirect_uri,
        "scopes": outcome.scopes,
        "state": outcome.state,
        "code_challenge": outcome.code_challenge,
        "code_challenge_method": outcome.code_challenge_method,
    })


def default_error_renderer(request: Request, error: OAuth2Error) -> Response:
    """默认错误页面：RFC 6749 错误 JSON"""
    return error_response(error)


def create_oauth2_router(
    server: OAuth2Server,
    get_current_user: Callable[[Request], Any],
    login_url: str = "/login",
    consent_renderer: ConsentRenderer = None,
    error_renderer: ErrorRenderer = None,
    trusted_proxies: list = None,
    prefix: str = "/oauth2",
    tags: list = None,
) -> APIRouter:
    """创建 OAuth 2.0 路由

    Args:
        server: 授权服务器核心
        get_current_user: 接收 Request，返回当前登录用户，未登录返回 None（可为异步函数）
        login_url: 未登录时跳转的登录地址，原始请求地址通过 redirect_uri 参数传递
        consent_renderer: 同意页面渲染函数
        error_renderer: 无法回跳客户端时的错误页面渲染函数
        trusted_proxies: 受信任的代理列表，用于访问日志中的客户端 IP
        prefix: 路由前缀
        tags: OpenAPI 标签

    Returns:
        APIRouter: FastAPI 路由
    """
    router = APIRouter(prefix=prefix, tags=tags or ["OAuth2"])
    render_consent = consent_renderer or default_consent_renderer
    render_error = error_renderer or default_error_renderer

    async def current_user(request: Request) -> Any:
        user = get_current_user(request)
        if inspect.isawaitable(user):
            user = await user
        return user

    def record_access(
        request: Request,
        endpoint: str,
        started: float,
        params: Dict[str, Optional[str]],
        client_id: Optional[str] = None,
        user_id: Optional[str] = None,
        error: Optional[OAuth2Error] = None,
    ) -> None:
        server.access_log.record(AccessLogRecord(
            endpoint=endpoint,
            status=AccessLogStatus.ERROR if error else AccessLogStatus.SUCCESS,
            response_time=int((time.perf_counter() - started) * 1000),
            client_id=client_id,
            user_id=user_id,
            ip_address=get_client_ip(request, trusted_proxies),
            user_agent=request.headers.get("user-agent"),
            method=request.method,
            request_params=sanitize_params({k: v for k, v in params.items() if v is not None}),
            error_code=error.error_code if error else None,
            error_message=error.description if error else None,
        ))

    def authorize_error(
        request: Request,
        params: Dict[str, Optional[str]],
        error: OAuth2Error,
    ) -> Response:
        """回调地址可用时带错误回跳客户端，否则渲染错误页面"""
        redirect_uri = params.get("redirect_uri")
        if is_absolute_url(redirect_uri):
            query = {"error": error.error_code, "error_description": error.description}
            if params.get("state"):
                query["state"] = params["state"]
            return RedirectResponse(append_query(redirect_uri, query), status_code=302)
        return render_error(request, error)

    async def handle_authorize(
        request: Request,
        params: Dict[str, Optional[str]],
        decision: Optional[str] = None,
    ) -> Response:
        started = time.perf_counter()
        client_id = params.get("client_id")
        user_id = None

        try:
            ok, result = server.validate_authorization_request(
                client_id=client_id,
                response_type=params.get("response_type"),
                redirect_uri=params.get("redirect_uri"),
                scopes=parse_scope(params.get("scope")),
                state=params.get("state"),
                code_challenge=params.get("code_challenge"),
                code_challenge_method=params.get("code_challenge_method"),
            )
            if not ok:
                record_access(request, ENDPOINT_AUTHORIZE, started, params, client_id, error=result)
                return authorize_error(request, params, result)
            outcome = result

            user = await current_user(request)
            if user is None:
                return RedirectResponse(
                    append_query(login_url, {"redirect_uri": str(request.url)}),
                    status_code=302,
                )
            user_id = resolve_principal(user)

            if request.method == "GET":
                response = render_consent(request, outcome, user)
                record_access(request, ENDPOINT_AUTHORIZE, started, params, client_id, user_id)
                return response

            if decision != "yes":
                error = Err.access_denied("User denied authorization")
                record_access(request, ENDPOINT_AUTHORIZE, started, params, client_id, user_id, error)
                return authorize_error(request, params, error)

            auth_code = server.issue_code(outcome, principal=user_id)
            query = {"code": auth_code.code}
            if outcome.state:
                query["state"] = outcome.state
            record_access(request, ENDPOINT_AUTHORIZE, started, params, client_id, user_id)
            return RedirectResponse(append_query(outcome.redirect_uri, query), status_code=302)

        except Exception as e:
            logger.error(f"授权端点异常: {type(e).__name__}: {e}", exc_info=True)
            error = Err.server_error()
            record_access(request, ENDPOINT_AUTHORIZE, started, params, client_id, user_id, error)
            return render_error(request, error)

    @router.get("/authorize")
    async def authorize(
        request: Request,
        response_type: str = Query(None),
        client_id: str = Query(None),
        redirect_uri: str = Query(None),
        scope: str = Query(None),
        state: str = Query(None),
        code_challenge: str = Query(None),
        code_challenge_method: str = Query(None),
    ):
        """授权端点

        校验请求后，已登录用户看到同意页面；未登录用户跳转到登录页。
        """
        params = {
            "response_type": response_type,
            "client_id": client_id,
            "redirect_uri": redirect_uri,
            "scope": scope,
            "state": state,
            "code_challenge": code_challenge,
            "code_challenge_method": code_challenge_method,
        }
        return await handle_authorize(request, params)

    @router.post("/authorize")
    async def authorize_submit(
        request: Request,
        response_type: str = Form(None),
        client_id: str = Form(None),
        redirect_uri: str = Form(None),
        scope: str = Form(None),
        state: str = Form(None),
        code_challenge: str = Form(None),
        code_challenge_method: str = Form(None),
        authorize: str = Form(None),
    ):
        """处理授权提交

        ``authorize=yes`` 时签发授权码并回跳，否则以 access_denied 回跳。
        参数可以放在表单中，也可以沿用查询串。
        """
        form_params = {
            "response_type": response_type,
            "client_id": client_id,
            "redirect_uri": redirect_uri,
            "scope": scope,
            "state": state,
            "code_challenge": code_challenge,
            "code_challenge_method": code_challenge_method,
        }
        params = {
            key: value if value is not None else request.query_params.get(key)
            for key, value in form_params.items()
        }
        return await handle_authorize(request, params, decision=authorize)

    @router.post(
        "/token",
        response_model=TokenResponse,
        responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
    )
    async def token(
        request: Request,
        grant_type: str = Form(None),
        code: str = Form(None),
        redirect_uri: str = Form(None),
        client_id: str = Form(None),
        client_secret: str = Form(None),
        scope: str = Form(None),
        code_verifier: str = Form(None),
        authorization: str = Header(None),
    ):
        """Token 端点"""
        started = time.perf_counter()
        params = {
            "grant_type": grant_type,
            "code": code,
            "redirect_uri": redirect_uri,
            "client_id": client_id,
            "client_secret": client_secret,
            "scope": scope,
            "code_verifier": code_verifier,
        }
        log_client_id = extract_client_credentials(client_id, client_secret, authorization)[0]

        try:
            ok, result = server.handle_token_request(grant_type, params, authorization)
        except Exception as e:
            logger.error(f"Token 端点异常: {type(e).__name__}: {e}", exc_info=True)
            ok, result = False, Err.server_error()

        if not ok:
            record_access(request, ENDPOINT_TOKEN, started, params, log_client_id, error=result)
            return error_response(result)

        record_access(request, ENDPOINT_TOKEN, started, params, log_client_id)
        return JSONResponse(
            content=result.to_response(server.clock()),
            headers=NO_STORE_HEADERS,
        )

    return router
