"""Single-use local HTTP listener for the browser authentication callback.

The auth service redirects the browser to ``http://localhost:8008/?token=...``.
``CallbackListener`` owns the bound socket, the uvicorn server serving it on
the current event loop, and the future that carries the token (or the
failure) back to the caller.
"""

import asyncio
import logging
import socket
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from doc_sync.errors import AuthError

logger = logging.getLogger(__name__)

CORS_HEADERS = {"Access-Control-Allow-Origin": "*"}


def _reply(status_code: int, success: bool, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": success, "message": message},
        headers=CORS_HEADERS,
    )


class CallbackListener:
    """Waits for exactly one authentication callback.

    Args:
        host: Interface to bind. Defaults to loopback.
        port: Port to bind; ``0`` picks a free one (see ``port``).
        close_delay: Seconds to keep serving after the result is settled so
                     the response is flushed before teardown.

    Usage::

        listener = CallbackListener()
        pending = await listener.start()
        try:
            token = await pending
        finally:
            await listener.stop()
    """

    def __init__(self, host: str = "127.0.0.1", port: int = 8008, close_delay: float = 0.1):
        self.host = host
        self.requested_port = port
        self.close_delay = close_delay

        self._started = False
        self._bound_port: Optional[int] = None
        self._socket: Optional[socket.socket] = None
        self._server: Optional[uvicorn.Server] = None
        self._serve_task: Optional[asyncio.Task] = None
        self._result: Optional[asyncio.Future] = None
        self._close_handle: Optional[asyncio.TimerHandle] = None

    @property
    def port(self) -> Optional[int]:
        """Port actually bound, or None before a successful start."""
        return self._bound_port

    @property
    def running(self) -> bool:
        return self._serve_task is not None and not self._serve_task.done()

    # ----- lifecycle -------------------------------------------------------

    async def start(self) -> asyncio.Future:
        """Bind and start serving; return the future that receives the token.

        The socket is bound before this returns. If binding fails the
        returned future already holds an ``AuthError``.

        Raises:
            AuthError: The listener was started before. Instances are single
                use.
        """
        if self._started:
            raise AuthError("Callback listener cannot be reused")
        self._started = True

        loop = asyncio.get_running_loop()
        self._result = loop.create_future()

        try:
            self._socket = self._bind()
        except OSError as exc:
            logger.error("Listener failed to start on %s:%s: %s", self.host, self.requested_port, exc)
            self._result.set_exception(AuthError(f"listener start failed: {exc}"))
            return self._result

        self._bound_port = self._socket.getsockname()[1]
        config = uvicorn.Config(
            self._build_app(),
            log_config=None,
            log_level="warning",
            access_log=False,
            lifespan="off",
        )
        self._server = uvicorn.Server(config)
        self._serve_task = loop.create_task(self._server.serve(sockets=[self._socket]))
        self._serve_task.add_done_callback(self._on_serve_done)
        logger.info("Waiting for authentication callback on %s:%d", self.host, self._bound_port)
        return self._result

    async def stop(self) -> None:
        """Stop serving and release the socket. Safe to call repeatedly."""
        if self._close_handle is not None:
            self._close_handle.cancel()
            self._close_handle = None

        if self._server is not None:
            self._server.should_exit = True

        if self._serve_task is not None:
            await asyncio.gather(self._serve_task, return_exceptions=True)
            self._serve_task = None

        self._server = None
        if self._socket is not None:
            self._socket.close()
            self._socket = None

        self._abandon()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.stop()

    # ----- internals -------------------------------------------------------

    def _bind(self) -> socket.socket:
        family = socket.AF_INET6 if ":" in self.host else socket.AF_INET
        sock = socket.socket(family, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((self.host, self.requested_port))
            sock.listen(16)
            sock.setblocking(False)
        except OSError:
            sock.close()
            raise
        return sock

    def _build_app(self) -> FastAPI:
        app = FastAPI(docs_url=None, redoc_url=None, openapi_url=None)

        @app.get("/{path:path}")
        async def callback(request: Request) -> JSONResponse:
            try:
                token = request.query_params.get("token")
                if token:
                    self._settle(token)
                    return _reply(200, True, "Token received")

                self._fail(AuthError("No token received"))
                return _reply(400, False, "No token received")
            except Exception as exc:
                logger.exception("Server error while handling callback")
                self._fail(exc)
                return _reply(500, False, "Server error")

        return app

    def _settle(self, token: str) -> None:
        if self._result is None or self._result.done():
            logger.debug("Ignoring callback after the result was settled")
            return
        self._result.set_result(token)
        self._schedule_close()

    def _fail(self, exc: BaseException) -> None:
        if self._result is None or self._result.done():
            return
        self._result.set_exception(exc)
        self._schedule_close()

    def _schedule_close(self) -> None:
        if self._close_handle is None:
            loop = asyncio.get_running_loop()
            self._close_handle = loop.call_later(self.close_delay, self._request_exit)

    def _request_exit(self) -> None:
        self._close_handle = None
        if self._server is not None:
            self._server.should_exit = True

    def _on_serve_done(self, task: asyncio.Task) -> None:
        if not task.cancelled() and task.exception() is not None:
            logger.error("Callback listener crashed: %s", task.exception())
        self._abandon()

    def _abandon(self) -> None:
        if self._result is not None and not self._result.done():
            self._result.set_exception(
                AuthError("Callback listener stopped before a token was received")
            )
