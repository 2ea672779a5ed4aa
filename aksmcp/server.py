"""The MCP server: JSON-RPC dispatch over stdio or server-sent events."""

from __future__ import annotations

import json
import logging
import queue
import sys
import threading
import uuid
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import IO, Any, Callable, Mapping, Optional
from urllib.parse import parse_qs, urlsplit

from .registry import ToolRegistry
from .tooltypes import Tool, ToolHandler

logger = logging.getLogger(__name__)

SERVER_NAME = "aks-mcp-server"
SERVER_VERSION = "1.0.0"

JSONRPC_VERSION = "2.0"
LATEST_PROTOCOL_VERSION = "2025-03-26"
SUPPORTED_PROTOCOL_VERSIONS = ("2025-03-26", "2024-11-05")

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


class _RequestError(Exception):
    def __init__(self, code: int, message: str) -> None:
        super().__init__(message)
        self.code = code


def _error(request_id: Any, code: int, message: str) -> dict[str, Any]:
    return {
        "jsonrpc": JSONRPC_VERSION,
        "id": request_id,
        "error": {"code": code, "message": message},
    }


class MCPServer:
    """Answers MCP requests given as decoded JSON-RPC messages."""

    def __init__(
        self,
        name: str,
        version: str,
        *,
        resource_capabilities: Optional[tuple[bool, bool]] = None,
        prompt_capabilities: Optional[bool] = None,
        tool_capabilities: Optional[bool] = None,
    ) -> None:
        self.name = name
        self.version = version
        self._resource_capabilities = resource_capabilities
        self._prompt_capabilities = prompt_capabilities
        self._tool_capabilities = tool_capabilities
        self._tools: dict[str, tuple[Tool, ToolHandler]] = {}
        self._lock = threading.Lock()
        self._methods: dict[str, Callable[[Mapping[str, Any]], Any]] = {
            "initialize": self._initialize,
            "ping": lambda params: {},
            "tools/list": self._list_tools,
            "tools/call": self._call_tool,
            "resources/list": lambda params: {"resources": []},
            "resources/templates/list": lambda params: {"resourceTemplates": []},
            "prompts/list": lambda params: {"prompts": []},
        }

    def add_tool(self, tool: Tool, handler: ToolHandler) -> None:
        """Offer a tool; a tool with the same name is replaced."""
        with self._lock:
            self._tools[tool.name] = (tool, handler)

    def handle_message(self, message: Any) -> Any:
        """Answer one decoded message or batch; None when no reply is due."""
        if isinstance(message, list):
            replies = [reply for item in message if (reply := self._handle_one(item)) is not None]
            return replies or None
        return self._handle_one(message)

    def _handle_one(self, message: Any) -> Optional[dict[str, Any]]:
        if not isinstance(message, dict):
            return _error(None, INVALID_REQUEST, "invalid request")
        method = message.get("method")
        if method is None and ("result" in message or "error" in message):
            return None
        request_id = message.get("id")
        if message.get("jsonrpc") != JSONRPC_VERSION or not isinstance(method, str):
            return _error(request_id, INVALID_REQUEST, "invalid request")
        if "id" not in message:
            return None

        handler = self._methods.get(method)
        if handler is None:
            return _error(request_id, METHOD_NOT_FOUND, f"method not found: {method}")
        params = message.get("params")
        if params is None:
            params = {}
        if not isinstance(params, Mapping):
            return _error(request_id, INVALID_PARAMS, "params must be an object")
        try:
            result = handler(params)
        except _RequestError as exc:
            return _error(request_id, exc.code, str(exc))
        return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "result": result}

    def _capabilities(self) -> dict[str, Any]:
        capabilities: dict[str, Any] = {}
        if self._resource_capabilities is not None:
            subscribe, list_changed = self._resource_capabilities
            capabilities["resources"] = {"subscribe": subscribe, "listChanged": list_changed}
        if self._prompt_capabilities is not None:
            capabilities["prompts"] = {"listChanged": self._prompt_capabilities}
        if self._tool_capabilities is not None or self._tools:
            capabilities["tools"] = {"listChanged": bool(self._tool_capabilities)}
        return capabilities

    def _initialize(self, params: Mapping[str, Any]) -> dict[str, Any]:
        requested = params.get("protocolVersion")
        version = requested if requested in SUPPORTED_PROTOCOL_VERSIONS else LATEST_PROTOCOL_VERSION
        return {
            "protocolVersion": version,
            "capabilities": self._capabilities(),
            "serverInfo": {"name": self.name, "version": self.version},
        }

    def _list_tools(self, params: Mapping[str, Any]) -> dict[str, Any]:
        with self._lock:
            tools = [tool.to_dict() for tool, _ in self._tools.values()]
        return {"tools": tools}

    def _call_tool(self, params: Mapping[str, Any]) -> dict[str, Any]:
        name = params.get("name")
        if not isinstance(name, str):
            raise _RequestError(INVALID_PARAMS, "tool name is required")
        with self._lock:
            entry = self._tools.get(name)
        if entry is None:
            raise _RequestError(INVALID_PARAMS, f"tool '{name}' not found")
        arguments = params.get("arguments")
        if arguments is not None and not isinstance(arguments, Mapping):
            raise _RequestError(INVALID_PARAMS, "arguments must be an object")
        try:
            result = entry[1](arguments)
        except Exception as exc:  # any handler failure becomes a JSON-RPC error
            raise _RequestError(INTERNAL_ERROR, str(exc)) from exc
        return result.to_dict()


def _handle_text(server: MCPServer, text: str) -> Any:
    try:
        message = json.loads(text)
    except ValueError:
        return _error(None, PARSE_ERROR, "parse error")
    return server.handle_message(message)


def _split_address(address: str) -> tuple[str, int]:
    host, sep, port = address.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"invalid address: {address}")
    return host.strip("[]"), int(port)


class SSEServer:
    """Serves an MCPServer over HTTP with server-sent events.

    Clients open a stream at the SSE endpoint, are told where to post
    messages, and receive the replies as ``message`` events.
    """

    def __init__(
        self,
        mcp_server: MCPServer,
        *,
        base_url: str = "",
        sse_endpoint: str = "/sse",
        message_endpoint: str = "/message",
    ) -> None:
        self.mcp_server = mcp_server
        self.base_url = base_url.rstrip("/")
        self.sse_endpoint = sse_endpoint
        self.message_endpoint = message_endpoint
        self.started = threading.Event()
        self._stop = threading.Event()
        self._sessions: dict[str, queue.Queue[str]] = {}
        self._sessions_lock = threading.Lock()
        self._httpd: Optional[ThreadingHTTPServer] = None

    def start(self, address: str) -> None:
        """Listen on "host:port" and serve until shut down."""
        host, port = _split_address(address)
        httpd = ThreadingHTTPServer((host, port), _make_handler(self))
        httpd.daemon_threads = True
        self._httpd = httpd
        self.started.set()
        try:
            httpd.serve_forever(poll_interval=0.1)
        finally:
            httpd.server_close()

    def shutdown(self) -> None:
        """Stop serving and end every open event stream."""
        self._stop.set()
        if self._httpd is not None:
            self._httpd.shutdown()

    def _open_session(self) -> tuple[str, "queue.Queue[str]"]:
        session_id = str(uuid.uuid4())
        events: queue.Queue[str] = queue.Queue()
        with self._sessions_lock:
            self._sessions[session_id] = events
        return session_id, events

    def _session(self, session_id: str) -> Optional["queue.Queue[str]"]:
        with self._sessions_lock:
            return self._sessions.get(session_id)

    def _close_session(self, session_id: str) -> None:
        with self._sessions_lock:
            self._sessions.pop(session_id, None)


def _make_handler(sse: SSEServer) -> type[BaseHTTPRequestHandler]:
    class Handler(BaseHTTPRequestHandler):
        def log_message(self, format: str, *args: Any) -> None:
            logger.debug(format, *args)

        def _send_event(self, event: str, data: str) -> None:
            self.wfile.write(f"event: {event}\ndata: {data}\n\n".encode("utf-8"))
            self.wfile.flush()

        def _reply(self, status: int, body: str, content_type: str = "text/plain") -> None:
            payload = body.encode("utf-8")
            self.send_response(status)
            self.send_header("Content-Type", content_type)
            self.send_header("Content-Length", str(len(payload)))
            self.end_headers()
            self.wfile.write(payload)

        def do_GET(self) -> None:
            if urlsplit(self.path).path != sse.sse_endpoint:
                self._reply(404, "Not found")
                return
            session_id, events = sse._open_session()
            try:
                self.send_response(200)
                self.send_header("Content-Type", "text/event-stream")
                self.send_header("Cache-Control", "no-cache")
                self.send_header("Connection", "keep-alive")
                self.end_headers()
                self._send_event(
                    "endpoint", f"{sse.base_url}{sse.message_endpoint}?sessionId={session_id}"
                )
                while not sse._stop.is_set():
                    try:
                        data = events.get(timeout=0.25)
                    except queue.Empty:
                        continue
                    self._send_event("message", data)
            except (BrokenPipeError, ConnectionResetError):
                pass
            finally:
                sse._close_session(session_id)

        def do_POST(self) -> None:
            parts = urlsplit(self.path)
            if parts.path != sse.message_endpoint:
                self._reply(404, "Not found")
                return
            session_id = parse_qs(parts.query).get("sessionId", [""])[0]
            if not session_id:
                self._reply(400, "Missing sessionId")
                return
            events = sse._session(session_id)
            if events is None:
                self._reply(404, "Invalid session ID")
                return
            length = int(self.headers.get("Content-Length") or 0)
            body = self.rfile.read(length).decode("utf-8", errors="replace")
            try:
                message = json.loads(body)
            except ValueError:
                self._reply(
                    400, json.dumps(_error(None, PARSE_ERROR, "parse error")), "application/json"
                )
                return
            reply = sse.mcp_server.handle_message(message)
            if reply is not None:
                events.put(json.dumps(reply))
            self.send_response(202)
            self.send_header("Content-Length", "0")
            self.end_headers()

    return Handler


class AKSMCPServer:
    """The MCP server offering the registry's tools."""

    def __init__(self, registry: ToolRegistry) -> None:
        self.registry = registry
        self.mcp_server = MCPServer(
            SERVER_NAME,
            SERVER_VERSION,
            resource_capabilities=(True, True),
            prompt_capabilities=True,
            tool_capabilities=True,
        )
        registry.configure_mcp_server(self.mcp_server)

    def serve_stdio(
        self, stdin: Optional[IO[str]] = None, stdout: Optional[IO[str]] = None
    ) -> None:
        """Answer newline-delimited JSON-RPC messages until the input ends."""
        source = sys.stdin if stdin is None else stdin
        sink = sys.stdout if stdout is None else stdout
        for line in source:
            if not line.strip():
                continue
            reply = _handle_text(self.mcp_server, line)
            if reply is not None:
                sink.write(json.dumps(reply) + "\n")
                sink.flush()

    def serve_sse(self, address: str) -> SSEServer:
        """Return an SSE server for this MCP server, advertising the address."""
        return SSEServer(self.mcp_server, base_url=f"http://{address}")