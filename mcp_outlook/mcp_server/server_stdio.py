"""
STDIO MCP Server for Outlook MCP Server
Handles MCP protocol via standard input/output (newline-delimited JSON-RPC)

도구 정의는 mcp_service 레지스트리와 파라미터 Pydantic 모델에서 생성됩니다.
tools/call 요청은 각각 별도 Task로 실행되어 서로를 막지 않습니다.
"""
import asyncio
import json
import logging
import sys
from typing import Any, Dict, Optional, Set

from pydantic import ValidationError

from auth.auth_errors import AuthenticationRequired, TemporaryAuthFailure
from auth.azure_config import AzureConfig
from auth.token_manager import TokenLifecycleManager
from core.protocols import TokenProviderProtocol
from mcp_outlook.auth_tool_service import AuthToolService
from mcp_outlook.calendar_service import CalendarService
from mcp_outlook.contact_service import ContactService
from mcp_outlook.graph_client import GraphApiError, GraphClient, OutlookServiceError
from mcp_outlook.mail_service import MailService
from mcp_outlook.mcp_service_decorators import build_tool_definitions, get_mcp_service
from mcp_outlook.task_service import TaskService
from mcp_outlook.utility_service import UtilityService

logger = logging.getLogger(__name__)

SERVER_NAME = "outlook"
SERVER_VERSION = "1.0.0"
PROTOCOL_VERSION = "2024-11-05"


def build_service_instances(token_provider: TokenProviderProtocol, client: GraphClient) -> Dict[str, Any]:
    """서비스 클래스 이름 -> 인스턴스 매핑"""
    return {
        "AuthToolService": AuthToolService(token_provider),
        "MailService": MailService(client),
        "CalendarService": CalendarService(client),
        "TaskService": TaskService(client),
        "ContactService": ContactService(client),
        "UtilityService": UtilityService(client),
    }


def build_mcp_content(result: Any, is_error: bool = False) -> Dict[str, Any]:
    """서비스 결과를 MCP content 형식으로 변환"""
    if isinstance(result, str):
        text = result
    else:
        text = json.dumps(result, ensure_ascii=False, indent=2)
    content: Dict[str, Any] = {"content": [{"type": "text", "text": text}]}
    if is_error:
        content["isError"] = True
    return content


def format_validation_error(error: ValidationError) -> str:
    """입력값을 포함하지 않는 검증 오류 메시지"""
    parts = []
    for item in error.errors(include_input=False):
        location = ".".join(str(p) for p in item.get("loc", ())) or "arguments"
        parts.append(f"{location}: {item.get('msg')}")
    return "; ".join(parts)


class StdioMCPServer:
    """MCP STDIO Protocol Server

    Handles MCP protocol communication via standard input/output using JSON-RPC format.
    Messages are delimited by newlines for easy parsing.
    """

    def __init__(
        self,
        token_provider: TokenProviderProtocol,
        graph_client: GraphClient,
        services: Optional[Dict[str, Any]] = None,
    ):
        self.token_provider = token_provider
        self.graph_client = graph_client
        self.services = services or build_service_instances(token_provider, graph_client)
        self.tools = build_tool_definitions()
        self.running = False
        self._tasks: Set[asyncio.Task] = set()
        logger.info(f"Outlook MCP Server STDIO Server initialized ({len(self.tools)} tools)")

    async def read_line(self) -> Optional[str]:
        """stdin에서 한 줄 읽기 (EOF면 None)"""
        line = await asyncio.get_running_loop().run_in_executor(None, sys.stdin.readline)
        return line if line else None

    def write_message(self, message: Dict[str, Any]):
        """Write a JSON-RPC message to stdout"""
        sys.stdout.write(json.dumps(message, ensure_ascii=False) + "\n")
        sys.stdout.flush()

    def send_error(self, request_id: Any, code: int, message: str, data: Any = None):
        """Send JSON-RPC error response"""
        error_response = {
            "jsonrpc": "2.0",
            "id": request_id,
            "error": {
                "code": code,
                "message": message
            }
        }
        if data is not None:
            error_response["error"]["data"] = data
        self.write_message(error_response)

    def send_result(self, request_id: Any, result: Any):
        """Send JSON-RPC success response"""
        self.write_message({
            "jsonrpc": "2.0",
            "id": request_id,
            "result": result
        })

    async def handle_initialize(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """Handle initialize request"""
        client_info = params.get("clientInfo", {})
        logger.info(f"Client connected: {client_info.get('name', 'unknown')}")

        return {
            "protocolVersion": PROTOCOL_VERSION,
            "capabilities": {
                "tools": {}
            },
            "serverInfo": {
                "name": SERVER_NAME,
                "version": SERVER_VERSION
            }
        }

    async def handle_tools_list(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """Handle tools/list request"""
        return {"tools": self.tools}

    def _auth_required_payload(self, error: AuthenticationRequired) -> Dict[str, Any]:
        auth_url = self.token_provider.begin_interactive_authorization()
        return {
            "status": "auth_required",
            "message": str(error),
            "auth_url": auth_url,
            "next_step": "Open auth_url, sign in, then call outlook_auth with the code and state "
                         "from the redirect URL.",
        }

    async def handle_tools_call(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """
        Handle tools/call request

        Raises:
            ValueError: 알 수 없는 도구 (ValidationError 포함 → -32602)
        """
        tool_name = params.get("name")
        arguments = params.get("arguments") or {}

        if not tool_name:
            raise ValueError("Tool name is required")

        entry = get_mcp_service(tool_name)
        service = self.services.get(entry["service_class"]) if entry else None
        if service is None:
            raise ValueError(f"Unknown tool: {tool_name}")

        tool_params = entry["params_model"].model_validate(arguments)
        method = getattr(service, entry["function_name"])

        logger.info(f"Calling tool: {tool_name}")
        try:
            result = await method(tool_params)
        except AuthenticationRequired as e:
            logger.warning(f"Tool {tool_name} requires authentication")
            return build_mcp_content(self._auth_required_payload(e), is_error=True)
        except TemporaryAuthFailure as e:
            logger.warning(f"Tool {tool_name} failed: authentication temporarily unavailable")
            return build_mcp_content(
                {"status": "auth_unavailable", "message": str(e), "retryable": True}, is_error=True
            )
        except GraphApiError as e:
            logger.error(f"Tool {tool_name} failed: {e}")
            return build_mcp_content({"status": "graph_error", **e.to_dict()}, is_error=True)
        except OutlookServiceError as e:
            logger.error(f"Tool {tool_name} failed: {e}")
            return build_mcp_content({"status": "error", "message": str(e)}, is_error=True)

        return build_mcp_content(result)

    async def handle_request(self, request: Dict[str, Any]):
        """Handle a single JSON-RPC request"""
        request_id = request.get("id")
        method = request.get("method")
        params = request.get("params") or {}

        if not method:
            self.send_error(request_id, -32600, "Invalid Request: missing method")
            return

        try:
            # Route to appropriate handler based on method
            if method == "initialize":
                result = await self.handle_initialize(params)
            elif method == "tools/list":
                result = await self.handle_tools_list(params)
            elif method == "tools/call":
                result = await self.handle_tools_call(params)
            elif method == "shutdown":
                logger.info("Shutdown requested")
                self.running = False
                result = {}
            elif method == "ping":
                result = {}
            else:
                self.send_error(request_id, -32601, f"Method not found: {method}")
                return

            self.send_result(request_id, result)

        except ValidationError as e:
            self.send_error(request_id, -32602, f"Invalid params: {format_validation_error(e)}")
        except ValueError as e:
            self.send_error(request_id, -32602, f"Invalid params: {str(e)}")
        except Exception as e:
            logger.error(f"Error handling request {method}: {e}", exc_info=True)
            self.send_error(request_id, -32603, f"Internal error: {type(e).__name__}")

    async def handle_notification(self, notification: Dict[str, Any]):
        """Handle JSON-RPC notifications (no response expected)"""
        method = notification.get("method")
        params = notification.get("params") or {}

        if method == "notifications/initialized":
            logger.info("Client initialization complete")
        elif method == "notifications/cancelled":
            logger.info(f"Request cancelled: {params.get('requestId')}")
        else:
            logger.debug(f"Ignoring notification: {method}")

    def dispatch(self, message: Dict[str, Any]) -> Optional[asyncio.Task]:
        """tools/call은 Task로 실행하고, 나머지는 None 반환"""
        if message.get("method") != "tools/call":
            return None
        task = asyncio.create_task(self.handle_request(message))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def process_line(self, line: str):
        """수신한 한 줄 처리"""
        line = line.strip()
        if not line:
            return

        try:
            message = json.loads(line)
        except json.JSONDecodeError:
            logger.error("Invalid JSON received")
            self.send_error(None, -32700, "Parse error")
            return

        if not isinstance(message, dict):
            self.send_error(None, -32600, "Invalid Request")
            return

        if "id" not in message:
            await self.handle_notification(message)
        elif self.dispatch(message) is None:
            await self.handle_request(message)

    async def run(self):
        """Main server loop"""
        self.running = True
        logger.info("Outlook MCP Server STDIO Server started")
        logger.info("Waiting for messages on stdin...")

        try:
            while self.running:
                line = await self.read_line()
                if line is None:
                    logger.info("Input stream closed, shutting down")
                    break
                await self.process_line(line)
        finally:
            if self._tasks:
                await asyncio.gather(*self._tasks, return_exceptions=True)
            logger.info("Outlook MCP Server STDIO Server stopped")


async def handle_stdio(config: AzureConfig):
    """Handle MCP protocol via stdin/stdout"""
    token_manager = TokenLifecycleManager(config)
    graph_client = GraphClient(token_manager, timeout=config.http_timeout)
    server = StdioMCPServer(token_manager, graph_client)
    try:
        await server.run()
    finally:
        await graph_client.close()
        await token_manager.close()
