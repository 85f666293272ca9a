"""
MCP Outlook Module
Microsoft Graph API를 사용한 메일/일정/작업/연락처 도구
"""

from .graph_client import GraphClient, GraphApiError, OutlookServiceError
from .auth_tool_service import AuthToolService
from .mail_service import MailService
from .calendar_service import CalendarService
from .task_service import TaskService
from .contact_service import ContactService
from .utility_service import UtilityService
from .mcp_service_decorators import mcp_service, get_mcp_services, build_tool_definitions

__all__ = [
    # Client
    "GraphClient",
    "GraphApiError",
    "OutlookServiceError",
    # Services
    "AuthToolService",
    "MailService",
    "CalendarService",
    "TaskService",
    "ContactService",
    "UtilityService",
    # Registry
    "mcp_service",
    "get_mcp_services",
    "build_tool_definitions",
]
