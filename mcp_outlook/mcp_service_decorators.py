"""
MCP Service Decorator
서비스 메서드를 MCP 도구로 등록하는 데코레이터와 레지스트리
"""
from functools import wraps
from typing import Any, Callable, Dict, List, Optional, Type

from pydantic import BaseModel

from .outlook_types import EmptyParams

# tool_name -> 메타데이터
MCP_SERVICE_REGISTRY: Dict[str, Dict[str, Any]] = {}


def mcp_service(
    tool_name: str,
    description: str = "",
    params_model: Optional[Type[BaseModel]] = None,
    category: str = "",
    tags: list = None,
    priority: int = 0
) -> Callable:
    """
    서비스 메서드를 MCP 도구로 등록

    데코레이트된 메서드는 `async def method(self, params: params_model)` 형태여야 하며,
    서버는 인자를 params_model로 검증한 뒤 서비스 인스턴스의 메서드를 호출합니다.

    Args:
        tool_name: MCP 도구 이름 (outlook_ 접두사)
        description: 도구 설명
        params_model: 파라미터 Pydantic 모델 (None이면 EmptyParams)
        category: 서비스 카테고리
        tags: 태그 목록
        priority: 정렬 우선순위
    """
    def decorator(func: Callable) -> Callable:
        metadata = {
            "service_name": tool_name,
            "description": description,
            "params_model": params_model or EmptyParams,
            "category": category,
            "tags": tags or [],
            "priority": priority,
        }
        MCP_SERVICE_REGISTRY[tool_name] = {
            **metadata,
            "function": func,
            "module": func.__module__,
            "function_name": func.__name__,
            "service_class": func.__qualname__.split(".")[0],
        }

        @wraps(func)
        def wrapper(*args, **kwargs):
            return func(*args, **kwargs)

        wrapper._mcp_service = True
        wrapper._mcp_service_metadata = metadata
        return wrapper

    return decorator


def get_mcp_services() -> Dict[str, Any]:
    """등록된 모든 MCP 서비스"""
    return MCP_SERVICE_REGISTRY


def get_mcp_service(service_name: str) -> Optional[Dict[str, Any]]:
    """이름으로 MCP 서비스 조회"""
    return MCP_SERVICE_REGISTRY.get(service_name)


def build_tool_definitions() -> List[Dict[str, Any]]:
    """레지스트리로부터 MCP tools/list 정의 생성 (카테고리, 우선순위 순)"""
    entries = sorted(
        MCP_SERVICE_REGISTRY.items(),
        key=lambda item: (item[1]["category"], -item[1]["priority"], item[0]),
    )
    tools = []
    for name, entry in entries:
        schema = entry["params_model"].model_json_schema()
        schema.pop("title", None)
        tools.append({
            "name": name,
            "description": entry["description"],
            "inputSchema": schema,
        })
    return tools
