"""
Task Service - Microsoft To Do 작업 도구
모든 작업은 사용자의 첫 번째 작업 목록을 대상으로 합니다.
"""
import logging
from typing import Dict, Any, List, Optional, Union

from .graph_client import GraphClient, OutlookServiceError, encode_id
from .mcp_service_decorators import mcp_service
from .outlook_types import CreateTaskParams, ListTasksParams, TaskIdParams, UpdateTaskParams

logger = logging.getLogger(__name__)

TASK_SELECT = "id,title,body,dueDateTime,importance,status,completedDateTime,createdDateTime"
NO_TASK_LISTS = "No task lists found. Please create a task list in Outlook first."


class TaskService:
    """작업 도구 서비스"""

    def __init__(self, client: GraphClient):
        self.client = client

    async def _first_list_id(self) -> Optional[str]:
        lists = await self.client.get("/me/todo/lists")
        values = lists.get("value", [])
        return values[0].get("id") if values else None

    async def _require_list_id(self) -> str:
        list_id = await self._first_list_id()
        if not list_id:
            raise OutlookServiceError(NO_TASK_LISTS)
        return list_id

    def _task_path(self, list_id: str, task_id: Optional[str] = None) -> str:
        path = f"/me/todo/lists/{encode_id(list_id)}/tasks"
        return f"{path}/{encode_id(task_id)}" if task_id else path

    @mcp_service(
        tool_name="outlook_list_tasks",
        description="List tasks in the first Microsoft To Do list",
        params_model=ListTasksParams,
        category="tasks",
        priority=10,
    )
    async def list_tasks(self, params: ListTasksParams) -> Union[str, List[Dict[str, Any]]]:
        list_id = await self._first_list_id()
        if not list_id:
            return "No task lists found."

        query: Dict[str, Any] = {"$top": params.limit, "$select": TASK_SELECT}
        if params.completed is not None:
            query["$filter"] = "status eq 'completed'" if params.completed else "status ne 'completed'"

        result = await self.client.get(self._task_path(list_id), query)
        return [
            {
                "id": task.get("id"),
                "title": task.get("title"),
                "body": (task.get("body") or {}).get("content"),
                "dueDateTime": (task.get("dueDateTime") or {}).get("dateTime"),
                "importance": task.get("importance"),
                "status": task.get("status"),
                "completedDateTime": (task.get("completedDateTime") or {}).get("dateTime"),
                "createdDateTime": task.get("createdDateTime"),
            }
            for task in result.get("value", [])
        ]

    @mcp_service(
        tool_name="outlook_create_task",
        description="Create a task in the first Microsoft To Do list",
        params_model=CreateTaskParams,
        category="tasks",
    )
    async def create_task(self, params: CreateTaskParams) -> str:
        list_id = await self._require_list_id()

        task: Dict[str, Any] = {"title": params.title, "importance": params.importance}
        if params.body:
            task["body"] = {"content": params.body, "contentType": "text"}
        if params.dueDateTime:
            task["dueDateTime"] = {"dateTime": params.dueDateTime, "timeZone": "UTC"}

        result = await self.client.post(self._task_path(list_id), task)
        return f"Task created successfully! Task ID: {result.get('id')}"

    @mcp_service(
        tool_name="outlook_update_task",
        description="Update fields of an existing task",
        params_model=UpdateTaskParams,
        category="tasks",
    )
    async def update_task(self, params: UpdateTaskParams) -> str:
        list_id = await self._require_list_id()

        update: Dict[str, Any] = {}
        if params.title:
            update["title"] = params.title
        if params.body:
            update["body"] = {"content": params.body, "contentType": "text"}
        if params.dueDateTime:
            update["dueDateTime"] = {"dateTime": params.dueDateTime, "timeZone": "UTC"}
        if params.importance:
            update["importance"] = params.importance
        if params.status:
            update["status"] = params.status

        await self.client.patch(self._task_path(list_id, params.taskId), update)
        return "Task updated successfully!"

    @mcp_service(
        tool_name="outlook_delete_task",
        description="Delete a task",
        params_model=TaskIdParams,
        category="tasks",
    )
    async def delete_task(self, params: TaskIdParams) -> str:
        list_id = await self._require_list_id()
        await self.client.delete(self._task_path(list_id, params.taskId))
        return "Task deleted successfully!"

    @mcp_service(
        tool_name="outlook_complete_task",
        description="Mark a task as completed",
        params_model=TaskIdParams,
        category="tasks",
    )
    async def complete_task(self, params: TaskIdParams) -> str:
        list_id = await self._require_list_id()
        await self.client.patch(self._task_path(list_id, params.taskId), {"status": "completed"})
        return "Task marked as completed successfully!"
