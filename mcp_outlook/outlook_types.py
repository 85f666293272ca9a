"""
Outlook MCP 도구 파라미터 타입 정의
Pydantic 모델을 사용하여 런타임 유효성 검증과 inputSchema 생성을 함께 처리
"""
from typing import Optional, List, Literal
from pydantic import BaseModel, Field, ConfigDict

Importance = Literal["low", "normal", "high"]
ShowAs = Literal["free", "tentative", "busy", "oof", "workingElsewhere"]
TaskStatus = Literal["notStarted", "inProgress", "completed", "waitingOnOthers", "deferred"]


class ToolParams(BaseModel):
    """모든 도구 파라미터의 기본 클래스"""

    model_config = ConfigDict(extra='ignore')  # 추가 필드 무시


class EmptyParams(ToolParams):
    """파라미터 없는 도구"""


# ============================================================
# 인증
# ============================================================

class AuthParams(ToolParams):
    authCode: Optional[str] = Field(
        None,
        description="Authorization code from the OAuth redirect (leave empty to get the auth URL)"
    )
    state: Optional[str] = Field(
        None,
        description="state value from the OAuth redirect URL"
    )


# ============================================================
# 메일
# ============================================================

class ListEmailsParams(ToolParams):
    folder: str = Field("inbox", description="Folder to list emails from (default: inbox)")
    limit: int = Field(10, ge=1, le=1000, description="Maximum number of emails to return")
    search: Optional[str] = Field(None, description="Search query to filter emails")


class EmailIdParams(ToolParams):
    emailId: str = Field(..., description="The ID of the email")


class SendEmailParams(ToolParams):
    to: List[str] = Field(..., min_length=1, description="Array of recipient email addresses")
    subject: str = Field(..., description="Email subject")
    body: str = Field(..., description="Email body (HTML supported)")
    cc: Optional[List[str]] = Field(None, description="Array of CC email addresses")
    bcc: Optional[List[str]] = Field(None, description="Array of BCC email addresses")
    importance: Importance = Field("normal", description="Email importance level")


class ReplyEmailParams(ToolParams):
    emailId: str = Field(..., description="The ID of the email to reply to")
    body: str = Field(..., description="Reply body (HTML supported)")
    replyAll: bool = Field(False, description="Whether to reply to all recipients")


class ForwardEmailParams(ToolParams):
    emailId: str = Field(..., description="The ID of the email to forward")
    to: List[str] = Field(..., min_length=1, description="Array of recipient email addresses")
    body: Optional[str] = Field(None, description="Additional message body (HTML supported)")


class MarkEmailReadParams(ToolParams):
    emailId: str = Field(..., description="The ID of the email to mark as read/unread")
    isRead: bool = Field(..., description="Whether to mark as read (true) or unread (false)")


class MoveEmailParams(ToolParams):
    emailId: str = Field(..., description="The ID of the email to move")
    destinationFolder: str = Field(
        ...,
        description='Name of the destination folder (e.g., "junk", "archive", "drafts")'
    )


# ============================================================
# 일정
# ============================================================

class ListCalendarEventsParams(ToolParams):
    startDateTime: Optional[str] = Field(None, description="Start date/time in ISO format (default: now)")
    endDateTime: Optional[str] = Field(
        None, description="End date/time in ISO format (default: 7 days from now)"
    )
    limit: int = Field(20, ge=1, le=1000, description="Maximum number of events to return")


class CreateCalendarEventParams(ToolParams):
    subject: str = Field(..., description="Event subject/title")
    start: str = Field(
        ...,
        description="Start date/time in ISO format (YYYY-MM-DDTHH:mm:ss or YYYY-MM-DD for all-day)"
    )
    end: str = Field(
        ...,
        description="End date/time in ISO format (YYYY-MM-DDTHH:mm:ss or YYYY-MM-DD for all-day)"
    )
    body: Optional[str] = Field(None, description="Event description/body")
    location: Optional[str] = Field(None, description="Event location")
    attendees: Optional[List[str]] = Field(None, description="Array of attendee email addresses")
    importance: Importance = Field("normal", description="Event importance")
    showAs: ShowAs = Field("busy", description="Show as status")
    isAllDay: bool = Field(False, description="Whether this is an all-day event")
    timezone: Optional[str] = Field(
        None,
        description='Timezone (e.g., "Europe/London", "America/New_York"). Defaults to system timezone'
    )


class UpdateCalendarEventParams(ToolParams):
    eventId: str = Field(..., description="The ID of the event to update")
    subject: Optional[str] = Field(None, description="Updated event subject/title")
    start: Optional[str] = Field(None, description="Updated start date/time in ISO format")
    end: Optional[str] = Field(None, description="Updated end date/time in ISO format")
    body: Optional[str] = Field(None, description="Updated event description/body")
    location: Optional[str] = Field(None, description="Updated event location")
    importance: Optional[Importance] = Field(None, description="Updated event importance")
    timezone: Optional[str] = Field(None, description="Timezone for the event times")


class EventIdParams(ToolParams):
    eventId: str = Field(..., description="The ID of the event")


# ============================================================
# 작업 (Microsoft To Do)
# ============================================================

class ListTasksParams(ToolParams):
    completed: Optional[bool] = Field(None, description="Filter by completion status")
    limit: int = Field(20, ge=1, le=1000, description="Maximum number of tasks to return")


class CreateTaskParams(ToolParams):
    title: str = Field(..., description="Task title")
    body: Optional[str] = Field(None, description="Task description")
    dueDateTime: Optional[str] = Field(None, description="Due date/time in ISO format")
    importance: Importance = Field("normal", description="Task importance level")


class UpdateTaskParams(ToolParams):
    taskId: str = Field(..., description="The ID of the task to update")
    title: Optional[str] = Field(None, description="Updated task title")
    body: Optional[str] = Field(None, description="Updated task description")
    dueDateTime: Optional[str] = Field(None, description="Updated due date/time in ISO format")
    importance: Optional[Importance] = Field(None, description="Updated task importance")
    status: Optional[TaskStatus] = Field(None, description="Updated task status")


class TaskIdParams(ToolParams):
    taskId: str = Field(..., description="The ID of the task")


# ============================================================
# 연락처
# ============================================================

class ListContactsParams(ToolParams):
    limit: int = Field(50, ge=1, le=1000, description="Maximum number of contacts to return")
    search: Optional[str] = Field(None, description="Search query to filter contacts")


class CreateContactParams(ToolParams):
    displayName: str = Field(..., description="Contact display name")
    emailAddress: Optional[str] = Field(None, description="Primary email address")
    phoneNumber: Optional[str] = Field(None, description="Primary phone number")
    companyName: Optional[str] = Field(None, description="Company name")
    jobTitle: Optional[str] = Field(None, description="Job title")


class ContactIdParams(ToolParams):
    contactId: str = Field(..., description="The ID of the contact")


# ============================================================
# 유틸리티
# ============================================================

class SearchAllParams(ToolParams):
    query: str = Field(..., min_length=1, description="Search query to find across emails, events, and contacts")
    limit: int = Field(10, ge=1, le=100, description="Maximum number of results per category")
