"""
서비스 단위 테스트 - 도구 파라미터가 올바른 Graph 요청으로 변환되는지 확인

테스트 대상:
    - MailService
    - CalendarService
    - TaskService
    - ContactService
    - UtilityService
    - AuthToolService
"""

import pytest
from unittest.mock import AsyncMock

from mcp_outlook.auth_tool_service import AuthToolService
from mcp_outlook.calendar_service import CalendarService
from mcp_outlook.contact_service import ContactService
from mcp_outlook.graph_client import OutlookServiceError
from mcp_outlook.mail_service import MailService
from mcp_outlook.outlook_types import (
    AuthParams,
    CreateCalendarEventParams,
    CreateContactParams,
    CreateTaskParams,
    EmailIdParams,
    EmptyParams,
    ListCalendarEventsParams,
    ListContactsParams,
    ListEmailsParams,
    ListTasksParams,
    MarkEmailReadParams,
    MoveEmailParams,
    ReplyEmailParams,
    SearchAllParams,
    SendEmailParams,
    TaskIdParams,
    UpdateCalendarEventParams,
)
from mcp_outlook.task_service import TaskService
from mcp_outlook.utility_service import UtilityService


class TestMailService:
    """MailService 테스트"""

    @pytest.mark.asyncio
    async def test_list_emails_defaults(self, graph_client):
        graph_client.get.return_value = {"value": [{
            "id": "m1",
            "subject": "Hello",
            "from": {"emailAddress": {"address": "alice@example.com"}},
            "receivedDateTime": "2025-01-09T10:30:00Z",
            "isRead": False,
        }]}

        emails = await MailService(graph_client).list_emails(ListEmailsParams())

        endpoint, query = graph_client.get.call_args.args
        assert endpoint == "/me/mailFolders/inbox/messages"
        assert query["$top"] == 10
        assert query["$orderby"] == "receivedDateTime DESC"
        assert emails[0]["from"] == "alice@example.com"
        assert emails[0]["isRead"] is False

    @pytest.mark.asyncio
    async def test_list_emails_search(self, graph_client):
        await MailService(graph_client).list_emails(ListEmailsParams(search="invoice", limit=5))

        _, query = graph_client.get.call_args.args
        assert query["$search"] == '"invoice"'
        assert "$orderby" not in query

    @pytest.mark.asyncio
    async def test_list_emails_unknown_sender(self, graph_client):
        graph_client.get.return_value = {"value": [{"id": "m1"}]}
        emails = await MailService(graph_client).list_emails(ListEmailsParams())
        assert emails[0]["from"] == "Unknown"

    @pytest.mark.asyncio
    async def test_send_email_message(self, graph_client):
        params = SendEmailParams(
            to=["bob@example.com"], subject="Hi", body="<p>Hello</p>", cc=["carol@example.com"]
        )
        result = await MailService(graph_client).send_email(params)

        endpoint, payload = graph_client.post.call_args.args
        message = payload["message"]
        assert endpoint == "/me/sendMail"
        assert message["body"] == {"contentType": "HTML", "content": "<p>Hello</p>"}
        assert message["importance"] == "normal"
        assert message["toRecipients"] == [{"emailAddress": {"address": "bob@example.com"}}]
        assert message["ccRecipients"] == [{"emailAddress": {"address": "carol@example.com"}}]
        assert "bccRecipients" not in message
        assert result == "Email sent successfully!"

    @pytest.mark.asyncio
    async def test_reply_all(self, graph_client):
        await MailService(graph_client).reply_email(ReplyEmailParams(emailId="m1", body="ok", replyAll=True))
        assert graph_client.post.call_args.args[0] == "/me/messages/m1/replyAll"

    @pytest.mark.asyncio
    async def test_mark_unread(self, graph_client):
        result = await MailService(graph_client).mark_email_read(MarkEmailReadParams(emailId="m1", isRead=False))
        assert graph_client.patch.call_args.args == ("/me/messages/m1", {"isRead": False})
        assert "unread" in result

    @pytest.mark.asyncio
    async def test_move_email_resolves_folder_case_insensitively(self, graph_client):
        graph_client.get.return_value = {"value": [
            {"id": "f-inbox", "displayName": "Inbox"},
            {"id": "f-archive", "displayName": "Archive"},
        ]}
        await MailService(graph_client).move_email(MoveEmailParams(emailId="m1", destinationFolder="archive"))

        assert graph_client.post.call_args.args == ("/me/messages/m1/move", {"destinationId": "f-archive"})

    @pytest.mark.asyncio
    async def test_move_email_unknown_folder(self, graph_client):
        graph_client.get.return_value = {"value": [{"id": "f-inbox", "displayName": "Inbox"}]}
        with pytest.raises(OutlookServiceError, match="not found"):
            await MailService(graph_client).move_email(MoveEmailParams(emailId="m1", destinationFolder="Nowhere"))
        graph_client.post.assert_not_called()

    @pytest.mark.asyncio
    async def test_read_email(self, graph_client):
        graph_client.get.return_value = {
            "subject": "Report",
            "from": {"emailAddress": {"address": "alice@example.com"}},
            "toRecipients": [{"emailAddress": {"address": "bob@example.com"}}],
            "body": {"content": "<p>Body</p>"},
            "attachments": [{"name": "a.pdf", "size": 10, "contentType": "application/pdf"}],
        }
        email = await MailService(graph_client).read_email(EmailIdParams(emailId="m1"))

        assert email["to"] == ["bob@example.com"]
        assert email["body"] == "<p>Body</p>"
        assert email["attachments"][0]["name"] == "a.pdf"


class TestCalendarService:
    """CalendarService 테스트"""

    @pytest.mark.asyncio
    async def test_list_events_default_window(self, graph_client):
        await CalendarService(graph_client).list_events(ListCalendarEventsParams())

        endpoint, query = graph_client.get.call_args.args
        assert endpoint == "/me/calendarView"
        assert query["startDateTime"].endswith("Z")
        assert query["endDateTime"] > query["startDateTime"]
        assert query["$top"] == 20

    @pytest.mark.asyncio
    async def test_create_timed_event(self, graph_client):
        graph_client.post.return_value = {"id": "e1"}
        params = CreateCalendarEventParams(
            subject="Sync", start="2025-03-01T10:00:00", end="2025-03-01T11:00:00",
            timezone="Europe/London", attendees=["bob@example.com"],
        )
        result = await CalendarService(graph_client).create_event(params)

        event = graph_client.post.call_args.args[1]
        assert event["start"] == {"dateTime": "2025-03-01T10:00:00", "timeZone": "Europe/London"}
        assert event["attendees"][0]["type"] == "required"
        assert event["showAs"] == "busy"
        assert "e1" in result

    @pytest.mark.asyncio
    async def test_create_all_day_event(self, graph_client):
        graph_client.post.return_value = {"id": "e2"}
        params = CreateCalendarEventParams(
            subject="Holiday", start="2025-03-01T09:00:00", end="2025-03-02",
            isAllDay=True, timezone="UTC",
        )
        await CalendarService(graph_client).create_event(params)

        event = graph_client.post.call_args.args[1]
        assert event["isAllDay"] is True
        assert event["start"]["dateTime"] == "2025-03-01T00:00:00"
        assert event["end"]["dateTime"] == "2025-03-02T00:00:00"

    @pytest.mark.asyncio
    async def test_update_only_given_fields(self, graph_client):
        await CalendarService(graph_client).update_event(
            UpdateCalendarEventParams(eventId="e1", subject="Renamed")
        )
        assert graph_client.patch.call_args.args == ("/me/events/e1", {"subject": "Renamed"})


class TestTaskService:
    """TaskService 테스트"""

    @pytest.mark.asyncio
    async def test_list_tasks_without_lists(self, graph_client):
        result = await TaskService(graph_client).list_tasks(ListTasksParams())
        assert result == "No task lists found."

    @pytest.mark.asyncio
    async def test_list_tasks_completed_filter(self, graph_client):
        graph_client.get = AsyncMock(side_effect=[
            {"value": [{"id": "list-1"}]},
            {"value": [{"id": "t1", "title": "Write report", "status": "completed"}]},
        ])
        tasks = await TaskService(graph_client).list_tasks(ListTasksParams(completed=True))

        endpoint, query = graph_client.get.call_args.args
        assert endpoint == "/me/todo/lists/list-1/tasks"
        assert query["$filter"] == "status eq 'completed'"
        assert tasks[0]["title"] == "Write report"

    @pytest.mark.asyncio
    async def test_create_task_without_lists(self, graph_client):
        with pytest.raises(OutlookServiceError):
            await TaskService(graph_client).create_task(CreateTaskParams(title="x"))

    @pytest.mark.asyncio
    async def test_complete_task(self, graph_client):
        graph_client.get.return_value = {"value": [{"id": "list-1"}]}
        await TaskService(graph_client).complete_task(TaskIdParams(taskId="t1"))
        assert graph_client.patch.call_args.args == ("/me/todo/lists/list-1/tasks/t1", {"status": "completed"})


class TestContactService:
    """ContactService 테스트"""

    @pytest.mark.asyncio
    async def test_search_escapes_quotes(self, graph_client):
        await ContactService(graph_client).list_contacts(ListContactsParams(search="O'Brien"))

        _, query = graph_client.get.call_args.args
        assert "startswith(displayName,'O''Brien')" in query["$filter"]

    @pytest.mark.asyncio
    async def test_create_contact(self, graph_client):
        graph_client.post.return_value = {"id": "c1"}
        result = await ContactService(graph_client).create_contact(
            CreateContactParams(displayName="Dana", emailAddress="dana@example.com", phoneNumber="555")
        )

        contact = graph_client.post.call_args.args[1]
        assert contact["emailAddresses"] == [{"address": "dana@example.com", "name": "Dana"}]
        assert contact["phoneNumbers"] == [{"type": "mobile", "number": "555"}]
        assert "c1" in result


class TestUtilityService:
    """UtilityService 테스트"""

    @pytest.mark.asyncio
    async def test_search_all(self, graph_client):
        graph_client.get = AsyncMock(side_effect=[
            {"value": [{"id": "m1", "subject": "Budget"}]},
            {"value": [{"id": "e1", "subject": "Budget review", "start": {"dateTime": "2025-03-01T10:00:00"}}]},
            {"value": [{"id": "c1", "displayName": "Budget Team", "emailAddresses": []}]},
        ])
        result = await UtilityService(graph_client).search_all(SearchAllParams(query="Budget"))

        assert [e["id"] for e in result["emails"]] == ["m1"]
        assert result["events"][0]["start"] == "2025-03-01T10:00:00"
        assert result["contacts"][0]["email"] is None

    @pytest.mark.asyncio
    async def test_profile(self, graph_client):
        graph_client.get.return_value = {"id": "u1", "displayName": "Alice", "mail": "alice@example.com"}
        profile = await UtilityService(graph_client).get_user_profile(EmptyParams())
        assert profile["name"] == "Alice"
        assert profile["email"] == "alice@example.com"


class TestAuthToolService:
    """AuthToolService 테스트"""

    @pytest.mark.asyncio
    async def test_without_code_returns_url(self, token_provider):
        text = await AuthToolService(token_provider).authenticate(AuthParams())
        assert "https://login.microsoftonline.com/" in text
        assert token_provider.begin_calls == 1

    @pytest.mark.asyncio
    async def test_with_code_completes(self, token_provider):
        text = await AuthToolService(token_provider).authenticate(AuthParams(authCode=" code-1 ", state="s1"))
        assert token_provider.completed == [("code-1", "s1")]
        assert "successful" in text
