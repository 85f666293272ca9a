"""
Calendar Service - Graph 일정 도구
"""
import logging
from typing import Dict, Any, List

from .datetime_utils import all_day_date, default_calendar_window, format_datetime_for_graph, get_system_timezone
from .graph_client import GraphClient, encode_id
from .mcp_service_decorators import mcp_service
from .outlook_types import (
    CreateCalendarEventParams,
    EventIdParams,
    ListCalendarEventsParams,
    UpdateCalendarEventParams,
)

logger = logging.getLogger(__name__)

LIST_SELECT = "id,subject,start,end,location,bodyPreview,organizer,attendees,importance,showAs,isAllDay"
GET_SELECT = "id,subject,start,end,location,body,organizer,attendees,importance,showAs,categories"


def _address(entry) -> str:
    return ((entry or {}).get("emailAddress") or {}).get("address")


class CalendarService:
    """일정 도구 서비스"""

    def __init__(self, client: GraphClient):
        self.client = client

    @mcp_service(
        tool_name="outlook_list_calendar_events",
        description="List calendar events in a time window (default: next 7 days)",
        params_model=ListCalendarEventsParams,
        category="calendar",
        priority=10,
    )
    async def list_events(self, params: ListCalendarEventsParams) -> List[Dict[str, Any]]:
        default_start, default_end = default_calendar_window()
        query = {
            "startDateTime": params.startDateTime or default_start,
            "endDateTime": params.endDateTime or default_end,
            "$top": params.limit,
            "$select": LIST_SELECT,
            "$orderby": "start/dateTime",
        }
        result = await self.client.get("/me/calendarView", query)
        events = []
        for event in result.get("value", []):
            start = event.get("start") or {}
            end = event.get("end") or {}
            events.append({
                "id": event.get("id"),
                "subject": event.get("subject"),
                "start": {"dateTime": start.get("dateTime"), "timeZone": start.get("timeZone")},
                "end": {"dateTime": end.get("dateTime"), "timeZone": end.get("timeZone")},
                "location": (event.get("location") or {}).get("displayName"),
                "preview": event.get("bodyPreview"),
                "organizer": _address(event.get("organizer")),
                "attendees": [_address(a) for a in event.get("attendees") or []],
                "importance": event.get("importance"),
                "showAs": event.get("showAs"),
                "isAllDay": event.get("isAllDay"),
            })
        return events

    @mcp_service(
        tool_name="outlook_create_calendar_event",
        description="Create a calendar event (timed or all-day)",
        params_model=CreateCalendarEventParams,
        category="calendar",
        priority=9,
    )
    async def create_event(self, params: CreateCalendarEventParams) -> str:
        event: Dict[str, Any] = {
            "subject": params.subject,
            "importance": params.importance,
            "showAs": params.showAs,
            "isAllDay": params.isAllDay,
        }

        if params.isAllDay:
            # 종일 일정은 자정 시작/종료
            tz = params.timezone or get_system_timezone()
            event["start"] = {"dateTime": f"{all_day_date(params.start)}T00:00:00", "timeZone": tz}
            event["end"] = {"dateTime": f"{all_day_date(params.end)}T00:00:00", "timeZone": tz}
        else:
            event["start"] = format_datetime_for_graph(params.start, params.timezone)
            event["end"] = format_datetime_for_graph(params.end, params.timezone)

        if params.body:
            event["body"] = {"contentType": "HTML", "content": params.body}
        if params.location:
            event["location"] = {"displayName": params.location}
        if params.attendees:
            event["attendees"] = [
                {"emailAddress": {"address": addr}, "type": "required"} for addr in params.attendees
            ]

        result = await self.client.post("/me/events", event)
        logger.info("Calendar event created")
        return (
            f"Calendar event created successfully! Event ID: {result.get('id')}\n"
            f"Timezone: {event['start']['timeZone']}"
        )

    @mcp_service(
        tool_name="outlook_update_calendar_event",
        description="Update fields of an existing calendar event",
        params_model=UpdateCalendarEventParams,
        category="calendar",
    )
    async def update_event(self, params: UpdateCalendarEventParams) -> str:
        update: Dict[str, Any] = {}
        if params.subject:
            update["subject"] = params.subject
        if params.start:
            update["start"] = format_datetime_for_graph(params.start, params.timezone)
        if params.end:
            update["end"] = format_datetime_for_graph(params.end, params.timezone)
        if params.body:
            update["body"] = {"contentType": "HTML", "content": params.body}
        if params.location:
            update["location"] = {"displayName": params.location}
        if params.importance:
            update["importance"] = params.importance

        await self.client.patch(f"/me/events/{encode_id(params.eventId)}", update)
        return "Calendar event updated successfully!"

    @mcp_service(
        tool_name="outlook_delete_calendar_event",
        description="Delete a calendar event",
        params_model=EventIdParams,
        category="calendar",
    )
    async def delete_event(self, params: EventIdParams) -> str:
        await self.client.delete(f"/me/events/{encode_id(params.eventId)}")
        return "Calendar event deleted successfully!"

    @mcp_service(
        tool_name="outlook_get_calendar_event",
        description="Get the details of a calendar event",
        params_model=EventIdParams,
        category="calendar",
    )
    async def get_event(self, params: EventIdParams) -> Dict[str, Any]:
        event = await self.client.get(f"/me/events/{encode_id(params.eventId)}", {"$select": GET_SELECT})
        return {
            "id": event.get("id"),
            "subject": event.get("subject"),
            "start": (event.get("start") or {}).get("dateTime"),
            "end": (event.get("end") or {}).get("dateTime"),
            "location": (event.get("location") or {}).get("displayName"),
            "body": (event.get("body") or {}).get("content"),
            "organizer": _address(event.get("organizer")),
            "attendees": [
                {"email": _address(a), "response": (a.get("status") or {}).get("response")}
                for a in event.get("attendees") or []
            ],
            "importance": event.get("importance"),
            "showAs": event.get("showAs"),
            "categories": event.get("categories"),
        }
