"""
Utility Service - 사용자 프로필 조회, 메일/일정/연락처 통합 검색
"""
import asyncio
from typing import Dict, Any

from .graph_client import GraphClient, escape_odata
from .mcp_service_decorators import mcp_service
from .outlook_types import EmptyParams, SearchAllParams

PROFILE_SELECT = "id,displayName,mail,userPrincipalName,officeLocation,jobTitle,department"


def _address(entry) -> str:
    return ((entry or {}).get("emailAddress") or {}).get("address")


class UtilityService:
    """프로필/통합 검색 도구 서비스"""

    def __init__(self, client: GraphClient):
        self.client = client

    @mcp_service(
        tool_name="outlook_get_user_profile",
        description="Get the signed-in user's profile",
        params_model=EmptyParams,
        category="utility",
    )
    async def get_user_profile(self, params: EmptyParams) -> Dict[str, Any]:
        profile = await self.client.get("/me", {"$select": PROFILE_SELECT})
        return {
            "id": profile.get("id"),
            "name": profile.get("displayName"),
            "email": profile.get("mail"),
            "userPrincipalName": profile.get("userPrincipalName"),
            "office": profile.get("officeLocation"),
            "jobTitle": profile.get("jobTitle"),
            "department": profile.get("department"),
        }

    @mcp_service(
        tool_name="outlook_search_all",
        description="Search across emails, calendar events and contacts",
        params_model=SearchAllParams,
        category="utility",
    )
    async def search_all(self, params: SearchAllParams) -> Dict[str, Any]:
        search = '"' + params.query.replace('"', '\\"') + '"'

        emails, events, contacts = await asyncio.gather(
            self.client.get("/me/messages", {
                "$search": search,
                "$top": params.limit,
                "$select": "id,subject,from,receivedDateTime",
            }),
            self.client.get("/me/events", {
                "$search": search,
                "$top": params.limit,
                "$select": "id,subject,start,organizer",
            }),
            self.client.get("/me/contacts", {
                "$filter": f"contains(displayName,'{escape_odata(params.query)}')",
                "$top": params.limit,
                "$select": "id,displayName,emailAddresses",
            }),
        )

        return {
            "emails": [
                {
                    "id": e.get("id"),
                    "subject": e.get("subject"),
                    "from": _address(e.get("from")),
                    "received": e.get("receivedDateTime"),
                }
                for e in emails.get("value", [])
            ],
            "events": [
                {
                    "id": e.get("id"),
                    "subject": e.get("subject"),
                    "start": (e.get("start") or {}).get("dateTime"),
                    "organizer": _address(e.get("organizer")),
                }
                for e in events.get("value", [])
            ],
            "contacts": [
                {
                    "id": c.get("id"),
                    "name": c.get("displayName"),
                    "email": ((c.get("emailAddresses") or [{}])[0] or {}).get("address"),
                }
                for c in contacts.get("value", [])
            ],
        }
