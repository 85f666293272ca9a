"""
Contact Service - Graph 연락처 도구
"""
from typing import Dict, Any, List

from .graph_client import GraphClient, encode_id, escape_odata
from .mcp_service_decorators import mcp_service
from .outlook_types import ContactIdParams, CreateContactParams, ListContactsParams

CONTACT_SELECT = "id,displayName,emailAddresses,phoneNumbers,companyName,jobTitle"


class ContactService:
    """연락처 도구 서비스"""

    def __init__(self, client: GraphClient):
        self.client = client

    @mcp_service(
        tool_name="outlook_list_contacts",
        description="List contacts, optionally filtered by name prefix",
        params_model=ListContactsParams,
        category="contacts",
        priority=10,
    )
    async def list_contacts(self, params: ListContactsParams) -> List[Dict[str, Any]]:
        query: Dict[str, Any] = {"$top": params.limit, "$select": CONTACT_SELECT}
        if params.search:
            term = escape_odata(params.search)
            query["$filter"] = (
                f"startswith(displayName,'{term}') or startswith(givenName,'{term}') "
                f"or startswith(surname,'{term}')"
            )

        result = await self.client.get("/me/contacts", query)
        return [
            {
                "id": contact.get("id"),
                "name": contact.get("displayName"),
                "emails": [e.get("address") for e in contact.get("emailAddresses") or []],
                "phones": [
                    {"type": p.get("type"), "number": p.get("number")}
                    for p in contact.get("phoneNumbers") or []
                ],
                "company": contact.get("companyName"),
                "jobTitle": contact.get("jobTitle"),
            }
            for contact in result.get("value", [])
        ]

    @mcp_service(
        tool_name="outlook_create_contact",
        description="Create a contact",
        params_model=CreateContactParams,
        category="contacts",
    )
    async def create_contact(self, params: CreateContactParams) -> str:
        contact: Dict[str, Any] = {"displayName": params.displayName}
        if params.emailAddress:
            contact["emailAddresses"] = [{"address": params.emailAddress, "name": params.displayName}]
        if params.phoneNumber:
            contact["phoneNumbers"] = [{"type": "mobile", "number": params.phoneNumber}]
        if params.companyName:
            contact["companyName"] = params.companyName
        if params.jobTitle:
            contact["jobTitle"] = params.jobTitle

        result = await self.client.post("/me/contacts", contact)
        return f"Contact created successfully! Contact ID: {result.get('id')}"

    @mcp_service(
        tool_name="outlook_delete_contact",
        description="Delete a contact",
        params_model=ContactIdParams,
        category="contacts",
    )
    async def delete_contact(self, params: ContactIdParams) -> str:
        await self.client.delete(f"/me/contacts/{encode_id(params.contactId)}")
        return "Contact deleted successfully!"
