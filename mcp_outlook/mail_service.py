"""
Mail Service - Graph 메일 도구
목록/읽기/발송/답장/전달/삭제/읽음 표시/이동/폴더 목록
"""
import logging
from typing import Dict, Any, List, Optional

from .graph_client import GraphClient, OutlookServiceError, encode_id
from .mcp_service_decorators import mcp_service
from .outlook_types import (
    EmailIdParams,
    EmptyParams,
    ForwardEmailParams,
    ListEmailsParams,
    MarkEmailReadParams,
    MoveEmailParams,
    ReplyEmailParams,
    SendEmailParams,
)

logger = logging.getLogger(__name__)

LIST_SELECT = "id,subject,from,receivedDateTime,bodyPreview,isRead,importance,hasAttachments"
READ_SELECT = "subject,from,toRecipients,ccRecipients,bccRecipients,receivedDateTime,body,importance,categories"


def _address(entry: Optional[Dict[str, Any]]) -> Optional[str]:
    return ((entry or {}).get("emailAddress") or {}).get("address")


def _addresses(entries: Optional[List[Dict[str, Any]]]) -> List[str]:
    return [addr for addr in (_address(e) for e in entries or []) if addr]


def _recipients(addresses: List[str]) -> List[Dict[str, Any]]:
    return [{"emailAddress": {"address": addr}} for addr in addresses]


def _html(content: str) -> Dict[str, str]:
    return {"contentType": "HTML", "content": content}


class MailService:
    """메일 도구 서비스"""

    def __init__(self, client: GraphClient):
        self.client = client

    @mcp_service(
        tool_name="outlook_list_emails",
        description="List emails in a mail folder, newest first",
        params_model=ListEmailsParams,
        category="mail",
        priority=10,
    )
    async def list_emails(self, params: ListEmailsParams) -> List[Dict[str, Any]]:
        query: Dict[str, Any] = {"$top": params.limit, "$select": LIST_SELECT}
        if params.search:
            # $search와 $orderby는 함께 쓸 수 없음
            query["$search"] = f'"{params.search}"'
        else:
            query["$orderby"] = "receivedDateTime DESC"

        result = await self.client.get(f"/me/mailFolders/{encode_id(params.folder)}/messages", query)
        return [
            {
                "id": email.get("id"),
                "subject": email.get("subject"),
                "from": _address(email.get("from")) or "Unknown",
                "received": email.get("receivedDateTime"),
                "preview": email.get("bodyPreview"),
                "isRead": email.get("isRead"),
                "importance": email.get("importance"),
                "hasAttachments": email.get("hasAttachments"),
            }
            for email in result.get("value", [])
        ]

    @mcp_service(
        tool_name="outlook_read_email",
        description="Read the full content of an email, including attachment metadata",
        params_model=EmailIdParams,
        category="mail",
        priority=9,
    )
    async def read_email(self, params: EmailIdParams) -> Dict[str, Any]:
        email = await self.client.get(
            f"/me/messages/{encode_id(params.emailId)}",
            {"$select": READ_SELECT, "$expand": "attachments($select=name,size,contentType)"},
        )
        return {
            "subject": email.get("subject"),
            "from": _address(email.get("from")),
            "to": _addresses(email.get("toRecipients")),
            "cc": _addresses(email.get("ccRecipients")),
            "bcc": _addresses(email.get("bccRecipients")),
            "received": email.get("receivedDateTime"),
            "body": (email.get("body") or {}).get("content"),
            "importance": email.get("importance"),
            "categories": email.get("categories"),
            "attachments": [
                {"name": att.get("name"), "size": att.get("size"), "contentType": att.get("contentType")}
                for att in email.get("attachments") or []
            ],
        }

    @mcp_service(
        tool_name="outlook_send_email",
        description="Send an email (HTML body) to one or more recipients",
        params_model=SendEmailParams,
        category="mail",
        priority=8,
    )
    async def send_email(self, params: SendEmailParams) -> str:
        message: Dict[str, Any] = {
            "subject": params.subject,
            "body": _html(params.body),
            "importance": params.importance,
            "toRecipients": _recipients(params.to),
        }
        if params.cc:
            message["ccRecipients"] = _recipients(params.cc)
        if params.bcc:
            message["bccRecipients"] = _recipients(params.bcc)

        await self.client.post("/me/sendMail", {"message": message})
        logger.info(f"Email sent to {len(params.to)} recipient(s)")
        return "Email sent successfully!"

    @mcp_service(
        tool_name="outlook_reply_email",
        description="Reply (or reply all) to an email",
        params_model=ReplyEmailParams,
        category="mail",
    )
    async def reply_email(self, params: ReplyEmailParams) -> str:
        action = "replyAll" if params.replyAll else "reply"
        await self.client.post(
            f"/me/messages/{encode_id(params.emailId)}/{action}",
            {"message": {"body": _html(params.body)}},
        )
        return f"Email {'reply all' if params.replyAll else 'reply'} sent successfully!"

    @mcp_service(
        tool_name="outlook_forward_email",
        description="Forward an email to other recipients",
        params_model=ForwardEmailParams,
        category="mail",
    )
    async def forward_email(self, params: ForwardEmailParams) -> str:
        message: Dict[str, Any] = {"toRecipients": _recipients(params.to)}
        if params.body:
            message["body"] = _html(params.body)
        await self.client.post(f"/me/messages/{encode_id(params.emailId)}/forward", {"message": message})
        return "Email forwarded successfully!"

    @mcp_service(
        tool_name="outlook_delete_email",
        description="Delete an email",
        params_model=EmailIdParams,
        category="mail",
    )
    async def delete_email(self, params: EmailIdParams) -> str:
        await self.client.delete(f"/me/messages/{encode_id(params.emailId)}")
        return "Email deleted successfully!"

    @mcp_service(
        tool_name="outlook_mark_email_read",
        description="Mark an email as read or unread",
        params_model=MarkEmailReadParams,
        category="mail",
    )
    async def mark_email_read(self, params: MarkEmailReadParams) -> str:
        await self.client.patch(f"/me/messages/{encode_id(params.emailId)}", {"isRead": params.isRead})
        return f"Email marked as {'read' if params.isRead else 'unread'} successfully!"

    @mcp_service(
        tool_name="outlook_move_email",
        description="Move an email to another folder, by folder display name",
        params_model=MoveEmailParams,
        category="mail",
    )
    async def move_email(self, params: MoveEmailParams) -> str:
        folders = await self.client.get("/me/mailFolders", {"$top": 100})
        wanted = params.destinationFolder.lower()
        target = next(
            (f for f in folders.get("value", []) if (f.get("displayName") or "").lower() == wanted),
            None,
        )
        if target is None:
            raise OutlookServiceError(f'Folder "{params.destinationFolder}" not found')

        await self.client.post(
            f"/me/messages/{encode_id(params.emailId)}/move", {"destinationId": target["id"]}
        )
        return f"Email moved to {params.destinationFolder} successfully!"

    @mcp_service(
        tool_name="outlook_list_folders",
        description="List mail folders with item counts",
        params_model=EmptyParams,
        category="mail",
    )
    async def list_folders(self, params: EmptyParams) -> List[Dict[str, Any]]:
        folders = await self.client.get(
            "/me/mailFolders", {"$select": "id,displayName,totalItemCount,unreadItemCount", "$top": 100}
        )
        return [
            {
                "id": folder.get("id"),
                "name": folder.get("displayName"),
                "totalItems": folder.get("totalItemCount"),
                "unreadItems": folder.get("unreadItemCount"),
            }
            for folder in folders.get("value", [])
        ]
