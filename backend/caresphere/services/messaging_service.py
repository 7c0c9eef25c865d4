"""
EKDSend messaging service

Sends email, SMS and voice messages through the EKDSend REST API.
Every request carries a bearer token and an explicit timeout.
"""

import logging
from typing import Any, Dict, List, Optional, Union

import httpx
from pydantic import BaseModel, Field

from caresphere.core.config import settings
from caresphere.core.errors import ConfigurationError, EmailSendError

logger = logging.getLogger(__name__)

MAX_RECIPIENTS = 50
MAX_SUBJECT_LENGTH = 998


class SendResult(BaseModel):
    success: bool = Field(...)
    message_id: Optional[str] = Field(default=None)
    queued_at: Optional[str] = Field(default=None)


class EkdSendService:
    """Client for the EKDSend send endpoint"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = settings.EKDSEND_API_KEY if api_key is None else api_key
        self.api_url = (api_url or settings.EKDSEND_API_URL).rstrip("/")
        self.timeout = timeout or settings.EKDSEND_TIMEOUT_SECONDS
        self.transport = transport

    def _ensure_api_key(self) -> None:
        if not self.api_key:
            raise ConfigurationError("EKDSEND_API_KEY is not configured")

    async def send_email(
        self,
        to: Union[str, List[str]],
        subject: str,
        body: str,
        from_email: Optional[str] = None,
        from_name: Optional[str] = None,
        cc: Optional[List[str]] = None,
        bcc: Optional[List[str]] = None,
        reply_to: Optional[str] = None,
        template: Optional[str] = None,
        template_data: Optional[Dict[str, Any]] = None,
    ) -> SendResult:
        """Send an email (at most 50 recipients across to, cc and bcc)"""
        self._ensure_api_key()

        to_list = to if isinstance(to, list) else [to]
        cc_list = cc or []
        bcc_list = bcc or []

        if len(to_list) + len(cc_list) + len(bcc_list) > MAX_RECIPIENTS:
            raise EmailSendError(f"Total recipients exceed maximum of {MAX_RECIPIENTS}", "VALIDATION_ERROR")
        if len(subject) > MAX_SUBJECT_LENGTH:
            raise EmailSendError(f"Subject exceeds {MAX_SUBJECT_LENGTH} characters", "VALIDATION_ERROR")

        payload: Dict[str, Any] = {"type": "email", "to": to}
        if template:
            payload["template"] = template
            if template_data:
                payload["templateData"] = template_data
        else:
            payload["subject"] = subject
            payload["body"] = body

        if from_email:
            payload["from"] = from_email
        if from_name:
            payload["fromName"] = from_name
        if cc_list:
            payload["cc"] = cc_list
        if bcc_list:
            payload["bcc"] = bcc_list
        if reply_to:
            payload["replyTo"] = reply_to

        return await self._post(payload)

    async def send_sms(self, to: Union[str, List[str]], body: str) -> SendResult:
        self._ensure_api_key()
        return await self._post({"type": "sms", "to": to, "body": body})

    async def send_voice(self, to: str, body: str) -> SendResult:
        self._ensure_api_key()
        return await self._post({"type": "voice", "to": to, "body": body})

    async def _post(self, payload: Dict[str, Any]) -> SendResult:
        try:
            async with httpx.AsyncClient(transport=self.transport, timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.api_url}/send",
                    json=payload,
                    headers={
                        "Authorization": f"Bearer {self.api_key}",
                        "Content-Type": "application/json",
                    },
                )
            result = response.json()
        except httpx.TimeoutException:
            logger.error(f"EKDSend {payload['type']} request timed out after {self.timeout}s")
            raise EmailSendError("Request timed out", "TIMEOUT")
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"EKDSend {payload['type']} request failed: {str(e)}")
            raise EmailSendError(str(e), "REQUEST_ERROR")

        if not isinstance(result, dict):
            result = {}
        if response.status_code in (200, 201, 202) and result.get("success"):
            logger.info(f"EKDSend accepted {payload['type']} message {result.get('messageId')}")
            return SendResult(
                success=True,
                message_id=result.get("messageId"),
                queued_at=result.get("queuedAt"),
            )

        error = result.get("error") or {}
        raise EmailSendError(error.get("message") or "Unknown API error", error.get("code") or "UNKNOWN")
