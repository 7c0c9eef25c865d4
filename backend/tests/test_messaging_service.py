"""
Tests for the EKDSend messaging client
"""

import httpx
import pytest

from caresphere.core.errors import ConfigurationError, EmailSendError

from conftest import RecordingTransport, accepting_send_transport, make_email_service


class TestSendEmail:

    @pytest.mark.asyncio
    async def test_successful_send(self):
        transport = accepting_send_transport()
        service = make_email_service(transport)

        result = await service.send_email("member@example.com", "Hello", "Body text")

        assert result.success is True
        assert result.message_id == "msg-1"
        assert result.queued_at == "2025-03-01T07:00:00Z"
        request = transport.requests[0]
        assert str(request.url) == "https://ekd.test/api/v1/send"
        assert request.headers["Authorization"] == "Bearer ekd-test-key"

    @pytest.mark.asyncio
    async def test_payload_fields(self):
        transport = accepting_send_transport()
        service = make_email_service(transport)

        await service.send_email(
            ["a@example.com", "b@example.com"],
            "Subject",
            "Body",
            from_email="church@example.com",
            from_name="Grace Chapel",
            cc=["c@example.com"],
            reply_to="pastor@example.com",
        )

        body = transport.json_bodies()[0]
        assert body == {
            "type": "email",
            "to": ["a@example.com", "b@example.com"],
            "subject": "Subject",
            "body": "Body",
            "from": "church@example.com",
            "fromName": "Grace Chapel",
            "cc": ["c@example.com"],
            "replyTo": "pastor@example.com",
        }

    @pytest.mark.asyncio
    async def test_template_replaces_subject_and_body(self):
        transport = accepting_send_transport()
        service = make_email_service(transport)

        await service.send_email("a@example.com", "ignored", "ignored",
                                 template="birthday", template_data={"name": "Ada"})

        body = transport.json_bodies()[0]
        assert body["template"] == "birthday"
        assert body["templateData"] == {"name": "Ada"}
        assert "subject" not in body
        assert "body" not in body

    @pytest.mark.asyncio
    async def test_too_many_recipients_is_rejected_locally(self):
        transport = accepting_send_transport()
        service = make_email_service(transport)
        recipients = [f"user{i}@example.com" for i in range(40)]

        with pytest.raises(EmailSendError) as exc_info:
            await service.send_email(recipients, "S", "B", bcc=[f"bcc{i}@example.com" for i in range(11)])

        assert exc_info.value.code == "VALIDATION_ERROR"
        assert transport.call_count == 0

    @pytest.mark.asyncio
    async def test_long_subject_is_rejected_locally(self):
        transport = accepting_send_transport()
        service = make_email_service(transport)

        with pytest.raises(EmailSendError) as exc_info:
            await service.send_email("a@example.com", "x" * 999, "B")

        assert exc_info.value.code == "VALIDATION_ERROR"
        assert transport.call_count == 0

    @pytest.mark.asyncio
    async def test_missing_api_key(self):
        service = make_email_service(accepting_send_transport(), api_key="")

        with pytest.raises(ConfigurationError):
            await service.send_email("a@example.com", "S", "B")

    @pytest.mark.asyncio
    async def test_api_error_carries_code_and_message(self):
        transport = RecordingTransport(lambda request: httpx.Response(
            400, json={"success": False, "error": {"code": "INVALID_RECIPIENT", "message": "Bad address"}}
        ))
        service = make_email_service(transport)

        with pytest.raises(EmailSendError) as exc_info:
            await service.send_email("not-an-address", "S", "B")

        assert exc_info.value.code == "INVALID_RECIPIENT"
        assert exc_info.value.message == "Bad address"

    @pytest.mark.asyncio
    async def test_unsuccessful_body_without_error_details(self):
        transport = RecordingTransport(lambda request: httpx.Response(200, json={"success": False}))
        service = make_email_service(transport)

        with pytest.raises(EmailSendError) as exc_info:
            await service.send_email("a@example.com", "S", "B")

        assert exc_info.value.code == "UNKNOWN"
        assert exc_info.value.message == "Unknown API error"

    @pytest.mark.asyncio
    async def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        service = make_email_service(RecordingTransport(handler))

        with pytest.raises(EmailSendError) as exc_info:
            await service.send_email("a@example.com", "S", "B")

        assert exc_info.value.code == "TIMEOUT"

    @pytest.mark.asyncio
    async def test_connection_failure(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        service = make_email_service(RecordingTransport(handler))

        with pytest.raises(EmailSendError) as exc_info:
            await service.send_email("a@example.com", "S", "B")

        assert exc_info.value.code == "REQUEST_ERROR"


class TestOtherChannels:

    @pytest.mark.asyncio
    async def test_sms_payload(self):
        transport = accepting_send_transport()
        service = make_email_service(transport)

        result = await service.send_sms("+15551234567", "Happy birthday!")

        assert result.success is True
        assert transport.json_bodies()[0] == {"type": "sms", "to": "+15551234567", "body": "Happy birthday!"}

    @pytest.mark.asyncio
    async def test_voice_payload(self):
        transport = accepting_send_transport()
        service = make_email_service(transport)

        await service.send_voice("+15551234567", "Happy birthday!")

        assert transport.json_bodies()[0]["type"] == "voice"
