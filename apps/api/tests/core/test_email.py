"""
Tests for registration decision emails.
"""

from unittest.mock import patch

import pytest

from skoolar.core import email


@pytest.mark.asyncio
async def test_send_email_without_api_key_logs_instead(caplog):
    with patch.object(email.resend, "api_key", None), patch.object(email.resend.Emails, "send") as mock_send:
        with caplog.at_level("INFO", logger="skoolar.core.email"):
            sent = await email.send_email("ama@harbourview.edu", "Hello", "<p>Hi</p>")

    assert sent is True
    mock_send.assert_not_called()
    assert "EMAIL TO: ama@harbourview.edu" in caplog.text


@pytest.mark.asyncio
async def test_send_email_failure_returns_false():
    with (
        patch.object(email.resend, "api_key", "re_test"),
        patch.object(email.resend.Emails, "send", side_effect=RuntimeError("boom")),
    ):
        sent = await email.send_email("ama@harbourview.edu", "Hello", "<p>Hi</p>")

    assert sent is False


@pytest.mark.asyncio
async def test_rejection_email_escapes_reason():
    with patch.object(email, "send_email") as mock_send:
        mock_send.return_value = True
        await email.send_registration_rejected(
            "ama@harbourview.edu", "Ama", "Harbour View", "<script>alert(1)</script>"
        )

    html_content = mock_send.call_args.args[2]
    assert "<script>" not in html_content
    assert "&lt;script&gt;" in html_content
