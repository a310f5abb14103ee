"""
Email Service using Resend

Sends registration decision notifications to the school contact.
Without RESEND_API_KEY the email is logged instead of sent.
"""

import asyncio
import logging
from html import escape

import resend

from skoolar.core.config import settings

logger = logging.getLogger(__name__)

resend.api_key = settings.resend_api_key


async def send_email(to_email: str, subject: str, html_content: str) -> bool:
    """
    Send an email using Resend.

    Returns:
        True if the email was sent (or logged in place of sending)
    """
    if not resend.api_key:
        logger.warning("RESEND_API_KEY not set - logging email instead of sending")
        logger.info(f"EMAIL TO: {to_email} | SUBJECT: {subject}")
        return True

    try:
        params: resend.Emails.SendParams = {
            "from": settings.email_from,
            "to": [to_email],
            "subject": subject,
            "html": html_content,
        }
        # Resend's client is synchronous
        email = await asyncio.to_thread(resend.Emails.send, params)
        logger.info(f"Email sent successfully to {to_email}, id: {email['id']}")
        return True
    except Exception as e:
        logger.error(f"Failed to send email to {to_email}: {e}")
        return False


def _wrap(body: str) -> str:
    return f"""
    <!DOCTYPE html>
    <html>
    <body style="font-family: system-ui, -apple-system, sans-serif; line-height: 1.6; color: #1f2937;">
        <div style="max-width: 600px; margin: 0 auto; padding: 40px 20px;">
            {body}
            <p style="color: #6b7280; font-size: 13px;">Skoolar</p>
        </div>
    </body>
    </html>
    """


async def send_registration_approved(
    to_email: str,
    contact_name: str,
    school_name: str,
    subdomain: str,
) -> bool:
    """Tell the contact their school registration was approved."""
    safe_name = escape(contact_name)
    safe_school = escape(school_name)
    portal_url = f"{settings.frontend_url}/login?portal={escape(subdomain)}"

    html_content = _wrap(
        f"""
        <h1>Welcome to Skoolar</h1>
        <p>Hello {safe_name},</p>
        <p>The registration for <strong>{safe_school}</strong> has been approved.</p>
        <p>Your portal: <a href="{portal_url}">{portal_url}</a></p>
        """
    )
    return await send_email(to_email, f"{school_name} has been approved", html_content)


async def send_registration_rejected(
    to_email: str,
    contact_name: str,
    school_name: str,
    reason: str,
) -> bool:
    """Tell the contact their school registration was rejected, with the reason."""
    safe_name = escape(contact_name)
    safe_school = escape(school_name)
    safe_reason = escape(reason)

    html_content = _wrap(
        f"""
        <h1>Registration update</h1>
        <p>Hello {safe_name},</p>
        <p>We were unable to approve the registration for <strong>{safe_school}</strong>.</p>
        <p><strong>Reason:</strong> {safe_reason}</p>
        """
    )
    return await send_email(to_email, f"Update on the {school_name} registration", html_content)
