# app/utils/notifications.py
"""
Async email delivery over SMTP.

SMTP is blocking, so every send runs in a small thread pool. Senders
return False instead of raising; the event dispatcher decides on retries.
"""

import asyncio
import html
import logging
import smtplib
from concurrent.futures import ThreadPoolExecutor
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from typing import Optional

from ..config import settings

logger = logging.getLogger(__name__)

NOTIFICATION_EXECUTOR = ThreadPoolExecutor(max_workers=4, thread_name_prefix="notification_worker")

# ============================================================
# EMAIL FUNCTIONS (ASYNC)
# ============================================================

def _send_email_sync(to_email: str, subject: str, html_content: str) -> bool:
    try:
        if not settings.is_email_enabled:
            logger.warning(f"⚠️ SMTP not configured, skipping email to {to_email}")
            return False

        from_email = settings.SMTP_FROM_EMAIL or settings.SMTP_USER

        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = formataddr(("Jevah", from_email))
        msg["To"] = to_email

        text_content = html_content.replace('<br>', '\n').replace('</p>', '\n')
        msg.attach(MIMEText(text_content, "plain"))
        msg.attach(MIMEText(html_content, "html"))

        with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=10) as server:
            if settings.SMTP_TLS:
                server.starttls()
            server.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
            server.send_message(msg)

        logger.info(f"✅ Email sent to: {to_email}")
        return True

    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"❌ Failed to send email to {to_email}: {str(e)}")
        return False


async def send_email(to_email: str, subject: str, html_content: str) -> bool:
    """Non-blocking email send"""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(
        NOTIFICATION_EXECUTOR,
        _send_email_sync,
        to_email,
        subject,
        html_content,
    )


# ============================================================
# TEMPLATES
# ============================================================

def get_email_template(content: str, preview_text: str = "") -> str:
    return f"""
    <!DOCTYPE html>
    <html lang="en">
    <head>
        <meta charset="UTF-8">
        <meta name="viewport" content="width=device-width, initial-scale=1.0">
        <title>Jevah</title>
    </head>
    <body style="margin:0;padding:0;background-color:#f5f5f5;font-family:'Segoe UI',Roboto,Arial,sans-serif;">
        <div style="display:none;max-height:0;overflow:hidden;">{preview_text}</div>
        <table role="presentation" width="100%" cellspacing="0" cellpadding="0" border="0">
            <tr>
                <td style="padding:32px 16px;">
                    <table role="presentation" width="100%" style="max-width:600px;margin:0 auto;background:#ffffff;border-radius:10px;">
                        <tr>
                            <td style="padding:32px;text-align:center;background:#1f2a44;border-radius:10px 10px 0 0;">
                                <h1 style="margin:0;color:#ffffff;font-size:32px;letter-spacing:2px;">JEVAH</h1>
                            </td>
                        </tr>
                        <tr>
                            <td style="padding:32px;color:#333333;font-size:15px;line-height:1.6;">
                                {content}
                            </td>
                        </tr>
                        <tr>
                            <td style="padding:24px;text-align:center;color:#999999;font-size:12px;">
                                Questions? <a href="mailto:{settings.SUPPORT_EMAIL}">{settings.SUPPORT_EMAIL}</a>
                            </td>
                        </tr>
                    </table>
                </td>
            </tr>
        </table>
    </body>
    </html>
    """


def render_media_report_email(
    media_title: str,
    media_id: int,
    reporter_email: str,
    reason: str,
    description: Optional[str],
    report_count: int,
) -> tuple[str, str]:
    """Subject and HTML for the moderation alert sent to admins"""
    subject = f"[Report] {media_title} ({reason})"
    flagged = ""
    if report_count >= settings.REPORT_REVIEW_THRESHOLD:
        flagged = "<p><strong>This media is now under review.</strong></p>"
    content = f"""
        <h2 style="margin-top:0;">Media reported</h2>
        <p><strong>Title:</strong> {html.escape(media_title)} (#{media_id})</p>
        <p><strong>Reason:</strong> {html.escape(reason)}</p>
        <p><strong>Reporter:</strong> {html.escape(reporter_email)}</p>
        <p><strong>Details:</strong> {html.escape(description or "none")}</p>
        <p><strong>Total reports:</strong> {report_count}</p>
        {flagged}
    """
    return subject, get_email_template(content, preview_text=f"{media_title} was reported")


def cleanup_notification_service():
    """Shut down the SMTP worker pool"""
    NOTIFICATION_EXECUTOR.shutdown(wait=False)
    logger.info("✅ Notification executor shut down")
