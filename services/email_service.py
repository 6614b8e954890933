# services/email_service.py
import html
import logging
import smtplib
import ssl
from email.message import EmailMessage
from typing import Optional, Tuple

from config import Settings
from services.exceptions import DeliveryError

logger = logging.getLogger(__name__)


class EmailSender:
    """SMTP delivery. Port 465 uses implicit TLS, anything else STARTTLS."""

    def __init__(self, settings: Settings):
        self.host = settings.smtp_host
        self.port = settings.smtp_port
        self.user = settings.smtp_user
        self.password = settings.smtp_pass
        self.from_addr = settings.email_from
        self.from_name = settings.email_from_name

    def send(self, to: str, subject: str, body: str, html_body: Optional[str] = None) -> None:
        if not all([self.host, self.port, self.user, self.password, self.from_addr]):
            raise DeliveryError("SMTP configuration missing")

        msg = EmailMessage()
        msg["From"] = f"{self.from_name} <{self.from_addr}>"
        msg["To"] = to
        msg["Subject"] = subject
        msg["Reply-To"] = self.from_addr
        msg.set_content(body)

        if html_body:
            msg.add_alternative(html_body, subtype="html")

        context = ssl.create_default_context()
        try:
            if self.port == 465:
                with smtplib.SMTP_SSL(self.host, self.port, context=context) as server:
                    server.login(self.user, self.password)
                    server.send_message(msg, from_addr=self.from_addr, to_addrs=[to])
            else:
                with smtplib.SMTP(self.host, self.port) as server:
                    server.starttls(context=context)
                    server.login(self.user, self.password)
                    server.send_message(msg, from_addr=self.from_addr, to_addrs=[to])
        except (smtplib.SMTPException, OSError) as e:
            logger.exception(f"Failed to send email to {to}")
            raise DeliveryError("Failed to send email") from e

        logger.info(f"Email '{subject}' sent to {to}")


# ────────────────────────────────────────────────────────────
# Message bodies
# ────────────────────────────────────────────────────────────
def _build_html_email(heading: str, content_html: str) -> str:
    return f"""
<!DOCTYPE html>
<html>
<body style="margin: 0; padding: 24px; background-color: #121212; font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, Helvetica, Arial, sans-serif;">
    <div style="max-width: 480px; margin: 0 auto; padding: 32px; background-color: #1E1E1E; border-radius: 16px; color: #B0B0B0;">
        <h3 style="margin: 0 0 20px 0; color: #FFFFFF;">{heading}</h3>
        {content_html}
        <p style="margin: 24px 0 0 0; font-size: 13px;">If you did not request this, you can safely ignore this email.</p>
    </div>
</body>
</html>
"""


def signup_otp_message(otp: str, ttl_minutes: int) -> Tuple[str, str, str]:
    subject = "Your signup verification code"
    body = (
        f"Hi,\n\n"
        f"Your signup OTP is: {otp}\n"
        f"It expires in {ttl_minutes} minutes.\n\n"
        f"If you didn't request this, you can safely ignore this email."
    )
    content = (
        f'<p>Your signup OTP is:</p>'
        f'<p style="font-size: 32px; font-weight: 700; letter-spacing: 8px; color: #FFFFFF;">{otp}</p>'
        f'<p>It expires in {ttl_minutes} minutes.</p>'
    )
    return subject, body, _build_html_email("Verify your email", content)


def reset_link_message(reset_link: str, ttl_minutes: int) -> Tuple[str, str, str]:
    subject = "Reset Your Password"
    body = (
        f"Hi,\n\n"
        f"Reset your password here: {reset_link}\n"
        f"The link expires in {ttl_minutes} minutes.\n\n"
        f"If you didn't request this, you can safely ignore this email."
    )
    link = html.escape(reset_link, quote=True)
    content = (
        f'<p>Click the link below to reset your password:</p>'
        f'<p><a href="{link}" style="color: #E53935;">{link}</a></p>'
        f'<p>The link expires in {ttl_minutes} minutes.</p>'
    )
    return subject, body, _build_html_email("Password Reset Request", content)
