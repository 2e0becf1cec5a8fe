import asyncio
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Optional
import logging
from app.core.config import settings

logger = logging.getLogger(__name__)

class EmailService:
    """Service for sending emails via SMTP."""

    def __init__(self):
        self.smtp_server = settings.SMTP_SERVER
        self.smtp_port = settings.SMTP_PORT
        self.smtp_username = settings.SMTP_USERNAME
        self.smtp_password = settings.SMTP_PASSWORD
        self.from_email = settings.SMTP_FROM_EMAIL
        self.from_name = settings.SMTP_FROM_NAME
        self.use_tls = settings.SMTP_USE_TLS

    def _deliver(self, msg: MIMEMultipart):
        with smtplib.SMTP(self.smtp_server, self.smtp_port) as server:
            if self.use_tls:
                server.starttls()
            if self.smtp_username:
                server.login(self.smtp_username, self.smtp_password)
            server.send_message(msg)

    async def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None
    ) -> bool:
        """
        Send an email via SMTP.

        Args:
            to_email: Recipient email address
            subject: Email subject
            html_content: HTML email body
            text_content: Plain text email body (optional)

        Returns:
            True if email sent successfully, False otherwise
        """
        try:
            msg = MIMEMultipart('alternative')
            msg['Subject'] = subject
            msg['From'] = f"{self.from_name} <{self.from_email}>"
            msg['To'] = to_email

            if text_content:
                msg.attach(MIMEText(text_content, 'plain'))
            msg.attach(MIMEText(html_content, 'html'))

            # smtplib blocks, keep it off the event loop
            await asyncio.to_thread(self._deliver, msg)

            logger.info(f"Email sent successfully to {to_email}")
            return True

        except Exception as e:
            logger.error(f"Failed to send email to {to_email}: {str(e)}")
            return False

    async def send_verification_email(self, to_email: str, otp: str) -> bool:
        """Send the signup one-time code."""
        ttl = settings.OTP_TTL_MINUTES

        html_content = f"""
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
            <h2 style="color: #111827;">Verify your email address</h2>
            <p style="color: #6B7280; font-size: 16px;">Your verification code is:</p>
            <div style="background-color: #F3F4F6; padding: 16px; border-radius: 8px; text-align: center; margin: 24px 0;">
                <span style="font-size: 32px; font-weight: bold; color: #111827; letter-spacing: 4px;">{otp}</span>
            </div>
            <p style="color: #6B7280; font-size: 14px;">This code will expire in {ttl} minutes.</p>
            <p style="color: #6B7280; font-size: 14px;">If you didn't request this code, you can safely ignore this email.</p>
        </div>
        """

        text_content = f"""
        Verify your email address

        Your verification code is: {otp}

        This code will expire in {ttl} minutes. If you didn't request this code, you can safely ignore this email.
        """

        return await self.send_email(
            to_email=to_email,
            subject="Verify your email address",
            html_content=html_content,
            text_content=text_content
        )

# Global email service instance
email_service = EmailService()
