"""
Email Service
Welcome emails for newly created college admins
"""

import logging
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
import aiosmtplib
from membership.config import Settings

logger = logging.getLogger(__name__)


class EmailService:
    """Service for sending emails"""

    def __init__(self, settings: Settings):
        self.settings = settings

    def build_welcome_message(
        self,
        admin_email: str,
        admin_name: str,
        username: str,
        college_name: str,
        temp_password: str,
    ) -> MIMEMultipart:
        settings = self.settings
        message = MIMEMultipart("alternative")
        message["Subject"] = f"Welcome to {settings.APP_NAME} - {college_name}"
        message["From"] = settings.EMAIL_FROM
        message["To"] = admin_email

        html_body = f"""
        <html>
          <body style="font-family: Arial, sans-serif; color: #333;">
            <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
              <h2 style="color: #2c3e50;">Welcome to {settings.APP_NAME}!</h2>
              <p>Hi {admin_name},</p>
              <p>You are now the college admin for <strong>{college_name}</strong>.</p>
              <div style="background-color: #f8f9fa; padding: 15px; border-left: 4px solid #007bff; margin: 20px 0;">
                <p><strong>Your Login Credentials:</strong></p>
                <p>Username: <code>{username}</code></p>
                <p>Password: <code>{temp_password}</code></p>
              </div>
              <p style="color: #e74c3c;"><strong>IMPORTANT:</strong> Please change this password after your first login.</p>
              <p><a href="{settings.APP_URL}/admin/login">Login to the admin panel</a></p>
            </div>
          </body>
        </html>
        """

        text_body = f"""
Welcome to {settings.APP_NAME}!

Hi {admin_name},

You are now the college admin for {college_name}.

Username: {username}
Password: {temp_password}

IMPORTANT: Please change this password after your first login.

Login here: {settings.APP_URL}/admin/login
        """

        message.attach(MIMEText(text_body, "plain"))
        message.attach(MIMEText(html_body, "html"))
        return message

    async def send_welcome_email(
        self,
        admin_email: str,
        admin_name: str,
        username: str,
        college_name: str,
        temp_password: str,
    ) -> bool:
        """
        Send welcome email to a new college admin

        Returns:
            True if the email was sent (or logged in development), False otherwise
        """
        settings = self.settings
        message = self.build_welcome_message(admin_email, admin_name, username, college_name, temp_password)

        if not (settings.SMTP_HOST and settings.SMTP_USER and settings.SMTP_PASSWORD):
            # Development mode - no SMTP configured
            logger.info("EMAIL (development mode) to %s: %s", admin_email, message["Subject"])
            return True

        try:
            async with aiosmtplib.SMTP(hostname=settings.SMTP_HOST, port=settings.SMTP_PORT) as smtp:
                await smtp.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
                await smtp.sendmail(settings.EMAIL_FROM, admin_email, message.as_string())
            logger.info("Welcome email sent to %s", admin_email)
            return True
        except (aiosmtplib.SMTPException, OSError) as e:
            logger.warning("Email send to %s failed: %s", admin_email, e)
            return False
