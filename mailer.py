import logging
import smtplib
from email.message import EmailMessage

from config import Config

logger = logging.getLogger(__name__)


def password_reset_url(user_id, token: str) -> str:
    return f"{Config.CLIENT_URL}/reset-password/{user_id}/{token}"


def email_verification_url(user_id, token: str) -> str:
    return f"{Config.CLIENT_URL}/verify-email/{user_id}/{token}"


def _render(title: str, body: str, footer: str, link: str = None, button: str = None) -> str:
    action = f'<p><a href="{link}">{button}</a></p>' if link else ""
    return (
        f"<h1>{title}</h1>"
        f"<p>{body}</p>"
        f"{action}"
        f"<p><small>{footer}</small></p>"
    )


def _message(to: str, subject: str, html: str) -> EmailMessage:
    msg = EmailMessage()
    msg["From"] = Config.EMAIL_FROM
    msg["To"] = to
    msg["Subject"] = subject
    msg.set_content("Please view this email in an HTML capable client.")
    msg.add_alternative(html, subtype="html")
    return msg


def email_verification_message(user: dict, url: str) -> EmailMessage:
    return _message(
        user["email"],
        f"Verify your email! {user['name']}",
        _render(
            "Email Verification Link",
            f"Hey {user['name']}! Verify your email by clicking the button below.",
            "If you haven't created an account, please ignore!",
            link=url,
            button="Verify",
        ),
    )


def password_reset_message(user: dict, url: str) -> EmailMessage:
    return _message(
        user["email"],
        "Sell Easy - Password Reset Link",
        _render(
            "Password Reset Link",
            f"Hey {user['name']}! Reset your password by clicking on the button below.",
            "The link will expire in 15 mins! If you haven't requested a password reset, please ignore!",
            link=url,
            button="Reset Password",
        ),
    )


def password_reset_confirmation_message(user: dict) -> EmailMessage:
    return _message(
        user["email"],
        "Sell Easy - Password Reset Successful",
        _render(
            "Password Reset Successful",
            f"Hey {user['name']}! You have successfully completed resetting your password.",
            "If you haven't changed your password, please reset it by clicking forgot password!",
        ),
    )


def email_verified_message(user: dict) -> EmailMessage:
    return _message(
        user["email"],
        "Sell Easy - Email Verification Successful",
        _render(
            "Email Verification Successful",
            f"Hey {user['name']}! Your email address has been successfully verified. "
            "Thank you for signing up for Sell Easy.",
            "If you are not expecting this email, please ignore!",
        ),
    )


def send_email(msg: EmailMessage) -> bool:
    if not Config.SMTP_SERVER or not Config.SMTP_USER or not Config.SMTP_PASSWORD:
        logger.warning("SMTP is not configured; dropping email to %s", msg["To"])
        return False
    try:
        with smtplib.SMTP(Config.SMTP_SERVER, Config.SMTP_PORT) as server:
            server.starttls()
            server.login(Config.SMTP_USER, Config.SMTP_PASSWORD)
            server.send_message(msg)
    except (smtplib.SMTPException, OSError) as e:
        logger.error("Error sending email to %s: %s", msg["To"], e)
        return False
    logger.info("Email sent to %s: %s", msg["To"], msg["Subject"])
    return True
