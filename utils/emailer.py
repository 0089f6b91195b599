import smtplib
from email.message import EmailMessage

from flask import current_app


def send_email(to_email: str, subject: str, body: str) -> bool:
    """
    Best-effort SMTP delivery. Returns False instead of raising so a mail
    outage never leaks through an endpoint that must answer generically.
    """
    cfg = current_app.config
    host = cfg.get("SMTP_HOST")
    username = cfg.get("SMTP_USERNAME")
    from_email = cfg.get("SMTP_FROM_EMAIL") or username

    if not host or not from_email:
        current_app.logger.info("Email to %s skipped: SMTP not configured", to_email)
        return False

    msg = EmailMessage()
    msg["From"] = from_email
    msg["To"] = to_email
    msg["Subject"] = subject
    msg.set_content(body)

    try:
        with smtplib.SMTP(host, cfg.get("SMTP_PORT", 587), timeout=10) as server:
            if cfg.get("SMTP_USE_TLS", True):
                server.starttls()
            if username and cfg.get("SMTP_PASSWORD"):
                server.login(username, cfg["SMTP_PASSWORD"])
            server.send_message(msg)
    except (smtplib.SMTPException, OSError) as exc:
        current_app.logger.warning("Email to %s failed: %s", to_email, exc)
        return False
    return True


def reset_link(raw_token: str) -> str:
    base_url = current_app.config.get("RESET_PASSWORD_URL")
    if not base_url:
        return raw_token
    sep = "&" if "?" in base_url else "?"
    return f"{base_url}{sep}token={raw_token}"


def send_password_reset(name: str, to_email: str, raw_token: str, ttl_seconds: int) -> bool:
    body = (
        f"Hi {name},\n\n"
        "We received a request to reset your SportSpot password. "
        f"Use the link below within {ttl_seconds // 60} minutes:\n\n"
        f"{reset_link(raw_token)}\n\n"
        "If you did not ask for this, ignore this email. Your password stays the same."
    )
    return send_email(to_email, "SportSpot password reset", body)
