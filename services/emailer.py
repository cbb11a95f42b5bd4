import logging
import smtplib
from email.message import EmailMessage
from typing import Optional

import config

log = logging.getLogger("uvicorn.error")


def send_email(to_email: str, subject: str, html: Optional[str] = None, text: Optional[str] = None) -> None:
    """
    Envía un correo (html y/o texto).

    En desarrollo imprime el correo en consola. Con EMAIL_DEV_PRINT=0 lo
    manda por SMTP y lanza RuntimeError si falta la config.
    """
    if config.EMAIL_DEV_PRINT:
        print("\n===== EMAIL (DEV PRINT) =====")
        print("TO:", to_email)
        print("SUBJECT:", subject)
        print("BODY:\n", html or text)
        print("===========================\n")
        return

    # --- SMTP real ---
    if not all([config.SMTP_HOST, config.SMTP_USER, config.SMTP_PASSWORD, config.EMAIL_FROM]):
        raise RuntimeError("SMTP vars missing: set SMTP_HOST, SMTP_PORT, SMTP_USER, SMTP_PASSWORD, EMAIL_FROM")

    msg = EmailMessage()
    msg["From"] = config.EMAIL_FROM
    msg["To"] = to_email
    msg["Subject"] = subject
    msg.set_content(text or subject)
    if html:
        msg.add_alternative(html, subtype="html")

    with smtplib.SMTP(config.SMTP_HOST, config.SMTP_PORT) as s:
        s.starttls()
        s.login(config.SMTP_USER, config.SMTP_PASSWORD)
        s.send_message(msg)
    log.info(f"[email] enviado a {to_email}: {subject}")
