"""
Marcenaria API - Error Notification
Envia email quando um erro interno (500) acontece
"""
import logging
import smtplib
import threading
from email.mime.text import MIMEText
from datetime import datetime, timezone
from typing import Optional

from app.core.config import settings

logger = logging.getLogger(__name__)

# Cache para evitar spam de emails (mesmo erro em sequencia)
_error_cache = {}
_CACHE_TTL_SECONDS = 300


def _get_error_key(error_type: str, error_msg: str) -> str:
    return f"{error_type}:{error_msg[:100]}"


def _should_send_notification(error_key: str) -> bool:
    """Verifica se deve enviar notificacao (evita spam)"""
    now = datetime.now(timezone.utc)

    last_sent = _error_cache.get(error_key)
    if last_sent and (now - last_sent).total_seconds() < _CACHE_TTL_SECONDS:
        return False

    _error_cache[error_key] = now
    return True


def send_error_notification(
    error_type: str,
    error_message: str,
    error_details: Optional[str] = None,
    salon_id: Optional[str] = None,
    endpoint: Optional[str] = None
):
    """
    Envia email de notificacao de erro.

    Args:
        error_type: Tipo do erro (ex: "API_ERROR", "DB_ERROR")
        error_message: Mensagem resumida do erro
        error_details: Stack trace
        salon_id: Tenant afetado (se conhecido)
        endpoint: Endpoint que gerou o erro
    """
    if not settings.ERROR_NOTIFICATION_ENABLED or not settings.ERROR_NOTIFICATION_EMAIL:
        return

    if not settings.SMTP_USER or not settings.SMTP_PASSWORD:
        logger.warning("SMTP nao configurado - notificacao de erro nao enviada")
        return

    error_key = _get_error_key(error_type, error_message)
    if not _should_send_notification(error_key):
        logger.debug(f"Notificacao de erro suprimida (spam protection): {error_key}")
        return

    timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")
    lines = [
        f"Tipo: {error_type}",
        f"Mensagem: {error_message}",
        f"Data/Hora: {timestamp}",
    ]
    if salon_id:
        lines.append(f"Salao: {salon_id}")
    if endpoint:
        lines.append(f"Endpoint: {endpoint}")
    if error_details:
        lines.extend(["", error_details[:4000]])

    msg = MIMEText("\n".join(lines), "plain", "utf-8")
    msg['Subject'] = f"[{settings.APP_NAME} ERRO] {error_type}: {error_message[:50]}"
    msg['From'] = f"{settings.SMTP_FROM_NAME} <{settings.SMTP_FROM_EMAIL}>"
    msg['To'] = settings.ERROR_NOTIFICATION_EMAIL

    try:
        with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT) as server:
            if settings.SMTP_TLS:
                server.starttls()
            server.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
            server.send_message(msg)
        logger.info(f"Notificacao de erro enviada: {error_type}")
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"Falha ao enviar notificacao de erro: {e}")


def notify_error_async(error_type: str, error_message: str, error_details: Optional[str] = None, **kwargs):
    """Dispara a notificacao em thread separada para nao bloquear a resposta"""
    if not settings.ERROR_NOTIFICATION_ENABLED:
        return

    thread = threading.Thread(
        target=send_error_notification,
        kwargs=dict(
            error_type=error_type,
            error_message=error_message,
            error_details=error_details,
            **kwargs
        ),
        daemon=True
    )
    thread.start()
