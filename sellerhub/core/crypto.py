import base64
import hashlib

from cryptography.fernet import Fernet, InvalidToken

from sellerhub.core.config import settings
from sellerhub.core.errors import AuthorizationError


def _fernet_for(secret: str) -> Fernet:
    # ключ Fernet = urlsafe-base64 от sha256(secret), 32 байта
    return Fernet(base64.urlsafe_b64encode(hashlib.sha256(secret.encode("utf-8")).digest()))


_fernet = _fernet_for(settings.app_secret_key)


def encrypt_str(value: str) -> str:
    return _fernet.encrypt(value.encode("utf-8")).decode("utf-8")


def decrypt_str(value: str) -> str:
    try:
        return _fernet.decrypt(value.encode("utf-8")).decode("utf-8")
    except InvalidToken as e:
        # APP_SECRET_KEY сменился после сохранения токена
        raise AuthorizationError("Не удалось расшифровать сохранённый токен, нужно переподключение") from e


def mask_token(value: str | None, keep: int = 8) -> str:
    if not value:
        return "<empty>"
    return f"{value[:keep]}..."
