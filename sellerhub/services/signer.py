# sellerhub/services/signer.py

from __future__ import annotations

import hashlib
import hmac
import time
from typing import Mapping

from sellerhub.core.errors import SignatureInputError

SIGN_METHOD = "sha256"


def timestamp_ms() -> str:
    return str(int(time.time() * 1000))


def signing_base_string(api_path: str, params: Mapping[str, str]) -> str:
    """
    path + отсортированные пары name+value без разделителей.
    Поле sign в подписываемый набор не входит никогда.
    """
    if "sign" in params:
        raise SignatureInputError("Параметр 'sign' не может входить в подписываемый набор")

    for name, value in params.items():
        if not isinstance(value, str):
            raise SignatureInputError(
                f"Параметр {name!r} должен быть строкой, получено {type(value).__name__}"
            )

    return api_path + "".join(f"{name}{params[name]}" for name in sorted(params))


def sign(api_path: str, params: Mapping[str, str], secret: str) -> str:
    base = signing_base_string(api_path, params)
    digest = hmac.new(secret.encode("utf-8"), base.encode("utf-8"), hashlib.sha256)
    return digest.hexdigest().upper()
