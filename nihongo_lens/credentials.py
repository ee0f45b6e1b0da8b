from dataclasses import dataclass
from typing import Optional

from nihongo_lens.errors import MissingCredential
from nihongo_lens.settings import DEFAULT_API_URL, Settings


@dataclass(frozen=True)
class Credentials:
    api_key: str
    api_url: str


def bearer_token(authorization: Optional[str]) -> str:
    if not authorization:
        return ""
    # Anything after an optional "Bearer" prefix is taken as the key.
    value = authorization.strip()
    if value.lower() == "bearer":
        return ""
    if value[:7].lower() == "bearer ":
        value = value[7:]
    return value.strip()


def resolve_credentials(
    settings: Settings,
    authorization: Optional[str] = None,
    api_url: Optional[str] = None,
) -> Credentials:
    """Pick the key and endpoint for one upstream call.

    A bearer token sent by the caller wins over ``API_KEY``; an explicit
    ``apiUrl`` wins over ``API_URL``, which wins over the built-in default.
    """
    api_key = bearer_token(authorization) or settings.api_key
    if not api_key:
        raise MissingCredential()
    return Credentials(
        api_key=api_key,
        api_url=api_url or settings.api_url or DEFAULT_API_URL,
    )
