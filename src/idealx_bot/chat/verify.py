import hmac
from fastapi import Request, HTTPException
from nacl.exceptions import BadSignatureError
from nacl.signing import VerifyKey
from ..config import get_settings

settings = get_settings()

async def verify_discord_signature(request: Request):
    """
    Verifies the X-Signature-Ed25519 header of an interaction request.
    Raises HTTPException if missing or invalid.
    """
    # 1. Grab headers
    signature = request.headers.get("X-Signature-Ed25519")
    timestamp = request.headers.get("X-Signature-Timestamp")

    if not signature or not timestamp:
        raise HTTPException(status_code=400, detail="Missing Discord signature headers")

    # 2. Verify timestamp + body against the application public key
    body = await request.body()
    try:
        verify_key = VerifyKey(bytes.fromhex(settings.DISCORD_PUBLIC_KEY))
        verify_key.verify(timestamp.encode("utf-8") + body, bytes.fromhex(signature))
    except (BadSignatureError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid request signature")

def verify_gateway_token(token: str):
    """
    Gateway events forwarded by our own listener carry the bot token.
    Raises HTTPException if it does not match.
    """
    if not hmac.compare_digest(token.encode("utf-8"), settings.DISCORD_BOT_TOKEN.encode("utf-8")):
        raise HTTPException(status_code=401, detail="Invalid gateway token")
