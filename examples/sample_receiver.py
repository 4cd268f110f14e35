"""
Sample webhook receiver that verifies relay signatures.

Run with:
    WEBHOOK_SECRET=<secret from manage_subscriptions.py create> \
        uvicorn examples.sample_receiver:app --port 9000

Then register http://localhost:9000/webhook as a subscription URL.
"""

import hashlib
import hmac
import os

from fastapi import FastAPI, Header, HTTPException, Request

app = FastAPI(title="Sample Webhook Receiver")


def verify_signature(body: bytes, signature: str | None, secret: str) -> bool:
    """
    Check X-Relay-Signature against the raw request body.

    The relay signs exactly the bytes it sends, so no re-serialization
    is needed on this side.
    """
    if not signature:
        return False
    expected = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected.encode("ascii"), signature.encode("utf-8"))


@app.post("/webhook")
async def receive_webhook(
    request: Request,
    x_relay_signature: str | None = Header(default=None),
    x_relay_event_type: str | None = Header(default=None),
    x_relay_event_id: str | None = Header(default=None),
    x_relay_attempt: str | None = Header(default=None),
) -> dict:
    body = await request.body()
    secret = os.environ.get("WEBHOOK_SECRET", "")

    if not verify_signature(body, x_relay_signature, secret):
        # A 4xx is final for the relay; it will not retry
        raise HTTPException(status_code=401, detail="Invalid signature")

    print(
        f"Received {x_relay_event_type} event {x_relay_event_id}"
        f" (attempt {x_relay_attempt}): {body.decode('utf-8')}"
    )
    return {"received": True}
