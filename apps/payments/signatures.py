import hashlib
import hmac


def compute_signature(order_id, payment_id, secret):
    """HMAC-SHA256 hex digest the gateway signs a checkout with: ``order_id|payment_id``."""
    message = f"{order_id}|{payment_id}".encode('utf-8')
    return hmac.new(secret.encode('utf-8'), message, hashlib.sha256).hexdigest()


def compute_webhook_signature(body, secret):
    if isinstance(body, str):
        body = body.encode('utf-8')
    return hmac.new(secret.encode('utf-8'), body, hashlib.sha256).hexdigest()


def signatures_match(expected, provided):
    if not expected or not provided:
        return False
    return hmac.compare_digest(str(expected), str(provided))


def verify_checkout_signature(order_id, payment_id, signature, secret):
    return signatures_match(compute_signature(order_id, payment_id, secret), signature)


def verify_webhook_signature(body, signature, secret):
    return signatures_match(compute_webhook_signature(body, secret), signature)
