import hashlib
import hmac
import secrets
import uuid

API_KEY_PREFIX = "bcsk_"


def generate_id() -> str:
    return str(uuid.uuid4())


def generate_api_key() -> str:
    return f"{API_KEY_PREFIX}{secrets.token_urlsafe(32)}"


def hash_api_key(api_key: str) -> str:
    return hashlib.sha256(api_key.encode()).hexdigest()


def verify_api_key(api_key: str, expected_hash: str) -> bool:
    return hmac.compare_digest(hash_api_key(api_key), expected_hash)
