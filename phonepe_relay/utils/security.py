import base64
import hashlib
import hmac

PAY_PATH = "/pg/v1/pay"
STATUS_PATH = "/pg/v1/status"


def sha256_hex(data: str) -> str:
    return hashlib.sha256(data.encode("utf-8")).hexdigest()


def x_verify(message: str, salt_key: str, salt_index: int) -> str:
    """PhonePe checksum: sha256hex(message + salt_key) + "###" + salt_index."""
    return f"{sha256_hex(message + salt_key)}###{salt_index}"


def pay_checksum(payload_b64: str, salt_key: str, salt_index: int) -> str:
    return x_verify(payload_b64 + PAY_PATH, salt_key, salt_index)


def status_checksum(merchant_id: str, transaction_id: str, salt_key: str, salt_index: int) -> str:
    return x_verify(f"{STATUS_PATH}/{merchant_id}/{transaction_id}", salt_key, salt_index)


def verify_callback_checksum(response_b64: str, header_value: str, salt_key: str, salt_index: int) -> bool:
    # Server-to-server callbacks are signed over the bare base64 response
    expected = x_verify(response_b64, salt_key, salt_index)
    return hmac.compare_digest(expected.encode("utf-8"), (header_value or "").encode("utf-8"))


def b64encode_json(raw: str) -> str:
    return base64.b64encode(raw.encode("utf-8")).decode("ascii")
