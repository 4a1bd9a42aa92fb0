import secrets
import time


def _stamp() -> str:
    # ms timestamp plus 32 random bits; the timestamp alone collides under load
    return f"{int(time.time() * 1000)}{secrets.token_hex(4).upper()}"


def new_transaction_id(prefix: str = "MT") -> str:
    return prefix + _stamp()


def new_user_id(prefix: str = "MUID") -> str:
    return prefix + _stamp()
