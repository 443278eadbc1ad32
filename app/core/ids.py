import uuid

def gen_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex}"


def short_token(length: int = 6) -> str:
    return uuid.uuid4().hex[:length]
