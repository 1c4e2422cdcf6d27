import secrets
import string
from datetime import datetime
from typing import Awaitable, Callable, Optional

def generate_reference_code(prefix: str, now: Optional[datetime] = None, length: int = 6) -> str:
    """Generates a human-readable reference such as ``TRX-20241108-A1B2C3``."""
    now = now or datetime.utcnow()
    alphabet = string.ascii_uppercase + string.digits
    suffix = ''.join(secrets.choice(alphabet) for _ in range(length))
    return f"{prefix}-{now:%Y%m%d}-{suffix}"

async def generate_unique_code(prefix: str, exists: Callable[[str], Awaitable[bool]], max_attempts: int = 10) -> str:
    """Draws reference codes until ``exists`` reports a free one."""
    for _ in range(max_attempts):
        code = generate_reference_code(prefix)
        if not await exists(code):
            return code
    raise RuntimeError(f"Could not generate a unique {prefix} code after {max_attempts} attempts")
