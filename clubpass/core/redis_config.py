from clubpass.core.config import settings


def get_redis_url():
    return settings.REDIS_URL


def user_lock_key(user_id: str) -> str:
    return f"booking_lock:user:{user_id}"
