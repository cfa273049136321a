from dataclasses import dataclass

from pydantic_settings import BaseSettings, SettingsConfigDict


@dataclass(frozen=True)
class BookingRules:
    """Per-user booking limits shared by the reservation engine and the selection policy."""

    max_events_per_day: int = 4
    restricted_start_hour: int = 9
    restricted_end_hour: int = 10
    max_events_during_restriction: int = 1
    restricted_slot_min: int = 1
    restricted_slot_max: int = 2
    transaction_max_attempts: int = 4
    transaction_retry_backoff: float = 0.05


class Settings(BaseSettings):
    # Storage
    DATABASE_URL: str = "sqlite:///./clubpass.db"
    REDIS_URL: str = "redis://localhost:6379/0"

    # Application
    PROJECT_NAME: str = "Club Event Booking"
    LOG_LEVEL: str = "INFO"

    # Catalog
    EVENT_SLOTS: int = 4

    # Booking rules
    MAX_EVENTS_PER_DAY: int = 4
    RESTRICTED_TIME_START: int = 9
    RESTRICTED_TIME_END: int = 10
    MAX_EVENTS_DURING_RESTRICTION: int = 1
    RESTRICTED_SLOT_MIN: int = 1
    RESTRICTED_SLOT_MAX: int = 2

    # Concurrency
    TRANSACTION_MAX_ATTEMPTS: int = 4
    TRANSACTION_RETRY_BACKOFF: float = 0.05
    USER_LOCK_TIMEOUT: int = 10
    USER_LOCK_BLOCKING_TIMEOUT: float = 5.0

    # Proof tokens are unsigned unless a key is configured
    PROOF_SIGNING_KEY: str | None = None

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    def booking_rules(self) -> BookingRules:
        return BookingRules(
            max_events_per_day=self.MAX_EVENTS_PER_DAY,
            restricted_start_hour=self.RESTRICTED_TIME_START,
            restricted_end_hour=self.RESTRICTED_TIME_END,
            max_events_during_restriction=self.MAX_EVENTS_DURING_RESTRICTION,
            restricted_slot_min=self.RESTRICTED_SLOT_MIN,
            restricted_slot_max=self.RESTRICTED_SLOT_MAX,
            transaction_max_attempts=self.TRANSACTION_MAX_ATTEMPTS,
            transaction_retry_backoff=self.TRANSACTION_RETRY_BACKOFF,
        )


settings = Settings()
