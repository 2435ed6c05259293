from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./hazard_safety.db"
    DATABASE_ECHO: bool = False  # Set to True when debugging queries

    # Document store
    DOCUMENT_STORE_BACKEND: str = "memory"  # memory, sql
    LOCATION_COLLECTION: str = "userLocation"
    SAFETY_SUBPATH: str = "situation/SafeOrNot"
    HEATMAP_DOCUMENT: str = "heatmaps/active"
    SOS_COLLECTION: str = "sosAlerts"

    # Proximity classification
    DANGER_THRESHOLD: float = 0.00007  # degree-equivalent, about 7.8 meters at km / 111
    EARTH_RADIUS_KM: float = 6371.0
    KM_PER_DEGREE: float = 111.0

    # Heatmap intensity
    INTENSITY_JITTER: float = 0.1
    INTENSITY_CLAMP_FLOOR: bool = False

    # Publishing
    PUBLISH_TIMEOUT_SECONDS: float = 10.0  # 0 disables the timeout

    # SOS webhook (for emergency alerts)
    SOS_WEBHOOK_URL: str = ""
    SOS_WEBHOOK_TIMEOUT_SECONDS: int = 30

    # Logging
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"

settings = Settings()
