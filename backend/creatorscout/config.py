from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    app_name: str = "Creator Scout"
    database_url: str = "sqlite+aiosqlite:///./data/creatorscout.db"
    log_level: str = "INFO"
    cors_origins: list[str] = ["http://localhost:3000"]

    data_dir: str = "data"
    avatars_dir: str = "data/avatars"
    yt_avatars_dir: str = "data/yt_avatars"
    ideal_profiles_csv: str = "data/ideal_creator_profiles.csv"

    apify_token: str = ""
    apify_base_url: str = "https://api.apify.com"
    apify_run_timeout: int = 300
    apify_poll_interval: float = 5.0

    instagram_hashtags: list[str] = ["higgsfield"]
    instagram_hashtag_limit: int = 200
    instagram_profile_batch_size: int = 50

    youtube_results_per_query: int = 20
    youtube_min_subscribers: int = 10_000
    youtube_max_subscribers: int = 500_000
    youtube_max_channels: int = 300
    youtube_channel_batch_size: int = 15

    # Worker pool sizes
    scrape_concurrency: int = 3
    download_concurrency: int = 10

    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"
    openai_temperature: float = 0.3

    analysis_batch_size: int = 10
    oracle_max_retries: int = 2
    oracle_retry_delay: float = 2.0

    class Config:
        env_file = ".env"
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
