from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=None, extra="ignore")

    ENV: str = "prod"
    LOG_LEVEL: str = "INFO"

    DATABASE_URL: str

    JWT_SECRET: str
    JWT_ACCESS_MINUTES: int = 60

    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 5
    DB_POOL_TIMEOUT_SECONDS: int = 30
    DB_POOL_RECYCLE_SECONDS: int = 1800

    API_WORKERS: int = 2
    ALLOWED_HOSTS: str = "localhost,127.0.0.1"
    SECURITY_HEADERS_ENABLED: bool = True

    # Voting window / closing
    VOTING_WINDOW_HOURS: int = 24
    VOTING_AUTO_CLOSE_WHEN_COMPLETE: bool = True
    VOTE_COMMENT_MAX_LENGTH: int = 500
    RECENT_RESULTS_HOURS: int = 24

    # Neutral rating used when a player has no votes or no league history
    BASELINE_RATING: float = 5.0

    # Duel of the fixture
    DUEL_MAX_RATING_GAP: float = 3.0
    DUEL_REPEAT_WINDOW: int = 1  # completed fixtures whose pair cannot repeat; 0 disables
    DUEL_CANDIDATE_POOL: int = 6

settings = Settings()
