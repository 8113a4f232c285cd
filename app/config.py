"""Application configuration"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings"""

    # Database
    database_url: str = "sqlite:///./worklogbridge.db"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    # Absolute URL under which this service is reachable from the browser.
    # Used to build the OAuth callback handed to Jira.
    public_base_url: str = "http://localhost:8000"

    # Work log sync
    # Time zone used for the "started" timestamp of remote work logs.
    worklog_timezone: str = "UTC"
    # Max entries per (user, ticket system) in a batch resync.
    resync_entry_limit: int = 50
    # Entries resynced right after a successful OAuth handshake.
    oauth_callback_resync_limit: int = 1

    # Logging
    log_level: str = "INFO"

    # Auth (optional)
    # When enabled, all routes except /health require HTTP Basic auth with the
    # shared password. The Basic username selects the acting time tracker user.
    auth_enabled: bool = False
    auth_password: str | None = None

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
