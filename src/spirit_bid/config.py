from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Server
    host: str = "127.0.0.1"
    port: int = 8002

    # Auction API
    api_base_url: str = "https://v2.api.noroff.dev/"
    noroff_api_key: str = ""
    request_timeout: int = 30

    # Paging
    page_size: int = 12                # listings per "load more" increment
    category_page_size: int = 100      # upstream maximum per request
    category_max_pages: int = 3        # pages pulled to build a category pool
    search_limit: int = 12

    # Session (stands in for the browser's local storage)
    session_token: str = ""
    session_username: str = ""
    session_avatar_url: str = ""
    session_email: str = ""

    @property
    def session_enabled(self) -> bool:
        return bool(self.session_token and self.session_username)

    # Auth
    api_key: str = ""  # Set to protect the local /api/ surface; empty = no auth

    # Log
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
