from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # OpenRouter
    openrouter_api_key: str = ""
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    research_model: str = "perplexity/sonar-pro"
    research_max_tokens: int = 2000
    research_temperature: float = 0.3  # low for factual output
    llm_timeout_seconds: float = 60.0

    # Pipeline
    research_max_concurrency: int = 1  # 1 = sequential
    research_max_items: int = 10

    # Supabase (service key is the write credential)
    supabase_url: str = ""
    supabase_service_key: str = ""

    # App
    app_log_level: str = "INFO"
    noisy_log_level: str = "WARNING"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @property
    def has_write_credentials(self) -> bool:
        return bool(self.supabase_url.strip() and self.supabase_service_key.strip())


settings = Settings()
