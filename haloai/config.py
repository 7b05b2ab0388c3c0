from pydantic import field_validator
from pydantic_settings import BaseSettings

from haloai.models.schemas import Mode, Strategy

MODE_ALIASES = {
    "": Mode.CLOUD,
    "cloud": Mode.CLOUD,
    "default": Mode.CLOUD,
    "local": Mode.LOCAL,
    "web": Mode.WEB_ONLY,
    "web-only": Mode.WEB_ONLY,
    "web_only": Mode.WEB_ONLY,
}

STRATEGY_ALIASES = {
    "": Strategy.FASTEST,
    "fastest": Strategy.FASTEST,
    "cheapest": Strategy.CHEAPEST,
    "sequential-cheapest": Strategy.CHEAPEST,
    "accurate": Strategy.ACCURATE,
    "sequential-accurate": Strategy.ACCURATE,
}


def parse_mode(value: str | Mode | None) -> Mode:
    if isinstance(value, Mode):
        return value
    key = (value or "").lower().strip()
    if key not in MODE_ALIASES:
        raise ValueError(f"Unsupported AI_MODE: {value}")
    return MODE_ALIASES[key]


def parse_strategy(value: str | Strategy | None) -> Strategy:
    if isinstance(value, Strategy):
        return value
    key = (value or "").lower().strip()
    if key not in STRATEGY_ALIASES:
        raise ValueError(f"Unsupported SEARCH_MODE: {value}")
    return STRATEGY_ALIASES[key]


class Settings(BaseSettings):
    # Search providers (a provider is enabled when all of its keys are set)
    bing_api_key: str = ""
    serpapi_key: str = ""
    google_pse_key: str = ""
    google_pse_cx: str = ""
    brave_api_key: str = ""
    tavily_api_key: str = ""
    groq_api_key: str = ""
    groq_base_url: str = "https://api.groq.com/openai/v1"
    groq_search_model: str = "llama-3.1-8b-instant"

    # Search execution
    search_mode: Strategy = Strategy.FASTEST  # fastest | cheapest | accurate
    search_max_results: int = 5
    search_timeout_ms: int = 2500
    search_top_n: int = 4

    # Scrape fallback
    scrape_timeout_ms: int = 8000
    scrape_max_links: int = 4

    # Generation backends
    ai_mode: Mode = Mode.CLOUD  # local | web | cloud
    openai_api_key: str = ""
    openai_base_url: str = "https://api.openai.com/v1"
    fallback_model: str = "gpt-4o-mini"
    local_llm_url: str = "http://127.0.0.1:11434/api/generate"
    local_llm_model: str = "llama3"
    local_llm_timeout_ms: int = 60000

    # App
    app_log_level: str = "INFO"
    noisy_log_level: str = "WARNING"
    log_dir: str = "logs"
    log_file_enabled: bool = True

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "validate_assignment": True,
    }

    @field_validator("ai_mode", mode="before")
    @classmethod
    def _coerce_mode(cls, value):
        return parse_mode(value)

    @field_validator("search_mode", mode="before")
    @classmethod
    def _coerce_strategy(cls, value):
        return parse_strategy(value)

    @property
    def has_cloud_credential(self) -> bool:
        return bool(self.openai_api_key.strip())

    @property
    def search_timeout_seconds(self) -> float:
        return max(self.search_timeout_ms, 1) / 1000.0

    @property
    def scrape_timeout_seconds(self) -> float:
        return max(self.scrape_timeout_ms, 1) / 1000.0


settings = Settings()
