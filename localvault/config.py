from pathlib import Path
from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

# Load .env from repo root for local development and scripts.
ENV_PATH = Path(__file__).resolve().parents[1] / ".env"
load_dotenv(dotenv_path=ENV_PATH)

CHAT_KEY = "lv_chat_history_v1"
VAULT_KEY = "wealthTrackerV1"

class Settings(BaseSettings):
    model_config = SettingsConfigDict(case_sensitive=True)
    openai_api_key: str | None = Field(default=None, alias="OPENAI_API_KEY")
    openai_base_url: str = Field(default="https://api.openai.com/v1", alias="OPENAI_BASE_URL")
    openai_model: str = Field(default="gpt-4o-mini", alias="OPENAI_MODEL")
    openai_temperature: float = Field(default=0.3, alias="OPENAI_TEMPERATURE")
    chat_endpoint_url: str = Field(default="http://127.0.0.1:8000/api/chat", alias="CHAT_ENDPOINT_URL")
    http_timeout_seconds: float = Field(default=30.0, alias="HTTP_TIMEOUT_SECONDS")
    db_path: str = Field(default="./data/localvault.db", alias="DB_PATH")
    share_data_default: bool = Field(default=False, alias="SHARE_DATA_DEFAULT")

settings = Settings()
