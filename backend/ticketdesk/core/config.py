from pydantic_settings import BaseSettings
from pydantic import Field
from typing import List, Optional
from pathlib import Path

class Settings(BaseSettings):
    app_name: str = Field(default="TicketDesk API", alias="APP_NAME")
    env: str = Field(default="dev", alias="ENV")
    # Defaults to a local SQLite file next to the working directory; Postgres URLs are accepted too.
    database_url: str = Field(default="sqlite:///./tickets.db", alias="DATABASE_URL")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    # Raw env value (string), parsed to a list via property to avoid JSON decoding errors
    cors_origins_raw: Optional[str] = Field(default=None, alias="CORS_ORIGINS", description="Comma separated list of allowed CORS origins")
    seed_demo_data: bool = Field(default=False, alias="SEED_DEMO_DATA")
    auto_apply_migrations: bool = Field(default=True, alias="AUTO_APPLY_MIGRATIONS")
    # Used by the client data layer when it talks to a running server
    api_base_url: str = Field(default="http://localhost:8000", alias="API_BASE_URL")

    class Config:
        # Load env from backend/.env regardless of CWD
        env_file = str(Path(__file__).resolve().parents[2] / ".env")
        case_sensitive = False
        populate_by_name = True

    def _parse_list(self, v: Optional[str]) -> List[str]:
        if v is None:
            return []
        s = v.strip()
        if not s:
            return []
        if s.startswith("[") and s.endswith("]"):
            import json
            try:
                loaded = json.loads(s)
            except ValueError:
                loaded = None
            if isinstance(loaded, list):
                return [str(e).strip() for e in loaded if str(e).strip()]
        return [e.strip() for e in s.split(",") if e.strip()]

    @property
    def cors_origins(self) -> List[str]:
        items = self._parse_list(self.cors_origins_raw)
        # Fallback dev defaults if none provided
        if not items:
            return ["http://localhost:3000", "http://127.0.0.1:3000"]
        return items

    @property
    def is_prod(self) -> bool:
        return self.env.lower() == "prod"

settings = Settings()  # type: ignore
