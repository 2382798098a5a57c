from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

DEFAULT_SCALES_PATH = Path(__file__).resolve().parent / "data" / "scales.json"


class Settings:
    def __init__(self) -> None:
        self.ws_port = int(os.getenv("WS_PORT", "3001"))
        self.cors_origins = [
            origin.strip()
            for origin in os.getenv("CORS_ORIGINS", "*").split(",")
            if origin.strip()
        ] or ["*"]
        self.scales_path = Path(
            os.getenv("SCALES_PATH", "").strip() or DEFAULT_SCALES_PATH
        )
        self.write_ms_per_prompt = max(1, int(os.getenv("WRITE_MS_PER_PROMPT", "45000")))
        self.write_min_ms = max(0, int(os.getenv("WRITE_MIN_MS", "120000")))
        self.write_max_ms = max(
            self.write_min_ms,
            int(os.getenv("WRITE_MAX_MS", "480000")),
        )
        self.join_name_max_length = max(1, int(os.getenv("JOIN_NAME_MAX_LENGTH", "24")))


settings = Settings()
