from pydantic_settings import BaseSettings, SettingsConfigDict

_MIB = 1024 * 1024


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    openai_api_key: str = ""
    openai_base_url: str | None = None
    openai_model_name: str = "gpt-4o"
    openai_timeout_seconds: int = 30

    azure_text_analytics_key: str = ""
    azure_text_analytics_endpoint: str = ""
    azure_translator_key: str = ""
    azure_translator_endpoint: str = "https://api.cognitive.microsofttranslator.com"
    azure_translator_region: str = "global"
    azure_timeout_seconds: int = 30

    github_copilot_api_key: str = ""

    pdf_engine: str = "pdfplumber"
    ocr_enabled: bool = True
    ocr_languages: str = "eng+ara"

    max_pdf_size: int = 50 * _MIB
    max_office_size: int = 25 * _MIB
    max_image_size: int = 10 * _MIB
    max_text_size: int = 5 * _MIB
    max_default_size: int = 10 * _MIB
    max_batch_files: int = 20

    pdf_extensions: list[str] = [".pdf"]
    office_extensions: list[str] = [".docx", ".doc", ".xlsx", ".xls"]
    text_extensions: list[str] = [".txt", ".md", ".markdown", ".csv", ".json", ".xml", ".html"]
    image_extensions: list[str] = [
        ".jpg", ".jpeg", ".png", ".gif", ".bmp", ".tiff", ".webp",
    ]

    worker_enabled: bool = True
    chunk_size_bytes: int = 5 * _MIB
    worker_restart_delay_seconds: float = 1.0
    task_timeout_seconds: float = 0.0

    retry_max_attempts: int = 3
    retry_backoff_multiplier: float = 2.0
    retry_initial_delay_seconds: float = 1.0

    summary_min_chars: int = 500
    provider_max_chars: int = 4000
    default_target_language: str = "ar"

    ghostscript_binary: str = "gs"
    ghostscript_options: list[str] = [
        "-sDEVICE=pdfwrite",
        "-dCompatibilityLevel=1.4",
        "-dPDFSETTINGS=/ebook",
        "-dNOPAUSE",
        "-dQUIET",
        "-dBATCH",
    ]
