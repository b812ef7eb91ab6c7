"""Shared configuration management for the invoice core.

Based on Pydantic Settings v2 best practices:
https://docs.pydantic.dev/latest/concepts/pydantic_settings/

Settings are read once at the edge of the process and turned into explicit
structures (RetryPolicy, LedgerDefaults) that components receive at
construction.
"""

from typing import TYPE_CHECKING, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

if TYPE_CHECKING:
    from invoicing.ledgers.base import LedgerDefaults
    from invoicing.resilience.invoker import RetryPolicy


class Settings(BaseSettings):
    """Application settings with environment variable support.

    All settings can be overridden via environment variables with the prefix 'APP_'.
    Example: APP_LLM_PROVIDER=ollama
    """

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level",
    )
    service_name: str = Field(
        default="invoice-ledger-core",
        description="Service identifier for metrics and logs",
    )
    service_version: str = Field(
        default="0.1.0",
        description="Service version",
    )

    # Language model configuration
    llm_provider: Literal["openai", "ollama"] = Field(
        default="openai",
        description="JSON completion provider: openai (cloud API), ollama (self-hosted LLM)",
    )
    openai_model: str = Field(
        default="gpt-4o-mini",
        description="OpenAI chat model used for classification and extraction",
    )
    ollama_base_url: str = Field(
        default="http://localhost:11434",
        description="Ollama server base URL",
    )
    ollama_model: str = Field(
        default="qwen2.5:7b",
        description="Ollama model to use (e.g., qwen2.5:7b, llama3.1:8b)",
    )
    llm_timeout_seconds: float = Field(
        default=120.0,
        gt=0,
        description="Per-request timeout for language model calls",
    )
    verify_extractions: bool = Field(
        default=True,
        description="Run the audit pass that cross-checks each extraction against its source text",
    )

    # Retry policy for external calls
    retry_max_retries: int = Field(
        default=3,
        ge=0,
        description="Retries after the first attempt (total attempts = retries + 1)",
    )
    retry_base_delay: float = Field(
        default=1.0,
        ge=0,
        description="Base backoff delay in seconds, doubled per attempt",
    )
    retry_max_delay: float = Field(
        default=30.0,
        ge=0,
        description="Upper bound on a single backoff delay in seconds",
    )

    # Ledger defaults
    quickbooks_expense_account_id: str = Field(default="1")
    quickbooks_tax_code: str = Field(default="NON")
    quickbooks_tax_line_code: str = Field(default="TAX")
    xero_account_code: str = Field(default="200")
    xero_tax_type: str = Field(default="NONE")
    xero_status: Literal["DRAFT", "SUBMITTED", "AUTHORISED"] = Field(default="DRAFT")
    wave_status: Literal["SAVED", "PAID", "PARTIAL", "OVERDUE", "UNPAID"] = Field(
        default="SAVED"
    )
    freshbooks_expense_category_id: str = Field(default="1")

    def retry_policy(self) -> "RetryPolicy":
        """Build the retry policy for external calls from these settings."""
        from invoicing.resilience.invoker import RetryPolicy

        return RetryPolicy(
            max_retries=self.retry_max_retries,
            base_delay=self.retry_base_delay,
            max_delay=self.retry_max_delay,
        )

    def ledger_defaults(self) -> "LedgerDefaults":
        """Build per-ledger default identifiers from these settings."""
        from invoicing.ledgers.base import LedgerDefaults

        return LedgerDefaults(
            quickbooks_expense_account_id=self.quickbooks_expense_account_id,
            quickbooks_tax_code=self.quickbooks_tax_code,
            quickbooks_tax_line_code=self.quickbooks_tax_line_code,
            xero_account_code=self.xero_account_code,
            xero_tax_type=self.xero_tax_type,
            xero_status=self.xero_status,
            wave_status=self.wave_status,
            freshbooks_expense_category_id=self.freshbooks_expense_category_id,
        )


def get_settings() -> Settings:
    """Factory function to get settings instance.

    Returns:
        Configured Settings instance
    """
    return Settings()
