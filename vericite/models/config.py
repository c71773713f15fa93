"""Configuration models loaded from YAML."""

from __future__ import annotations

from pydantic import BaseModel, Field


class ModelsConfig(BaseModel):
    extraction: str = "gemini-2.5-pro"
    grounding: str = "gemini-2.5-flash"
    reformat: str = "gemini-2.5-flash"


class VerificationConfig(BaseModel):
    similarity_threshold: float = Field(ge=0.0, le=1.0, default=0.85)
    grounding_confidence: int = Field(ge=0, le=100, default=95)


class BatchConfig(BaseModel):
    group_size: int = Field(ge=1, default=2)
    group_delay_seconds: float = Field(ge=0.0, default=2.0, description="Pacing sleep between consecutive groups; not applied after the last group.")
    isolate_members: bool = Field(default=False, description="Mark only the failing member AMBIGUOUS instead of its whole group.")


class RetryPolicyConfig(BaseModel):
    max_retries: int = Field(ge=0, default=5)
    base_delay_ms: int = Field(ge=0, default=1000)


class RetryConfig(BaseModel):
    jitter_ms: int = Field(ge=0, default=1000, description="Upper bound (exclusive) of the uniform random jitter added to every backoff.")
    verification: RetryPolicyConfig = Field(default_factory=RetryPolicyConfig)
    extraction: RetryPolicyConfig = Field(default_factory=RetryPolicyConfig)
    reformat: RetryPolicyConfig = Field(
        default_factory=lambda: RetryPolicyConfig(max_retries=2, base_delay_ms=500)
    )


class HttpConfig(BaseModel):
    timeout_seconds: float = Field(gt=0.0, default=30.0)
    crossref_email: str = ""


class SettingsConfig(BaseModel):
    models: ModelsConfig = Field(default_factory=ModelsConfig)
    verification: VerificationConfig = Field(default_factory=VerificationConfig)
    batch: BatchConfig = Field(default_factory=BatchConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    http: HttpConfig = Field(default_factory=HttpConfig)
