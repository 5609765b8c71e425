import os

from botocore.config import Config
from pydantic import BaseModel, ConfigDict, Field, field_validator


class ClientConfig(BaseModel):
    """
    Connection settings for the DynamoDB client.

    Values default to the usual AWS environment variables so that
    ``ClientConfig()`` works unchanged in Lambda, ECS and local shells.
    """

    model_config = ConfigDict(frozen=True)

    aws_access_key_id: str | None = Field(
        default_factory=lambda: os.getenv("AWS_ACCESS_KEY_ID"),
        description="AWS access key ID",
    )
    aws_secret_access_key: str | None = Field(
        default_factory=lambda: os.getenv("AWS_SECRET_ACCESS_KEY"),
        description="AWS secret access key",
    )
    region_name: str = Field(
        default_factory=lambda: os.getenv("AWS_REGION", "us-east-1"),
        description="AWS region name",
    )
    endpoint_url: str | None = Field(
        default_factory=lambda: os.getenv("DYNAMODB_ENDPOINT_URL"),
        description="DynamoDB endpoint URL (LocalStack, DynamoDB Local)",
    )
    table_prefix: str = Field(
        default_factory=lambda: os.getenv("DYNAMODB_TABLE_PREFIX", ""),
        description="Prefix to add to all table names",
    )

    max_pool_connections: int = Field(default=10, ge=1)
    connect_timeout: float = Field(default=5.0, gt=0)
    read_timeout: float = Field(default=30.0, gt=0)
    # botocore's own retries stay off by default; RetryValve owns retrying
    max_attempts: int = Field(default=1, ge=1)

    @field_validator("region_name")
    @classmethod
    def validate_region(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("region_name must not be empty")
        return v.strip()

    def to_botocore(self) -> Config:
        """Builds the botocore Config used when creating clients."""
        return Config(
            region_name=self.region_name,
            max_pool_connections=self.max_pool_connections,
            connect_timeout=self.connect_timeout,
            read_timeout=self.read_timeout,
            retries={"max_attempts": self.max_attempts, "mode": "standard"},
        )
