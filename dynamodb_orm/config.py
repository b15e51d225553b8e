import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .mapping.encoder import DEFAULT_MAX_NESTING_DEPTH
from .mapping.naming import NamingPolicy

# Load environment variables from .env file if it exists
load_dotenv()


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


class DynamoDBConfig(BaseModel):
    """Configuration for DynamoDB connection, naming and table provisioning."""

    aws_access_key_id: Optional[str] = Field(
        default_factory=lambda: os.getenv("AWS_ACCESS_KEY_ID"),
        description="AWS access key ID"
    )

    aws_secret_access_key: Optional[str] = Field(
        default_factory=lambda: os.getenv("AWS_SECRET_ACCESS_KEY"),
        description="AWS secret access key"
    )

    region_name: str = Field(
        default_factory=lambda: os.getenv("AWS_REGION", "us-east-1"),
        description="AWS region name"
    )

    # DynamoDB specific settings
    endpoint_url: Optional[str] = Field(
        default_factory=lambda: os.getenv("DYNAMODB_ENDPOINT_URL"),
        description="DynamoDB endpoint URL (for local development)"
    )

    # Table configuration
    table_prefix: str = Field(
        default_factory=lambda: os.getenv("DYNAMODB_TABLE_PREFIX", ""),
        description="Prefix to add to all table names"
    )

    # Naming policy
    camel_case_table_names: bool = Field(
        default_factory=lambda: _env_flag("DYNAMODB_CAMEL_CASE_TABLE_NAMES"),
        description="Convert derived and explicit table names to lowerCamelCase"
    )

    pluralize_table_names: bool = Field(
        default_factory=lambda: _env_flag("DYNAMODB_PLURALIZE_TABLE_NAMES"),
        description="Pluralize table names derived from record type names"
    )

    camel_case_attribute_names: bool = Field(
        default_factory=lambda: _env_flag("DYNAMODB_CAMEL_CASE_ATTRIBUTES"),
        description="Convert snake_case field names to lowerCamelCase attribute names"
    )

    max_nesting_depth: int = Field(
        default=DEFAULT_MAX_NESTING_DEPTH,
        ge=1,
        description="Maximum depth of nested record lists encoded into an item"
    )

    # Provisioning
    billing_mode: str = Field(
        default_factory=lambda: os.getenv("DYNAMODB_BILLING_MODE", "PROVISIONED"),
        description="Billing mode for created tables (PROVISIONED or PAY_PER_REQUEST)"
    )

    read_capacity_units: int = Field(
        default=5,
        ge=1,
        description="Read capacity for provisioned tables and indexes"
    )

    write_capacity_units: int = Field(
        default=5,
        ge=1,
        description="Write capacity for provisioned tables and indexes"
    )

    # Batch writes
    batch_max_retries: int = Field(
        default=3,
        ge=0,
        description="Retry attempts for UnprocessedItems in batch writes"
    )

    # Connection settings
    max_pool_connections: int = Field(
        default=50,
        description="Maximum number of connections in the connection pool"
    )

    retries: int = Field(
        default=3,
        description="Number of retry attempts for failed requests"
    )

    timeout_seconds: float = Field(
        default=30.0,
        description="Request timeout in seconds"
    )

    # Environment settings
    environment: str = Field(
        default_factory=lambda: os.getenv("ENVIRONMENT", "dev"),
        description="Current environment (dev, test, staging, prod)"
    )

    # Logging settings
    enable_debug_logging: bool = Field(
        default_factory=lambda: _env_flag("DYNAMODB_DEBUG_LOGGING"),
        description="Enable debug logging for DynamoDB operations"
    )

    @field_validator('region_name')
    @classmethod
    def validate_region(cls, v):
        """Validate AWS region name."""
        if not v:
            raise ValueError("AWS region name is required")
        return v

    @field_validator('environment')
    @classmethod
    def validate_environment(cls, v):
        """Validate environment value."""
        valid_environments = ['dev', 'test', 'staging', 'prod']
        if v not in valid_environments:
            raise ValueError(f"Environment must be one of: {valid_environments}")
        return v

    @field_validator('billing_mode')
    @classmethod
    def validate_billing_mode(cls, v):
        """Validate table billing mode."""
        valid_modes = ['PROVISIONED', 'PAY_PER_REQUEST']
        if v not in valid_modes:
            raise ValueError(f"Billing mode must be one of: {valid_modes}")
        return v

    def get_table_name(self, base_name: str) -> str:
        """Get the full table name with prefix and environment.

        Args:
            base_name: Base table name

        Returns:
            Full table name with prefix and environment
        """
        parts = []

        if self.table_prefix:
            parts.append(self.table_prefix)

        if self.environment != "prod":
            parts.append(self.environment)

        parts.append(base_name)

        return "_".join(parts)

    def naming_policy(self) -> NamingPolicy:
        """Immutable naming policy derived from this configuration."""
        return NamingPolicy(
            camel_case_table_name=self.camel_case_table_names,
            pluralize_table_name=self.pluralize_table_names,
            camel_case_attribute_names=self.camel_case_attribute_names
        )

    @classmethod
    def from_env(cls) -> 'DynamoDBConfig':
        """Create configuration from environment variables."""
        return cls()

    @classmethod
    def for_local_development(cls) -> 'DynamoDBConfig':
        """Create configuration for local DynamoDB development.

        Returns:
            DynamoDBConfig instance configured for local development
        """
        return cls(
            aws_access_key_id="local",
            aws_secret_access_key="local",
            region_name="us-east-1",
            endpoint_url="http://localhost:8000",
            environment="dev",
            billing_mode="PAY_PER_REQUEST",
            enable_debug_logging=True
        )

    model_config = ConfigDict(
        validate_assignment=True,
        use_enum_values=True
    )
