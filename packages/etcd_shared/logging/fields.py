"""Canonical structured logging field names for the etcd SDK and CLI."""

TIMESTAMP = "timestamp"
LEVEL = "level"
LOGGER = "logger"
MESSAGE = "message"

# Resolution fields.
RESOLVER = "resolver"
QUERY_NAME = "query_name"
TARGET = "target"

# Call fields.
OPERATION = "operation"
USER = "user"

SERVICE = "service"
ENVIRONMENT = "environment"
