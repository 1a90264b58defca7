"""Load a RunConfig from an optional YAML file plus environment overrides."""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from kroundtrip.errors import ConfigError
from kroundtrip.models.config import ClusterConfig, ConsumerConfig, ProducerConfig, RunConfig
from kroundtrip.models.message import KeyStrategy
from kroundtrip.models.schema import SubjectNameStrategy
from kroundtrip.models.topic import TopicConfig

ENV_BROKER = "KAFKA_BROKER"
ENV_TOPIC = "KAFKA_TOPIC"
ENV_REGISTRY = "SCHEMA_REGISTRY_URL"
ENV_MESSAGES = "QUANTITY_OF_MESSAGE"
ENV_WORKERS = "KROUNDTRIP_WORKERS"
ENV_TIMEOUT_MS = "KROUNDTRIP_CONSUME_TIMEOUT_MS"

DEFAULT_TOPIC = "test-topic-avro"


def _section(data: Mapping[str, Any], name: str) -> dict[str, Any]:
    value = data.get(name) or {}
    if not isinstance(value, Mapping):
        raise ConfigError(f"'{name}' must be a mapping")
    return dict(value)


def _int(value: Any, name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be an integer, got '{value}'") from None


def _enum(enum_cls, value: Any, name: str):
    try:
        return enum_cls(value)
    except ValueError:
        choices = ", ".join(member.value for member in enum_cls)
        raise ConfigError(f"{name} must be one of {choices}, got '{value}'") from None


def _path(value: Any, base_dir: Path | None) -> Path | None:
    if value is None:
        return None
    path = Path(value)
    if not path.is_absolute() and base_dir is not None:
        path = base_dir / path
    return path


def config_from_dict(
    data: Mapping[str, Any],
    env: Mapping[str, str] | None = None,
    base_dir: Path | None = None,
) -> RunConfig:
    env = os.environ if env is None else env

    topic = _section(data, "topic")
    cluster = _section(data, "cluster")
    producer = _section(data, "producer")
    consumer = _section(data, "consumer")
    schemas = _section(data, "schemas")

    if ENV_TOPIC in env:
        topic["name"] = env[ENV_TOPIC]
    topic.setdefault("name", DEFAULT_TOPIC)
    if ENV_BROKER in env:
        cluster["bootstrap_servers"] = env[ENV_BROKER]
    if ENV_TIMEOUT_MS in env:
        consumer["timeout_ms"] = _int(env[ENV_TIMEOUT_MS], ENV_TIMEOUT_MS)

    try:
        return RunConfig(
            topic=TopicConfig(**topic),
            cluster=ClusterConfig(**cluster),
            producer=ProducerConfig(**producer),
            consumer=ConsumerConfig(**consumer),
            registry_url=env.get(ENV_REGISTRY, data.get("registry_url", "http://localhost:8081")),
            messages_per_worker=_int(
                env.get(ENV_MESSAGES, data.get("messages_per_worker", 1)), "messages_per_worker"
            ),
            workers=_int(env.get(ENV_WORKERS, data.get("workers", 1)), "workers"),
            key_strategy=_enum(
                KeyStrategy, data.get("key_strategy", KeyStrategy.PREFIXED.value), "key_strategy"
            ),
            subject_strategy=_enum(
                SubjectNameStrategy,
                data.get("subject_strategy", SubjectNameStrategy.TOPIC_NAME.value),
                "subject_strategy",
            ),
            key_schema_path=_path(schemas.get("key"), base_dir),
            value_schema_path=_path(schemas.get("value"), base_dir),
            delete_topic_on_teardown=bool(data.get("delete_topic_on_teardown", True)),
        )
    except TypeError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


def load_config(path: Path | None = None, env: Mapping[str, str] | None = None) -> RunConfig:
    if path is None:
        return config_from_dict({}, env=env)

    try:
        with path.open() as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read config file '{path}': {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Config file '{path}' is not valid YAML: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, Mapping):
        raise ConfigError(f"Config file '{path}' must contain a mapping")
    return config_from_dict(data, env=env, base_dir=path.parent)
