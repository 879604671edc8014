# src/keepsake/core/config.py
"""
Option models and settings loading for keepsake.

Uses Pydantic for validation and Dynaconf for multi-source loading.
Option objects are frozen (immutable) after construction and reject
unknown keys. Every field answers to its snake_case name and to the
camelCase key used in plain configuration mappings, so

    SerializeOptions(resolve_references=True, max_depth=1)
    SerializeOptions.model_validate({"resolveReferences": True, "maxDepth": 1})

build the same object.
"""

from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from keepsake.contracts.enums import DanglingRefPolicy
from keepsake.core.constants import CURRENT_SCHEMA_VERSION

_OPTION_MODEL_CONFIG: Any = {
    "frozen": True,
    "extra": "forbid",
    "alias_generator": to_camel,
    "populate_by_name": True,
    "arbitrary_types_allowed": True,
}


def _coerce_dangling_policy(value: Any) -> Any:
    # JSON null and the string "null" mean the same policy
    if value is None:
        return DanglingRefPolicy.NULL
    return value


class SerializeOptions(BaseModel):
    """Options recognized by the encoder.

    Root selection:
        entities: "all"/None for every record, or an explicit sequence of
            records (or record ids) to start from
        filter: Predicate over a live record applied to the roots
        exclude_transient: Skip records whose persistable flag is False

    Field-group selection:
        exclude_field_groups: Names never written
        only_field_groups: If set, the only names written

    Reference expansion:
        resolve_references: Pull referenced records into the document
        max_depth: Number of breadth-first expansion levels

    Document envelope:
        include_metadata, checksum, schema_version, external_version,
        metadata (extension fields merged into meta)

    Hooks:
        before_serialize(record) -> record, after_serialize(document) -> document
    """

    model_config = _OPTION_MODEL_CONFIG

    entities: list[Any] | Literal["all"] | None = Field(
        default=None,
        description="Explicit roots (records or ids); None or 'all' selects every record",
    )
    record_filter: Callable[[Any], bool] | None = Field(
        default=None,
        alias="filter",
        description="Predicate selecting which roots are written",
    )
    exclude_transient: bool = True
    exclude_field_groups: frozenset[str] = frozenset()
    only_field_groups: frozenset[str] | None = None
    resolve_references: bool = False
    max_depth: int = Field(default=3, ge=0, description="Breadth-first expansion levels")
    dangling_refs: DanglingRefPolicy = Field(
        default=DanglingRefPolicy.NULL,
        description="Carried for symmetry with decode options; unused while encoding",
    )
    include_metadata: bool = True
    checksum: bool = False
    schema_version: int = Field(default=CURRENT_SCHEMA_VERSION, ge=0)
    external_version: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    before_serialize: Callable[[Any], Any] | None = None
    after_serialize: Callable[[Any], Any] | None = None

    @field_validator("dangling_refs", mode="before")
    @classmethod
    def normalize_dangling_refs(cls, v: Any) -> Any:
        return _coerce_dangling_policy(v)

    @model_validator(mode="after")
    def validate_field_group_lists(self) -> "SerializeOptions":
        """A name cannot be both excluded and exclusively included."""
        if self.only_field_groups is not None:
            overlap = self.only_field_groups & self.exclude_field_groups
            if overlap:
                raise ValueError(f"field groups both excluded and included: {sorted(overlap)}")
        return self

    @model_validator(mode="after")
    def validate_checksum_needs_metadata(self) -> "SerializeOptions":
        """The checksum is stored in meta, so it needs a meta block."""
        if self.checksum and not self.include_metadata:
            raise ValueError("checksum=True requires include_metadata=True (the checksum lives in meta)")
        return self


class DeserializeOptions(BaseModel):
    """Options recognized by the decoder."""

    model_config = _OPTION_MODEL_CONFIG

    dangling_refs: DanglingRefPolicy = Field(
        default=DanglingRefPolicy.NULL,
        description="null: substitute None; warn: log and substitute None; throw: raise DecodeError",
    )
    strict_validation: bool = Field(
        default=False,
        description="Raise on unknown field-group types instead of skipping them with a warning",
    )
    before_deserialize: Callable[[Any], Any] | None = None
    after_deserialize: Callable[[Any], Any] | None = None

    @field_validator("dangling_refs", mode="before")
    @classmethod
    def normalize_dangling_refs(cls, v: Any) -> Any:
        return _coerce_dangling_policy(v)


class ValidationOptions(BaseModel):
    """Toggles for the document validator's optional checks."""

    model_config = _OPTION_MODEL_CONFIG

    validate_checksum: bool = True
    validate_field_groups: bool = True
    validate_references: bool = True
    strict_version: bool = Field(
        default=False,
        description="Reject any schema version other than the current one",
    )


class LoadOptions(BaseModel):
    """Options for the end-to-end load: migrate, validate, decode."""

    model_config = _OPTION_MODEL_CONFIG

    validate_document: bool = Field(default=True, alias="validate")
    auto_migrate: bool = True
    validation: ValidationOptions = Field(default_factory=ValidationOptions)
    deserialize: DeserializeOptions = Field(default_factory=DeserializeOptions)


class KeepsakeSettings(BaseModel):
    """Process-level defaults, typically loaded from a YAML file."""

    model_config = {"frozen": True, "extra": "forbid"}

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    json_logs: bool = False
    serialize: SerializeOptions = Field(default_factory=SerializeOptions)
    deserialize: DeserializeOptions = Field(default_factory=DeserializeOptions)
    validation: ValidationOptions = Field(default_factory=ValidationOptions)

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.upper()
        return v


def coerce_options[M: BaseModel](model: type[M], options: M | Mapping[str, Any] | None) -> M:
    """Turn None, a plain mapping, or a model instance into a model instance.

    Raises:
        pydantic.ValidationError: If the mapping holds unknown keys or bad values
    """
    if options is None:
        return model()
    if isinstance(options, model):
        return options
    return model.model_validate(dict(options))


def _lower_env_keys(value: Any) -> Any:
    """Lowercase ALL-CAPS nested keys (environment overrides); camelCase keys from YAML are kept."""
    if isinstance(value, dict):
        return {(k.lower() if isinstance(k, str) and k.isupper() else k): _lower_env_keys(v) for k, v in value.items()}
    return value


def load_settings(config_path: Path) -> KeepsakeSettings:
    """Load settings from YAML file with environment variable overrides.

    Uses Dynaconf for multi-source loading with precedence:
    1. Environment variables (KEEPSAKE_*) - highest priority
    2. Config file
    3. Defaults from the Pydantic models - lowest priority

    Nested keys use a double underscore: KEEPSAKE_VALIDATION__STRICT_VERSION=true.

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Validated KeepsakeSettings instance

    Raises:
        pydantic.ValidationError: If configuration fails validation
        FileNotFoundError: If config file doesn't exist
    """
    from dynaconf import Dynaconf

    # Dynaconf silently accepts missing files
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    dynaconf_settings = Dynaconf(
        envvar_prefix="KEEPSAKE",
        settings_files=[str(config_path)],
        environments=False,
        load_dotenv=False,
        merge_enabled=True,
    )

    # Dynaconf returns uppercase top-level keys and mixes in its own
    internal_keys = {"LOAD_DOTENV", "ENVIRONMENTS", "SETTINGS_FILES"}
    raw_config = {k.lower(): _lower_env_keys(v) for k, v in dynaconf_settings.as_dict().items() if k not in internal_keys}

    return KeepsakeSettings(**raw_config)
