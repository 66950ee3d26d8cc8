from __future__ import annotations

import json
import os
import pathlib
import typing as t

from pydantic import BaseModel as PydBaseModel
from pydantic import ConfigDict
from pydantic_settings import BaseSettings

from consulta.exceptions import RequiredModuleNotFoundError


class BaseModel(PydBaseModel):
    """Base model class with common configuration for all config
    sections.

    Assignments are validated, unknown keys ignored, and enum members
    stored by value so sections dump to plain YAML/JSON.
    """

    model_config: t.ClassVar[ConfigDict] = ConfigDict(
        validate_assignment=True,
        extra="ignore",
        arbitrary_types_allowed=True,
        use_enum_values=True,
        populate_by_name=True,
    )

    def __hash__(self) -> int:
        serl_json = json.dumps(self.model_dump(mode="json"), sort_keys=True)
        return hash(serl_json)

    def __repr__(self) -> str:
        field_reprs = ", ".join(
            f"{field_name}={getattr(self, field_name)!r}"
            for field_name in type(self).model_fields
        )
        return f"MODEL <{self.__class__.__name__}({field_reprs})>"


class Settings(BaseSettings):
    """Base settings class with YAML loading and export helpers."""

    @classmethod
    def from_yaml(cls, path: str | pathlib.Path | os.PathLike[str]) -> t.Self:
        """Load configuration from a YAML file.

        Args:
            path: Path to YAML configuration file.

        Returns:
            Settings instance.

        Raises:
            RequiredModuleNotFoundError: If PyYAML is not installed.
        """
        try:
            import yaml
        except ImportError as e:
            raise RequiredModuleNotFoundError(
                "yaml",
                message="`yaml` module is required to load configuration from YAML "
                "files. Please install it using `pip install pyyaml`.",
            ) from e

        data = yaml.safe_load(pathlib.Path(path).read_text(encoding="utf-8")) or {}
        return cls.model_validate(data, strict=False)

    def serl(self, include_none: bool = False) -> dict[str, t.Any]:
        """Get a JSON-serializable dump of the settings.

        Args:
            include_none: If True, include fields with None values.
        """
        return self._clean_dict(self.model_dump(mode="json"), include_none=include_none)

    def to_yaml(self, fpath: str | pathlib.Path | os.PathLike[str]) -> None:
        """Export the settings to a YAML file."""
        try:
            import yaml
        except ImportError as e:
            raise RequiredModuleNotFoundError(
                "yaml",
                message="`yaml` module is required to export configuration to YAML "
                "files. Please install it using `pip install pyyaml`.",
            ) from e

        with pathlib.Path(fpath).open("w", encoding="utf-8") as f:
            yaml.safe_dump(self.serl(include_none=True), f, allow_unicode=True, sort_keys=False)

    @classmethod
    def _clean_dict(cls, data: dict[str, t.Any], *, include_none: bool) -> dict[str, t.Any]:
        result: dict[str, t.Any] = {}
        for key, value in data.items():
            if value is None and not include_none:
                continue
            if isinstance(value, dict):
                value = cls._clean_dict(value, include_none=include_none)
            result[key] = value
        return result
