from dataclasses import fields
from pathlib import Path
from typing import Any, ClassVar, Self

import yaml


class Config:
    def __init__(self, config: dict | None):
        self.config = config or {}

    def get[T](self, key: str, model: type[T] | None = None) -> Any:
        if model is None:
            return self.config[key]

        return model.from_dict(self.config[key] or {})

    @classmethod
    def load_config(cls, name: str, directory: str | Path = ".") -> "Config":
        match directory:
            case ".":
                path = Path()

            case str():
                path = Path(directory)

            case Path():
                path = directory

            case _:
                raise ValueError(f"Invalid directory: {directory}")

        file_path = path / name
        with file_path.open("r") as f:
            return Config(yaml.safe_load(f))


class ConfigModel:
    """Base for dataclass sections of the YAML config.

    Subclasses name their section with ``model_key`` and are resolved from the
    container by :func:`kealthy.injectors.handle_config_model_types`.
    """
    __model_key__: ClassVar[str]

    def __init_subclass__(cls, **kwargs):
        cls.__model_key__ = kwargs.pop("model_key", cls.__name__)
        super().__init_subclass__(**kwargs)

    @classmethod
    def from_dict(cls, config: dict) -> Self:
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in config.items() if key in known})
