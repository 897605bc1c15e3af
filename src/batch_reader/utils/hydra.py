"""Hydra ConfigStore registration utilities."""

from __future__ import annotations

from typing import Any

from hydra.core.config_store import ConfigStore
from loguru import logger
from omegaconf import MISSING
from pydantic import BaseModel


def config_defaults(model: type[BaseModel]) -> dict[str, Any]:
    """Field defaults of a pydantic model as a ConfigStore node.

    Required fields become ``???`` (OmegaConf MISSING) so Hydra reports them
    as mandatory overrides.
    """
    node: dict[str, Any] = {}
    for field_name, field in model.model_fields.items():
        node[field_name] = MISSING if field.is_required() else field.get_default()
    return node


def register(
    cls: type[Any] | None = None,
    *,
    group: str | None = None,
    name: str | None = None,
    config_model: type[BaseModel] | None = None,
    **kwargs: Any,
) -> type[Any] | Any:
    """Decorator storing a ``_target_`` node for the class in Hydra's ConfigStore.

    Arguments:
        cls: The class to register.
        group: ConfigStore group. Defaults to the parent package name, e.g.
            ``batch_reader.data.datamodule`` registers under ``data``.
        name: Config name. Defaults to the class name.
        config_model: Pydantic model whose field defaults seed the node.
        **kwargs: Extra node values; they win over ``config_model`` defaults.
    """

    def _process_class(target_cls: type[Any]) -> type[Any]:
        config_group = group or target_cls.__module__.split(".")[-2]
        config_name = name or target_cls.__name__

        node: dict[str, Any] = {"_target_": f"{target_cls.__module__}.{target_cls.__name__}"}
        if config_model is not None:
            node.update(config_defaults(config_model))
        node.update(kwargs)

        logger.debug(
            f"Registering {target_cls.__name__} as '{config_name}' in group '{config_group}'"
        )
        ConfigStore.instance().store(group=config_group, name=config_name, node=node)
        return target_cls

    if cls is None:
        return _process_class
    return _process_class(cls)
