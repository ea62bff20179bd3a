"""Compile tool parameter schemas into argument validators.

Only a flat JSON-Schema subset is understood:

* an ``object`` with ``properties`` and ``required``;
* leaf types ``string``, ``number``, ``boolean`` and ``array`` (items untyped).

Any other leaf type, or a property without a type, accepts any value.
Manifests in the registry rely on that, so unknown types must never become
errors.  A schema that is not an ``object`` accepts any arguments unchanged.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, create_model

_LEAF_TYPES: dict[str, Any] = {
    "string": str,
    "number": float,
    "boolean": bool,
    "array": list[Any],
}


class CompiledSchema:
    """Validator produced by :func:`compile_schema`.

    ``validate`` returns the cleaned arguments: unknown keys dropped and
    absent optional keys omitted.  Invalid input raises
    :class:`pydantic.ValidationError`.
    """

    def __init__(self, model: type[BaseModel] | None) -> None:
        self.model = model

    @property
    def accepts_anything(self) -> bool:
        return self.model is None

    def validate(self, arguments: Any) -> Any:
        if self.model is None:
            return arguments
        instance = self.model.model_validate(arguments)
        return instance.model_dump(by_alias=True, exclude_unset=True)


def leaf_type(prop: Any) -> Any:
    """Return the Python annotation for one property schema (``Any`` when unknown)."""
    type_name = prop.get("type") if isinstance(prop, dict) else None
    if isinstance(type_name, str):
        return _LEAF_TYPES.get(type_name, Any)
    return Any


def compile_schema(schema: dict[str, Any] | None, *, name: str = "ToolArguments") -> CompiledSchema:
    """Compile a JSON-Schema subset into a :class:`CompiledSchema`.

    Property names are carried as aliases, so names that are not Python
    identifiers (or clash with pydantic attributes) still work.
    """
    if not isinstance(schema, dict) or schema.get("type") != "object":
        return CompiledSchema(None)

    properties: dict[str, Any] = schema.get("properties") or {}
    required = set(schema.get("required") or [])

    fields: dict[str, Any] = {}
    for index, (key, prop) in enumerate(properties.items()):
        description = prop.get("description") if isinstance(prop, dict) else None
        if key in required:
            field = Field(..., alias=key, description=description)
        else:
            field = Field(default=None, alias=key, description=description)
        fields[f"field_{index}"] = (leaf_type(prop), field)

    model = create_model(  # type: ignore[call-overload]
        name,
        __config__=ConfigDict(strict=True, extra="ignore", populate_by_name=False),
        **fields,
    )
    return CompiledSchema(model)
