from typing import Any

from pydantic import TypeAdapter
from sqlalchemy import JSON
from sqlalchemy import Enum as SAEnum
from sqlalchemy.types import TypeDecorator


class CaseInsensitiveEnum(SAEnum):
    """Enum column type that accepts case-insensitive values.

    Values are stored upper-case, so ``"confirmed"`` and
    ``BookingStatus.CONFIRMED`` bind to the same label.
    """

    def __init__(self, enum_cls, **kwargs):
        self._enum_cls = enum_cls
        self._enum_kwargs = kwargs.copy()
        kwargs.setdefault("values_callable", lambda enum: [e.value for e in enum])
        super().__init__(enum_cls, **kwargs)

    def adapt(self, impltype, **kw):
        params = {**self._enum_kwargs, **kw}
        return CaseInsensitiveEnum(self._enum_cls, **params)

    def bind_processor(self, dialect):
        parent = super().bind_processor(dialect)

        def process(value):
            if value is None:
                return None
            if isinstance(value, str):
                value = value.upper()
            else:
                value = value.value
            if parent:
                return parent(value)
            return value

        return process

    def result_processor(self, dialect, coltype):
        parent = super().result_processor(dialect, coltype)

        def process(value):
            if value is None:
                return None
            if isinstance(value, str):
                value = value.upper()
            if parent:
                return parent(value)
            return value

        return process


class PydanticJSON(TypeDecorator):
    """JSON column validated against a Pydantic type at the store boundary.

    Writes accept either the typed value or its plain-dict form and are
    validated before hitting the database; reads come back as the typed
    value.
    """

    impl = JSON
    cache_ok = True

    def __init__(self, pydantic_type: Any, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.pydantic_type = pydantic_type
        self._adapter = TypeAdapter(pydantic_type)

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        validated = self._adapter.validate_python(value)
        return self._adapter.dump_python(validated, mode="json")

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return self._adapter.validate_python(value)
