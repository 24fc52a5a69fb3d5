from __future__ import annotations

import json
from typing import Any, Callable

from pydantic import TypeAdapter, ValidationError
from sqlalchemy import JSON
from sqlalchemy.types import TypeDecorator

from core.logging import get_logger

log = get_logger("db.types")


class TypedJSON(TypeDecorator):
    """JSON column decoded into a typed value once, at load time.

    A stored value that does not validate decodes to ``default_factory()``
    and a warning is logged; reads never raise.
    """

    impl = JSON
    cache_ok = True

    def __init__(self, value_type: Any, default_factory: Callable[[], Any] | None = None):
        super().__init__()
        self.value_type = value_type
        self.default_factory = default_factory
        self._adapter = TypeAdapter(value_type)

    def _default(self):
        return self.default_factory() if self.default_factory else None

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return self._adapter.dump_python(self._adapter.validate_python(value), mode="json")

    def process_result_value(self, value, dialect):
        if value is None:
            return self._default()
        if isinstance(value, str):
            try:
                value = json.loads(value)
            except ValueError:
                log.warning("nested_field_decode_failed", type=str(self.value_type), reason="invalid json")
                return self._default()
        try:
            return self._adapter.validate_python(value)
        except ValidationError as e:
            log.warning("nested_field_decode_failed", type=str(self.value_type), errors=e.error_count())
            return self._default()
