import logging
from typing import Any

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)

_SIMPLE_TYPES = (int, float, str, bool, dict)


class CustomBaseModel(BaseModel):
    """Custom base model for all response schemas.
    - pre-process the data before init
    - set the default value if the value is invalid
    - fields may be populated by name, they serialize by alias (camelCase)
    """

    model_config = ConfigDict(populate_by_name=True)

    def __init__(self, **data: Any) -> None:
        fields = self.__class__.model_fields
        for attr, value in data.items():
            field = fields.get(attr)
            if field is None or field.annotation not in _SIMPLE_TYPES:
                continue
            attr_type = field.annotation
            if isinstance(value, attr_type) and not (attr_type is int and isinstance(value, bool)):
                continue
            try:  #  try to convert the value to the type of the attribute
                data[attr] = attr_type(value)
            except Exception:
                logger.warning("Invalid value for key: %s, using default", attr)
                data[attr] = field.get_default(call_default_factory=True)
        super().__init__(**data)

    @classmethod
    def from_record(cls, record: dict[str, Any]):
        if isinstance(record, dict):
            return cls(**record)
        raise ValueError(f"Invalid record type: {type(record)}")
