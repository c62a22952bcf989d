from typing import Union

from pydantic import BaseModel, StrictInt, StrictStr, field_validator


class TakeRequest(BaseModel):
    # Strict so JSON booleans and floats are rejected instead of coerced to ints
    user_id: Union[StrictInt, StrictStr]

    @field_validator("user_id")
    @classmethod
    def not_blank(cls, value: int | str) -> int | str:
        if isinstance(value, str):
            value = value.strip()
            if not value:
                raise ValueError("user_id must not be blank")
        return value
