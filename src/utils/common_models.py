from pydantic import BaseModel, Field, model_validator
from typing import Optional
from typing_extensions import Self
from enum import Enum

class CaseInsensitiveEnum(Enum):
    """Enum class that enables case-insensitive matching."""
    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            for member in cls:
                if member.value.lower() == value.lower():
                    return member
        return super()._missing_(value)


class ActionStatus(BaseModel):
    class State(str, CaseInsensitiveEnum):
        """Outcome of a listing action"""
        PENDING = 'Pending'
        SUCCESS = 'Success'
        FAILURE = 'Failure'

    state : State = Field(
        ..., description='Result of the action'
    )
    reason : Optional[str] = Field(
        default=None, description='Reason for failure'
    )

    @model_validator(mode='after')
    def validate_input(self) -> Self:
        if self.state == ActionStatus.State.FAILURE and not self.reason:
            raise ValueError(
                    f"Failed action needs a reason"
                )
        return self

    @classmethod
    def success(cls) -> 'ActionStatus':
        return cls(state=cls.State.SUCCESS)

    @classmethod
    def failure(cls, reason: str) -> 'ActionStatus':
        return cls(state=cls.State.FAILURE, reason=reason)

    @property
    def succeeded(self) -> bool:
        return self.state == ActionStatus.State.SUCCESS
