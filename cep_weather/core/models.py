"""Domain models shared by the input and orchestration services.

All models are immutable (frozen) Pydantic models: they are created once
per request and only read afterwards.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from cep_weather.core.cep import is_valid_cep, normalize_cep
from cep_weather.core.exceptions import InvalidZipcodeError
from cep_weather.core.temperature import to_fahrenheit, to_kelvin


class PostalCodeQuery(BaseModel):
    """A validated CEP, separators stripped.

    Attributes:
        cep: Exactly 8 decimal digits.
    """

    model_config = ConfigDict(frozen=True)

    cep: str

    @classmethod
    def parse(cls, raw: str) -> PostalCodeQuery:
        """Validate raw client input and build a query.

        Args:
            raw: CEP as typed by the client ("01310-100", " 01310100 ").

        Returns:
            PostalCodeQuery holding the normalized code.

        Raises:
            InvalidZipcodeError: If the input is not 8 digits.
        """
        if not is_valid_cep(raw):
            raise InvalidZipcodeError(f"invalid CEP format: {raw!r}", cep=raw)
        return cls(cep=normalize_cep(raw))


class PostalCodeRecord(BaseModel):
    """Address resolved by the postal registry.

    Only ``locality`` is used downstream (as the weather query).
    """

    model_config = ConfigDict(frozen=True)

    cep: str
    locality: str = Field(min_length=1)
    region: str = ""
    raw: dict[str, Any] = Field(default_factory=dict)


class WeatherSample(BaseModel):
    """Current weather reading for a location.

    ``location`` is the name resolved by the weather provider, which may
    differ from the postal locality that was queried.
    """

    model_config = ConfigDict(frozen=True)

    location: str
    temp_c: float
    condition: str = ""


class TemperatureReport(BaseModel):
    """Client-facing temperature response.

    Serialized with the wire field names temp_C, temp_F and temp_K.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    city: str
    temp_c: float = Field(alias="temp_C")
    temp_f: float = Field(alias="temp_F")
    temp_k: float = Field(alias="temp_K")

    @classmethod
    def from_sample(cls, sample: WeatherSample) -> TemperatureReport:
        """Build a report from a weather sample, converting Celsius."""
        return cls(
            city=sample.location,
            temp_c=sample.temp_c,
            temp_f=to_fahrenheit(sample.temp_c),
            temp_k=to_kelvin(sample.temp_c),
        )

    def to_wire(self) -> dict[str, Any]:
        """Dump with the wire field names."""
        return self.model_dump(by_alias=True)
