from typing import Annotated, List, Union
from pydantic import BaseModel, Field, StrictStr, field_validator

NAME_ERROR = "El nombre es obligatorio y no puede estar vacío."
PRICE_ERROR = "El precio debe ser un número válido y >= 0."
BODY_ERROR = "Datos inválidos."

# strict: refuse "50" et true, garde 50 en entier
Price = Union[
    Annotated[int, Field(strict=True, ge=0)],
    Annotated[float, Field(strict=True, ge=0, allow_inf_nan=False)],
]


class ProductCreate(BaseModel):
    """Corps de requête pour POST et PUT (remplacement complet)."""

    name: StrictStr = Field(description="Nombre del producto")
    price: Price = Field(description="Precio del producto")

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("name must not be blank")
        return value


class ProductResponse(BaseModel):
    id: int
    name: str
    price: Union[int, float]

    class Config:
        from_attributes = True


class DeleteResponse(BaseModel):
    message: str
    product: ProductResponse


class ErrorResponse(BaseModel):
    error: str


def validation_message(errors: List[dict]) -> str:
    """Pick the client-facing message for a list of pydantic errors.

    The name check wins over the price check, anything else (missing
    body, body that is not an object, malformed JSON) gets the generic
    message.
    """
    locations = [err.get("loc", ()) for err in errors]
    if any("name" in loc for loc in locations):
        return NAME_ERROR
    if any("price" in loc for loc in locations):
        return PRICE_ERROR
    return BODY_ERROR
