from decimal import Decimal
from pydantic import BaseModel, StrictInt, StrictStr, field_validator


class Resource(BaseModel):
    id: StrictInt
    name: StrictStr
    quantity: StrictInt
    price: Decimal  # Decimal pour garder les chiffres après la virgule (20.90)

    @field_validator('price', mode='before')
    def price_must_be_number(cls, v):
        # Les nombres JSON arrivent en Decimal (ou int); une chaîne n'est pas un prix
        if isinstance(v, bool) or not isinstance(v, (Decimal, int)):
            raise ValueError('Price must be a JSON number')
        return v
