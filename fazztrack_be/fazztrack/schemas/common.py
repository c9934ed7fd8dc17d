from typing import Annotated

from pydantic import BeforeValidator

# Numeric columns load as Decimal; the API speaks plain JSON numbers
Money = Annotated[float, BeforeValidator(lambda v: float(v) if v is not None else v)]
