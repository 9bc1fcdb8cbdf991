# lithomarket/services/pricing.py
from __future__ import annotations

from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal
from typing import Union

from lithomarket.errors import InvalidParameter

Number = Union[int, float, str, Decimal]

HALF = Decimal("0.5")
REFERENCE_RESOLUTION = Decimal(5)
REFERENCE_ITERATIONS = Decimal(1000)
WEI_PER_UNIT = Decimal(10) ** 18
DISPLAY_PLACES = Decimal("0.001")


def to_decimal(value: Number) -> Decimal:
    # str() evita arrastrar el error binario de los float
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def estimate(base_price: Number, resolution: Number, iterations: int) -> Decimal:
    """
    Costo de un job:

        resolutionFactor = (5 / resolution) * 0.5
        iterationFactor  = (iterations / 1000) * 0.5
        cost = basePrice * (1 + resolutionFactor + iterationFactor)

    Función pura. Resolución más fina (número menor) => más caro;
    más iteraciones => más caro. Se devuelve a precisión completa.
    """
    price = to_decimal(base_price)
    res = to_decimal(resolution)

    if price < 0:
        raise InvalidParameter("basePrice", base_price, "basePrice must not be negative")
    if res <= 0:
        raise InvalidParameter("resolution", resolution)
    if isinstance(iterations, bool) or int(iterations) != iterations or iterations <= 0:
        raise InvalidParameter("iterations", iterations, "iterations must be a positive integer")

    resolution_factor = (REFERENCE_RESOLUTION / res) * HALF
    iteration_factor = (Decimal(int(iterations)) / REFERENCE_ITERATIONS) * HALF
    return price * (1 + resolution_factor + iteration_factor)


def format_amount(amount: Number, symbol: str = "MATIC") -> str:
    """'0.445 MATIC' (3 decimales, solo para mostrar)."""
    shown = to_decimal(amount).quantize(DISPLAY_PLACES, rounding=ROUND_HALF_UP)
    return f"{shown} {symbol}"


def to_wei(amount: Number) -> str:
    return str(int((to_decimal(amount) * WEI_PER_UNIT).to_integral_value(rounding=ROUND_DOWN)))
