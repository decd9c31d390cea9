"""Proving method kinds: which descriptive and batch fields each one carries."""

from dataclasses import dataclass
from typing import Dict, Tuple

from taquero.core.exceptions import UnknownModuleError


@dataclass(frozen=True)
class ProvingKind:
    key: str
    sheet_name: str
    title: str
    detail_fields: Tuple[str, ...]
    reading_fields: Tuple[str, ...]
    bucket: str

    @property
    def method_required(self) -> Tuple[str, ...]:
        return ("methodId", "createdBy") + self.detail_fields


COOKING = ProvingKind(
    key="cooking",
    sheet_name="Proving_Methods",
    title="Proving Your Method",
    detail_fields=("itemDescription", "cookingMethod"),
    reading_fields=("date", "temperature", "timeAtTemp"),
    bucket="taquero-proving-methods",
)

COOLING = ProvingKind(
    key="cooling",
    sheet_name="Proving_Cooling_Methods",
    title="Proving Cooling Method",
    detail_fields=("foodItem", "coolingMethod"),
    reading_fields=(
        "date", "startTime", "startTemp",
        "secondTimeCheck", "secondTempCheck",
        "thirdTimeCheck", "thirdTempCheck",
    ),
    bucket="taquero-proving-cooling",
)

REHEATING = ProvingKind(
    key="reheating",
    sheet_name="Proving_Reheating_Methods",
    title="Proving Reheating Method",
    detail_fields=("itemDescription", "reheatingMethod"),
    reading_fields=("date", "internalTemp"),
    bucket="taquero-proving-reheating",
)

PROVING_KINDS: Dict[str, ProvingKind] = {kind.key: kind for kind in (COOKING, COOLING, REHEATING)}


def get_proving_kind(key: str) -> ProvingKind:
    try:
        return PROVING_KINDS[key]
    except KeyError:
        raise UnknownModuleError(f"proving/{key}") from None
