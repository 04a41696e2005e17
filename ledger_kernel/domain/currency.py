"""Currency -- ISO 4217 minor-unit registry and precision-derived rounding."""

from dataclasses import dataclass
from decimal import Decimal
from typing import ClassVar


@dataclass(frozen=True)
class CurrencyInfo:
    """Minor-unit information about a single ISO 4217 currency."""

    code: str
    decimal_places: int
    name: str

    @property
    def minor_unit(self) -> Decimal:
        """Smallest representable amount (0.01 for two-decimal currencies)."""
        return Decimal(1).scaleb(-self.decimal_places)


class CurrencyRegistry:
    """Registry of ISO 4217 currencies with decimal places.

    The currency table the engine is handed carries rates and conversion
    direction but no precision; precision is an ISO property of the code and
    lives here.
    """

    _CURRENCIES: ClassVar[dict[str, CurrencyInfo]] = {
        # Gulf and regional
        "AED": CurrencyInfo("AED", 2, "UAE Dirham"),
        "SAR": CurrencyInfo("SAR", 2, "Saudi Riyal"),
        "QAR": CurrencyInfo("QAR", 2, "Qatari Riyal"),
        "BHD": CurrencyInfo("BHD", 3, "Bahraini Dinar"),
        "KWD": CurrencyInfo("KWD", 3, "Kuwaiti Dinar"),
        "OMR": CurrencyInfo("OMR", 3, "Omani Rial"),
        "JOD": CurrencyInfo("JOD", 3, "Jordanian Dinar"),
        "IQD": CurrencyInfo("IQD", 3, "Iraqi Dinar"),
        "EGP": CurrencyInfo("EGP", 2, "Egyptian Pound"),
        "TRY": CurrencyInfo("TRY", 2, "Turkish Lira"),
        "IRR": CurrencyInfo("IRR", 2, "Iranian Rial"),
        # South Asia
        "INR": CurrencyInfo("INR", 2, "Indian Rupee"),
        "PKR": CurrencyInfo("PKR", 2, "Pakistani Rupee"),
        "BDT": CurrencyInfo("BDT", 2, "Bangladeshi Taka"),
        "LKR": CurrencyInfo("LKR", 2, "Sri Lankan Rupee"),
        "NPR": CurrencyInfo("NPR", 2, "Nepalese Rupee"),
        "AFN": CurrencyInfo("AFN", 2, "Afghan Afghani"),
        # Major
        "USD": CurrencyInfo("USD", 2, "US Dollar"),
        "EUR": CurrencyInfo("EUR", 2, "Euro"),
        "GBP": CurrencyInfo("GBP", 2, "Pound Sterling"),
        "CHF": CurrencyInfo("CHF", 2, "Swiss Franc"),
        "CAD": CurrencyInfo("CAD", 2, "Canadian Dollar"),
        "AUD": CurrencyInfo("AUD", 2, "Australian Dollar"),
        "CNY": CurrencyInfo("CNY", 2, "Chinese Yuan"),
        "HKD": CurrencyInfo("HKD", 2, "Hong Kong Dollar"),
        "SGD": CurrencyInfo("SGD", 2, "Singapore Dollar"),
        "PHP": CurrencyInfo("PHP", 2, "Philippine Peso"),
        # Zero decimal
        "JPY": CurrencyInfo("JPY", 0, "Japanese Yen"),
        "KRW": CurrencyInfo("KRW", 0, "South Korean Won"),
        "VND": CurrencyInfo("VND", 0, "Vietnamese Dong"),
        "UGX": CurrencyInfo("UGX", 0, "Ugandan Shilling"),
        # Precious metals
        "XAU": CurrencyInfo("XAU", 0, "Gold (troy ounce)"),
        "XAG": CurrencyInfo("XAG", 0, "Silver (troy ounce)"),
    }

    # Default decimal places for codes not in the registry
    DEFAULT_DECIMAL_PLACES: ClassVar[int] = 2

    @classmethod
    def is_known(cls, code: str) -> bool:
        """Check if a currency code is in the registry."""
        if not code or not isinstance(code, str):
            return False
        return code.upper().strip() in cls._CURRENCIES

    @classmethod
    def get_info(cls, code: str) -> CurrencyInfo | None:
        """Get currency information by code."""
        if not code or not isinstance(code, str):
            return None
        return cls._CURRENCIES.get(code.upper().strip())

    @classmethod
    def get_decimal_places(cls, code: str) -> int:
        """Get decimal places for a currency, falling back to the default."""
        info = cls.get_info(code)
        return info.decimal_places if info else cls.DEFAULT_DECIMAL_PLACES

    @classmethod
    def get_minor_unit(cls, code: str) -> Decimal:
        """Smallest representable amount for a currency."""
        return Decimal(1).scaleb(-cls.get_decimal_places(code))

    @classmethod
    def normalize(cls, code: str) -> str:
        """Normalize a currency code (strip + uppercase).

        Unlike ISO validation, unknown codes are accepted: the currency table
        is administered by the host application and may carry local codes.
        """
        if not code or not isinstance(code, str):
            raise ValueError(f"Invalid currency code: {code!r}")
        normalized = code.upper().strip()
        if not normalized:
            raise ValueError(f"Invalid currency code: {code!r}")
        return normalized
