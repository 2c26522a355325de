"""Static application data: payment methods, labels and defaults."""

from decimal import Decimal

from finance_tracker.models.transaction import (
    AccountType,
    Currency,
    FilterPeriod,
    PaymentMethod,
    PaymentMethodCatalog,
    PaymentMethodOption,
    TransactionType,
)


INITIAL_EXCHANGE_RATE = Decimal("1")

PAYMENT_METHOD_OPTIONS: tuple[PaymentMethodOption, ...] = (
    PaymentMethodOption(
        id=PaymentMethod.PAGO_MOVIL_BS,
        label="Pago Móvil (Bs.)",
        currency=Currency.BS,
        account_type=AccountType.BANK,
    ),
    PaymentMethodOption(
        id=PaymentMethod.EFECTIVO_BS,
        label="Efectivo (Bs.)",
        currency=Currency.BS,
        account_type=AccountType.CASH,
    ),
    PaymentMethodOption(
        id=PaymentMethod.EFECTIVO_USD,
        label="Efectivo (USD)",
        currency=Currency.USD,
        account_type=AccountType.CASH,
    ),
    PaymentMethodOption(
        id=PaymentMethod.USDT,
        label="USDT",
        currency=Currency.USD,
        account_type=AccountType.DIGITAL,
    ),
)

TRANSACTION_TYPE_LABELS = {
    TransactionType.INCOME: "Ingreso",
    TransactionType.EXPENSE: "Gasto",
    TransactionType.ADJUSTMENT: "Ajuste",
}

FILTER_PERIOD_LABELS = {
    FilterPeriod.ALL: "Todo",
    FilterPeriod.TODAY: "Hoy",
    FilterPeriod.WEEK: "Esta semana",
    FilterPeriod.MONTH: "Este mes",
    FilterPeriod.CUSTOM: "Personalizado",
}

DATE_FORMAT = "%Y-%m-%d"
DATE_DISPLAY_FORMAT = "%d/%m/%Y"


def default_catalog() -> PaymentMethodCatalog:
    """Build the catalog of the built-in payment methods."""
    return PaymentMethodCatalog(PAYMENT_METHOD_OPTIONS)
