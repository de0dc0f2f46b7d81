"""
Motore di calcolo del preventivo
Progetto: ConexHub CRM (Gestionale Proposte)

Gestisce il carrello dei servizi selezionati e ne deriva tutti i totali:
subtotale, sconti di riga, ripartizione una tantum / mensile,
sconto per pagamento in contanti, totale rateizzato e tasso di interesse.

Le funzioni di calcolo sono pure e non sollevano eccezioni: gli stati
non validi (carrello vuoto, totale nullo) vengono gestiti restituendo zero.
"""

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional, Sequence

from crm.schemas.catalog import BillingType, ServiceItem
from crm.schemas.quote import (
    DiscountType,
    PaymentConfig,
    PaymentType,
    QuoteTotals,
    SelectedPayment,
    SelectedService,
)

# Logger per questo modulo
logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")
HUNDRED = Decimal("100")
ZERO = Decimal("0")


def round2(value: Decimal) -> Decimal:
    """Arrotonda a due decimali (ROUND_HALF_UP)."""
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def _to_decimal(value) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


# ------------------------------------------------------------
# Calcoli di riga
# ------------------------------------------------------------

def unit_price(line: SelectedService) -> Decimal:
    """Prezzo unitario effettivo: custom_price se impostato, altrimenti base_price."""
    if line.custom_price is not None:
        return _to_decimal(line.custom_price)
    return _to_decimal(line.base_price)


def line_subtotal(line: SelectedService) -> Decimal:
    """Importo di riga prima dello sconto."""
    return unit_price(line) * line.quantity


def line_total(line: SelectedService) -> Decimal:
    """Importo di riga al netto dello sconto."""
    return line_subtotal(line) - _to_decimal(line.discount)


# ------------------------------------------------------------
# Totali del carrello
# ------------------------------------------------------------

def original_subtotal(services: Sequence[SelectedService]) -> Decimal:
    """Somma delle righe prima degli sconti."""
    return sum((line_subtotal(s) for s in services), ZERO)


def subtotal(services: Sequence[SelectedService]) -> Decimal:
    """Somma delle righe al netto degli sconti di riga."""
    return sum((line_total(s) for s in services), ZERO)


# Il subtotale scontato è anche il "totale" del preventivo
total = subtotal


def _billing_total(services: Sequence[SelectedService], billing_type: BillingType) -> Decimal:
    return sum(
        (line_total(s) for s in services if s.billing_type == billing_type),
        ZERO,
    )


def one_time_total(services: Sequence[SelectedService]) -> Decimal:
    """Totale dei servizi una tantum."""
    return _billing_total(services, BillingType.ONE_TIME)


def monthly_total(services: Sequence[SelectedService]) -> Decimal:
    """Totale dei servizi ricorrenti mensili."""
    return _billing_total(services, BillingType.MONTHLY)


def cash_discount(services: Sequence[SelectedService], payment: PaymentConfig) -> Decimal:
    """Sconto per pagamento in contanti: total × % / 100."""
    return total(services) * _to_decimal(payment.cash_discount_percentage) / HUNDRED


def cash_total(services: Sequence[SelectedService], payment: PaymentConfig) -> Decimal:
    """Totale dopo lo sconto per pagamento in contanti."""
    return total(services) - cash_discount(services, payment)


def final_total(services: Sequence[SelectedService], payment: PaymentConfig) -> Decimal:
    """
    Totale finale canonico.

    È sempre il totale scontato per contanti, anche con pagamento rateizzato:
    il totale rateizzato viene mostrato accanto ma non lo sostituisce.
    """
    return cash_total(services, payment)


def total_installment_value(payment: PaymentConfig) -> Decimal:
    """
    Totale rateizzato.

    Il totale manuale, se maggiore di zero, ha la precedenza; altrimenti
    valore rata × numero rate quando il pagamento è rateizzato.
    """
    manual = payment.manual_installment_total
    if manual is not None and _to_decimal(manual) > ZERO:
        return _to_decimal(manual)
    installment_value = _to_decimal(payment.installment_value)
    if payment.payment_type == PaymentType.INSTALLMENT and installment_value > ZERO:
        return installment_value * payment.installment_number
    return ZERO


def installment_interest_rate(services: Sequence[SelectedService], payment: PaymentConfig) -> Decimal:
    """
    Tasso di interesse implicito del pagamento rateizzato, in %.

    Può essere negativo (il rateizzato costa meno del totale): il segno
    viene mantenuto.
    """
    if payment.payment_type != PaymentType.INSTALLMENT:
        return ZERO
    installment_total = total_installment_value(payment)
    base = total(services)
    if installment_total <= ZERO or base <= ZERO:
        return ZERO
    return round2((installment_total - base) / base * HUNDRED)


def selected_payment(services: Sequence[SelectedService], payment: PaymentConfig) -> SelectedPayment:
    """Descrizione della modalità di pagamento scelta."""
    if payment.payment_type == PaymentType.INSTALLMENT:
        return SelectedPayment(
            name=f"Parcelado em {payment.installment_number}x",
            fee=installment_interest_rate(services, payment),
            installments=payment.installment_number,
            type=PaymentType.INSTALLMENT,
            installment_value=_to_decimal(payment.installment_value),
            total_installment_value=total_installment_value(payment),
        )
    return SelectedPayment(
        name="À vista",
        fee=_to_decimal(payment.cash_discount_percentage),
        installments=1,
        type=PaymentType.CASH,
    )


def calculate_quote(services: Sequence[SelectedService], payment: Optional[PaymentConfig] = None) -> QuoteTotals:
    """
    Calcola tutte le cifre del preventivo.

    Args:
        services: Righe del carrello
        payment: Configurazione di pagamento (default: contanti con sconto di default)

    Returns:
        QuoteTotals con subtotali, sconti, totale finale e dati del pagamento
    """
    payment = payment or PaymentConfig()
    services_total = total(services)
    discount = cash_discount(services, payment)

    return QuoteTotals(
        original_subtotal=original_subtotal(services),
        subtotal=services_total,
        total=services_total,
        one_time_total=one_time_total(services),
        monthly_total=monthly_total(services),
        cash_discount=discount,
        cash_total=services_total - discount,
        final_total=services_total - discount,
        total_installment_value=total_installment_value(payment),
        installment_interest_rate=installment_interest_rate(services, payment),
        selected_payment=selected_payment(services, payment),
    )


# ------------------------------------------------------------
# Carrello
# ------------------------------------------------------------

class QuoteCart:
    """
    Carrello del preventivo, con scope di sessione.

    Unico proprietario della lista di righe: le altre componenti leggono
    tramite `services` e modificano solo attraverso i metodi qui definiti.

    Usage:
        cart = QuoteCart()
        cart.add_service(service)
        cart.update_service_discount(service.id, Decimal("10"))
        totals = cart.totals(PaymentConfig())
    """

    def __init__(self, services: Optional[Iterable[SelectedService]] = None) -> None:
        self._services: list[SelectedService] = [s.model_copy(deep=True) for s in services or ()]

    @property
    def services(self) -> list[SelectedService]:
        """Copia delle righe correnti."""
        return [s.model_copy(deep=True) for s in self._services]

    def __len__(self) -> int:
        return len(self._services)

    def _find(self, service_id: str) -> Optional[SelectedService]:
        for line in self._services:
            if line.id == service_id:
                return line
        return None

    def add_service(
        self,
        service: ServiceItem,
        initial_quantity: Optional[int] = None,
        initial_custom_price: Optional[Decimal] = None,
    ) -> None:
        """
        Aggiunge un servizio al carrello.

        Se il servizio è già presente ne incrementa la quantità,
        altrimenti crea una nuova riga copiando le caratteristiche.
        """
        quantity = initial_quantity if initial_quantity and initial_quantity > 0 else 1

        existing = self._find(service.id)
        if existing is not None:
            existing.quantity += quantity
            logger.debug("Quantità servizio %s aumentata a %s", service.id, existing.quantity)
            return

        data = service.model_dump(include=set(ServiceItem.model_fields))
        self._services.append(
            SelectedService(
                **data,
                quantity=quantity,
                custom_price=initial_custom_price,
                custom_features=list(service.features),
            )
        )
        logger.debug("Servizio %s aggiunto al carrello (quantità %s)", service.id, quantity)

    def remove_service(self, service_id: str) -> None:
        """Rimuove la riga; nessun errore se assente."""
        self._services = [s for s in self._services if s.id != service_id]

    def update_service_quantity(self, service_id: str, quantity: int) -> None:
        """Aggiorna la quantità; un valore <= 0 rimuove la riga."""
        if quantity <= 0:
            self.remove_service(service_id)
            return
        line = self._find(service_id)
        if line is not None:
            line.quantity = quantity

    def update_service_price(self, service_id: str, custom_price: Optional[Decimal]) -> None:
        """Imposta il prezzo personalizzato senza validazioni."""
        line = self._find(service_id)
        if line is not None:
            line.custom_price = custom_price

    def update_service_discount(
        self,
        service_id: str,
        discount_value: Decimal,
        discount_type: DiscountType = DiscountType.PERCENTAGE,
    ) -> None:
        """
        Ricalcola sconto e percentuale della riga.

        - percentage: discount = subtotale × valore / 100
        - value: discount = min(valore, subtotale), percentuale derivata
        """
        line = self._find(service_id)
        if line is None:
            return

        value = max(_to_decimal(discount_value), ZERO)
        base = line_subtotal(line)

        if discount_type == DiscountType.PERCENTAGE:
            percentage = min(value, HUNDRED)
            line.discount = round2(base * percentage / HUNDRED)
            line.discount_percentage = round2(percentage)
        else:
            discount = min(value, base) if base > ZERO else ZERO
            line.discount = discount
            line.discount_percentage = round2(discount / base * HUNDRED) if base > ZERO else ZERO

        line.discount_type = DiscountType(discount_type).value

    def update_service_discount_type(self, service_id: str, discount_type: DiscountType) -> None:
        """Cambia il tipo di sconto azzerando sconto e percentuale."""
        line = self._find(service_id)
        if line is None:
            return
        line.discount_type = DiscountType(discount_type).value
        line.discount = ZERO
        line.discount_percentage = ZERO

    def update_service_features(self, service_id: str, features: list[str]) -> None:
        """Sostituisce le caratteristiche mostrate; non incide sui prezzi."""
        line = self._find(service_id)
        if line is not None:
            line.custom_features = list(features)

    def clear(self) -> None:
        """Svuota il carrello."""
        self._services = []

    def totals(self, payment: Optional[PaymentConfig] = None) -> QuoteTotals:
        """Totali correnti del carrello."""
        return calculate_quote(self._services, payment)
