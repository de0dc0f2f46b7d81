"""
Unit tests per il motore di calcolo del preventivo.

Funzioni pure e carrello: nessun database coinvolto.
"""

from decimal import Decimal

import pytest

from crm.schemas.catalog import BillingType
from crm.schemas.quote import DiscountType, PaymentConfig, PaymentType
from crm.services.catalog import STATIC_SERVICES
from crm.services.quote_engine import (
    QuoteCart,
    calculate_quote,
    cash_discount,
    cash_total,
    installment_interest_rate,
    line_subtotal,
    line_total,
    monthly_total,
    one_time_total,
    round2,
    subtotal,
    total,
    total_installment_value,
)

from conftest import make_line


def _catalog(service_id):
    return next(s for s in STATIC_SERVICES if s.id == service_id)


# ============================================================
# Esempio di riferimento
# ============================================================


class TestWorkedExample:
    """Test sul carrello 2500 una tantum + 2 × 1000 mensili (sconto 200)."""

    def test_totals(self, example_cart):
        """Test tutte le cifre del preventivo con sconto contanti 5%."""
        totals = calculate_quote(example_cart, PaymentConfig(cash_discount_percentage=Decimal("5")))

        assert totals.original_subtotal == Decimal("4500")
        assert totals.one_time_total == Decimal("2500")
        assert totals.monthly_total == Decimal("1800")
        assert totals.subtotal == Decimal("4300")
        assert totals.total == Decimal("4300")
        assert totals.cash_discount == Decimal("215.00")
        assert totals.cash_total == Decimal("4085.00")
        assert totals.final_total == Decimal("4085.00")

    def test_default_payment_uses_five_percent(self, example_cart):
        """Test la configurazione di default applica il 5% per contanti."""
        totals = calculate_quote(example_cart)

        assert totals.cash_discount == Decimal("215.00")
        assert totals.selected_payment.name == "À vista"
        assert totals.selected_payment.installments == 1

    def test_final_total_ignores_installment_total(self, example_cart):
        """Test il totale finale resta quello per contanti anche se rateizzato."""
        payment = PaymentConfig(
            payment_type=PaymentType.INSTALLMENT,
            cash_discount_percentage=Decimal("5"),
            installment_number=2,
            installment_value=Decimal("2300"),
        )
        totals = calculate_quote(example_cart, payment)

        assert totals.final_total == Decimal("4085.00")
        assert totals.total_installment_value == Decimal("4600")


# ============================================================
# Calcoli di riga
# ============================================================


class TestLineCalculations:
    """Test prezzo unitario, subtotale e totale di riga."""

    def test_custom_price_overrides_base_price(self):
        line = make_line("website", "2500", custom_price=Decimal("2000"), quantity=2)

        assert line_subtotal(line) == Decimal("4000")

    def test_zero_custom_price_is_used(self):
        """Test un prezzo personalizzato pari a zero sostituisce il prezzo base."""
        line = make_line("website", "2500", custom_price=Decimal("0"))

        assert line_subtotal(line) == Decimal("0")

    def test_line_total_subtracts_discount(self):
        line = make_line("website", "2500", discount=Decimal("300"))

        assert line_total(line) == Decimal("2200")

    def test_empty_cart(self):
        """Test carrello vuoto: tutti i totali a zero, nessun errore."""
        totals = calculate_quote([])

        assert totals.subtotal == Decimal("0")
        assert totals.cash_discount == Decimal("0.00")
        assert totals.final_total == Decimal("0.00")
        assert totals.installment_interest_rate == Decimal("0")


# ============================================================
# Sconti di riga
# ============================================================


class TestLineDiscount:
    """Test sconto in percentuale e a valore."""

    def _cart(self):
        return QuoteCart([make_line("website", "2500")])

    def test_percentage_discount(self):
        cart = self._cart()
        cart.update_service_discount("website", Decimal("10"), DiscountType.PERCENTAGE)

        line = cart.services[0]
        assert line.discount == Decimal("250.00")
        assert line.discount_percentage == Decimal("10.00")
        assert line.discount_type == DiscountType.PERCENTAGE.value

    def test_value_discount_derives_percentage(self):
        cart = self._cart()
        cart.update_service_discount("website", Decimal("500"), DiscountType.VALUE)

        line = cart.services[0]
        assert line.discount == Decimal("500")
        assert line.discount_percentage == Decimal("20.00")
        assert line.discount_type == DiscountType.VALUE.value

    @pytest.mark.parametrize("entered", ["0", "1", "2499.99", "2500", "2500.01", "99999"])
    def test_value_discount_is_clamped_to_subtotal(self, entered):
        """Test lo sconto a valore non supera mai il subtotale di riga."""
        cart = self._cart()
        cart.update_service_discount("website", Decimal(entered), DiscountType.VALUE)

        line = cart.services[0]
        assert line.discount == min(Decimal(entered), Decimal("2500"))
        assert Decimal("0") <= line.discount <= line_subtotal(line)

    def test_percentage_above_hundred_is_clamped(self):
        cart = self._cart()
        cart.update_service_discount("website", Decimal("150"), DiscountType.PERCENTAGE)

        line = cart.services[0]
        assert line.discount == Decimal("2500.00")
        assert line.discount_percentage == Decimal("100.00")

    def test_negative_discount_becomes_zero(self):
        cart = self._cart()
        cart.update_service_discount("website", Decimal("-50"), DiscountType.VALUE)

        assert cart.services[0].discount == Decimal("0")

    @pytest.mark.parametrize("percentage", ["0", "5", "12.5", "33.33", "100"])
    def test_percentage_reads_back(self, percentage):
        """Test la percentuale impostata viene riletta invariata."""
        cart = self._cart()
        cart.update_service_discount("website", Decimal(percentage), DiscountType.PERCENTAGE)

        assert cart.services[0].discount_percentage == round2(Decimal(percentage))

    @pytest.mark.parametrize("value", ["1", "333", "1250", "3000"])
    def test_value_percentage_equivalence(self, value):
        cart = self._cart()
        cart.update_service_discount("website", Decimal(value), DiscountType.VALUE)

        expected = round2(Decimal("100") * min(Decimal(value), Decimal("2500")) / Decimal("2500"))
        assert cart.services[0].discount_percentage == expected

    def test_value_discount_on_zero_subtotal(self):
        """Test riga a prezzo zero: sconto e percentuale restano a zero."""
        cart = QuoteCart([make_line("free", "0")])
        cart.update_service_discount("free", Decimal("100"), DiscountType.VALUE)

        line = cart.services[0]
        assert line.discount == Decimal("0")
        assert line.discount_percentage == Decimal("0")

    def test_switching_type_resets_discount(self):
        """Test il cambio di tipo azzera sconto e percentuale senza conversione."""
        cart = self._cart()
        cart.update_service_discount("website", Decimal("10"), DiscountType.PERCENTAGE)
        cart.update_service_discount_type("website", DiscountType.VALUE)

        line = cart.services[0]
        assert line.discount == Decimal("0")
        assert line.discount_percentage == Decimal("0")
        assert line.discount_type == DiscountType.VALUE.value


# ============================================================
# Totali del carrello
# ============================================================


class TestCartTotals:
    """Test additività dei subtotali e sconto per contanti."""

    def test_subtotal_is_sum_of_billing_types(self, example_cart):
        extra = make_line("google-ads", "1200", billing_type=BillingType.MONTHLY, discount=Decimal("50"))
        services = example_cart + [extra, make_line("landing-page", "1800", quantity=3)]

        assert subtotal(services) == one_time_total(services) + monthly_total(services)

    @pytest.mark.parametrize("percentage", ["0", "5", "12.5", "33.33", "100"])
    def test_cash_total_monotonicity(self, example_cart, percentage):
        """Test totale per contanti = totale × (1 − % / 100) e mai superiore al totale."""
        payment = PaymentConfig(cash_discount_percentage=Decimal(percentage))
        services_total = total(example_cart)

        result = cash_total(example_cart, payment)
        exact = services_total * (1 - Decimal(percentage) / Decimal("100"))

        assert result <= services_total
        assert result == exact

    def test_cash_discount_is_not_rounded(self):
        """Test lo sconto per contanti mantiene tutte le cifre decimali."""
        services = [make_line("x", "333.33")]
        payment = PaymentConfig(cash_discount_percentage=Decimal("5"))

        assert cash_discount(services, payment) == Decimal("16.6665")
        assert cash_total(services, payment) == Decimal("316.6635")
        assert calculate_quote(services, payment).final_total == Decimal("316.6635")


# ============================================================
# Pagamento rateizzato
# ============================================================


class TestInstallments:
    """Test totale rateizzato e tasso di interesse implicito."""

    def test_manual_total_has_precedence(self):
        payment = PaymentConfig(
            payment_type=PaymentType.INSTALLMENT,
            installment_number=3,
            installment_value=Decimal("1000"),
            manual_installment_total=Decimal("4500"),
        )

        assert total_installment_value(payment) == Decimal("4500")

    def test_value_times_number(self):
        payment = PaymentConfig(
            payment_type=PaymentType.INSTALLMENT,
            installment_number=3,
            installment_value=Decimal("1000"),
        )

        assert total_installment_value(payment) == Decimal("3000")

    def test_cash_payment_has_no_installment_total(self):
        payment = PaymentConfig(installment_value=Decimal("1000"))

        assert total_installment_value(payment) == Decimal("0")

    def test_positive_interest_rate(self, example_cart):
        payment = PaymentConfig(
            payment_type=PaymentType.INSTALLMENT,
            installment_number=2,
            installment_value=Decimal("2300"),
        )

        assert installment_interest_rate(example_cart, payment) == Decimal("6.98")

    def test_negative_interest_rate_is_kept(self, example_cart):
        """Test un rateizzato inferiore al totale produce un tasso negativo."""
        payment = PaymentConfig(
            payment_type=PaymentType.INSTALLMENT,
            installment_number=2,
            installment_value=Decimal("2000"),
        )

        assert installment_interest_rate(example_cart, payment) == Decimal("-6.98")

    def test_no_rate_for_cash(self, example_cart):
        assert installment_interest_rate(example_cart, PaymentConfig()) == Decimal("0")

    def test_selected_payment_for_installments(self, example_cart):
        payment = PaymentConfig(
            payment_type=PaymentType.INSTALLMENT,
            installment_number=4,
            installment_value=Decimal("1100"),
        )
        selected = calculate_quote(example_cart, payment).selected_payment

        assert selected.name == "Parcelado em 4x"
        assert selected.installments == 4
        assert selected.total_installment_value == Decimal("4400")


# ============================================================
# Carrello
# ============================================================


class TestQuoteCart:
    """Test delle operazioni sul carrello."""

    def test_add_service_copies_features(self):
        cart = QuoteCart()
        cart.add_service(_catalog("ecommerce"))

        line = cart.services[0]
        assert line.quantity == 1
        assert line.custom_features == list(_catalog("ecommerce").features)
        assert line.discount == Decimal("0")

    def test_add_existing_service_increments_quantity(self):
        cart = QuoteCart()
        cart.add_service(_catalog("website"))
        cart.add_service(_catalog("website"), initial_quantity=2)

        assert len(cart) == 1
        assert cart.services[0].quantity == 3

    def test_add_with_initial_custom_price(self):
        cart = QuoteCart()
        cart.add_service(_catalog("website"), initial_custom_price=Decimal("1999"))

        assert cart.totals().subtotal == Decimal("1999")

    def test_remove_is_idempotent(self, example_cart):
        once = QuoteCart(example_cart)
        once.remove_service("website")
        twice = QuoteCart(example_cart)
        twice.remove_service("website")
        twice.remove_service("website")

        assert once.services == twice.services
        assert len(twice) == 1

    @pytest.mark.parametrize("quantity", [0, -1, -10])
    def test_quantity_floor_removes_line(self, example_cart, quantity):
        cart = QuoteCart(example_cart)
        cart.update_service_quantity("website", quantity)

        assert len(cart) == len(example_cart) - 1
        assert all(s.id != "website" for s in cart.services)

    def test_quantity_floor_unknown_id(self, example_cart):
        cart = QuoteCart(example_cart)
        cart.update_service_quantity("inexistente", 0)

        assert len(cart) == len(example_cart)

    def test_update_quantity(self, example_cart):
        cart = QuoteCart(example_cart)
        cart.update_service_quantity("website", 3)

        assert cart.services[0].quantity == 3
        assert cart.totals().one_time_total == Decimal("7500")

    def test_update_price(self, example_cart):
        cart = QuoteCart(example_cart)
        cart.update_service_price("website", Decimal("3000"))

        assert cart.totals().one_time_total == Decimal("3000")

    def test_update_features_does_not_change_totals(self, example_cart):
        cart = QuoteCart(example_cart)
        before = cart.totals()
        cart.update_service_features("website", ["Somente layout"])

        assert cart.services[0].custom_features == ["Somente layout"]
        assert cart.totals() == before

    def test_services_returns_copies(self, example_cart):
        """Test le righe restituite non modificano il carrello."""
        cart = QuoteCart(example_cart)
        cart.services[0].quantity = 99

        assert cart.services[0].quantity == 1

    def test_clear(self, example_cart):
        cart = QuoteCart(example_cart)
        cart.clear()

        assert len(cart) == 0
        assert cart.totals().final_total == Decimal("0.00")
