from datetime import date

from onnibox.utils.money import (
    money, money_sum, expenses_total, percent_of, format_date_display,
    diff_label, month_bounds, previous_period,
)


def test_money_reconciles_binary_fractions():
    assert money(0.1 + 0.2) == 0.3
    assert money_sum([0.1, 0.2, 0.3]) == 0.6


def test_money_uses_bankers_rounding():
    assert money(0.125) == 0.12
    assert money(0.135) == 0.14
    assert money(None) == 0.0


def test_expenses_total_accepts_dicts():
    assert expenses_total([{"amount": 10.1}, {"amount": 5.25}]) == 15.35
    assert expenses_total(None) == 0.0


def test_percent_of():
    assert percent_of(2000, 10) == 200.0
    assert percent_of(999.99, 0) == 0.0


def test_format_date_display_has_no_timezone_shift():
    assert format_date_display("2024-01-01") == "01/01/2024"
    assert format_date_display(date(2024, 12, 31)) == "31/12/2024"
    assert format_date_display(None) == "-"


def test_diff_label_tolerance_band():
    assert diff_label(-0.11) == "FALTA DE CAIXA"
    assert diff_label(0.11) == "SOBRA DE CAIXA"
    assert diff_label(-0.1) == "CONFERÊNCIA OK"
    assert diff_label(0.05) == "CONFERÊNCIA OK"


def test_month_bounds_handles_february():
    assert month_bounds(date(2024, 2, 10)) == (date(2024, 2, 1), date(2024, 2, 29))


def test_previous_period_has_equal_length():
    start, end = previous_period(date(2024, 3, 1), date(2024, 3, 31))
    assert end == date(2024, 2, 29)
    assert (end - start).days == 30
