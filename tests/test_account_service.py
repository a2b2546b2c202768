from fintrack.services.account_service import (
    AccountService,
    AlertService,
    PreferencesService,
    PriceAlert,
    evaluate_alerts,
)


def test_account_operations_report_friendly_errors(session) -> None:
    accounts = AccountService(session)

    created = accounts.sign_up("ana@example.com", "secret1")
    assert created.data["authenticated"] is True

    duplicate = accounts.sign_up("ana@example.com", "secret1")
    assert duplicate.error.code == "AUTH"
    assert duplicate.error.message == "This email is already registered. Please log in or use another email."

    assert accounts.sign_out().data == {"user_id": None, "authenticated": False}
    wrong = accounts.sign_in("ana@example.com", "secret9")
    assert wrong.error.message == "Incorrect password. Please try again."
    assert wrong.error.details == [{"auth_code": "wrong-password"}]

    assert accounts.reset_password("ana@example.com").data["message"] == "Password reset email sent! Check your inbox."
    assert accounts.change_password("secret1", "secret2", "secret2").error.message == (
        "You must be logged in to change your password"
    )
    accounts.sign_in("ana@example.com", "secret1")
    assert accounts.change_password("secret1", "secret2", "secret2").data["message"] == "Password changed successfully!"


def test_preferences_defaults_and_updates(documents, session) -> None:
    prefs = PreferencesService(documents, session, default_currency="eur")
    assert prefs.get_preferences().data.currency == "eur"
    assert prefs.get_preferences().data.default_range == "7"

    assert prefs.set_currency("INR").data.currency == "inr"
    assert prefs.set_currency("btc").error.code == "INVALID_INPUT"
    assert prefs.set_default_range("365").data.default_range == "365"
    assert prefs.set_default_range("90").error.code == "INVALID_INPUT"
    assert documents.get("preferences", "local") == {"currency": "inr", "defaultRange": "365", "favorites": []}

    assert prefs.toggle_favorite("bitcoin").data.favorites == ["bitcoin"]
    assert prefs.toggle_favorite("solana").data.favorites == ["bitcoin", "solana"]
    assert prefs.toggle_favorite("bitcoin").data.favorites == ["solana"]


def test_preferences_follow_the_signed_in_user(documents, session) -> None:
    prefs = PreferencesService(documents, session)
    prefs.set_currency("gbp")
    user_id = session.sign_up("ana@example.com", "secret1")
    assert prefs.get_preferences().data.currency == "usd"
    prefs.set_currency("jpy")
    assert documents.get("preferences", user_id)["currency"] == "jpy"
    session.sign_out()
    assert prefs.get_preferences().data.currency == "gbp"


def test_alerts_validate_and_prepend(documents, session) -> None:
    alerts = AlertService(documents, session, clock=lambda: 1_700_000_000.0)

    assert alerts.add_alert("bitcoin", "abc", "10").error.message == (
        "Please enter valid numbers for both min and max price."
    )
    assert alerts.add_alert("bitcoin", 20, 10).error.message == "Min price should be less than or equal to max price."

    first = alerts.add_alert("bitcoin", "30000", "70000").data
    second = alerts.add_alert("usd-coin", 0.99, 1.01).data
    assert first.id == "1700000000000"
    assert second.id == "1700000000001"
    assert second.coin_name == "Usd Coin"
    assert [a.id for a in alerts.list_alerts().data] == [second.id, first.id]
    assert documents.get("alerts", "local")["alerts"][0]["coin"] == "usd-coin"

    assert alerts.remove_alert(first.id).data is True
    assert alerts.remove_alert(first.id).data is False


def test_evaluate_alerts_reports_breaches() -> None:
    rules = [
        PriceAlert(id="1", coin_id="bitcoin", coin_name="Bitcoin", min_price=30000, max_price=70000),
        PriceAlert(id="2", coin_id="ethereum", coin_name="Ethereum", min_price=2000, max_price=3000),
        PriceAlert(id="3", coin_id="solana", coin_name="Solana", min_price=100, max_price=200),
        PriceAlert(id="4", coin_id="dogecoin", coin_name="Dogecoin", min_price=0.1, max_price=0.2),
    ]
    triggered = evaluate_alerts(rules, {"bitcoin": 72000.0, "ethereum": 1500.0, "solana": 150.0})
    assert [(t.alert.id, t.direction) for t in triggered] == [("1", "above_max"), ("2", "below_min")]
