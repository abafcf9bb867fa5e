from payments.apps import payments_system_checks


def test_no_warnings_outside_production(settings):
    settings.ENV = "development"
    settings.CHAPA_WEBHOOK_SECRET = ""
    assert payments_system_checks(None) == []


def test_missing_webhook_secret_warns_in_production(settings):
    settings.ENV = "production"
    settings.CHAPA_WEBHOOK_SECRET = ""

    ids = [m.id for m in payments_system_checks(None)]

    assert "payments.W001" in ids


def test_incomplete_gateway_config_warns_in_production(settings):
    settings.ENV = "production"
    settings.TELEBIRR_BASE_URL = ""

    messages = [m for m in payments_system_checks(None) if m.id == "payments.W002"]

    assert len(messages) == 1
    assert "TELEBIRR_BASE_URL" in messages[0].hint
