import pytest

from hireos.services.email_validator import is_likely_invalid_email


@pytest.mark.parametrize("email", [
    "jane.doe@acme-mail.com",
    "r.kowalski@globex.io",
    "Mixed.Case@Company.org",
])
def test_plausible_addresses_pass(email):
    assert not is_likely_invalid_email(email)


@pytest.mark.parametrize("email", [
    None,
    "",
    "test@nonexistent.fake",
    "nonexistent.user.582013@gmail.com",
    "DeletedAccount.Test.990199@gmail.com",
    "test123@acme.io",
    "someone@example.com",
    "dummy.user@acme.io",
    "no-at-sign.acme.io",
    "two words@acme.io",
    "missing@tld",
])
def test_placeholder_and_malformed_addresses_fail(email):
    assert is_likely_invalid_email(email)
