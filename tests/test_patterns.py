"""Tests for the pattern registry and token codec."""

import hashlib
import hmac

import pytest

from pii_anonymizer import ConfigurationError, PIICategory, TokenCodec
from pii_anonymizer.patterns import DEFAULT_CATEGORY_ORDER, matchers_for, scan
from pii_anonymizer.tokens import TOKEN_PATTERN, _demo_fingerprint

from conftest import SECRET


# ── Pattern Registry ─────────────────────────────────────────────────

def test_default_category_order():
    assert DEFAULT_CATEGORY_ORDER == (
        PIICategory.EMAIL,
        PIICategory.PHONE,
        PIICategory.NATIONAL_ID,
        PIICategory.CREDIT_CARD,
        PIICategory.NAME,
        PIICategory.ADDRESS,
    )
    assert [m.category for m in matchers_for(DEFAULT_CATEGORY_ORDER)] == list(DEFAULT_CATEGORY_ORDER)


def test_email_detection():
    matches = scan(PIICategory.EMAIL, "Mi email es juan@ejemplo.com")
    assert len(matches) == 1
    assert matches[0].text == "juan@ejemplo.com"
    assert matches[0].start == len("Mi email es ")
    assert matches[0].source == "regex"


@pytest.mark.parametrize("phone", [
    "+57 300 123 4567",
    "3001234567",
    "300-123-4567",
    "57 300.123.4567",
])
def test_phone_detection(phone):
    matches = scan(PIICategory.PHONE, f"Llámeme al {phone} hoy")
    assert [m.text for m in matches] == [phone]


def test_phone_ignores_longer_digit_runs():
    assert scan(PIICategory.PHONE, "Radicado 123456789012345") == []
    assert scan(PIICategory.PHONE, "Expediente 12345678") == []


@pytest.mark.parametrize("cedula", [
    "CC: 12345678",
    "C.C. 1020304050",
    "Cédula 98765432",
    "cedula: 123456",
])
def test_national_id_detection(cedula):
    matches = scan(PIICategory.NATIONAL_ID, f"Identificado con {cedula}, residente")
    assert [m.text for m in matches] == [cedula]


def test_national_id_needs_digits_after_label():
    assert scan(PIICategory.NATIONAL_ID, "Mi cédula es nueva") == []


@pytest.mark.parametrize("card", [
    "4111-1111-1111-1111",
    "4111 1111 1111 1111",
    "4111111111111111",
])
def test_credit_card_detection(card):
    matches = scan(PIICategory.CREDIT_CARD, f"Tarjeta {card}.")
    assert [m.text for m in matches] == [card]


def test_credit_card_is_not_a_phone():
    assert scan(PIICategory.PHONE, "Tarjeta 4111-1111-1111-1111") == []
    assert scan(PIICategory.PHONE, "Tarjeta 4111111111111111") == []


def test_name_detection():
    matches = scan(PIICategory.NAME, "Reunión con la Dra. María Pérez mañana")
    assert [m.text for m in matches] == ["Dra. María Pérez"]


def test_name_with_particles():
    matches = scan(PIICategory.NAME, "Apoderado: el Sr. Juan de la Torre, abogado")
    assert [m.text for m in matches] == ["Sr. Juan de la Torre"]


@pytest.mark.parametrize("address", ["Calle 45 # 12-30", "Carrera 7", "Cra. 7 No. 71-21", "Av. 68"])
def test_name_stops_before_street_keyword(address):
    text = f"Visite al Dr. Pérez {address}"
    assert [m.text for m in scan(PIICategory.NAME, text)] == ["Dr. Pérez"]
    assert [m.text for m in scan(PIICategory.ADDRESS, text)] == [address]


def test_name_requires_honorific():
    assert scan(PIICategory.NAME, "María Pérez firmó el contrato") == []


def test_address_detection():
    matches = scan(PIICategory.ADDRESS, "Vivo en la Calle 45 # 12-30 apto 301 de Bogotá")
    assert [m.text for m in matches] == ["Calle 45 # 12-30 apto 301"]


def test_address_abbreviations():
    matches = scan(PIICategory.ADDRESS, "Oficina en Cra. 7 No. 71-21, y sede en Av. 68")
    assert [m.text for m in matches] == ["Cra. 7 No. 71-21", "Av. 68"]


def test_no_false_positive_on_clean_text():
    text = "El contrato de arrendamiento vence el próximo mes"
    for category in PIICategory:
        assert scan(category, text) == []


# ── Token Codec ──────────────────────────────────────────────────────

def test_keyed_token_format_and_fingerprint():
    codec = TokenCodec(SECRET)
    token = codec.make_token(PIICategory.EMAIL, "juan@ejemplo.com")
    expected = hmac.new(
        SECRET.encode(), b"EMAIL:juan@ejemplo.com", hashlib.sha256
    ).hexdigest()[:8]
    assert token == f"<PII_EMAIL_{expected}>"
    assert TOKEN_PATTERN.fullmatch(token)


def test_token_is_deterministic():
    a = TokenCodec(SECRET).make_token(PIICategory.PHONE, "3001234567")
    b = TokenCodec(SECRET).make_token(PIICategory.PHONE, "3001234567")
    assert a == b


def test_token_depends_on_category_and_key():
    codec = TokenCodec(SECRET)
    assert codec.make_token(PIICategory.PHONE, "123") != codec.make_token(PIICategory.NATIONAL_ID, "123")
    assert codec.make_token(PIICategory.EMAIL, "a@b.co") != TokenCodec("other").make_token(PIICategory.EMAIL, "a@b.co")


def test_multiword_category_tag():
    token = TokenCodec(SECRET).make_token(PIICategory.NATIONAL_ID, "CC 12345678")
    assert token.startswith("<PII_NATIONAL_ID_")
    assert TOKEN_PATTERN.fullmatch(token)


def test_missing_key_raises_configuration_error():
    codec = TokenCodec(None)
    with pytest.raises(ConfigurationError) as exc:
        codec.make_token(PIICategory.EMAIL, "a@b.co")
    assert exc.value.setting == "signing_key"
    assert "signing_key is not configured" in str(exc.value)


def test_demo_codec_needs_no_key():
    codec = TokenCodec.demo()
    codec.require_key()
    token = codec.make_token(PIICategory.EMAIL, "juan@ejemplo.com")
    assert TOKEN_PATTERN.fullmatch(token)
    assert token == TokenCodec.demo().make_token(PIICategory.EMAIL, "juan@ejemplo.com")
    assert not codec.keyed


def test_demo_fingerprint_rolling_hash():
    assert _demo_fingerprint("a") == "00000061"
    assert _demo_fingerprint("ab") == "00000c21"   # 97 * 31 + 98


def test_parse_tokens():
    text = "Hola <PII_NAME_0a1b2c3d>, su correo <PII_EMAIL_deadbeef> y <PII_NAME_0a1b2c3d>"
    assert TokenCodec.parse_tokens(text) == [
        "<PII_NAME_0a1b2c3d>", "<PII_EMAIL_deadbeef>", "<PII_NAME_0a1b2c3d>",
    ]
    assert TokenCodec.contains_tokens(text)


def test_parse_tokens_ignores_malformed():
    text = "<PII_EMAIL_DEADBEEF> <PII_EMAIL_1234> <pii_email_deadbeef> <PII_EMAIL_deadbeef0>"
    assert TokenCodec.parse_tokens(text) == []
    assert not TokenCodec.contains_tokens("sin tokens")


def test_unknown_category_is_still_a_token():
    assert TokenCodec.parse_tokens("x <PII_PASSPORT_0a1b2c3d> y") == ["<PII_PASSPORT_0a1b2c3d>"]
