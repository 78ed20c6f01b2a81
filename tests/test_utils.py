from utils import card_filename, format_cpf


def test_card_filename_basic():
    assert card_filename("MAF-ABC123") == "cartao-maf-MAF-ABC123.pdf"


def test_card_filename_replaces_unsafe_chars():
    assert card_filename("MAF/12 3", "png") == "cartao-maf-MAF_12_3.png"


def test_card_filename_empty_fallback():
    assert card_filename("") == "cartao-maf-card.pdf"
    assert card_filename("   ", ".png") == "cartao-maf-card.png"


def test_format_cpf_raw_digits():
    assert format_cpf("12345678900") == "123.456.789-00"


def test_format_cpf_keeps_formatted_and_unknown_values():
    assert format_cpf("123.456.789-00") == "123.456.789-00"
    assert format_cpf("1234") == "1234"
