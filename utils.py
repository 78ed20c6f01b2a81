import re


def card_filename(card_number: str, ext: str = "pdf") -> str:
    """
    Build the download filename for a card artifact.
    - Every character outside letters/digits/'-' becomes '_'
    - Falls back to 'cartao-maf-card.<ext>'
    """
    raw = "" if card_number is None else str(card_number).strip()
    safe = re.sub(r"[^a-zA-Z0-9-]", "_", raw)
    if not safe.strip("_"):
        safe = "card"
    return f"cartao-maf-{safe}.{ext.lstrip('.')}"


def format_cpf(cpf: str) -> str:
    """Format a raw 11-digit CPF as 000.000.000-00; anything else is returned as given."""
    raw = "" if cpf is None else str(cpf).strip()
    digits = re.sub(r"\D", "", raw)
    if len(digits) != 11:
        return raw
    return f"{digits[:3]}.{digits[3:6]}.{digits[6:9]}-{digits[9:]}"
