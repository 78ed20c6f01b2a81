"""
Batch input helpers: read approved members from CSV/Excel into render requests.

Important: keep imports light at module import time; pandas is imported inside functions.
"""

from pathlib import Path
from typing import Any, List, Optional

from models import CardRenderRequest


def _find_column(df: Any, exact: Optional[str], *subs) -> Optional[str]:
    """Find column by exact name or by substrings (all must match, case-insensitive)."""
    df_cols = [str(c).strip() for c in df.columns]
    if exact and exact in df_cols:
        return exact
    low = exact.lower() if exact else ""
    for c in df.columns:
        cs = str(c).strip()
        if exact and cs.lower() == low:
            return c
        if subs and all(s.lower() in cs.lower() for s in subs):
            return c
    return None


def _cell(row: Any, col: Optional[str]) -> str:
    if not col:
        return ""
    v = row.get(col, "")
    if v is None or (isinstance(v, float) and str(v) == "nan"):
        return ""
    s = str(v).strip()
    return "" if s.lower() in ("nan", "nat", "none") else s


def read_members_dataframe(path: str, sheet: str = "Sheet1") -> Any:
    """Read a CSV or Excel file into a DataFrame with stripped column names."""
    import pandas as pd

    suf = Path(path).suffix.lower()
    if suf in (".xlsx", ".xls"):
        try:
            df = pd.read_excel(path, sheet_name=sheet, dtype=str)
        except ImportError as e:
            if "openpyxl" in str(e).lower():
                raise ImportError(
                    "Reading Excel requires openpyxl. Install it with:\n  pip install openpyxl"
                ) from e
            raise
    else:
        # dtype=str keeps CPFs and card numbers exactly as typed (leading zeros)
        df = pd.read_csv(path, dtype=str)
    df.columns = [str(c).strip() for c in df.columns]
    return df


class LoadedRequests(list):
    """List of requests that also carries load statistics."""

    load_stats: dict = {}


def load_render_requests(path: str, sheet: str = "Sheet1") -> List[CardRenderRequest]:
    """
    Load card render requests from CSV or Excel.

    Expected columns (matched by exact name first, then by substring):
    name, cpf, card_number, validation_token, and optionally photo_path and
    certification_date. Rows missing a required field are skipped and duplicate
    card numbers keep their first occurrence. Load statistics are exposed on
    the returned list as `load_stats` via the LoadedRequests subclass.
    """
    df = read_members_dataframe(path, sheet)
    if df.empty:
        out = LoadedRequests()
        out.load_stats = {"source_rows": 0, "loaded_rows": 0}
        return out

    name_col = (
        _find_column(df, "name")
        or _find_column(df, "Nome")
        or _find_column(df, None, "nome")
        or _find_column(df, None, "name")
    )
    cpf_col = _find_column(df, "cpf") or _find_column(df, None, "cpf")
    number_col = (
        _find_column(df, "card_number")
        or _find_column(df, None, "card", "number")
        or _find_column(df, None, "numero")
        or _find_column(df, None, "número")
    )
    token_col = (
        _find_column(df, "validation_token")
        or _find_column(df, "qr_token")
        or _find_column(df, None, "token")
    )
    photo_col = _find_column(df, "photo_path") or _find_column(df, None, "photo") or _find_column(df, None, "foto")
    cert_col = (
        _find_column(df, "certification_date")
        or _find_column(df, None, "certification")
        or _find_column(df, None, "habilit")
    )

    missing = [
        label
        for label, col in (("name", name_col), ("cpf", cpf_col), ("card_number", number_col), ("validation_token", token_col))
        if not col
    ]
    if missing:
        raise ValueError(f"Missing required column(s) {missing}. Columns: {list(df.columns)}")

    total_rows = len(df)
    skipped = 0
    duplicates = 0
    seen = set()
    out = LoadedRequests()
    for _, r in df.iterrows():
        name = _cell(r, name_col)
        cpf = _cell(r, cpf_col)
        number = _cell(r, number_col)
        token = _cell(r, token_col)
        if not (name and cpf and number and token):
            skipped += 1
            continue
        if number in seen:
            duplicates += 1
            continue
        seen.add(number)
        out.append(
            CardRenderRequest(
                name=name,
                cpf=cpf,
                card_number=number,
                qr_token=token,
                photo_path=_cell(r, photo_col) or None,
                certification_date=_cell(r, cert_col) or None,
            )
        )
    out.load_stats = {
        "source_rows": total_rows,
        "loaded_rows": len(out),
        "skipped_missing_fields": skipped,
        "dropped_duplicate_card_number": duplicates,
    }
    return out
