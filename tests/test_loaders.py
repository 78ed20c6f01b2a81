import pytest

import data_loaders as loaders


def _csv(tmp_path, text):
    path = tmp_path / "members.csv"
    path.write_text(text, encoding="utf-8")
    return str(path)


def test_load_render_requests_csv_basic(tmp_path):
    path = _csv(
        tmp_path,
        "name,cpf,card_number,validation_token,photo_path,certification_date\n"
        "Maria Silva,01234567890,MAF-1,tok1,members/m.jpg,2021-03-10\n",
    )
    reqs = loaders.load_render_requests(path)
    assert len(reqs) == 1
    req = reqs[0]
    assert req.name == "Maria Silva"
    assert req.cpf == "01234567890"  # leading zero kept
    assert req.card_number == "MAF-1"
    assert req.qr_token == "tok1"
    assert req.photo_path == "members/m.jpg"
    assert req.certification_date == "2021-03-10"


def test_load_render_requests_portuguese_headers(tmp_path):
    path = _csv(
        tmp_path,
        "Nome completo,CPF,Número da carteira,Token de validação\n"
        "Ana,111.222.333-44,MAF-2,tok2\n",
    )
    reqs = loaders.load_render_requests(path)
    assert [(r.name, r.card_number, r.qr_token) for r in reqs] == [("Ana", "MAF-2", "tok2")]
    assert reqs[0].photo_path is None
    assert reqs[0].certification_date is None


def test_load_render_requests_skips_and_dedups(tmp_path):
    path = _csv(
        tmp_path,
        "name,cpf,card_number,validation_token\n"
        "A,1,MAF-1,t1\n"
        ",2,MAF-2,t2\n"
        "C,3,MAF-1,t3\n"
        "D,4,MAF-4,\n",
    )
    reqs = loaders.load_render_requests(path)
    assert [r.card_number for r in reqs] == ["MAF-1"]
    assert reqs.load_stats == {
        "source_rows": 4,
        "loaded_rows": 1,
        "skipped_missing_fields": 2,
        "dropped_duplicate_card_number": 1,
    }


def test_load_render_requests_missing_column(tmp_path):
    path = _csv(tmp_path, "name,cpf\nA,1\n")
    with pytest.raises(ValueError) as exc:
        loaders.load_render_requests(path)
    assert "card_number" in str(exc.value)


def test_load_render_requests_empty_file(tmp_path):
    path = _csv(tmp_path, "name,cpf,card_number,validation_token\n")
    reqs = loaders.load_render_requests(path)
    assert list(reqs) == []
    assert reqs.load_stats["loaded_rows"] == 0
