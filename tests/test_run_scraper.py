import csv
import json

import httpx
import pytest

from backend.inmoup import run_scraper, scraper
from backend.inmoup.config import ScrapeConfig
from backend.inmoup.database import init_database, list_properties

from conftest import SALE_URL, card, index_html


def test_config_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("INMOUP_DB_PATH", str(tmp_path / "x.sqlite"))
    monkeypatch.setenv("INMOUP_NAV_TIMEOUT_MS", "30000")
    monkeypatch.setenv("INMOUP_HEADFUL", "1")
    monkeypatch.setenv("INMOUP_FETCH_MODE", "HTTP")
    monkeypatch.setenv("INMOUP_COUNTRY", "Uruguay")
    monkeypatch.setenv("INMOUP_STRICT_PROPERTY_TYPE", "true")

    config = ScrapeConfig.from_env()
    assert config.db_path == str(tmp_path / "x.sqlite")
    assert config.navigation_timeout_ms == 30000
    assert config.headless is False
    assert config.fetch_mode == "http"
    assert config.country == "Uruguay"
    assert config.strict_property_type is True


def test_config_defaults(monkeypatch):
    for name in ("INMOUP_NAV_TIMEOUT_MS", "INMOUP_HEADFUL", "INMOUP_FETCH_MODE",
                 "INMOUP_COUNTRY", "INMOUP_STRICT_PROPERTY_TYPE"):
        monkeypatch.delenv(name, raising=False)
    config = ScrapeConfig.from_env()
    assert config.navigation_timeout_ms == 60000
    assert config.headless is True
    assert config.fetch_mode == "browser"
    assert config.country == "Argentina"
    assert config.strict_property_type is False
    assert config.selectors["propertyContainer"] == "article.item"


@pytest.mark.parametrize("kw", [{"fetch_mode": "ftp"}, {"navigation_timeout_ms": 0}])
def test_config_rejects_bad_values(kw):
    with pytest.raises(ValueError):
        ScrapeConfig(**kw)


def test_cli_flags_override_env(monkeypatch, tmp_path):
    monkeypatch.setenv("INMOUP_COUNTRY", "Uruguay")
    args = run_scraper.parse_args([
        SALE_URL, "--db", str(tmp_path / "a.sqlite"), "--http-only", "--country", "Chile",
        "--timeout-ms", "5000", "--strict-property-type",
    ])
    config = run_scraper.build_config(args)
    assert config.db_path == str(tmp_path / "a.sqlite")
    assert config.fetch_mode == "http"
    assert config.country == "Chile"
    assert config.navigation_timeout_ms == 5000
    assert config.strict_property_type is True


@pytest.fixture
def mock_site(monkeypatch):
    pages = {}

    def handler(request):
        return httpx.Response(200, text=pages.get(str(request.url), "<html></html>"))

    monkeypatch.setattr(
        scraper, "new_client", lambda timeout=60.0: httpx.AsyncClient(transport=httpx.MockTransport(handler))
    )
    return pages


def test_main_writes_db_and_json(mock_site, tmp_path):
    mock_site[SALE_URL] = index_html(card(), card(address="Belgrano 50", href="/departamento-en-venta-9"))
    db_path = tmp_path / "run.sqlite"
    out = tmp_path / "out.json"

    rc = run_scraper.main([SALE_URL, "--db", str(db_path), "--http-only", "--output", str(out)])

    assert rc == 0
    data = json.loads(out.read_text(encoding="utf-8"))
    assert [d["property_type"] for d in data] == ["HOUSE", "APARTMENT"]
    assert data[0]["title"] == "HOUSE for SALE"
    assert data[0]["price"] == "120000"
    assert data[1]["detail_url"] == "https://inmoup.com.ar/departamento-en-venta-9"

    conn = init_database(db_path)
    try:
        assert len(list_properties(conn)) == 2
    finally:
        conn.close()


def test_main_csv_and_skip_exit_code(mock_site, tmp_path, capsys):
    mock_site[SALE_URL] = index_html(card(), card(bathrooms=""))
    out = tmp_path / "out.csv"

    rc = run_scraper.main([
        SALE_URL, "--db", str(tmp_path / "run.sqlite"), "--http-only", "--output", str(out), "--print-details",
    ])

    assert rc == 1
    with open(out, newline="", encoding="utf-8") as f:
        rows = list(csv.DictReader(f))
    assert len(rows) == 1
    assert rows[0]["address"] == "Calle Falsa 123"
    assert "HOUSE for SALE" in capsys.readouterr().out


def test_main_aborts_on_unclassifiable_url(tmp_path):
    rc = run_scraper.main(["https://inmoup.com.ar/terrenos", "--db", str(tmp_path / "run.sqlite"), "--http-only"])
    assert rc == 2


def test_main_rejects_unknown_output_format(tmp_path):
    rc = run_scraper.main([SALE_URL, "--db", str(tmp_path / "run.sqlite"), "--output", str(tmp_path / "x.xml")])
    assert rc == 2
