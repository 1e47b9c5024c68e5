import httpx

from carsync.collectors.mobile_de.collector import (
    MobileDeCollector,
    _extract_detail_fields,
    _extract_listing_urls,
    dealer_search_url,
)


DETAIL_HTML = """
<html>
<head><title>BMW 320d Touring M Sport für 32.900 € kaufen</title></head>
<body>
  <aside>
    <h2>BMW 320d Touring</h2>
    <p>M Sport &amp; Head-Up</p>
    <div><span>32.900&nbsp;€</span></div>
  </aside>
  <dl>
    <dt>Kilometerstand</dt><dd>85.000 km</dd>
    <dt>Leistung</dt><dd>140 kW (190 PS)</dd>
    <dt>Kraftstoffart</dt><dd>Diesel</dd>
    <dt>Getriebe</dt>
    <dd>Automatik</dd>
    <dt>Erstzulassung</dt><dd>03/2021</dd>
    <dt>Anzahl der Fahrzeughalter</dt><dd>1</dd>
    <dt>Fahrzeugzustand</dt><dd>Gebrauchtfahrzeug, Unfallfrei</dd>
    <dt>Farbe (Hersteller)</dt><dd>Mineralgrau</dd>
    <dt>Farbe</dt><dd>Grau <span>Metallic</span></dd>
    <dt>Innenausstattung</dt><dd>Vollleder, Schwarz</dd>
  </dl>
  <article>
    <h3>Ausstattung</h3>
    <ul><li>Navigationssystem</li><li>Sitzheizung</li><li>X</li></ul>
  </article>
  <article>
    <h3>Fahrzeugbeschreibung</h3>
    <ul><li>Not a feature</li></ul>
  </article>
  <img src="https://img.classistatic.de/api/v1/mo-prod/images/aa/aa1?rule=mo-360">
  <img src="https://img.classistatic.de/api/v1/mo-prod/images/aa/aa1?rule=mo-640">
  <img src="https://img.classistatic.de/api/v1/mo-prod/images/bb/bb2?rule=mo-360">
  <img src="https://static.example.com/logo.png">
</body>
</html>
"""

SEARCH_HTML = """
<a href="https://suchen.mobile.de/fahrzeuge/details.html?id=111&amp;ref=srp">BMW</a>
<a href="/fahrzeuge/details.html?lang=de&id=222">Audi</a>
<a href="https://suchen.mobile.de/fahrzeuge/details.html?id=111">BMW again</a>
<a href="https://suchen.mobile.de/fahrzeuge/search.html?page=2">next</a>
"""


def test_dealer_search_url_rewrites_customer_storefront():
    assert (
        dealer_search_url("https://home.mobile.de/AUTOHAUS?customerId=4242#ses")
        == "https://suchen.mobile.de/fahrzeuge/search.html?s=Car&vc=Car&sid=4242"
    )
    assert dealer_search_url("https://suchen.mobile.de/x") == "https://suchen.mobile.de/x"


def test_extract_listing_urls_dedupes_by_listing_id():
    assert _extract_listing_urls(SEARCH_HTML) == [
        "https://suchen.mobile.de/fahrzeuge/details.html?id=111",
        "https://suchen.mobile.de/fahrzeuge/details.html?id=222",
    ]


def test_extract_detail_fields_reads_labelled_values():
    fields = _extract_detail_fields(DETAIL_HTML)

    assert fields["title"] == "BMW 320d Touring M Sport"
    assert fields["price"] == "32900"
    assert fields["mileage"] == "85.000 km"
    assert fields["power"] == "140 kW (190 PS)"
    assert fields["transmission"] == "Automatik"
    assert fields["first_registration"] == "03/2021"
    assert fields["owners"] == "1"
    assert fields["color_manufacturer"] == "Mineralgrau"
    assert fields["color"] == "Grau Metallic"
    assert fields["interior"] == "Vollleder, Schwarz"
    assert fields["subtitle"] == "M Sport & Head-Up"
    assert fields["features"] == ["Navigationssystem", "Sitzheizung"]
    assert fields["images"] == [
        "https://img.classistatic.de/api/v1/mo-prod/images/aa/aa1?rule=mo-1600",
        "https://img.classistatic.de/api/v1/mo-prod/images/bb/bb2?rule=mo-1600",
    ]
    assert "cylinders" not in fields


def test_extract_detail_fields_tolerates_empty_page():
    assert _extract_detail_fields("<html></html>") == {"features": [], "images": []}


def test_collector_fetches_search_and_detail_pages():
    def handler(request):
        if request.url.path == "/fahrzeuge/search.html":
            assert request.url.params["sid"] == "4242"
            return httpx.Response(200, text=SEARCH_HTML)
        return httpx.Response(200, text=DETAIL_HTML)

    collector = MobileDeCollector(client=httpx.Client(transport=httpx.MockTransport(handler)))

    urls = collector.list_candidates("https://home.mobile.de/AUTOHAUS?customerId=4242")
    fields = collector.fetch_fields(urls[0])

    assert len(urls) == 2
    assert fields["fuel_type"] == "Diesel"
    collector.close()


def test_extract_detail_fields_skips_label_without_value():
    page = (
        "<dl><dt>Finanzierung</dt><div>ab 299 EUR</div>"
        "<dt>Kilometerstand</dt><dd>85.000 km</dd>"
        "<dt>Erstzulassung</dt><dd>03/2021</dd></dl>"
    )

    fields = _extract_detail_fields(page)

    assert fields["mileage"] == "85.000 km"
    assert fields["first_registration"] == "03/2021"
