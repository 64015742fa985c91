from dataclasses import replace

import pytest

from tableprint import commands as cmd
from tableprint.documents import (
    build_daily_document,
    build_order_document,
    build_place_card,
    build_place_cards,
    qr_payload,
    sort_by_start,
)
from tableprint.models import PrintableOrder, PrintableReservation, RasterBitmap
from tableprint.printer import coerce_reservations

CUT = b"\x1dV\x00"

ROWS = [
    {
        "id": "r1",
        "start_at": "2025-03-01 19:00:00",
        "table_number": 7,
        "party_size": 4,
        "customer_first": "Luca",
        "customer_last": "Bianchi",
        "phone": "333 1234567",
    },
    {
        "id": "r2",
        "start_at": "2025-03-01 11:30:00",
        "table_number": 3,
        "party_size": 2,
        "customer_first": "Ana",
        "customer_last": "Rossi",
        "notes": "seggiolone",
    },
]


def test_empty_daily_document_still_prints_frame(utc_config, utc_formatter):
    buffers = build_daily_document(utc_config, utc_formatter, "2025-03-01", [])
    payload = b"".join(buffers)
    assert payload.startswith(b"\x1b@\x1bt\x13")
    assert b"PRENOTAZIONI\n" in payload
    assert "SABATO, 01/03/2025".encode() in payload
    assert b"Operatore: sistema\n" in payload
    assert payload.endswith(CUT)


def test_no_cut_when_disabled(utc_config, utc_formatter):
    config = replace(utc_config, cut_enabled=False)
    payload = b"".join(build_daily_document(config, utc_formatter, "2025-03-01", []))
    assert CUT not in payload


def test_flat_daily_rows_sorted_by_start(utc_config, utc_formatter):
    config = replace(utc_config, daily_grouped=False)
    rows = coerce_reservations(ROWS)
    payload = b"".join(build_daily_document(config, utc_formatter, "2025-03-01", rows, "sala@example.com"))

    first = ("11:30 3    2   Ana Rossi".ljust(48) + "\n").encode()
    second = ("19:00 7    4   Luca Bianchi".ljust(48) + "\n").encode()
    assert first in payload
    assert second in payload
    assert payload.index(first) < payload.index(second)
    assert b"ORA   TAV  PAX NOME" in payload
    assert b"               NOTE: seggiolone\n" in payload
    assert b"               333 1234567\n" in payload
    assert b"Operatore: sala@example.com\n" in payload


def test_grouped_daily_has_one_title_per_start_time(utc_config, utc_formatter):
    rows = coerce_reservations(ROWS + [dict(ROWS[1], id="r3", table_number=1)])
    payload = b"".join(build_daily_document(utc_config, utc_formatter, "2025-03-01", rows))
    assert payload.count(b"11:30\n") == 1
    assert payload.count(b"19:00\n") == 1
    assert payload.index(b"11:30\n") < payload.index(b"19:00\n")
    # Within a group, tables ascend.
    assert payload.index(b"1    2   Ana Rossi") < payload.index(b"3    2   Ana Rossi")
    assert cmd.font_size(2, 2) in payload


def test_sort_by_start_puts_unparseable_last(utc_formatter):
    rows = [
        PrintableReservation(id="late", start_at="2025-03-01 21:00:00"),
        PrintableReservation(id="unknown", start_at="boh"),
        PrintableReservation(id="early", start_at="2025-03-01 12:00:00"),
    ]
    assert [row.id for row in sort_by_start(rows, utc_formatter)] == ["early", "late", "unknown"]


def test_qr_payload_per_table():
    reservation = PrintableReservation(table_id=12, table_number=4)
    assert qr_payload("https://x.test", reservation) == "https://x.test/table/12"
    assert qr_payload("https://x.test/", reservation) == "https://x.test/table/12"
    assert qr_payload("https://x.test", reservation, per_table=False) == "https://x.test/"
    assert qr_payload("https://x.test", PrintableReservation()) == "https://x.test/"
    assert qr_payload("", reservation) is None
    assert qr_payload(None, reservation) is None


def test_place_card_contains_qr_block(utc_config, utc_formatter):
    reservation = PrintableReservation(
        start_at="2025-03-01 20:00:00",
        table_id=12,
        room_name="Veranda",
        party_size=6,
        customer_first="Mario",
        customer_last="Rossi",
    )
    payload = b"".join(build_place_card(utc_config, utc_formatter, reservation, qr_url="https://x.test/table/12"))
    assert b"TAVOLO 12\n" in payload
    assert b"ROSSI MARIO\n" in payload
    assert cmd.font_size(3, 2) in payload
    assert cmd.qr_store_data("https://x.test/table/12") in payload
    assert cmd.qr_error_correction("H") in payload
    assert b"Scansiona il QR del locale\n" in payload
    assert b"SALA:  Veranda" in payload
    assert b"COPERTI: 6" in payload
    assert payload.endswith(cmd.feed(4) + CUT)


def test_place_card_without_qr_or_fields(utc_config, utc_formatter):
    payload = b"".join(build_place_card(utc_config, utc_formatter, PrintableReservation()))
    assert b"TAVOLO -\n" in payload
    assert b"OSPITE\n" in payload
    assert b"--:--" in payload
    assert b"\x1d(k" not in payload
    assert payload.endswith(CUT)


def test_place_card_logo_raster(utc_config, utc_formatter):
    logo = RasterBitmap(width=8, height=1, data=b"\xff")
    payload = b"".join(build_place_card(utc_config, utc_formatter, PrintableReservation(), logo=logo))
    assert cmd.align("center") + cmd.raster_transfer(logo) + b"\n" in payload


def test_place_cards_one_cut_per_card(utc_config, utc_formatter):
    rows = coerce_reservations(ROWS + [{"table_id": 9}])
    payload = b"".join(build_place_cards(utc_config, utc_formatter, rows, qr_base_url="https://x.test"))
    assert payload.count(CUT) == 3
    assert payload.count(b"\x1b@") == 3
    assert cmd.qr_store_data("https://x.test/table/9") in payload
    # Input order is kept.
    assert payload.index(b"BIANCHI LUCA") < payload.index(b"ROSSI ANA")


def test_place_cards_default_to_configured_base_url(utc_config, utc_formatter):
    config = replace(utc_config, qr_base_url="https://menu.test", qr_per_table=False)
    payload = b"".join(build_place_cards(config, utc_formatter, [PrintableReservation(table_id=3)]))
    assert cmd.qr_store_data("https://menu.test/") in payload


def test_order_receipt(utc_config, utc_formatter):
    config = replace(utc_config, header_lines=("Da Mario", "Via Roma 1"), footer="Grazie!")
    order = PrintableOrder.from_row(
        {
            "id": "A17",
            "created_at": "2025-03-01 19:45:00",
            "customer_first": "Ana",
            "customer_last": "Rossi",
            "total": "12.50",
            "items": [
                {"qty": 2, "product_name": "Supplì", "price": "2.50", "notes": "ben cotti"},
                {"qty": 1, "product_name": "Margherita", "price": "7.50", "ingredients": "bufala"},
            ],
        }
    )
    payload = b"".join(build_order_document(config, utc_formatter, order))
    assert cmd.bold(True) + b"Da Mario\n" + cmd.bold(False) + b"Via Roma 1\n" in payload
    assert (f"{'Ordine #':<45}A17" + "\n").encode() in payload
    assert b"01/03/2025 19:45" in payload
    assert b"Cliente: Ana Rossi\n" in payload
    assert cmd.encode("2x Supplì") in payload
    assert b"  Note: ben cotti\n" in payload
    assert b"  + bufala\n" in payload
    assert cmd.encode("€ 12.50") in payload
    assert b"Grazie!\n" in payload
    assert payload.endswith(cmd.feed(2) + CUT)


LONG_ROW = {
    "start_at": "2025-03-01 20:00:00",
    "table_number": 12,
    "room_name": "Sala grande del giardino d'inverno al primo piano",
    "party_size": 12,
    "customer_first": "Maria Antonietta",
    "customer_last": "Della Valle Santangelo di Montebello",
    "phone": "+39 333 1234567 oppure +39 06 7654321 (casa)",
    "notes": "Compleanno, torta alle diciotto in punto, tavolo vicino alla finestra e seggiolone",
}

LONG_ORDER = {
    "id": "A17",
    "created_at": "2025-03-01 19:45:00",
    "customer_first": "Maria Antonietta",
    "customer_last": "Della Valle Santangelo di Montebello",
    "phone": "+39 333 1234567 oppure +39 06 7654321 (casa)",
    "delivery_address": "Via dei Fori Imperiali 123, scala B, interno 7, citofono Della Valle",
    "total": "10.00",
    "items": [
        {
            "qty": 2,
            "product_name": "Pizza quattro formaggi con bufala e rucola extra",
            "price": "5.00",
            "notes": "senza glutine, ben cotta, tagliata in otto spicchi per favore",
        }
    ],
}


def _text_lines(buffers: list[bytes]) -> list[str]:
    return [chunk[:-1].decode("cp858") for chunk in buffers if chunk.endswith(b"\n")]


@pytest.mark.parametrize("width_mm", [80, 58])
def test_no_text_line_exceeds_columns(utc_config, utc_formatter, width_mm):
    config = replace(
        utc_config,
        width_mm=width_mm,
        header_lines=("Trattoria Da Mario e Figli dal 1962", "Via Appia Nuova 1024, 00179 Roma, tel. 06 1234567"),
        footer="Grazie per averci scelto, a presto e buon appetito da tutto lo staff!",
        qr_base_url="https://x.test",
    )
    rows = coerce_reservations([LONG_ROW])
    documents = [
        build_daily_document(config, utc_formatter, "2025-03-01", rows, "sala.grande@trattoria.it"),
        build_daily_document(replace(config, daily_grouped=False), utc_formatter, "2025-03-01", rows),
        build_place_cards(config, utc_formatter, rows),
        build_order_document(config, utc_formatter, PrintableOrder.from_row(LONG_ORDER)),
    ]
    for buffers in documents:
        for text in _text_lines(buffers):
            assert len(text) <= config.columns, text


def test_long_item_name_wraps_under_price(utc_config, utc_formatter):
    payload = b"".join(build_order_document(utc_config, utc_formatter, PrintableOrder.from_row(LONG_ORDER)))
    first = "2x Pizza quattro formaggi con bufala e".ljust(41) + "€ 10.00"
    assert cmd.line(first) in payload
    assert b"\nrucola extra\n" in payload
